import httpx
import pytest

from ocr_submit.config.settings import EndpointConfig
from ocr_submit.models import Document
from ocr_submit.pipeline.client import SubmissionClient
from ocr_submit.utils.result import ApplicationError, DecodingError, HttpError, NetworkFailure

URL = "http://ocr.test/webhook"


def _client(handler, **config) -> SubmissionClient:
    return SubmissionClient(
        EndpointConfig(url=URL, **config),
        transport=httpx.MockTransport(handler),
    )


class TestSubmissionClient:
    @pytest.mark.asyncio
    async def test_posts_multipart_body(self, png_document: Document) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"text": "ok"})

        await _client(handler).submit(png_document)

        assert len(seen) == 1
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == URL
        assert request.headers["content-type"].startswith("multipart/form-data")
        body = request.content
        assert b'name="file"; filename="scan.png"' in body
        assert b"Content-Type: image/png" in body
        assert b'name="filename"\r\n\r\nscan.png' in body
        assert b"\x89PNG" in body

    @pytest.mark.asyncio
    async def test_configured_field_names(self, png_document: Document) -> None:
        seen: list[bytes] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.content)
            return httpx.Response(200, json={"text": "ok"})

        await _client(handler, file_field="image", filename_field="name").submit(png_document)
        assert b'name="image"; filename="scan.png"' in seen[0]
        assert b'name="name"\r\n\r\nscan.png' in seen[0]

    @pytest.mark.asyncio
    async def test_json_success(self, png_document: Document) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"text": "Hello", "confidence": 0.95})

        result = (await _client(handler).submit(png_document)).unwrap()
        assert result.text == "Hello"
        assert result.confidence == 0.95

    @pytest.mark.asyncio
    async def test_plain_text_success(self, png_document: Document) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                content=b"Plain extracted text",
                headers={"content-type": "text/plain"},
            )

        result = (await _client(handler).submit(png_document)).unwrap()
        assert result.text == "Plain extracted text"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 404, 500, 503])
    async def test_non_2xx_is_http_error(self, png_document: Document, status: int) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, json={"text": "ignored"})

        error = (await _client(handler).submit(png_document)).unwrap_err()
        assert error == HttpError(status)
        assert str(status) in str(error)

    @pytest.mark.asyncio
    async def test_connection_failure_is_network_failure(self, png_document: Document) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        error = (await _client(handler).submit(png_document)).unwrap_err()
        assert isinstance(error, NetworkFailure)
        assert "connection refused" in str(error)

    @pytest.mark.asyncio
    async def test_timeout_is_network_failure(self, png_document: Document) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        error = (await _client(handler).submit(png_document)).unwrap_err()
        assert isinstance(error, NetworkFailure)

    @pytest.mark.asyncio
    async def test_application_failure(self, png_document: Document) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"success": False, "error": "low quality scan"}])

        error = (await _client(handler).submit(png_document)).unwrap_err()
        assert error == ApplicationError("low quality scan")

    @pytest.mark.asyncio
    async def test_malformed_json(self, png_document: Document) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                content=b"{not json",
                headers={"content-type": "application/json"},
            )

        error = (await _client(handler).submit(png_document)).unwrap_err()
        assert isinstance(error, DecodingError)

    @pytest.mark.asyncio
    async def test_non_text_charset_does_not_raise(self, png_document: Document) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                content=b"hello",
                headers={"content-type": "text/plain; charset=base64"},
            )

        result = await _client(handler).submit(png_document)
        assert result.unwrap().text == "hello"

    @pytest.mark.asyncio
    async def test_single_attempt_only(self, png_document: Document) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(502)

        await _client(handler).submit(png_document)
        assert calls == [1]
