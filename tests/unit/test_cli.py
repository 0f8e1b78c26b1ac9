import json
from pathlib import Path

import httpx
import pytest
from click.testing import CliRunner

from ocr_submit.cli import cli, session_summary
from ocr_submit.config.settings import ENV_ENDPOINT_URL, ENV_LOG_LEVEL
from ocr_submit.processor.machine import ProcessingStateMachine
from ocr_submit.processor.states import ProcessingSession, SessionStatus
from ocr_submit.models import ProcessingResult
from ocr_submit.utils.result import ExitCode


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv(ENV_ENDPOINT_URL, raising=False)
    monkeypatch.delenv(ENV_LOG_LEVEL, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def route(monkeypatch: pytest.MonkeyPatch):
    """Send every machine built by the CLI to ``handler``."""
    original = ProcessingStateMachine.from_config.__func__

    def install(handler) -> list[httpx.Request]:
        seen: list[httpx.Request] = []

        def recording(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        def from_config(cls, config, transport=None, notifier=None):
            config.progress.interval_seconds = 0.001
            return original(
                cls,
                config,
                transport=httpx.MockTransport(recording),
                notifier=notifier,
            )

        monkeypatch.setattr(ProcessingStateMachine, "from_config", classmethod(from_config))
        return seen

    return install


@pytest.fixture()
def image(tmp_path: Path) -> Path:
    path = tmp_path / "scan.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 1024)
    return path


def invoke(*args: str):
    return CliRunner().invoke(cli, ["--log-level", "error", *args])


class TestValidateCommand:
    def test_accepted(self, image: Path) -> None:
        result = invoke("validate", str(image))

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["status"] == "accepted"
        assert data["document"]["name"] == "scan.png"
        assert data["document"]["mime_type"] == "image/png"

    def test_unsupported_type(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("hello")

        result = invoke("validate", str(path))

        assert result.exit_code == ExitCode.FILE_REJECTED
        assert '"reason": "unsupported_type"' in result.output

    def test_too_large(self, tmp_path: Path) -> None:
        path = tmp_path / "big.png"
        path.write_bytes(b"\x00" * 2048)
        (tmp_path / "ocr-submit.yaml").write_text("upload:\n  max_file_size_bytes: 1024\n")

        result = invoke("validate", str(path))

        assert result.exit_code == ExitCode.FILE_REJECTED
        assert '"reason": "too_large"' in result.output

    def test_declared_mime_type_wins(self, tmp_path: Path) -> None:
        path = tmp_path / "upload.bin"
        path.write_bytes(b"\x00")

        result = invoke("validate", "--mime-type", "image/jpeg", str(path))

        assert result.exit_code == 0

    def test_no_files(self) -> None:
        result = invoke("validate")
        assert result.exit_code == ExitCode.NO_FILE_SELECTED


class TestSubmitCommand:
    def test_success_prints_session(self, image: Path, route) -> None:
        seen = route(lambda request: httpx.Response(200, json={"text": "Hello", "confidence": 0.95}))

        result = invoke("submit", str(image))

        assert result.exit_code == 0
        assert len(seen) == 1
        assert '"status": "success"' in result.output
        assert '"text": "Hello"' in result.output

    def test_text_only(self, image: Path, route) -> None:
        route(lambda request: httpx.Response(200, text="Plain extracted text"))

        result = invoke("submit", "--text-only", str(image))

        assert result.exit_code == 0
        assert "Plain extracted text" in result.output
        assert '"status"' not in result.output

    def test_http_error_exit_code(self, image: Path, route) -> None:
        route(lambda request: httpx.Response(500))

        result = invoke("submit", str(image))

        assert result.exit_code == ExitCode.SUBMISSION_FAILED
        assert "Request failed with HTTP status 500" in result.output

    def test_rejected_file_is_never_sent(self, tmp_path: Path, route) -> None:
        seen = route(lambda request: httpx.Response(200, json={}))
        path = tmp_path / "doc.pdf"
        path.write_bytes(b"%PDF")

        result = invoke("submit", str(path))

        assert result.exit_code == ExitCode.FILE_REJECTED
        assert "Invalid file type" in result.output
        assert seen == []

    def test_no_file(self, route) -> None:
        seen = route(lambda request: httpx.Response(200, json={}))

        result = invoke("submit")

        assert result.exit_code == ExitCode.NO_FILE_SELECTED
        assert seen == []

    def test_export_dir(self, image: Path, tmp_path: Path, route) -> None:
        payload = {"text": "Hello", "confidence": 0.95}
        route(lambda request: httpx.Response(200, json=payload))
        out = tmp_path / "out"

        result = invoke("submit", "--export-dir", str(out), str(image))

        assert result.exit_code == 0
        exported = out / "ocr-results-scan.png.json"
        assert json.loads(exported.read_text(encoding="utf-8")) == payload

    def test_endpoint_option(self, image: Path, route) -> None:
        seen = route(lambda request: httpx.Response(200, json={"text": "ok"}))

        result = invoke("--endpoint", "https://override.example/ocr", "submit", str(image))

        assert result.exit_code == 0
        assert str(seen[0].url) == "https://override.example/ocr"


class TestGroupOptions:
    def test_invalid_endpoint_option(self, image: Path) -> None:
        result = invoke("--endpoint", "nowhere", "validate", str(image))
        assert result.exit_code == ExitCode.CONFIG_ERROR

    def test_invalid_config_file(self, tmp_path: Path, image: Path) -> None:
        config = tmp_path / "bad.yaml"
        config.write_text("progress:\n  cap: 150\n")

        result = invoke("--config", str(config), "validate", str(image))

        assert result.exit_code == ExitCode.CONFIG_ERROR
        assert "progress.cap" in result.output

    def test_version(self) -> None:
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestSessionSummary:
    def test_success_with_confidence(self) -> None:
        session = ProcessingSession(
            status=SessionStatus.SUCCESS,
            progress=100.0,
            result=ProcessingResult.from_payload({"text": "Hello", "confidence": 0.95}),
        )
        assert session_summary(session) == "Processing Complete: 5 characters, confidence 95%"

    def test_error(self) -> None:
        session = ProcessingSession(
            status=SessionStatus.ERROR,
            progress=100.0,
            error_message="boom",
        )
        assert session_summary(session) == "Processing Failed: boom"

    def test_idle(self) -> None:
        assert session_summary(ProcessingSession()) == "Ready to Process"
