import asyncio
import io
from typing import Callable

import httpx
import pytest

from ocr_submit.models import Document
from ocr_submit.pipeline.client import SubmissionClient
from ocr_submit.config.settings import EndpointConfig
from ocr_submit.processor.machine import ProcessingStateMachine
from ocr_submit.processor.progress import ProgressEstimator
from ocr_submit.reporter.notifications import Notifier
from ocr_submit.utils.logging import configure_logging

ENDPOINT_URL = "http://ocr.test/webhook"


class FixedRandom:
    """Stand-in for random.Random returning the same value every time."""

    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture(autouse=True)
def quiet_logging() -> None:
    """Route structured logs to a throwaway buffer for every test."""
    configure_logging(level="debug", format_type="json", stream=io.StringIO())


@pytest.fixture()
def png_document() -> Document:
    """A 500 KB PNG."""
    content = b"\x89PNG\r\n\x1a\n" + b"\x00" * (500 * 1024 - 8)
    return Document(
        name="scan.png",
        size_bytes=len(content),
        mime_type="image/png",
        content=content,
    )


@pytest.fixture()
def fast_estimator() -> ProgressEstimator:
    """Ticks every millisecond by 7.5 points."""
    return ProgressEstimator(interval_seconds=0.001, rng=FixedRandom(0.5))


@pytest.fixture()
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture()
def make_machine(
    fast_estimator: ProgressEstimator,
    notifier: Notifier,
) -> Callable[[Callable], ProcessingStateMachine]:
    """Build a state machine whose HTTP traffic goes to ``handler``."""

    def factory(handler: Callable) -> ProcessingStateMachine:
        client = SubmissionClient(
            EndpointConfig(url=ENDPOINT_URL),
            transport=httpx.MockTransport(handler),
        )
        return ProcessingStateMachine(
            client=client,
            estimator=fast_estimator,
            notifier=notifier,
        )

    return factory


@pytest.fixture()
def eventually() -> Callable:
    """Coroutine that yields to the event loop until a predicate holds."""

    async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        async def poll() -> None:
            while not predicate():
                await asyncio.sleep(0.001)

        await asyncio.wait_for(poll(), timeout)

    return wait_until
