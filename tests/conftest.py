from __future__ import annotations

import sys
import threading
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from backend.core.config import Settings
from backend.core.errors import GenerationError
from backend.core.schema import StockMetadata

SUNSET_KEYWORDS = ["sunset", "mountain"] + [f"keyword{index}" for index in range(48)]


def sunset_metadata() -> StockMetadata:
    return StockMetadata(
        title="Sunset over mountains",
        description="Golden light spilling over a mountain ridge at dusk.",
        keywords=SUNSET_KEYWORDS,
        category="Nature",
    )


class FakeMetadataClient:
    """Deterministic stand-in for the Gemini client."""

    model = "fake-model"

    def __init__(self, result: StockMetadata | None = None, error: Exception | None = None) -> None:
        self.result = result or sunset_metadata()
        self.error = error
        self.calls = []
        self.closed = False
        self.started = threading.Event()
        self.release: threading.Event | None = None

    def hold(self) -> None:
        """Block calls until ``release`` is set."""

        self.release = threading.Event()

    def generate_metadata(self, image):
        self.calls.append(image)
        self.started.set()
        if self.release is not None:
            self.release.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return self.result

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def settings() -> Settings:
    return Settings(api_key="test-key")


@pytest.fixture()
def fake_client() -> FakeMetadataClient:
    return FakeMetadataClient()


@pytest.fixture()
def failing_client() -> FakeMetadataClient:
    return FakeMetadataClient(error=GenerationError("upstream exploded"))


class FakeClock:
    """Manually advanced replacement for ``time.monotonic``."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


class BrokenUpload:
    def read(self, *args, **kwargs):
        raise OSError("connection reset")
