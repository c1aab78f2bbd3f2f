"""Shared pytest fixtures and fakes for receipt pipeline tests."""

from __future__ import annotations

import io
import threading
import time
from collections.abc import Callable, Sequence

import pytest
from moneyquest_ocr.domain.receipt import BoundingBox, PreprocessedImage, RecognitionResult, WordToken
from moneyquest_ocr.runtime.recognition import EngineParameters
from moneyquest_ocr.runtime.rule_engine import reset_rule_engine
from moneyquest_ocr.runtime.settings import ENV_OVERRIDES, reset_settings


def make_recognition_result(
    lines: Sequence[Sequence[tuple[str, float, float]]],
    confidence: float = 90.0,
    line_height: float = 20.0,
) -> RecognitionResult:
    """Build a RecognitionResult from (text, x0, x1) tuples per line."""
    built: list[tuple[WordToken, ...]] = []
    for index, words in enumerate(lines):
        y0 = index * (line_height + 10)
        built.append(
            tuple(
                WordToken(text=text, bbox=BoundingBox(x0=x0, y0=y0, x1=x1, y1=y0 + line_height), line_index=index)
                for text, x0, x1 in words
            )
        )
    raw_text = "\n".join(" ".join(text for text, _, _ in words) for words in lines)
    return RecognitionResult(raw_text=raw_text, lines=tuple(built), overall_confidence=confidence)


class FakeEngine:
    """In-process recognition engine that records how it was called."""

    def __init__(
        self,
        result: RecognitionResult | None = None,
        delay: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        self.result = result or RecognitionResult(raw_text="", lines=(), overall_confidence=0.0)
        self.delay = delay
        self.error = error
        self.calls: list[tuple[float, float]] = []
        self.active = 0
        self.max_active = 0
        self.terminated = False
        self._lock = threading.Lock()

    def recognize(self, image: PreprocessedImage) -> RecognitionResult:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        start = time.monotonic()
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.error is not None:
                raise self.error
            return self.result
        finally:
            with self._lock:
                self.active -= 1
            self.calls.append((start, time.monotonic()))

    def terminate(self) -> None:
        self.terminated = True


class CountingFactory:
    """Engine factory that counts constructions and can fail the first N attempts."""

    def __init__(self, engine: FakeEngine, failures: int = 0, delay: float = 0.0) -> None:
        self.engine = engine
        self.failures = failures
        self.delay = delay
        self.calls = 0

    def __call__(self, parameters: EngineParameters) -> FakeEngine:
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.calls <= self.failures:
            raise RuntimeError("engine binary not found")
        return self.engine


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep environment overrides and cached singletons from leaking between tests."""
    for env_var in (*ENV_OVERRIDES.values(), "MONEYQUEST_OCR_CONFIG"):
        monkeypatch.delenv(env_var, raising=False)
    reset_settings()
    reset_rule_engine()
    yield
    reset_settings()
    reset_rule_engine()


@pytest.fixture
def png_bytes() -> Callable[..., bytes]:
    """Return a helper that encodes a solid-color PIL image as PNG bytes."""
    from PIL import Image

    def _make(size: tuple[int, int] = (30, 10), color: tuple[int, ...] = (100, 100, 100), mode: str = "RGB") -> bytes:
        buffer = io.BytesIO()
        Image.new(mode, size, color).save(buffer, format="PNG")
        return buffer.getvalue()

    return _make


@pytest.fixture
def whole_foods_result() -> RecognitionResult:
    """Word boxes for a small grocery receipt with a tax line and exact total."""
    return make_recognition_result(
        [
            [("WHOLE", 0, 50), ("FOODS", 60, 110), ("MARKET", 120, 180)],
            [("03/15/2024", 0, 100)],
            [("BANANAS", 0, 70), ("3.99", 300, 340)],
            [("MILK", 0, 40), ("4.99", 300, 340)],
            [("TAX", 0, 30), ("0.72", 300, 340)],
            [("TOTAL", 0, 50), ("$9.70", 300, 350)],
        ],
        confidence=85.0,
    )
