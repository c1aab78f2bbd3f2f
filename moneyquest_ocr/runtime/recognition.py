"""Owner of the single recognition engine instance.

The engine is stateful and not known to be safe for concurrent use, so the
adapter:
- creates it lazily, once, even when several callers initialize at the same time
- runs every recognize call one at a time, in submission order
- tears it down explicitly via cleanup()
"""

from __future__ import annotations

import asyncio
import string
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from moneyquest_ocr.domain.receipt import PreprocessedImage, RecognitionResult
from moneyquest_ocr.receipt.errors import EngineInitializationError, RecognitionError
from moneyquest_ocr.runtime.logging import get_logger

logger = get_logger(__name__)

RECEIPT_CHAR_WHITELIST = string.ascii_letters + string.digits + ".,$/:-#%*()&@+ "

# Tesseract page segmentation mode 4: single column of text of variable sizes
PSM_SINGLE_COLUMN = 4


@dataclass(frozen=True)
class EngineParameters:
    """Engine settings tuned for receipt layouts."""

    char_whitelist: str = RECEIPT_CHAR_WHITELIST
    page_segmentation_mode: int = PSM_SINGLE_COLUMN
    preserve_interword_spaces: bool = True
    word_positions: bool = True
    table_detection: dict[str, str] = field(
        default_factory=lambda: {
            "textord_tabfind_find_tables": "1",
            "textord_tablefind_recognize_tables": "1",
        }
    )
    language: str = "eng"


class RecognitionEngine(Protocol):
    """Minimal contract for an OCR engine."""

    def recognize(self, image: PreprocessedImage) -> RecognitionResult: ...

    def terminate(self) -> None: ...


EngineFactory = Callable[[EngineParameters], RecognitionEngine]


class RecognitionAdapter:
    """Serializing, lazily-initialized wrapper around one recognition engine."""

    def __init__(self, engine_factory: EngineFactory, parameters: EngineParameters | None = None) -> None:
        self._engine_factory = engine_factory
        self._parameters = parameters or EngineParameters()
        self._engine: RecognitionEngine | None = None
        self._init_lock = asyncio.Lock()
        self._recognize_lock = asyncio.Lock()
        self._pending = 0

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    @property
    def pending(self) -> int:
        """Number of recognize calls queued or running."""
        return self._pending

    async def initialize(self) -> None:
        """
        Start the engine if it is not running yet. Idempotent.

        Raises:
            EngineInitializationError: if the engine cannot be started
        """
        if self._engine is not None:
            return
        async with self._init_lock:
            # Another caller may have finished initializing while we waited.
            if self._engine is not None:
                return
            logger.info("Initializing recognition engine")
            try:
                self._engine = await asyncio.to_thread(self._engine_factory, self._parameters)
            except Exception as e:
                logger.error("Recognition engine failed to start: %s", e)
                raise EngineInitializationError(f"Recognition engine failed to start: {e}") from e
            logger.info("Recognition engine ready")

    async def recognize(self, image: PreprocessedImage) -> RecognitionResult:
        """
        Run recognition on a preprocessed image, waiting for any in-flight call first.

        Raises:
            EngineInitializationError: if the engine cannot be started
            RecognitionError: if the engine fails on this image
        """
        await self.initialize()
        self._pending += 1
        try:
            if self._recognize_lock.locked():
                logger.debug("Recognition busy; %d call(s) queued", self._pending - 1)
            async with self._recognize_lock:
                engine = self._engine
                if engine is None:
                    raise RecognitionError("Recognition engine was released before the call ran")
                try:
                    result = await asyncio.to_thread(engine.recognize, image)
                except Exception as e:
                    logger.error("Recognition failed: %s", e)
                    raise RecognitionError(f"Recognition failed: {e}") from e
        finally:
            self._pending -= 1

        logger.debug(
            "Recognized %d lines, %d words, confidence %.1f",
            len(result.lines),
            result.word_count,
            result.overall_confidence,
        )
        return result

    async def cleanup(self) -> None:
        """Release the engine and reset initialization state. No-op when idle."""
        async with self._init_lock:
            async with self._recognize_lock:
                engine, self._engine = self._engine, None
                if engine is None:
                    return
                await asyncio.to_thread(engine.terminate)
                logger.info("Recognition engine released")
