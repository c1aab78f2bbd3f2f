"""Receipt-to-transaction extraction service (non-HTTP).

Usage:
    service = ReceiptOcrService()
    await service.initialize()
    ocr = await service.process_receipt_image(ReceiptImage(data, "image/jpeg"))
    receipt = service.parse_receipt_text(ocr.text, ocr.confidence)
    await service.cleanup()
"""

from __future__ import annotations

import asyncio
import dataclasses
from functools import partial

from moneyquest_ocr.domain.receipt import OcrText, ParsedReceipt, ReceiptImage
from moneyquest_ocr.receipt.image_preprocessor import preprocess_image, validate_receipt_image
from moneyquest_ocr.receipt.ocr_result_parser import parse_receipt_text
from moneyquest_ocr.receipt.text_layout import reconstruct_text
from moneyquest_ocr.runtime.logging import get_logger
from moneyquest_ocr.runtime.recognition import EngineFactory, EngineParameters, RecognitionAdapter
from moneyquest_ocr.runtime.rule_engine import RuleEngine, get_rule_engine
from moneyquest_ocr.runtime.settings import PipelineSettings, get_settings

logger = get_logger(__name__)


def create_engine_factory(settings: PipelineSettings) -> EngineFactory:
    """Return a factory for the engine selected in settings."""
    if settings.engine == "remote":
        from moneyquest_ocr.runtime.remote_engine import RemoteOcrEngine

        return partial(RemoteOcrEngine, ocr_url=settings.ocr_service_url)

    from moneyquest_ocr.runtime.tesseract_engine import TesseractEngine

    return partial(TesseractEngine, tesseract_cmd=settings.tesseract_cmd)


class ReceiptOcrService:
    """Image -> text -> ParsedReceipt pipeline around one shared recognition engine."""

    def __init__(
        self,
        settings: PipelineSettings | None = None,
        engine_factory: EngineFactory | None = None,
        parameters: EngineParameters | None = None,
        rule_engine: RuleEngine | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        factory = engine_factory or create_engine_factory(self._settings)
        self._adapter = RecognitionAdapter(factory, parameters)
        self._rule_engine = rule_engine

    async def initialize(self) -> None:
        """Start the recognition engine. Safe to call repeatedly or concurrently."""
        await self._adapter.initialize()

    async def process_receipt_image(self, image: ReceiptImage) -> OcrText:
        """
        Turn a receipt photo into reconstructed, column-aware text.

        Raises:
            ImageLoadError: unsupported or undecodable image
            EngineInitializationError: the recognition engine could not start
            RecognitionError: the recognition engine failed on this image
        """
        validate_receipt_image(image, self._settings.max_upload_bytes)
        preprocessed = await asyncio.to_thread(preprocess_image, image)
        result = await self._adapter.recognize(preprocessed)
        text = reconstruct_text(result)
        logger.debug("Reconstructed %d lines of text", text.count("\n") + 1 if text else 0)
        return OcrText(text=text, confidence=result.overall_confidence)

    def parse_receipt_text(self, text: str, confidence: float) -> ParsedReceipt:
        """Parse reconstructed text into a categorized ParsedReceipt. Parsing itself never raises."""
        receipt = parse_receipt_text(text, confidence)
        if self._rule_engine is None:
            self._rule_engine = get_rule_engine(self._settings.effective_merchant_rules)
        category = self._rule_engine.categorize(receipt.merchant)
        return dataclasses.replace(receipt, category=category)

    async def cleanup(self) -> None:
        """Release the recognition engine. No-op when it was never started."""
        await self._adapter.cleanup()
