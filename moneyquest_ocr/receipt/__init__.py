"""Pure receipt processing stages: preprocessing, text layout, parsing, scoring."""

from .errors import EngineInitializationError, ImageLoadError, ReceiptPipelineError, RecognitionError
from .ocr_result_parser import parse_receipt_text

__all__ = [
    "EngineInitializationError",
    "ImageLoadError",
    "ReceiptPipelineError",
    "RecognitionError",
    "parse_receipt_text",
]
