"""Core domain models for the receipt OCR pipeline.

Usage:
    from moneyquest_ocr.domain import ParsedReceipt, LineItem
"""

from moneyquest_ocr.domain.receipt import (
    BoundingBox,
    LineItem,
    OcrText,
    ParsedReceipt,
    PreprocessedImage,
    ReceiptImage,
    RecognitionResult,
    WordToken,
)

__all__ = [
    "BoundingBox",
    "LineItem",
    "OcrText",
    "ParsedReceipt",
    "PreprocessedImage",
    "ReceiptImage",
    "RecognitionResult",
    "WordToken",
]
