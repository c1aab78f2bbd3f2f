"""Data models for receipt scanning."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class ReceiptImage:
    """Raw uploaded receipt image, exactly as the caller supplied it."""

    data: bytes
    mime_type: str
    filename: str = ""


@dataclass(frozen=True)
class PreprocessedImage:
    """Grayscale-enhanced, padded receipt image ready for recognition."""

    data: bytes
    width: int
    height: int
    padding: int
    format: str = "PNG"


@dataclass(frozen=True)
class BoundingBox:
    """Word box in image pixels; x grows rightwards, y grows downwards."""

    x0: float
    y0: float
    x1: float
    y1: float

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    @property
    def center_y(self) -> float:
        return (self.y0 + self.y1) / 2


@dataclass(frozen=True)
class WordToken:
    """A single recognized word."""

    text: str
    bbox: BoundingBox
    line_index: int = 0
    confidence: float | None = None


@dataclass(frozen=True)
class RecognitionResult:
    """Everything the recognition engine returned for one image."""

    raw_text: str
    lines: tuple[tuple[WordToken, ...], ...] = ()
    overall_confidence: float = 0.0

    @property
    def word_count(self) -> int:
        return sum(len(line) for line in self.lines)


@dataclass(frozen=True)
class OcrText:
    """Reconstructed receipt text plus the engine's overall confidence (0-100)."""

    text: str
    confidence: float


@dataclass(frozen=True)
class LineItem:
    """A single purchase line (or tax line) on a receipt."""

    name: str
    price: Decimal
    quantity: int | None = None
    is_tax: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "price": float(self.price),
            "quantity": self.quantity,
            "is_tax": self.is_tax,
        }


@dataclass(frozen=True)
class ParsedReceipt:
    """Parsed receipt data, handed off for user confirmation before it becomes a transaction."""

    merchant: str
    amount: Decimal
    date: str  # YYYY-MM-DD
    items: tuple[LineItem, ...] = ()
    raw_text: str = ""
    confidence: float = 0.0
    date_is_placeholder: bool = False
    category: str | None = None
    # Diagnostic only: which tier of the total fallback chain produced `amount`.
    total_source: str = ""

    @property
    def items_total(self) -> Decimal:
        return sum((item.price for item in self.items), Decimal("0.00"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "merchant": self.merchant,
            "amount": float(self.amount),
            "date": self.date,
            "date_is_placeholder": self.date_is_placeholder,
            "items": [item.to_dict() for item in self.items],
            "items_total": float(self.items_total),
            "raw_text": self.raw_text,
            "confidence": self.confidence,
            "category": self.category,
            "total_source": self.total_source,
        }
