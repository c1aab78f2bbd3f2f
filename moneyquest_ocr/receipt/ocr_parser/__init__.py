"""Composable OCR receipt parser components."""

from .fields_parser import (
    UNKNOWN_MERCHANT,
    _extract_date,
    _extract_merchant,
    _extract_total,
)
from .items_text_parser import _extract_item_from_line, _extract_items

__all__ = [
    "UNKNOWN_MERCHANT",
    "_extract_date",
    "_extract_item_from_line",
    "_extract_items",
    "_extract_merchant",
    "_extract_total",
]
