"""Hints shown next to a parsed receipt before the user confirms it."""

from decimal import Decimal

from moneyquest_ocr.domain.receipt import ParsedReceipt

from .ocr_parser import UNKNOWN_MERCHANT

REVIEW_CONFIDENCE_THRESHOLD = 70.0


def review_warnings(receipt: ParsedReceipt) -> list[str]:
    """Return the fields a user should double-check; empty when nothing looks off."""
    warnings: list[str] = []
    if receipt.confidence < REVIEW_CONFIDENCE_THRESHOLD:
        warnings.append(f"Low confidence ({receipt.confidence:.0f}); check all fields")
    if receipt.merchant == UNKNOWN_MERCHANT or len(receipt.merchant) < 2:
        warnings.append("Merchant not recognized")
    if receipt.amount <= Decimal("0"):
        warnings.append("Total amount not found")
    if receipt.date_is_placeholder:
        warnings.append("Date not found; defaulted to today")
    return warnings
