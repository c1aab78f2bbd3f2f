"""Parse reconstructed OCR text into structured ParsedReceipt data."""

from moneyquest_ocr.domain.receipt import ParsedReceipt
from moneyquest_ocr.runtime.logging import get_logger

from .confidence import score_confidence
from .date_utils import placeholder_receipt_date
from .ocr_parser import _extract_date, _extract_items, _extract_merchant, _extract_total

logger = get_logger(__name__)


def parse_receipt_text(text: str, confidence: float) -> ParsedReceipt:
    """
    Parse reconstructed receipt text into a ParsedReceipt.

    This is a best-effort parser and never raises: fields it cannot find fall
    back to UNKNOWN MERCHANT, today's date, no items, and a total from the
    fallback chain (0 when the text has no amounts at all).

    Args:
        text: Newline-separated receipt text (ideally from reconstruct_text)
        confidence: Recognition engine confidence, 0-100

    Returns:
        ParsedReceipt with final confidence already scored
    """
    lines = [line.strip() for line in text.split("\n") if line.strip()]

    merchant = _extract_merchant(lines)
    items = _extract_items(lines)
    amount, total_source = _extract_total(lines, items, text)

    receipt_date = _extract_date(lines)
    date_is_placeholder = False
    if receipt_date is None:
        receipt_date = placeholder_receipt_date()
        date_is_placeholder = True

    receipt = ParsedReceipt(
        merchant=merchant,
        amount=amount,
        date=receipt_date.isoformat(),
        items=tuple(items),
        raw_text=text,
        confidence=score_confidence(confidence),
        date_is_placeholder=date_is_placeholder,
        total_source=total_source,
    )
    logger.debug(
        "Parsed %d lines: merchant=%s amount=%s (%s) date=%s items=%d",
        len(lines),
        receipt.merchant,
        receipt.amount,
        total_source,
        receipt.date,
        len(receipt.items),
    )
    return receipt
