"""Text-line based receipt item extraction."""

from moneyquest_ocr.domain.receipt import LineItem
from moneyquest_ocr.runtime.logging import get_logger

from .common import (
    ITEM_PATTERNS,
    _clean_description,
    _is_tax_line,
    _is_valid_item,
    _looks_like_non_item_line,
    _match_item_pattern,
)

logger = get_logger(__name__)


def _extract_item_from_line(line: str) -> LineItem | None:
    """
    Parse a single line into a LineItem, or None.

    Patterns are tried in order and only the first one that matches is used:
    if its candidate is a summary/payment line (and not a tax line) or fails
    the plausibility checks, the line yields no item.
    """
    line = line.strip()
    if not line:
        return None

    for pattern, pattern_type in ITEM_PATTERNS:
        candidate = _match_item_pattern(pattern, pattern_type, line)
        if candidate is None:
            continue

        is_tax = _is_tax_line(candidate["name"], line)
        if not is_tax and _looks_like_non_item_line(candidate["name"], line):
            return None

        name = _clean_description(candidate["name"])
        if not _is_valid_item(name, candidate["price"], candidate["quantity"]):
            return None

        return LineItem(
            name=name,
            price=candidate["price"],
            quantity=candidate["quantity"],
            is_tax=is_tax,
        )
    return None


def _extract_items(lines: list[str]) -> list[LineItem]:
    """
    Extract line items (including tax lines) from receipt text lines.

    This is heuristic-based and results are meant for user review.
    """
    items: list[LineItem] = []
    for line in lines:
        item = _extract_item_from_line(line)
        if item is not None:
            items.append(item)
    logger.debug("Extracted %d items (%d tax lines)", len(items), sum(1 for item in items if item.is_tax))
    return items
