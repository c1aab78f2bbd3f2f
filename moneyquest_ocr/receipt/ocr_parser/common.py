"""Shared constants and helpers for OCR receipt parsing."""

import re
from decimal import Decimal, InvalidOperation

# Price bounds for a single line item
MAX_ITEM_PRICE = Decimal("1000")
MIN_ITEM_NAME_LENGTH = 2
MAX_ITEM_NAME_LENGTH = 50

# Tax lines are kept as items and count toward the items total
TAX_PATTERN = re.compile(r"TAX|HST|GST|PST|VAT", re.IGNORECASE)

# Summary/payment/footer lines that are never purchase items (unless they are tax lines)
NON_ITEM_PATTERNS = re.compile(
    r"TOTAL|CHANGE|BALANCE|RECEIPT|STORE|THANK|VISIT|AGAIN|CUSTOMER|COPY|"
    r"^(SUB|GRAND|FINAL)|"
    r"\b(CASH|CREDIT|DEBIT|VISA|MASTERCARD|AMEX|TENDER(ED)?|PAYMENT)\b|"
    r"^(DATE|TIME|CLERK|CASHIER)|"
    r"\b(REGISTER|TERMINAL|TRANS(ACTION)?)\b|"
    r"\b\d{1,2}[/-]\d{1,2}[/-]\d{2,4}\b|"
    r"\b\d{1,2}:\d{2}\b",
    re.IGNORECASE,
)

# Optional single-letter tax flag printed after a price, e.g. "3.99 T" or "17.19 H"
_TAX_FLAG = r"(?:\s*[HhTtJj])?"

# Item-shape patterns, tried in order; only the first matching pattern is used.
ITEM_PATTERNS = [
    # "2 ORGANIC APPLES $5.98" / "2 ORGANIC APPLES 5.98"
    (re.compile(r"^(\d{1,3})\s+(.+?)\s+\$?(\d+\.\d{2})" + _TAX_FLAG + r"$"), "qty_name_price"),
    # "BANANAS          3.99" (column layout from spatial reconstruction)
    (re.compile(r"^(.+?)\s{2,}\$?(\d+\.\d{2})" + _TAX_FLAG + r"$"), "name_spaced_price"),
    # "MILK 4.99" (3-30 char name, up to 3-digit price)
    (re.compile(r"^(.{3,30}?)\s+\$?(\d{1,3}\.\d{2})" + _TAX_FLAG + r"$"), "name_price"),
]


def _to_decimal(value: str) -> Decimal | None:
    """Parse an OCR amount like "1,234.56" into Decimal, or None."""
    try:
        return Decimal(value.replace(",", ""))
    except InvalidOperation:
        return None


def _match_item_pattern(pattern: re.Pattern[str], pattern_type: str, line: str) -> dict | None:
    """
    Apply one item-shape pattern to a line.

    Returns:
        dict with keys: name, price, quantity, pattern_type; or None if the
        pattern does not match
    """
    match = pattern.match(line)
    if not match:
        return None

    groups = match.groups()
    quantity = None
    if pattern_type == "qty_name_price":
        quantity = int(groups[0])
        name, price_text = groups[1], groups[2]
    else:
        name, price_text = groups[0], groups[1]

    price = _to_decimal(price_text)
    if price is None:
        return None
    return {
        "name": name,
        "price": price,
        "quantity": quantity,
        "pattern_type": pattern_type,
    }


def _is_tax_line(name: str, line: str) -> bool:
    """Return True if the item name or the whole line names a tax."""
    return TAX_PATTERN.search(name) is not None or TAX_PATTERN.search(line) is not None


def _looks_like_non_item_line(name: str, line: str) -> bool:
    """Return True for totals, payment, footer and date/time lines."""
    return NON_ITEM_PATTERNS.search(name.strip()) is not None or NON_ITEM_PATTERNS.search(line.strip()) is not None


def _is_valid_item(name: str, price: Decimal, quantity: int | None) -> bool:
    """Plausibility checks for a parsed item candidate."""
    if not (MIN_ITEM_NAME_LENGTH <= len(name) <= MAX_ITEM_NAME_LENGTH):
        return False
    if not (Decimal("0") < price <= MAX_ITEM_PRICE):
        return False
    if quantity is not None and quantity <= 0:
        return False
    if re.fullmatch(r"[\d\s.,$-]+", name):
        return False
    return re.search(r"[A-Za-z]", name) is not None


def _clean_description(desc: str) -> str:
    """Clean up item description from OCR artifacts and normalize to upper case."""
    # Remove leading/trailing special chars and extra spaces
    desc = re.sub(r"^[^A-Za-z0-9(]+", "", desc)
    # Drop a leading count marker such as "(2)"
    desc = re.sub(r"^\(\d+\)\s*", "", desc)
    desc = re.sub(r"^[^A-Za-z0-9]+", "", desc)
    desc = re.sub(r"[^A-Za-z0-9)%]+$", "", desc)
    desc = re.sub(r"\s+", " ", desc)
    return desc.strip().upper()
