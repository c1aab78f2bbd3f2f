"""Merchant/date/total extraction helpers."""

import re
from datetime import date
from decimal import Decimal

from moneyquest_ocr.domain.receipt import LineItem
from moneyquest_ocr.runtime.logging import get_logger

from .common import _to_decimal

logger = get_logger(__name__)

UNKNOWN_MERCHANT = "UNKNOWN MERCHANT"

MERCHANT_SEARCH_LINES = 7
MERCHANT_MIN_LENGTH = 3
MERCHANT_MAX_LENGTH = 50
FALLBACK_MERCHANT_MAX_LENGTH = 40

# Header lines that are never the merchant name
MERCHANT_SKIP_PATTERN = re.compile(
    r"^\d|"
    r"RECEIPT|INVOICE|#|\bTEL\b|WWW|@|\.COM|"
    r"\b(ST|STREET|AVE|AVENUE|RD|ROAD|BLVD|BOULEVARD|DR|DRIVE|LN|LANE|HWY|HIGHWAY|SUITE|STE)\b",
    re.IGNORECASE,
)

MERCHANT_PATTERNS = [
    # "WHOLE FOODS MARKET", "TRADER JOE'S", "A&W"
    (re.compile(r"^[A-Z][A-Z\s&'.,-]*[A-Z.']$", re.IGNORECASE), "plain_name"),
    (re.compile(r"^[A-Z0-9][A-Z0-9\s&'.,-]*\bSTORES?\b[A-Z0-9\s&'.,-]*$", re.IGNORECASE), "store_name"),
    (re.compile(r"^[A-Z0-9][A-Z0-9\s&'.,-]*\bMARKETS?\b[A-Z0-9\s&'.,-]*$", re.IGNORECASE), "market_name"),
    (re.compile(r"^[A-Z0-9][A-Z0-9\s&'.,-]*\b(INC|LLC|LTD|CORP|CO)\.?$", re.IGNORECASE), "company_name"),
]

NON_MERCHANT_WORDS = {"THANK", "YOU", "VISIT", "AGAIN", "CUSTOMER", "COPY"}

MONTHS = {
    "JAN": 1,
    "FEB": 2,
    "MAR": 3,
    "APR": 4,
    "MAY": 5,
    "JUN": 6,
    "JUL": 7,
    "AUG": 8,
    "SEP": 9,
    "OCT": 10,
    "NOV": 11,
    "DEC": 12,
}

# Date patterns, tried in order on each line
DATE_PATTERNS = [
    (re.compile(r"\b(\d{1,2})/(\d{1,2})/(\d{4}|\d{2})\b"), "slash_mdy"),
    (re.compile(r"\b(\d{1,2})-(\d{1,2})-(\d{4})\b"), "dash_mdy"),
    (re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b"), "iso"),
    (
        re.compile(
            r"\b(JAN|FEB|MAR|APR|MAY|JUN|JUL|AUG|SEP|OCT|NOV|DEC)[A-Z]*\.?\s+(\d{1,2})(?:ST|ND|RD|TH)?,?\s+(\d{4})\b",
            re.IGNORECASE,
        ),
        "month_name",
    ),
]

# Tolerances for cross-checking printed totals against the items sum
EXACT_TOTAL_TOLERANCE = Decimal("0.05")
CLOSE_TOTAL_RATIO = Decimal("0.10")
MAX_PLAUSIBLE_TOTAL = Decimal("10000")
FALLBACK_SEARCH_LINES = 15

# Explicit "TOTAL" marker followed by an amount
TOTAL_CANDIDATE_PATTERNS = [
    re.compile(r"\bTOTAL\s+\$?\s*(\d+\.\d{2})\b", re.IGNORECASE),  # TOTAL $9.70
    re.compile(r"\bTOTAL\s*:\s*\$?\s*(\d+\.\d{2})\b", re.IGNORECASE),  # TOTAL: $9.70
    re.compile(r"\bTOTAL\b.*?\$\s*(\d+\.\d{2})\b", re.IGNORECASE),  # TOTAL DUE (CAD) $9.70
]

# "TOTAL ..." lines that are not the amount paid
EXCLUDED_TOTAL_PHRASES = (
    "TOTAL DISCOUNT",
    "TOTAL SAVINGS",
    "TOTAL SAVED",
    "TOTAL NUMBER",
    "TOTAL ITEMS",
)
SUBTOTAL_PATTERN = re.compile(r"\bSUB\s*-?\s*TOTAL", re.IGNORECASE)

# Broader total-like patterns for receipts without line items
FALLBACK_TOTAL_PATTERNS = [
    re.compile(r"\b(?:GRAND|FINAL)\s+TOTAL\b\D*?(\d+\.\d{2})\b", re.IGNORECASE),
    re.compile(r"\bTOTAL\b\D*?(\d+\.\d{2})\b", re.IGNORECASE),
    re.compile(r"\bAMOUNT\s+DUE\b\D*?(\d+\.\d{2})\b", re.IGNORECASE),
    re.compile(r"\bBALANCE\b\D*?(\d+\.\d{2})\b", re.IGNORECASE),
    re.compile(r"(\d+\.\d{2})\s*TOTAL\b", re.IGNORECASE),
    re.compile(r"\$\s*(\d+\.\d{2})\s*$"),
]

AMOUNT_PATTERN = re.compile(r"(?<![\d.,])(\d{1,3}(?:,\d{3})+\.\d{2}|\d+\.\d{2})(?![\d])")


def _normalize_merchant(line: str) -> str:
    return re.sub(r"\s+", " ", line.strip()).upper()


def _extract_merchant(lines: list[str]) -> str:
    """
    Extract merchant name from the receipt header.

    Header lines are read top to bottom; address, contact and receipt-number
    lines are skipped. The first remaining line that matches a name shape, or
    failing that is alphabetic (letters and &'.- only) and not a courtesy
    phrase, is the merchant. The whole line is returned, so "ACME STORE 42"
    stays "ACME STORE 42".
    """
    for line in lines[:MERCHANT_SEARCH_LINES]:
        line = line.strip()
        if not (MERCHANT_MIN_LENGTH <= len(line) <= MERCHANT_MAX_LENGTH):
            continue
        if MERCHANT_SKIP_PATTERN.search(line):
            continue
        for pattern, pattern_type in MERCHANT_PATTERNS:
            if pattern.match(line):
                logger.debug("Merchant matched %s pattern", pattern_type)
                return _normalize_merchant(line)

        if (
            len(line) <= FALLBACK_MERCHANT_MAX_LENGTH
            and re.fullmatch(r"[A-Za-z\s&'.-]+", line)
            and not any(word in line.upper() for word in NON_MERCHANT_WORDS)
        ):
            logger.debug("Merchant taken from alphabetic fallback line")
            return _normalize_merchant(line)

    return UNKNOWN_MERCHANT


def _parse_date_match(groups: tuple[str, ...], pattern_type: str) -> date | None:
    """Build a calendar date from a date pattern match, or None if it is not a real date."""
    try:
        if pattern_type == "month_name":
            month = MONTHS[groups[0][:3].upper()]
            return date(int(groups[2]), month, int(groups[1]))
        if pattern_type == "iso":
            return date(int(groups[0]), int(groups[1]), int(groups[2]))

        first, second, year = int(groups[0]), int(groups[1]), int(groups[2])
        if year < 100:
            # Map 2-digit years to 2000s/1900s
            year = 2000 + year if year <= 69 else 1900 + year
        # Assume North American month-first; fall back to day-first when month is impossible
        if first > 12 >= second:
            first, second = second, first
        return date(year, first, second)
    except (ValueError, KeyError):
        return None


def _extract_date(lines: list[str]) -> date | None:
    """Extract the first valid calendar date on the receipt (None if no date found)."""
    for line in lines:
        for pattern, pattern_type in DATE_PATTERNS:
            match = pattern.search(line)
            if not match:
                continue
            parsed = _parse_date_match(match.groups(), pattern_type)
            if parsed is not None:
                return parsed
    return None


def _total_candidates(lines: list[str]) -> list[Decimal]:
    """Collect every amount printed after an explicit TOTAL marker, in receipt order."""
    candidates: list[Decimal] = []
    for line in lines:
        line_upper = line.upper()
        if SUBTOTAL_PATTERN.search(line_upper):
            continue
        if any(phrase in line_upper for phrase in EXCLUDED_TOTAL_PHRASES):
            continue
        for pattern in TOTAL_CANDIDATE_PATTERNS:
            match = pattern.search(line)
            if match:
                amount = _to_decimal(match.group(1))
                if amount is not None:
                    candidates.append(amount)
                break
    return candidates


def _select_validated_total(candidates: list[Decimal], items_total: Decimal) -> tuple[Decimal, str] | None:
    """
    Cross-check printed totals against the items sum.

    Prefers a candidate within rounding tolerance, then the closest candidate
    if it is within 10% of the items sum.
    """
    for candidate in candidates:
        if abs(candidate - items_total) <= EXACT_TOTAL_TOLERANCE:
            return candidate, "exact_match"

    closest = min(candidates, key=lambda c: abs(c - items_total))
    if abs(closest - items_total) <= items_total * CLOSE_TOTAL_RATIO:
        return closest, "closest_match"
    return None


def _extract_fallback_total(lines: list[str], full_text: str) -> tuple[Decimal, str]:
    """Find a total on receipts without TOTAL candidates or items."""
    tail = lines[-FALLBACK_SEARCH_LINES:]
    for line in reversed(tail):
        for pattern in FALLBACK_TOTAL_PATTERNS:
            match = pattern.search(line)
            if not match:
                continue
            amount = _to_decimal(match.group(1))
            if amount is not None and Decimal("0") < amount < MAX_PLAUSIBLE_TOTAL:
                return amount, "summary_line"

    amounts = [_to_decimal(value) for value in AMOUNT_PATTERN.findall(full_text)]
    plausible = [amount for amount in amounts if amount is not None and Decimal("0") < amount < MAX_PLAUSIBLE_TOTAL]
    if plausible:
        return max(plausible), "max_amount"
    return Decimal("0.00"), "none"


def _extract_total(lines: list[str], items: list[LineItem], full_text: str = "") -> tuple[Decimal, str]:
    """
    Extract the validated total amount.

    Fallback chain (first hit wins):
    1. TOTAL candidate within 0.05 of the items sum
    2. TOTAL candidate closest to the items sum, if within 10% of it
    3. First TOTAL candidate on the receipt
    4. Sum of the parsed items (tax lines included)
    5. Total-like line near the bottom, then the largest amount anywhere

    Returns:
        Tuple of (amount, source) where source names the tier that produced it.
    """
    items_total = sum((item.price for item in items), Decimal("0.00"))
    candidates = _total_candidates(lines)
    logger.debug("Items total %s, TOTAL candidates %s", items_total, candidates)

    if items and candidates:
        selected = _select_validated_total(candidates, items_total)
        if selected is not None:
            return selected

    if candidates:
        return candidates[0], "first_total"

    if items:
        return items_total, "items_sum"

    return _extract_fallback_total(lines, full_text or "\n".join(lines))
