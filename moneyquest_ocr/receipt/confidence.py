"""Final confidence scoring for parsed receipts."""

PARSING_DISCOUNT = 0.8
CONFIDENCE_FLOOR = 60.0
CONFIDENCE_CEILING = 100.0


def score_confidence(recognition_confidence: float) -> float:
    """
    Discount the engine's confidence (0-100) for parsing uncertainty.

    Parsed receipts never score below CONFIDENCE_FLOOR, so an average scan
    that parsed cleanly is not flagged as unusable.
    """
    clamped = max(0.0, min(CONFIDENCE_CEILING, float(recognition_confidence)))
    return max(clamped * PARSING_DISCOUNT, CONFIDENCE_FLOOR)
