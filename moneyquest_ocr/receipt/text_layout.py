"""Rebuild column-aware receipt lines from recognized word boxes."""

from collections.abc import Iterable

from moneyquest_ocr.domain.receipt import RecognitionResult, WordToken

AVG_CHAR_WIDTH = 10  # Pixels per character for typical receipt fonts
MAX_GAP_SPACES = 20  # Larger gaps are almost always recognition noise


def gap_to_spaces(gap: float, avg_char_width: float = AVG_CHAR_WIDTH) -> int:
    """Convert a horizontal pixel gap between two words into a space count (1..MAX_GAP_SPACES)."""
    return min(MAX_GAP_SPACES, max(1, int(gap // avg_char_width)))


def reconstruct_line(words: Iterable[WordToken], avg_char_width: float = AVG_CHAR_WIDTH) -> str:
    """
    Join one line's words left to right, padding gaps with spaces.

    Wide gaps (e.g. between an item name and its price column) become runs of
    spaces proportional to their width so columns survive as text.
    """
    parts: list[str] = []
    previous: WordToken | None = None
    for word in sorted(words, key=lambda w: w.bbox.x0):
        text = word.text.strip()
        if not text:
            continue
        if previous is not None:
            parts.append(" " * gap_to_spaces(word.bbox.x0 - previous.bbox.x1, avg_char_width))
        parts.append(text)
        previous = word
    return "".join(parts)


def reconstruct_text(result: RecognitionResult, avg_char_width: float = AVG_CHAR_WIDTH) -> str:
    """
    Rebuild readable receipt text from the engine's line/word structure.

    Returns the engine's raw text unchanged when no word positions are available.
    """
    if not result.lines or result.word_count == 0:
        return result.raw_text

    lines = [reconstruct_line(line, avg_char_width) for line in result.lines]
    return "\n".join(line for line in lines if line)
