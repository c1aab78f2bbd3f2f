"""Local Tesseract recognition engine (via pytesseract)."""

from __future__ import annotations

import io
import shlex
from typing import Any

from moneyquest_ocr.domain.receipt import BoundingBox, PreprocessedImage, RecognitionResult, WordToken
from moneyquest_ocr.runtime.logging import get_logger
from moneyquest_ocr.runtime.recognition import EngineParameters

logger = get_logger(__name__)

WORD_LEVEL = 5  # image_to_data row level for individual words


def build_tesseract_config(parameters: EngineParameters) -> str:
    """Translate engine parameters into a tesseract command-line config string."""
    options = [
        f"--psm {parameters.page_segmentation_mode}",
        "-c " + shlex.quote(f"tessedit_char_whitelist={parameters.char_whitelist}"),
        f"-c preserve_interword_spaces={1 if parameters.preserve_interword_spaces else 0}",
    ]
    for key, value in sorted(parameters.table_detection.items()):
        options.append(f"-c {key}={value}")
    return " ".join(options)


def words_from_tesseract_data(data: dict[str, list[Any]]) -> RecognitionResult:
    """
    Convert pytesseract image_to_data(..., output_type=Output.DICT) into a RecognitionResult.

    Words are grouped into lines by (block_num, par_num, line_num), preserving
    the engine's reading order.
    """
    line_keys: list[tuple[int, int, int]] = []
    grouped: dict[tuple[int, int, int], list[WordToken]] = {}
    confidences: list[float] = []

    for i, text in enumerate(data.get("text", [])):
        if int(data["level"][i]) != WORD_LEVEL:
            continue
        text = str(text or "").strip()
        if not text:
            continue
        confidence = float(data["conf"][i])
        key = (int(data["block_num"][i]), int(data["par_num"][i]), int(data["line_num"][i]))
        if key not in grouped:
            grouped[key] = []
            line_keys.append(key)
        left, top = float(data["left"][i]), float(data["top"][i])
        bbox = BoundingBox(
            x0=left,
            y0=top,
            x1=left + float(data["width"][i]),
            y1=top + float(data["height"][i]),
        )
        grouped[key].append(
            WordToken(
                text=text,
                bbox=bbox,
                line_index=line_keys.index(key),
                confidence=confidence if confidence >= 0 else None,
            )
        )
        if confidence >= 0:
            confidences.append(confidence)

    lines = tuple(tuple(grouped[key]) for key in line_keys)
    raw_text = "\n".join(" ".join(word.text for word in line) for line in lines)
    overall = sum(confidences) / len(confidences) if confidences else 0.0
    return RecognitionResult(raw_text=raw_text, lines=lines, overall_confidence=overall)


class TesseractEngine:
    """Recognition engine backed by the local tesseract binary."""

    def __init__(self, parameters: EngineParameters, tesseract_cmd: str | None = None) -> None:
        import pytesseract

        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        # Fails fast (TesseractNotFoundError) when the binary is missing.
        version = pytesseract.get_tesseract_version()
        logger.info("Using tesseract %s", version)

        self._parameters = parameters
        self._config = build_tesseract_config(parameters)

    def recognize(self, image: PreprocessedImage) -> RecognitionResult:
        import pytesseract
        from PIL import Image

        with Image.open(io.BytesIO(image.data)) as img:
            data = pytesseract.image_to_data(
                img,
                lang=self._parameters.language,
                config=self._config,
                output_type=pytesseract.Output.DICT,
            )
        return words_from_tesseract_data(data)

    def terminate(self) -> None:
        # Each pytesseract call is its own subprocess; nothing stays resident.
        logger.debug("Tesseract engine terminated")
