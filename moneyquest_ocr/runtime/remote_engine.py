"""Recognition engine that delegates to a PaddleOCR-style HTTP service.

The service accepts ``POST /ocr`` with a multipart ``file`` and answers with
``{"image_width", "image_height", "detections": [[points, [text, confidence]], ...]}``
where confidence is 0-1. ``GET /health`` returns 200 when the service is up.
"""

from __future__ import annotations

import time
from typing import Any

import httpx

from moneyquest_ocr.domain.receipt import BoundingBox, PreprocessedImage, RecognitionResult, WordToken
from moneyquest_ocr.runtime.logging import get_logger
from moneyquest_ocr.runtime.recognition import EngineParameters

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 60.0
MIN_LINE_OVERLAP_RATIO = 0.5


class OCRServiceUnavailable(RuntimeError):
    """Raised when the OCR service cannot be reached or returns an error."""


def _boxes_overlap_y(box1: BoundingBox, box2: BoundingBox, min_overlap_ratio: float = MIN_LINE_OVERLAP_RATIO) -> bool:
    """
    Check if two boxes overlap vertically by at least min_overlap_ratio of the smaller height.

    This is more robust than center-distance comparison for tall boxes.
    """
    overlap = min(box1.y1, box2.y1) - max(box1.y0, box2.y0)
    if overlap <= 0:
        return False
    smaller_height = min(box1.height, box2.height)
    # Avoid division by zero for degenerate boxes
    if smaller_height <= 0:
        return False
    return overlap / smaller_height >= min_overlap_ratio


def _line_span(line: list[WordToken]) -> BoundingBox:
    return BoundingBox(
        x0=min(w.bbox.x0 for w in line),
        y0=min(w.bbox.y0 for w in line),
        x1=max(w.bbox.x1 for w in line),
        y1=max(w.bbox.y1 for w in line),
    )


def transform_paddleocr_result(raw_result: dict[str, Any]) -> RecognitionResult:
    """
    Transform a raw PaddleOCR detection list into a RecognitionResult.

    Each detection becomes one token; tokens are grouped into lines by vertical
    overlap, lines are ordered top to bottom and words left to right.
    """
    detections = raw_result.get("detections", [])
    if not detections:
        return RecognitionResult(raw_text="", lines=(), overall_confidence=0.0)

    tokens: list[WordToken] = []
    confidences: list[float] = []
    for detection in detections:
        points, (text, confidence) = detection
        text = str(text).strip()
        if not text:
            continue
        xs = [float(p[0]) for p in points]
        ys = [float(p[1]) for p in points]
        confidence = float(confidence) * 100
        tokens.append(
            WordToken(
                text=text,
                bbox=BoundingBox(x0=min(xs), y0=min(ys), x1=max(xs), y1=max(ys)),
                confidence=confidence,
            )
        )
        confidences.append(confidence)

    tokens.sort(key=lambda t: (t.bbox.center_y, t.bbox.x0))

    grouped: list[list[WordToken]] = []
    for token in tokens:
        for line in grouped:
            if _boxes_overlap_y(token.bbox, _line_span(line)):
                line.append(token)
                break
        else:
            grouped.append([token])

    grouped.sort(key=lambda line: _line_span(line).center_y)
    lines = tuple(
        tuple(
            WordToken(text=w.text, bbox=w.bbox, line_index=index, confidence=w.confidence)
            for w in sorted(line, key=lambda w: w.bbox.x0)
        )
        for index, line in enumerate(grouped)
    )
    raw_text = "\n".join(" ".join(w.text for w in line) for line in lines)
    overall = sum(confidences) / len(confidences) if confidences else 0.0
    return RecognitionResult(raw_text=raw_text, lines=lines, overall_confidence=overall)


class RemoteOcrEngine:
    """Recognition engine backed by an OCR HTTP service."""

    def __init__(
        self,
        parameters: EngineParameters,
        ocr_url: str,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._parameters = parameters
        self._ocr_url = ocr_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

        try:
            response = self._client.get(f"{self._ocr_url}/health")
        except httpx.RequestError as e:
            self._client.close()
            raise OCRServiceUnavailable(f"Failed to connect to OCR service: {e}") from e
        if response.status_code != 200:
            self._client.close()
            raise OCRServiceUnavailable(f"OCR service health check failed: {response.status_code}")
        logger.info("Connected to OCR service at %s", self._ocr_url)

    def recognize(self, image: PreprocessedImage) -> RecognitionResult:
        logger.debug("Sending %d byte image to OCR service", len(image.data))
        start_time = time.time()
        try:
            response = self._client.post(
                f"{self._ocr_url}/ocr",
                files={"file": ("receipt.png", image.data, "image/png")},
                data={
                    "lang": self._parameters.language,
                    "char_whitelist": self._parameters.char_whitelist,
                },
            )
        except httpx.RequestError as e:
            raise OCRServiceUnavailable(f"Failed to connect to OCR service: {e}") from e
        logger.debug("OCR service returned in %.2f seconds", time.time() - start_time)

        if response.status_code != 200:
            # Body may echo receipt text; keep it out of logs.
            raise OCRServiceUnavailable(f"OCR service error: {response.status_code}")
        return transform_paddleocr_result(response.json())

    def terminate(self) -> None:
        self._client.close()
        logger.debug("OCR service client closed")
