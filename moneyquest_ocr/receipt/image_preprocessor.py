"""Pure image transformation helpers that prepare receipt photos for OCR."""

import io

from moneyquest_ocr.domain.receipt import PreprocessedImage, ReceiptImage
from moneyquest_ocr.runtime.logging import get_logger

from .errors import ImageLoadError

logger = get_logger(__name__)

OCR_IMAGE_PADDING = 20  # White padding around image to prevent edge truncation
CONTRAST = 2.0
DARKEN_FACTOR = 0.7  # Applied to enhanced values below MIDPOINT
LIGHTEN_FACTOR = 1.2  # Applied to enhanced values at or above MIDPOINT
MIDPOINT = 128

SUPPORTED_MIME_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/bmp",
    "image/tiff",
)


def validate_receipt_image(image: ReceiptImage, max_bytes: int) -> None:
    """
    Reject uploads the pipeline will not attempt to decode.

    Raises:
        ImageLoadError: unsupported MIME type, empty payload, or payload over max_bytes
    """
    mime_type = image.mime_type.split(";", 1)[0].strip().lower()
    if mime_type not in SUPPORTED_MIME_TYPES:
        raise ImageLoadError(
            f"Unsupported image type {image.mime_type!r}. Supported: {', '.join(SUPPORTED_MIME_TYPES)}"
        )
    if not image.data:
        raise ImageLoadError("Receipt image is empty")
    if len(image.data) > max_bytes:
        raise ImageLoadError(f"Receipt image is {len(image.data)} bytes; the limit is {max_bytes} bytes")


def enhance_level(gray: int, contrast: float = CONTRAST) -> int:
    """Map one grayscale level through the contrast stretch and ink/paper separation."""
    factor = (259 * (contrast + 255)) / (255 * (259 - contrast))
    enhanced = factor * (gray - MIDPOINT) + MIDPOINT
    if enhanced < MIDPOINT:
        enhanced *= DARKEN_FACTOR
    else:
        enhanced *= LIGHTEN_FACTOR
    return max(0, min(255, round(enhanced)))


# Every pixel goes through the same per-level mapping, so build it once.
ENHANCEMENT_TABLE = [enhance_level(level) for level in range(256)]


def preprocess_image(image: ReceiptImage, padding: int = OCR_IMAGE_PADDING) -> PreprocessedImage:
    """
    Normalize a receipt photo into a high-contrast, padded grayscale PNG.

    Steps:
    1. Decode and apply EXIF orientation
    2. Place the image on a white canvas with `padding` pixels on every side
    3. Convert to grayscale (0.299R + 0.587G + 0.114B)
    4. Stretch contrast and push dark pixels darker, light pixels lighter

    The caller's ReceiptImage is never modified.

    Raises:
        ImageLoadError: if the bytes cannot be decoded as an image
    """
    from PIL import Image, ImageOps, UnidentifiedImageError

    try:
        img = Image.open(io.BytesIO(image.data))
        # Image.open is lazy; force a full decode so truncated files fail here.
        img.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageLoadError(f"Could not decode receipt image {image.filename or '<upload>'}: {e}") from e

    # Apply EXIF orientation so text lines are horizontal for OCR
    img = ImageOps.exif_transpose(img)
    width, height = img.size

    canvas = Image.new("RGB", (width + 2 * padding, height + 2 * padding), "white")
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        canvas.paste(rgba, (padding, padding), mask=rgba)
    else:
        canvas.paste(img.convert("RGB"), (padding, padding))

    # PIL's "L" conversion uses the ITU-R 601-2 luma weights (299/587/114).
    enhanced = canvas.convert("L").point(ENHANCEMENT_TABLE)

    buffer = io.BytesIO()
    enhanced.save(buffer, format="PNG")
    logger.debug(
        "Preprocessed %dx%d image to %dx%d (%d bytes)",
        width,
        height,
        enhanced.width,
        enhanced.height,
        buffer.tell(),
    )
    return PreprocessedImage(
        data=buffer.getvalue(),
        width=enhanced.width,
        height=enhanced.height,
        padding=padding,
    )
