"""Tests for receipt image preprocessing."""

import io

import pytest
from moneyquest_ocr.domain.receipt import ReceiptImage
from moneyquest_ocr.receipt.errors import ImageLoadError
from moneyquest_ocr.receipt.image_preprocessor import (
    OCR_IMAGE_PADDING,
    enhance_level,
    preprocess_image,
    validate_receipt_image,
)
from PIL import Image


def _decode(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


def test_preprocess_pads_every_side_with_white(png_bytes) -> None:
    result = preprocess_image(ReceiptImage(png_bytes((30, 10)), "image/png"))

    assert (result.width, result.height) == (30 + 2 * OCR_IMAGE_PADDING, 10 + 2 * OCR_IMAGE_PADDING)
    assert result.padding == OCR_IMAGE_PADDING
    img = _decode(result.data)
    assert img.format == "PNG"
    assert img.mode == "L"
    assert img.size == (result.width, result.height)
    assert img.getpixel((0, 0)) == 255
    assert img.getpixel((result.width - 1, result.height - 1)) == 255


@pytest.mark.parametrize(
    ("gray", "expected"),
    [
        (0, 0),  # ink stays black
        (100, 70),  # ~99.6 after contrast, darkened by 0.7
        (200, 241),  # ~201.1 after contrast, lightened by 1.2
        (255, 255),  # paper clamps at white
    ],
)
def test_preprocess_enhances_gray_levels(png_bytes, gray: int, expected: int) -> None:
    result = preprocess_image(ReceiptImage(png_bytes(color=(gray, gray, gray)), "image/png"))

    img = _decode(result.data)
    assert img.getpixel((OCR_IMAGE_PADDING + 5, OCR_IMAGE_PADDING + 5)) == expected


def test_enhance_level_separates_ink_from_paper() -> None:
    levels = [enhance_level(g) for g in range(256)]
    assert all(0 <= level <= 255 for level in levels)
    assert levels == sorted(levels)
    assert all(level < 128 for level in levels[:127])
    assert all(level >= 128 for level in levels[128:])


def test_preprocess_composites_transparency_onto_white(png_bytes) -> None:
    data = png_bytes(size=(10, 10), color=(0, 0, 0, 0), mode="RGBA")

    img = _decode(preprocess_image(ReceiptImage(data, "image/png")).data)

    assert img.getpixel((OCR_IMAGE_PADDING + 2, OCR_IMAGE_PADDING + 2)) == 255


def test_preprocess_leaves_input_untouched(png_bytes) -> None:
    data = png_bytes()
    image = ReceiptImage(data, "image/png")

    preprocess_image(image)

    assert image.data == data


def test_preprocess_rejects_undecodable_bytes() -> None:
    with pytest.raises(ImageLoadError):
        preprocess_image(ReceiptImage(b"definitely not an image", "image/png", filename="r.png"))


def test_preprocess_rejects_truncated_image(png_bytes) -> None:
    data = png_bytes(size=(200, 200))

    with pytest.raises(ImageLoadError):
        preprocess_image(ReceiptImage(data[: len(data) // 2], "image/png"))


def test_validate_accepts_supported_image(png_bytes) -> None:
    validate_receipt_image(ReceiptImage(png_bytes(), "image/png"), max_bytes=1024 * 1024)
    validate_receipt_image(ReceiptImage(png_bytes(), "image/JPEG; charset=binary"), max_bytes=1024 * 1024)


@pytest.mark.parametrize(
    ("image", "max_bytes"),
    [
        (ReceiptImage(b"%PDF-1.7", "application/pdf"), 1024),
        (ReceiptImage(b"", "image/png"), 1024),
        (ReceiptImage(b"x" * 2048, "image/png"), 1024),
    ],
)
def test_validate_rejects_bad_uploads(image: ReceiptImage, max_bytes: int) -> None:
    with pytest.raises(ImageLoadError):
        validate_receipt_image(image, max_bytes=max_bytes)
