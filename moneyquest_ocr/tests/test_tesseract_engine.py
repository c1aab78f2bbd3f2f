"""Tests for the pytesseract-backed engine (tesseract binary not required)."""

import shlex

import pytest
import pytesseract
from moneyquest_ocr.domain.receipt import BoundingBox, PreprocessedImage
from moneyquest_ocr.runtime.recognition import EngineParameters
from moneyquest_ocr.runtime.tesseract_engine import (
    TesseractEngine,
    build_tesseract_config,
    words_from_tesseract_data,
)


def _tesseract_data() -> dict[str, list]:
    # page, line 1 (MILK 4.99 + an empty word box), line 2 (TOTAL 4.99)
    return {
        "level": [1, 4, 5, 5, 5, 4, 5, 5],
        "block_num": [0, 1, 1, 1, 1, 1, 1, 1],
        "par_num": [0, 1, 1, 1, 1, 1, 1, 1],
        "line_num": [0, 1, 1, 1, 1, 2, 2, 2],
        "left": [0, 10, 10, 200, 120, 10, 10, 200],
        "top": [0, 5, 5, 5, 5, 30, 30, 30],
        "width": [300, 230, 40, 40, 5, 230, 50, 40],
        "height": [60, 12, 12, 12, 12, 12, 12, 12],
        "conf": [-1, -1, 91, 89, -1, -1, 95.5, "-1"],
        "text": ["", "", "MILK", "4.99", " ", "", "TOTAL", "4.99"],
    }


def test_config_carries_receipt_parameters() -> None:
    config = build_tesseract_config(EngineParameters())
    args = shlex.split(config)

    assert args[:2] == ["--psm", "4"]
    assert "tessedit_char_whitelist=" + EngineParameters().char_whitelist in args
    assert "preserve_interword_spaces=1" in args
    assert "textord_tabfind_find_tables=1" in args
    assert "textord_tablefind_recognize_tables=1" in args


def test_config_can_disable_interword_spaces() -> None:
    config = build_tesseract_config(EngineParameters(preserve_interword_spaces=False, table_detection={}))

    assert "preserve_interword_spaces=0" in config
    assert "textord" not in config


def test_words_grouped_into_lines() -> None:
    result = words_from_tesseract_data(_tesseract_data())

    assert result.raw_text == "MILK 4.99\nTOTAL 4.99"
    assert [[w.text for w in line] for line in result.lines] == [["MILK", "4.99"], ["TOTAL", "4.99"]]
    assert [w.line_index for line in result.lines for w in line] == [0, 0, 1, 1]
    assert result.lines[0][0].bbox == BoundingBox(x0=10, y0=5, x1=50, y1=17)
    assert result.lines[1][1].confidence is None
    assert result.overall_confidence == pytest.approx((91 + 89 + 95.5) / 3)


def test_words_from_empty_data() -> None:
    result = words_from_tesseract_data({"text": []})

    assert result.raw_text == ""
    assert result.lines == ()
    assert result.overall_confidence == 0.0


def test_engine_runs_image_to_data(monkeypatch, png_bytes) -> None:
    calls: list[dict] = []

    def fake_image_to_data(image, **kwargs):
        calls.append({"size": image.size, **kwargs})
        return _tesseract_data()

    monkeypatch.setattr(pytesseract, "get_tesseract_version", lambda: "5.3.0")
    monkeypatch.setattr(pytesseract, "image_to_data", fake_image_to_data)

    engine = TesseractEngine(EngineParameters())
    result = engine.recognize(PreprocessedImage(data=png_bytes((70, 50)), width=70, height=50, padding=20))
    engine.terminate()

    assert result.raw_text == "MILK 4.99\nTOTAL 4.99"
    assert calls[0]["size"] == (70, 50)
    assert calls[0]["lang"] == "eng"
    assert calls[0]["output_type"] == pytesseract.Output.DICT
    assert calls[0]["config"].startswith("--psm 4")


def test_engine_fails_fast_without_binary(monkeypatch) -> None:
    def missing():
        raise pytesseract.TesseractNotFoundError()

    monkeypatch.setattr(pytesseract, "get_tesseract_version", missing)

    with pytest.raises(pytesseract.TesseractNotFoundError):
        TesseractEngine(EngineParameters())
