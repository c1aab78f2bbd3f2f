"""Tests for the moneyquest-ocr command line."""

from __future__ import annotations

import json

import uvicorn
from _pytest.monkeypatch import MonkeyPatch
from conftest import CountingFactory, FakeEngine
from moneyquest_ocr.cli import main as cli
from moneyquest_ocr.runtime import receipt_pipeline


def _use_fake_engine(monkeypatch: MonkeyPatch, engine: FakeEngine) -> list:
    seen_settings: list = []

    def fake_factory(settings):
        seen_settings.append(settings)
        return CountingFactory(engine)

    monkeypatch.setattr(receipt_pipeline, "create_engine_factory", fake_factory)
    return seen_settings


def test_no_command_prints_help(capsys) -> None:
    assert cli.main([]) == 1
    assert "scan" in capsys.readouterr().out


def test_scan_missing_file(tmp_path, capsys) -> None:
    assert cli.main(["scan", str(tmp_path / "missing.jpg")]) == 1
    assert "Receipt file not found" in capsys.readouterr().out


def test_scan_prints_json(monkeypatch: MonkeyPatch, tmp_path, capsys, png_bytes, whole_foods_result) -> None:
    engine = FakeEngine(whole_foods_result)
    seen_settings = _use_fake_engine(monkeypatch, engine)
    image = tmp_path / "receipt.png"
    image.write_bytes(png_bytes())

    exit_code = cli.main(["scan", str(image), "--json", "--engine", "remote", "--ocr-url", "http://ocr:9000"])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["merchant"] == "WHOLE FOODS MARKET"
    assert payload["amount"] == 9.7
    assert payload["category"] == "Groceries"
    assert payload["review_warnings"] == ["Low confidence (68); check all fields"]
    assert seen_settings[0].engine == "remote"
    assert seen_settings[0].ocr_service_url == "http://ocr:9000"
    assert engine.terminated


def test_scan_prints_summary(monkeypatch: MonkeyPatch, tmp_path, capsys, png_bytes, whole_foods_result) -> None:
    _use_fake_engine(monkeypatch, FakeEngine(whole_foods_result))
    image = tmp_path / "receipt.png"
    image.write_bytes(png_bytes())

    assert cli.main(["scan", str(image)]) == 0

    out = capsys.readouterr().out
    assert "Merchant: WHOLE FOODS MARKET" in out
    assert "Total: $9.70" in out
    assert "3. TAX - $0.72 [tax]" in out


def test_scan_reports_pipeline_errors(monkeypatch: MonkeyPatch, tmp_path, capsys) -> None:
    engine = FakeEngine()
    _use_fake_engine(monkeypatch, engine)
    document = tmp_path / "receipt.pdf"
    document.write_bytes(b"%PDF-1.7")

    assert cli.main(["scan", str(document)]) == 1
    assert "Unsupported image type" in capsys.readouterr().out


def test_serve_runs_uvicorn(monkeypatch: MonkeyPatch, capsys) -> None:
    calls: list[dict] = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append(kwargs))

    assert cli.main(["serve", "--port", "9999"]) == 0
    assert calls == [{"host": "127.0.0.1", "port": 9999}]
    assert "/api/ocr/process-receipt" in capsys.readouterr().out
