"""Public smoke tests for basic module wiring.

Keep these minimal and free of any real-world data.
"""

from __future__ import annotations


def test_imports() -> None:
    import moneyquest_ocr
    import moneyquest_ocr.cli.main
    import moneyquest_ocr.domain
    import moneyquest_ocr.receipt
    import moneyquest_ocr.runtime
    import moneyquest_ocr.runtime.receipt_server

    assert moneyquest_ocr.__version__
    assert moneyquest_ocr.cli.main is not None
    assert moneyquest_ocr.domain is not None
    assert moneyquest_ocr.receipt is not None
    assert moneyquest_ocr.runtime is not None
    assert moneyquest_ocr.runtime.receipt_server.app is not None


def test_logger_names_are_namespaced() -> None:
    from moneyquest_ocr.runtime import get_logger

    assert get_logger("moneyquest_ocr.receipt.text_layout").name == "moneyquest_ocr.receipt.text_layout"
    assert get_logger("scripts").name == "moneyquest_ocr.scripts"
