"""Command-line interface for receipt extraction.

Usage:
    moneyquest-ocr scan <image>
    moneyquest-ocr scan <image> --json
    moneyquest-ocr serve [--host] [--port]
"""
