#!/usr/bin/env python3

import argparse
from collections.abc import Sequence

from moneyquest_ocr.cli.receipt import cmd_scan, cmd_serve


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Receipt OCR utilities",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  scan <image>               Extract merchant, total, date and items from a receipt image
  serve [--host] [--port]    Start the receipt upload server

Environment:
  MONEYQUEST_OCR_ENGINE      tesseract (default) or remote
  OCR_SERVICE_URL            OCR service URL for the remote engine
  MONEYQUEST_LOG_LEVEL       DEBUG, INFO, WARNING or ERROR
""",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    scan_parser = subparsers.add_parser("scan", help="Scan a receipt image")
    scan_parser.add_argument("image", help="Path to receipt image")
    scan_parser.add_argument(
        "--engine",
        choices=["tesseract", "remote"],
        default=None,
        help="Recognition engine (default: from settings)",
    )
    scan_parser.add_argument("--ocr-url", default=None, help="OCR service URL for the remote engine")
    scan_parser.add_argument("--json", action="store_true", help="Print the parsed receipt as JSON")

    serve_parser = subparsers.add_parser("serve", help="Start receipt upload server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=8080, help="Port to bind to (default: 8080)")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "scan":
        return cmd_scan(args)

    if args.command == "serve":
        return cmd_serve(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
