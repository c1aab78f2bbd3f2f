"""Receipt command handlers used by the CLI."""

import argparse
import asyncio
import dataclasses
import json
import mimetypes
from pathlib import Path

from moneyquest_ocr.domain.receipt import ParsedReceipt, ReceiptImage
from moneyquest_ocr.receipt.errors import ReceiptPipelineError
from moneyquest_ocr.receipt.review import review_warnings
from moneyquest_ocr.runtime import get_logger, get_settings

logger = get_logger(__name__)


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the FastAPI server for receiving receipt uploads."""
    import uvicorn

    from moneyquest_ocr.runtime import receipt_server as server

    print(f"Starting receipt server on {args.host}:{args.port}")
    print(f"Upload endpoint: http://{args.host}:{args.port}{server.PROCESS_RECEIPT_PATH}")
    print("Press Ctrl+C to stop")

    uvicorn.run(server.app, host=args.host, port=args.port)
    return 0


async def _scan(image: ReceiptImage, args: argparse.Namespace) -> ParsedReceipt:
    from moneyquest_ocr.runtime.receipt_pipeline import ReceiptOcrService

    settings = get_settings()
    overrides = {}
    if args.engine:
        overrides["engine"] = args.engine
    if args.ocr_url:
        overrides["ocr_service_url"] = args.ocr_url
    if overrides:
        settings = dataclasses.replace(settings, **overrides)

    service = ReceiptOcrService(settings=settings)
    try:
        await service.initialize()
        ocr = await service.process_receipt_image(image)
        return service.parse_receipt_text(ocr.text, ocr.confidence)
    finally:
        await service.cleanup()


def _print_receipt(receipt: ParsedReceipt) -> None:
    print("\n" + "=" * 60)
    print("PARSED RECEIPT")
    print("=" * 60)
    print(f"Merchant: {receipt.merchant}")
    date_str = receipt.date if not receipt.date_is_placeholder else f"{receipt.date} (not found, defaulted)"
    print(f"Date: {date_str}")
    print(f"Total: ${receipt.amount:.2f}")
    if receipt.category:
        print(f"Category: {receipt.category}")
    print(f"Confidence: {receipt.confidence:.0f}")
    print(f"\nItems ({len(receipt.items)}):")
    for i, item in enumerate(receipt.items, 1):
        qty_str = f" x{item.quantity}" if item.quantity and item.quantity > 1 else ""
        tax_str = " [tax]" if item.is_tax else ""
        print(f"  {i}. {item.name}{qty_str} - ${item.price:.2f}{tax_str}")
    print("=" * 60)
    for warning in review_warnings(receipt):
        print(f"Check: {warning}")


def cmd_scan(args: argparse.Namespace) -> int:
    """Scan a receipt image and print the parsed draft."""
    receipt_path = Path(args.image)
    if not receipt_path.exists():
        print(f"Error: Receipt file not found: {receipt_path}")
        return 1

    mime_type, _ = mimetypes.guess_type(receipt_path.name)
    image = ReceiptImage(
        data=receipt_path.read_bytes(),
        mime_type=mime_type or "application/octet-stream",
        filename=receipt_path.name,
    )

    try:
        receipt = asyncio.run(_scan(image, args))
    except ReceiptPipelineError as e:
        logger.error("%s", e)
        print(f"Error: {e}")
        return 1

    if args.json:
        payload = receipt.to_dict()
        payload["review_warnings"] = review_warnings(receipt)
        print(json.dumps(payload, indent=2))
    else:
        _print_receipt(receipt)
    return 0
