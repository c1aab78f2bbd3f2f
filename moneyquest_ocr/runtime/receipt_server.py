"""FastAPI server that turns uploaded receipt images into parsed receipts for review."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, File, UploadFile
from fastapi.responses import JSONResponse

from moneyquest_ocr.domain.receipt import ReceiptImage
from moneyquest_ocr.receipt.errors import EngineInitializationError, ImageLoadError, RecognitionError
from moneyquest_ocr.receipt.review import review_warnings
from moneyquest_ocr.runtime.logging import get_logger
from moneyquest_ocr.runtime.receipt_pipeline import ReceiptOcrService

logger = get_logger(__name__)

PROCESS_RECEIPT_PATH = "/api/ocr/process-receipt"

ERROR_STATUS = {
    ImageLoadError: 400,
    EngineInitializationError: 503,
    RecognitionError: 502,
}


def _error_response(exc: Exception) -> JSONResponse:
    status_code = next(code for exc_type, code in ERROR_STATUS.items() if isinstance(exc, exc_type))
    return JSONResponse(
        {"status": "error", "error": type(exc).__name__, "message": str(exc)},
        status_code=status_code,
    )


def create_app(service: ReceiptOcrService | None = None) -> FastAPI:
    """Build the app around one ReceiptOcrService (created lazily from settings if omitted)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        app.state.service = service or ReceiptOcrService()
        yield
        await app.state.service.cleanup()

    app = FastAPI(title="Receipt OCR", lifespan=lifespan)

    @app.post(PROCESS_RECEIPT_PATH)
    async def process_receipt(file: UploadFile = File(...)) -> JSONResponse:
        """Run OCR on an uploaded receipt and return the parsed draft for user confirmation."""
        ocr_service: ReceiptOcrService = app.state.service
        contents = await file.read()
        image = ReceiptImage(
            data=contents,
            mime_type=file.content_type or "application/octet-stream",
            filename=file.filename or "",
        )
        logger.info("Received %s (%d bytes, %s)", image.filename or "<upload>", len(contents), image.mime_type)

        try:
            await ocr_service.initialize()
            ocr = await ocr_service.process_receipt_image(image)
        except (ImageLoadError, EngineInitializationError, RecognitionError) as e:
            logger.error("Receipt processing failed: %s", e)
            return _error_response(e)

        receipt = ocr_service.parse_receipt_text(ocr.text, ocr.confidence)
        payload: dict[str, Any] = {
            "status": "success",
            "receipt": receipt.to_dict(),
            "review_warnings": review_warnings(receipt),
        }
        return JSONResponse(payload)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
