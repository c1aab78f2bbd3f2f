"""Exceptions raised by the receipt extraction pipeline.

Parsing never raises; only image decoding and the recognition engine can fail.
"""


class ReceiptPipelineError(RuntimeError):
    """Base class for receipt pipeline failures surfaced to the caller."""


class ImageLoadError(ReceiptPipelineError):
    """Raised when the uploaded image is unsupported or cannot be decoded. Not retryable."""


class EngineInitializationError(ReceiptPipelineError):
    """Raised when the recognition engine cannot be started. The caller may retry."""


class RecognitionError(ReceiptPipelineError):
    """Raised when the recognition engine fails on an image. The caller may retry."""
