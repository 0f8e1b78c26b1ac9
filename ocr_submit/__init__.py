"""ocr-submit: client-side submission pipeline for a remote OCR endpoint."""

__version__ = "0.1.0"
