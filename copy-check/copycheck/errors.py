# copycheck/errors.py
"""Terminal request rejections raised by the copy-check pipeline."""


class CopyCheckError(Exception):
    """Base class for errors that end a request with an ``{"error": ...}`` body."""
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(CopyCheckError):
    """Malformed or out-of-enumeration input."""
    status_code = 400


class RateLimitError(CopyCheckError):
    """Too many requests from one caller identity within the window."""
    status_code = 429

    def __init__(self, message: str = "Rate limit exceeded"):
        super().__init__(message)
