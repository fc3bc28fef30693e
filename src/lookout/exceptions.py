class LookoutError(Exception):
    """Base exception for Lookout service."""


class InvalidMediaError(LookoutError):
    """Raised when a media reference is malformed or of an unaccepted type."""


class ModelInvocationError(LookoutError):
    """Raised when the model call fails or returns no usable output."""


class FrameExtractionError(LookoutError):
    """Raised when a single frame cannot be decoded or encoded."""


class DeadlineExceeded(LookoutError):
    """Raised when an awaited operation does not finish before its deadline."""
