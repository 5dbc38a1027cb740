class HardshipError(Exception):
    """Base error for all user-facing hardshipdocs exceptions."""


class ConfigurationError(HardshipError):
    """Raised when configuration is invalid or incomplete."""


class RemoteCallError(HardshipError):
    """Raised when an outbound HTTP call fails or returns an error status."""

    def __init__(self, message: str, *, status: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class JobFailedError(HardshipError):
    """Raised when a remote analysis job ends in a non-success state."""


class JobTimeoutError(HardshipError):
    """Raised when a remote analysis job does not finish before its deadline."""


class SchemaViolationError(HardshipError):
    """Raised when a model response does not match the requested shape."""


class SegmentationError(HardshipError):
    """Raised when page segmentation cannot proceed."""


class ReassemblyError(HardshipError):
    """Raised when a split document artifact cannot be built."""


class StatementExtractionError(HardshipError):
    """Raised when statement transactions cannot be extracted."""
