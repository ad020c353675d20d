"""Error kinds raised by the gateway and their HTTP status codes."""


class GatewayError(Exception):
    """Base error; ``message`` is safe to show to the client."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(GatewayError):
    status_code = 400


class InvalidUpload(ValidationError):
    """The uploaded file is missing, too large or of a disallowed type."""


class RateLimited(GatewayError):
    status_code = 429

    def __init__(self, message: str, retry_after: float = 0.0) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class UpstreamError(GatewayError):
    """The transcription or summarization provider failed."""

    status_code = 500
