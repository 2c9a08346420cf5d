from typing import Any, Optional


class CallflowError(Exception):
    """Base error; handlers turn it into a JSON `{"error": ...}` response."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(CallflowError):
    status_code = 404


class InvalidState(CallflowError):
    status_code = 400


class ConflictError(CallflowError):
    status_code = 409


class StoreFailure(CallflowError):
    status_code = 500


class ConfigurationError(CallflowError):
    status_code = 500


class UpstreamFailure(CallflowError):
    """A telephony vendor answered with a non-2xx status or could not be reached."""

    status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None, body: Any = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.body = body
