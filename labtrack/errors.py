class PipelineError(Exception):
    """Base class for failures surfaced at the upload pipeline boundary."""

    status_code = 500
    error_name = "PipelineError"

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class InputError(PipelineError):
    """No file, wrong type or oversized upload. Rejected before any processing."""

    status_code = 400
    error_name = "BadRequest"


class ExtractionError(PipelineError):
    """The document could not be read or decoded."""

    status_code = 422
    error_name = "ExtractionError"


class NetworkError(PipelineError):
    """The remote extraction service failed or could not be reached. Retryable by the caller."""

    status_code = 502
    error_name = "NetworkError"


HTTP_ERROR_NAMES = {400: "BadRequest", 404: "NotFound", 413: "PayloadTooLarge", 422: "ValidationError"}


def error_name_for(status_code: int) -> str:
    if status_code >= 500:
        return "InternalServerError"
    return HTTP_ERROR_NAMES.get(status_code, "HTTPError")


def error_envelope(status_code: int, message: str, error: str | None = None, **extra) -> dict:
    """Body shared by every non-2xx response of the API."""
    return {"statusCode": status_code, "message": message, "error": error or error_name_for(status_code), **extra}
