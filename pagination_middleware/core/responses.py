"""Error envelope models.

All errors produced by the pagination engine use the {"error": {...}}
envelope, matching what the host app's exception handlers render.
"""

from pydantic import BaseModel
from starlette.responses import JSONResponse

from pagination_middleware.core.errors import APIError


class ErrorDetail(BaseModel):
    """Error detail for response body.

    Attributes:
        code: Machine-readable error code (e.g., "INVALID_PAGINATION_PARAMETER").
        message: Human-readable error message.
        details: Optional list of field-level errors.
    """

    code: str
    message: str
    details: list[dict] | None = None


class ErrorResponse(BaseModel):
    """Standard error response envelope.

    Usage in exception handlers:
        return error_response(exc)
    """

    error: ErrorDetail


def error_response(exc: APIError) -> JSONResponse:
    """Render an APIError as a JSON error envelope.

    Args:
        exc: The error to render.

    Returns:
        JSONResponse with the error envelope and the error's status code.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=exc.code,
                message=exc.message,
                details=exc.details,
            )
        ).model_dump(),
    )
