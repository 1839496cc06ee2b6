"""Pagination error classes.

Three failure families:
- ConfigValidationError: malformed registration options or route settings.
  Raised at startup, never rendered to clients.
- InvalidQueryParameterError (400): non-numeric page/limit under the
  ``badRequest`` invalid policy.
- InvalidResultShapeError (500): the handler produced something that cannot
  be read as a results sequence.
"""

from typing import Any


class APIError(Exception):
    """Base class for errors rendered as JSON error envelopes.

    Attributes:
        code: Machine-readable error code (e.g., "INVALID_RESULT_SHAPE").
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional list of additional error details.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError(APIError):
    """Field validation failed (400).

    Use for query param errors.
    """

    def __init__(
        self,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class InternalError(APIError):
    """Unexpected server error (500).

    Never expose stack traces to clients.
    """

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(
            code="INTERNAL_ERROR",
            message=message,
            status_code=500,
        )


class InvalidQueryParameterError(ValidationError):
    """A pagination query parameter could not be parsed (400).

    Args:
        name: Query parameter name as configured (e.g., "limit").
        value: Raw value received from the client.
    """

    def __init__(self, name: str, value: Any) -> None:
        super().__init__(
            message=f"Invalid {name}",
            details=[{"field": name, "value": value}],
        )
        self.code = "INVALID_PAGINATION_PARAMETER"
        self.field = name


class InvalidResultShapeError(APIError):
    """Handler result cannot be interpreted as a results sequence (500)."""

    def __init__(self, message: str) -> None:
        super().__init__(
            code="INVALID_RESULT_SHAPE",
            message=message,
            status_code=500,
        )


class ConfigValidationError(Exception):
    """Registration options or per-route settings are invalid.

    Attributes:
        field: Dotted path of the offending option (e.g., "query.limit.default").
        message: Description of the violation.
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}" if field else message)
