from typing import Any, Optional


class TimecardError(Exception):
    """Base for business-rule failures surfaced to the caller as-is."""

    status_code = 400
    code = "error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        expected: Any = None,
        actual: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.field = field
        self.expected = expected
        self.actual = actual

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"detail": self.message, "error": self.code}
        if self.field is not None:
            payload["field"] = self.field
        if self.expected is not None:
            payload["expected"] = self.expected
        if self.actual is not None:
            payload["actual"] = self.actual
        return payload


class NotFoundError(TimecardError):
    status_code = 404
    code = "not_found"


class ForbiddenError(TimecardError):
    status_code = 403
    code = "forbidden"


class ConflictError(TimecardError):
    status_code = 409
    code = "conflict"


class InvalidInputError(TimecardError):
    status_code = 422
    code = "invalid_input"
