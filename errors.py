from __future__ import annotations

from typing import Optional


class FinanceError(Exception):
    """Base class for failures surfaced to the transport layer."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(FinanceError, ValueError):
    status_code = 400

    def __init__(
        self, errors: list[dict[str, str]], message: Optional[str] = None
    ) -> None:
        super().__init__(message or "Validation failed")
        self.errors = errors

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailed":
        return cls([{"field": field, "message": message}], message)

    @classmethod
    def from_pydantic(cls, exc) -> "ValidationFailed":
        errors = []
        for item in exc.errors():
            loc = ".".join(str(part) for part in item.get("loc", ())) or "__root__"
            errors.append({"field": loc, "message": item.get("msg", "Invalid value")})
        return cls(errors)


class NotFound(FinanceError, ValueError):
    status_code = 404


class Forbidden(FinanceError):
    status_code = 403


class Unauthenticated(FinanceError):
    status_code = 401


class StoreUnavailable(FinanceError):
    status_code = 503
