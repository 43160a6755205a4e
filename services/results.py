"""
Typed outcomes returned by the data-access services.

Expected outcomes (not found, conflict, nothing to update...) are values, not
exceptions. Request handlers turn them into HTTP errors with ``unwrap``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from core.errors import (
    AppError,
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

T = TypeVar("T")


class Outcome(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    NO_CHANGES = "no_changes"
    INVALID = "invalid"
    UNAUTHORIZED = "unauthorized"


_ERRORS = {
    Outcome.NOT_FOUND: NotFoundError,
    Outcome.CONFLICT: ConflictError,
    Outcome.NO_CHANGES: ValidationError,
    Outcome.INVALID: ValidationError,
    Outcome.UNAUTHORIZED: AuthenticationError,
}


@dataclass(frozen=True)
class Result(Generic[T]):
    outcome: Outcome
    value: Optional[T] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    @classmethod
    def success(cls, value: T = None) -> "Result[T]":
        return cls(Outcome.OK, value)

    @classmethod
    def not_found(cls, message: str = "Not found") -> "Result[T]":
        return cls(Outcome.NOT_FOUND, message=message)

    @classmethod
    def conflict(cls, message: str) -> "Result[T]":
        return cls(Outcome.CONFLICT, message=message)

    @classmethod
    def no_changes(cls, message: str = "No fields to update") -> "Result[T]":
        return cls(Outcome.NO_CHANGES, message=message)

    @classmethod
    def invalid(cls, message: str) -> "Result[T]":
        return cls(Outcome.INVALID, message=message)

    @classmethod
    def unauthorized(cls, message: str) -> "Result[T]":
        return cls(Outcome.UNAUTHORIZED, message=message)


def unwrap(result: Result[T]) -> T:
    """
    Return the value of a successful result or raise the matching AppError.

    Raises:
        AppError: subclass selected by the result's outcome
    """
    if result.ok:
        return result.value
    error_cls = _ERRORS.get(result.outcome, AppError)
    raise error_cls(result.message or result.outcome.value)
