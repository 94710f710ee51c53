"""Success and failure outcomes returned by bridge services."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(StrEnum):
    """Failure kinds a bridge operation can report."""

    TRANSPORT_FAILURE = "transport_failure"
    NO_SESSION = "no_session"
    MISSING_ARGUMENTS = "missing_arguments"
    REMOTE_FAULT = "remote_fault"
    UNAVAILABLE = "unavailable"
    KEY_NOT_FOUND = "key_not_found"
    INVALID_IDENTIFIER = "invalid_identifier"
    NO_RESULT = "no_result"
    MISSING_VALUE = "missing_value"
    INVALID_VALUE = "invalid_value"


@dataclass(frozen=True)
class BridgeError:
    """Describes why an operation failed."""

    kind: ErrorKind
    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.kind.value}: {self.detail}"
        return self.kind.value


class OutcomeError(RuntimeError):
    """Raised when unwrapping a failed outcome."""

    def __init__(self, error: BridgeError) -> None:
        super().__init__(str(error))
        self.error = error


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Discriminated result of a bridge operation."""

    value: T | None = None
    error: BridgeError | None = None

    @property
    def ok(self) -> bool:
        """Return True when the operation succeeded."""
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        """Build a successful outcome."""
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, detail: str = "") -> "Outcome[T]":
        """Build a failed outcome."""
        return cls(error=BridgeError(kind=kind, detail=detail))

    def unwrap(self) -> T:
        """Return the value or raise OutcomeError for a failure."""
        if self.error is not None:
            raise OutcomeError(self.error)
        return self.value  # type: ignore[return-value]
