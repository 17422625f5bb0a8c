from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

STATUS_SUCCESS = 0
STATUS_FAILED = -500


@dataclass(slots=True)
class ProtocolError(Exception):
    code: str
    message: str


@dataclass(frozen=True, slots=True)
class CommandResult(Generic[T]):
    """Outcome of an asynchronous collaborator call.

    Callers check ``success`` before touching ``result``; a failed result never
    carries a value.
    """

    success: bool
    status: int
    result: T | None = None

    @classmethod
    def ok(cls, result: T, *, status: int = STATUS_SUCCESS) -> CommandResult[T]:
        return cls(success=True, status=status, result=result)

    @classmethod
    def failed(cls, status: int = STATUS_FAILED) -> CommandResult[T]:
        return cls(success=False, status=status)
