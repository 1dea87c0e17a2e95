from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from .errors import PipelineError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    """
    Outcome of a stage helper: either a produced value or a typed error.

    Callers decide whether an error is fatal (`unwrap`) or soft (inspect `error`).
    """

    value: T | None = None
    error: PipelineError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        assert self.value is not None
        return self.value


def ok(value: T) -> Result[T]:
    return Result(value=value)


def err(error: PipelineError) -> Result:
    return Result(error=error)
