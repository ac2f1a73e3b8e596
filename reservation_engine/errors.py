from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorGroup(str, Enum):
    AVAILABILITY_WINDOW = "availability_window"
    RESERVATION_PERIOD = "reservation_period"


class ReservationErrorKind(Enum):
    ALREADY_PAST = (ErrorGroup.AVAILABILITY_WINDOW, "Period already past.")
    TOO_SHORT = (ErrorGroup.AVAILABILITY_WINDOW, "Period must contain at least one day.")
    TOO_SOON = (ErrorGroup.AVAILABILITY_WINDOW, "Period must start at least tomorrow.")
    TOO_FAR = (ErrorGroup.AVAILABILITY_WINDOW, "Period must start the next month, at most.")
    TOO_LONG = (ErrorGroup.RESERVATION_PERIOD, "You can not reserve for more than three days.")
    NOT_AVAILABLE = (ErrorGroup.RESERVATION_PERIOD, "This reservation period is not available.")
    NOT_REACTIVABLE_WITHOUT_PERIOD = (
        ErrorGroup.RESERVATION_PERIOD,
        "The reservation can not be reactivated if you do not specify a period (it may be not still available).",
    )

    @property
    def group(self) -> ErrorGroup:
        return self.value[0]

    @property
    def message(self) -> str:
        return self.value[1]


class ReservationError(ValueError):
    def __init__(self, kind: ReservationErrorKind) -> None:
        super().__init__(kind.message)
        self.kind = kind


class EngineTimeoutError(TimeoutError):
    pass


class EngineNotRunningError(RuntimeError):
    pass


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either a value or the rule that rejected it."""

    value: T | None = None
    error: ReservationErrorKind | None = None

    @staticmethod
    def success(value: T) -> "Outcome[T]":
        return Outcome(value=value)

    @staticmethod
    def failure(error: ReservationErrorKind) -> "Outcome[T]":
        return Outcome(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise ReservationError(self.error)
        return self.value  # type: ignore[return-value]
