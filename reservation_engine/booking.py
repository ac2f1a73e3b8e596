from __future__ import annotations

import calendar
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Protocol
from uuid import UUID


class ReservationStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CANCELED = "CANCELED"


class _Unset(Enum):
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset.UNSET


class PeriodLike(Protocol):
    @property
    def arrival_date(self) -> date: ...

    @property
    def departure_date(self) -> date: ...


@dataclass(frozen=True)
class Period:
    arrival_date: date
    departure_date: date


@dataclass(frozen=True)
class ReservationRequest:
    client_email: str
    client_name: str
    arrival_date: date
    departure_date: date


@dataclass(frozen=True)
class ReservationUpdate:
    """Partial change of a reservation; UNSET fields are left untouched."""

    arrival_date: date | _Unset = UNSET
    departure_date: date | _Unset = UNSET
    status: ReservationStatus | _Unset = UNSET

    @property
    def has_full_period(self) -> bool:
        return self.arrival_date is not UNSET and self.departure_date is not UNSET

    @property
    def touches_period(self) -> bool:
        return self.arrival_date is not UNSET or self.departure_date is not UNSET


@dataclass(frozen=True)
class Reservation:
    reservation_id: UUID
    client_email: str
    client_name: str
    arrival_date: date
    departure_date: date
    status: ReservationStatus = ReservationStatus.ACTIVE

    def __post_init__(self) -> None:
        if self.arrival_date >= self.departure_date:
            raise ValueError("Reservation arrival date must be earlier than departure date.")

    @staticmethod
    def from_request(reservation_id: UUID, request: ReservationRequest) -> "Reservation":
        return Reservation(
            reservation_id=reservation_id,
            client_email=request.client_email,
            client_name=request.client_name,
            arrival_date=request.arrival_date,
            departure_date=request.departure_date,
        )

    @property
    def is_active(self) -> bool:
        return self.status is ReservationStatus.ACTIVE

    @property
    def nb_days(self) -> int:
        return (self.departure_date - self.arrival_date).days

    def apply_update(self, changes: ReservationUpdate) -> "Reservation":
        fields: dict[str, object] = {}
        if changes.arrival_date is not UNSET:
            fields["arrival_date"] = changes.arrival_date
        if changes.departure_date is not UNSET:
            fields["departure_date"] = changes.departure_date
        if changes.status is not UNSET:
            fields["status"] = changes.status
        if not fields:
            return self
        return replace(self, **fields)


@dataclass(frozen=True)
class Availability:
    from_date: date
    to_date: date

    @property
    def nb_days(self) -> int:
        return (self.to_date - self.from_date).days

    def matches(self, period: PeriodLike) -> bool:
        return self.from_date == period.arrival_date and self.to_date == period.departure_date


def has_period_overlap(first: PeriodLike, second: PeriodLike) -> bool:
    """Return True when two stays share at least one night.

    Periods are half-open ranges: [arrival, departure)
    so a departure on the day of the next arrival is not an overlap.
    """
    return first.arrival_date < second.departure_date and first.departure_date > second.arrival_date


def add_months(value: date, months: int) -> date:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(value.day, last_day))
