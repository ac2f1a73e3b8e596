from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import date
from http import HTTPStatus
from uuid import UUID

from .booking import Availability, Reservation, ReservationRequest, ReservationUpdate
from .errors import ReservationError, ReservationErrorKind


@dataclass
class CommandResponse:
    status: HTTPStatus = HTTPStatus.OK
    exception: BaseException | None = None

    @property
    def status_code(self) -> int:
        return int(self.status)

    @property
    def error(self) -> str | None:
        if self.exception is None:
            return None
        return str(self.exception)

    @property
    def error_kind(self) -> ReservationErrorKind | None:
        if isinstance(self.exception, ReservationError):
            return self.exception.kind
        return None

    @property
    def ok(self) -> bool:
        return self.status < HTTPStatus.BAD_REQUEST

    def reject(self, kind: ReservationErrorKind) -> None:
        self.status = HTTPStatus.BAD_REQUEST
        self.exception = ReservationError(kind)

    def fail(self, error: BaseException) -> None:
        if isinstance(error, ReservationError):
            self.status = HTTPStatus.BAD_REQUEST
        else:
            self.status = HTTPStatus.INTERNAL_SERVER_ERROR
        self.exception = error

    def not_found(self) -> None:
        self.status = HTTPStatus.NOT_FOUND


@dataclass
class ReservationResponse(CommandResponse):
    reservation: Reservation | None = None


@dataclass
class AvailabilitiesResponse(CommandResponse):
    from_date: date | None = None
    to_date: date | None = None
    availabilities: list[Availability] | None = None


class UnexpectedErrorResponse(CommandResponse):
    """Wraps a fault raised outside the engine so it can still be sent back."""

    def __init__(self, error: BaseException) -> None:
        super().__init__(status=HTTPStatus.INTERNAL_SERVER_ERROR, exception=error)


@dataclass(frozen=True)
class Command:
    reply_to: asyncio.Future = field(repr=False, compare=False)


@dataclass(frozen=True)
class CreateReservation(Command):
    request: ReservationRequest = field(kw_only=True)


@dataclass(frozen=True)
class UpdateReservation(Command):
    reservation_id: UUID = field(kw_only=True)
    changes: ReservationUpdate = field(kw_only=True)


@dataclass(frozen=True)
class GetReservation(Command):
    reservation_id: UUID = field(kw_only=True)


@dataclass(frozen=True)
class CancelReservation(Command):
    reservation_id: UUID = field(kw_only=True)


@dataclass(frozen=True)
class GetAvailabilities(Command):
    check_from: date | None = field(default=None, kw_only=True)
    check_to: date | None = field(default=None, kw_only=True)
