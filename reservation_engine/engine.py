from __future__ import annotations

import asyncio
from contextlib import nullcontext
from datetime import date
from http import HTTPStatus
from typing import Any, Awaitable, Callable
from uuid import UUID

import structlog

from .availability import compute_availabilities, is_period_available
from .booking import (
    UNSET,
    Availability,
    Period,
    ReservationRequest,
    ReservationStatus,
    ReservationUpdate,
    add_months,
)
from .commands import (
    AvailabilitiesResponse,
    CancelReservation,
    Command,
    CommandResponse,
    CreateReservation,
    GetAvailabilities,
    GetReservation,
    ReservationResponse,
    UnexpectedErrorResponse,
    UpdateReservation,
)
from .config import EngineSettings
from .errors import EngineNotRunningError, EngineTimeoutError, Outcome, ReservationErrorKind
from .store import InMemoryReservationStore
from .validation import validate_reservation_period

logger = structlog.get_logger("reservation_engine.engine")

_RESPONSE_TYPES: dict[type[Command], type[CommandResponse]] = {
    CreateReservation: ReservationResponse,
    UpdateReservation: ReservationResponse,
    GetReservation: ReservationResponse,
    CancelReservation: ReservationResponse,
    GetAvailabilities: AvailabilitiesResponse,
}


class ReservationEngine:
    """Serialized command processor in front of the reservation store.

    A single consumer task takes commands off a bounded mailbox one at a time.
    Each command is handed to its own task and the consumer goes straight back
    to the mailbox, so replies can arrive in a different order than the commands.

    The availability check and the following write are separate steps. Two
    overlapping creates running at the same time can both pass the check
    unless serialize_bookings is enabled.
    """

    def __init__(
        self,
        store: InMemoryReservationStore | None = None,
        settings: EngineSettings | None = None,
        clock: Callable[[], date] | None = None,
    ) -> None:
        self.store = store if store is not None else InMemoryReservationStore()
        self.settings = settings or EngineSettings()
        self._clock: Callable[[], date] = clock or date.today
        self._mailbox: asyncio.Queue[Command | None] | None = None
        self._consumer: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[None]] = set()
        self._booking_lock: asyncio.Lock | None = None
        self._handlers: dict[type[Command], Callable[[Any, Any], Awaitable[None]]] = {
            CreateReservation: self._on_create_reservation,
            UpdateReservation: self._on_update_reservation,
            GetReservation: self._on_get_reservation,
            CancelReservation: self._on_cancel_reservation,
            GetAvailabilities: self._on_get_availabilities,
        }

    @property
    def running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    async def start(self) -> None:
        if self.running:
            return
        self._mailbox = asyncio.Queue(maxsize=self.settings.mailbox_size)
        self._booking_lock = asyncio.Lock()
        self._consumer = asyncio.create_task(self._consume(), name="reservation-engine")
        logger.info("engine started", mailbox_size=self.settings.mailbox_size)

    async def stop(self) -> None:
        if not self.running or self._mailbox is None or self._consumer is None:
            return
        await self._mailbox.put(None)
        await self._consumer
        if self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)
        self._consumer = None
        logger.info("engine stopped")

    async def tell(self, command: Command) -> None:
        if not self.running or self._mailbox is None:
            raise EngineNotRunningError("Reservation engine is not running.")
        await self._mailbox.put(command)

    async def ask(self, factory: Callable[[asyncio.Future], Command], timeout: float | None = None) -> Any:
        """Send a command built around a fresh reply future and wait for the reply.

        The deadline covers both the wait for mailbox room and the wait for the reply.
        Work already started by the engine keeps going.
        """
        deadline = timeout if timeout is not None else self.settings.ask_timeout_seconds
        reply_to: asyncio.Future = asyncio.get_running_loop().create_future()
        command = factory(reply_to)
        try:
            async with asyncio.timeout(deadline):
                await self.tell(command)
                return await reply_to
        except TimeoutError as error:
            raise EngineTimeoutError(
                f"No reply to {type(command).__name__} within {deadline:g} seconds."
            ) from error

    async def create(self, request: ReservationRequest) -> ReservationResponse:
        return await self.ask(lambda reply_to: CreateReservation(reply_to, request=request))

    async def update(self, reservation_id: UUID, changes: ReservationUpdate) -> ReservationResponse:
        return await self.ask(
            lambda reply_to: UpdateReservation(reply_to, reservation_id=reservation_id, changes=changes)
        )

    async def get(self, reservation_id: UUID) -> ReservationResponse:
        return await self.ask(
            lambda reply_to: GetReservation(reply_to, reservation_id=reservation_id),
            timeout=self.settings.get_timeout_seconds,
        )

    async def cancel(self, reservation_id: UUID) -> ReservationResponse:
        return await self.ask(lambda reply_to: CancelReservation(reply_to, reservation_id=reservation_id))

    async def list_availabilities(
        self,
        check_from: date | None = None,
        check_to: date | None = None,
    ) -> AvailabilitiesResponse:
        return await self.ask(
            lambda reply_to: GetAvailabilities(reply_to, check_from=check_from, check_to=check_to)
        )

    async def _consume(self) -> None:
        assert self._mailbox is not None
        while True:
            command = await self._mailbox.get()
            if command is None:
                break

            handler = self._handlers.get(type(command))
            if handler is None:
                _reply(command, UnexpectedErrorResponse(TypeError(f"Unsupported command: {type(command).__name__}")))
                continue

            task = asyncio.create_task(self._dispatch(handler, command))
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)

    async def _dispatch(self, handler: Callable[[Any, Any], Awaitable[None]], command: Command) -> None:
        response = _RESPONSE_TYPES[type(command)]()
        try:
            await handler(command, response)
        except Exception as error:
            logger.exception("command failed", command=type(command).__name__)
            response.fail(error)
        _reply(command, response)

    async def _on_create_reservation(self, command: CreateReservation, response: ReservationResponse) -> None:
        today = self._clock()
        checked = validate_reservation_period(command.request, today, self.settings.rules)
        if not checked.ok:
            response.reject(checked.error)
            return

        async with self._booking_guard():
            rejection = await self._check_available(checked.value, today)
            if rejection is not None:
                response.reject(rejection)
                return
            created = await asyncio.to_thread(self.store.create, command.request)

        response.status = HTTPStatus.CREATED
        response.reservation = created
        logger.info(
            "RESERVATION_CREATED",
            reservation_id=str(created.reservation_id),
            arrival_date=created.arrival_date.isoformat(),
            departure_date=created.departure_date.isoformat(),
        )

    async def _on_update_reservation(self, command: UpdateReservation, response: ReservationResponse) -> None:
        reservation_id = command.reservation_id
        changes = command.changes

        # reactivating needs a full period so it can be checked again
        if changes.status is ReservationStatus.ACTIVE and not changes.has_full_period:
            response.reject(ReservationErrorKind.NOT_REACTIVABLE_WITHOUT_PERIOD)
            return

        if not changes.touches_period:
            updated = await asyncio.to_thread(self.store.update, reservation_id, changes)
            self._fill_reservation(response, updated, "RESERVATION_UPDATED")
            return

        if changes.has_full_period:
            period = Period(changes.arrival_date, changes.departure_date)
        else:
            current = await asyncio.to_thread(self.store.find_by_id, reservation_id)
            if current is None:
                response.not_found()
                return
            period = Period(
                current.arrival_date if changes.arrival_date is UNSET else changes.arrival_date,
                current.departure_date if changes.departure_date is UNSET else changes.departure_date,
            )

        today = self._clock()
        checked = validate_reservation_period(period, today, self.settings.rules)
        if not checked.ok:
            response.reject(checked.error)
            return

        full_changes = ReservationUpdate(
            arrival_date=period.arrival_date,
            departure_date=period.departure_date,
            status=changes.status,
        )
        async with self._booking_guard():
            rejection = await self._check_available(period, today, exclude_id=reservation_id)
            if rejection is not None:
                response.reject(rejection)
                return
            updated = await asyncio.to_thread(self.store.update, reservation_id, full_changes)
        self._fill_reservation(response, updated, "RESERVATION_UPDATED")

    async def _on_get_reservation(self, command: GetReservation, response: ReservationResponse) -> None:
        found = await asyncio.to_thread(self.store.find_by_id, command.reservation_id)
        self._fill_reservation(response, found)

    async def _on_cancel_reservation(self, command: CancelReservation, response: ReservationResponse) -> None:
        canceled = await asyncio.to_thread(self.store.cancel, command.reservation_id)
        self._fill_reservation(response, canceled, "RESERVATION_CANCELED")

    async def _on_get_availabilities(self, command: GetAvailabilities, response: AvailabilitiesResponse) -> None:
        today = self._clock()
        rules = self.settings.rules
        check_from = command.check_from or rules.earliest_arrival(today)
        check_to = command.check_to or add_months(check_from, rules.horizon_months)
        response.from_date = check_from
        response.to_date = check_to

        windows = await self._free_windows(check_from, check_to, today)
        if not windows.ok:
            response.reject(windows.error)
            return
        response.availabilities = windows.value

    async def _free_windows(
        self,
        check_from: date,
        check_to: date,
        today: date,
        exclude_id: UUID | None = None,
    ) -> Outcome[list[Availability]]:
        candidates = await asyncio.to_thread(self.store.find_from, check_from, exclude_id)
        active = [reservation for reservation in candidates if reservation.is_active]
        return await asyncio.to_thread(
            compute_availabilities, check_from, check_to, active, today, self.settings.rules
        )

    async def _check_available(
        self,
        period: Period,
        today: date,
        exclude_id: UUID | None = None,
    ) -> ReservationErrorKind | None:
        windows = await self._free_windows(period.arrival_date, period.departure_date, today, exclude_id)
        if not windows.ok:
            return windows.error
        if not is_period_available(period, windows.value):
            return ReservationErrorKind.NOT_AVAILABLE
        return None

    def _booking_guard(self) -> Any:
        if self.settings.serialize_bookings and self._booking_lock is not None:
            return self._booking_lock
        return nullcontext()

    @staticmethod
    def _fill_reservation(response: ReservationResponse, reservation: Any, event: str | None = None) -> None:
        if reservation is None:
            response.not_found()
            return
        response.reservation = reservation
        if event is not None:
            logger.info(event, reservation_id=str(reservation.reservation_id), status=reservation.status.value)


def _reply(command: Command, response: CommandResponse) -> None:
    # the caller may have stopped waiting already
    if not command.reply_to.done():
        command.reply_to.set_result(response)
