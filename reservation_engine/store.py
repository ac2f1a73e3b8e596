from __future__ import annotations

from datetime import date
from threading import Lock
from typing import Callable
from uuid import UUID, uuid4

import structlog

from .booking import Reservation, ReservationRequest, ReservationStatus, ReservationUpdate

logger = structlog.get_logger("reservation_engine.store")


class ReservationStorageError(RuntimeError):
    pass


class InMemoryReservationStore:
    """Thread-safe reservation holder.

    Entries are immutable snapshots. Writes to one id go through that id's lock,
    so concurrent updates of the same reservation never interleave field by field.
    There is no lock spanning several ids.
    """

    def __init__(self, id_factory: Callable[[], UUID] = uuid4) -> None:
        self._id_factory = id_factory
        self._reservations: dict[UUID, Reservation] = {}
        self._key_locks: dict[UUID, Lock] = {}
        self._index_lock = Lock()

    def __len__(self) -> int:
        with self._index_lock:
            return len(self._reservations)

    def create(self, request: ReservationRequest) -> Reservation:
        with self._index_lock:
            reservation_id = self._id_factory()
            if reservation_id in self._reservations:
                raise ReservationStorageError(f"Reservation id already allocated: {reservation_id}")

            reservation = Reservation.from_request(reservation_id, request)
            self._reservations[reservation_id] = reservation
            self._key_locks[reservation_id] = Lock()

        logger.debug("reservation stored", reservation_id=str(reservation_id))
        return reservation

    def update(self, reservation_id: UUID, changes: ReservationUpdate) -> Reservation | None:
        key_lock = self._lock_for(reservation_id)
        if key_lock is None:
            return None

        with key_lock:
            with self._index_lock:
                current = self._reservations[reservation_id]
            updated = current.apply_update(changes)
            with self._index_lock:
                self._reservations[reservation_id] = updated

        logger.debug("reservation rewritten", reservation_id=str(reservation_id), status=updated.status.value)
        return updated

    def find_by_id(self, reservation_id: UUID) -> Reservation | None:
        with self._index_lock:
            return self._reservations.get(reservation_id)

    def find_from(self, start_at: date, exclude_id: UUID | None = None) -> list[Reservation]:
        """Return reservations of any status whose departure is on or after start_at."""
        with self._index_lock:
            snapshot = list(self._reservations.values())
        return [
            reservation
            for reservation in snapshot
            if reservation.reservation_id != exclude_id and reservation.departure_date >= start_at
        ]

    def cancel(self, reservation_id: UUID) -> Reservation | None:
        return self.update(reservation_id, ReservationUpdate(status=ReservationStatus.CANCELED))

    def all(self) -> list[Reservation]:
        with self._index_lock:
            return list(self._reservations.values())

    def _lock_for(self, reservation_id: UUID) -> Lock | None:
        with self._index_lock:
            return self._key_locks.get(reservation_id)
