from __future__ import annotations

import asyncio
from datetime import date
from threading import Thread
from typing import Any, Callable, Coroutine, TypeVar
from uuid import UUID

from .booking import ReservationRequest, ReservationUpdate
from .commands import AvailabilitiesResponse, ReservationResponse
from .config import EngineSettings
from .engine import ReservationEngine
from .errors import EngineNotRunningError
from .store import InMemoryReservationStore

T = TypeVar("T")


class ReservationClient:
    """Blocking access to an engine running on its own event loop thread.

    Used by callers that are not coroutines themselves: the Flask routes,
    the MCP tools and the load check script. Calls are safe from any thread.
    """

    def __init__(
        self,
        engine: ReservationEngine | None = None,
        settings: EngineSettings | None = None,
        clock: Callable[[], date] | None = None,
    ) -> None:
        if engine is None:
            engine = ReservationEngine(InMemoryReservationStore(), settings=settings, clock=clock)
        self.engine = engine
        self.settings = engine.settings
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: Thread | None = None

    @property
    def started(self) -> bool:
        return self._thread is not None

    def start(self) -> "ReservationClient":
        if self._thread is not None:
            return self

        loop = asyncio.new_event_loop()
        thread = Thread(target=_run_loop, args=(loop,), name="reservation-engine-loop", daemon=True)
        thread.start()
        asyncio.run_coroutine_threadsafe(self.engine.start(), loop).result()
        self._loop = loop
        self._thread = thread
        return self

    def close(self) -> None:
        if self._thread is None or self._loop is None:
            return

        loop, thread = self._loop, self._thread
        self._loop = None
        self._thread = None
        try:
            asyncio.run_coroutine_threadsafe(self.engine.stop(), loop).result()
        finally:
            loop.call_soon_threadsafe(loop.stop)
            thread.join()
            loop.close()

    def __enter__(self) -> "ReservationClient":
        return self.start()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def create(self, request: ReservationRequest) -> ReservationResponse:
        return self._run(self.engine.create(request))

    def update(self, reservation_id: UUID, changes: ReservationUpdate) -> ReservationResponse:
        return self._run(self.engine.update(reservation_id, changes))

    def get(self, reservation_id: UUID) -> ReservationResponse:
        return self._run(self.engine.get(reservation_id))

    def cancel(self, reservation_id: UUID) -> ReservationResponse:
        return self._run(self.engine.cancel(reservation_id))

    def list_availabilities(self, check_from: date | None = None, check_to: date | None = None) -> AvailabilitiesResponse:
        return self._run(self.engine.list_availabilities(check_from, check_to))

    def _run(self, coroutine: Coroutine[Any, Any, T]) -> T:
        loop = self._loop
        if loop is None:
            coroutine.close()
            raise EngineNotRunningError("Reservation client is not started.")
        return asyncio.run_coroutine_threadsafe(coroutine, loop).result()


def _run_loop(loop: asyncio.AbstractEventLoop) -> None:
    asyncio.set_event_loop(loop)
    loop.run_forever()
