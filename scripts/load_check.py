from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, wait
from datetime import date
import random
from statistics import mean
from threading import Lock
import time
import traceback
from typing import Any, Callable
from uuid import UUID

from reservation_engine import ReservationClient, load_settings
from reservation_engine.generation import generate_following_requests, generate_reservation_requests, shifted_update


class LatencyBook:
    def __init__(self) -> None:
        self._lock = Lock()
        self.samples: dict[str, list[float]] = {}
        self.statuses: dict[str, dict[int, int]] = {}

    def record(self, operation: str, seconds: float, status_code: int) -> None:
        with self._lock:
            self.samples.setdefault(operation, []).append(seconds)
            counts = self.statuses.setdefault(operation, {})
            counts[status_code] = counts.get(status_code, 0) + 1

    @property
    def total(self) -> int:
        with self._lock:
            return sum(len(values) for values in self.samples.values())


def main() -> int:
    print("[INFO] Reservation Engine Load Check")

    settings = load_settings()
    plan = settings.load_check
    today = date.today()
    rng = random.Random(f"load:{today.isoformat()}")
    book = LatencyBook()
    known_ids: list[UUID] = []
    ids_lock = Lock()

    def timed(operation: str, call: Callable[[], Any]) -> Any:
        started = time.perf_counter()
        response = call()
        book.record(operation, time.perf_counter() - started, response.status_code)
        return response

    def remember(response: Any) -> None:
        if response.reservation is not None:
            with ids_lock:
                known_ids.append(response.reservation.reservation_id)

    def pick_id() -> UUID | None:
        with ids_lock:
            return rng.choice(known_ids) if known_ids else None

    with ReservationClient(settings=settings) as client, ThreadPoolExecutor(max_workers=32) as pool:
        for request in generate_following_requests(today, 10, settings.rules):
            remember(timed("create", lambda request=request: client.create(request)))
        print(f"[OK] Seeded following reservations: {len(known_ids)}")

        def tick(index: int) -> list[Any]:
            futures = []
            for request in generate_reservation_requests(today, plan.creates_per_tick, seed=f"tick:{index}", rules=settings.rules):
                futures.append(pool.submit(lambda request=request: remember(timed("create", lambda: client.create(request)))))
            for _ in range(plan.retrieves_per_tick):
                target = pick_id()
                if target is not None:
                    futures.append(pool.submit(timed, "retrieve", lambda target=target: client.get(target)))
            for _ in range(plan.updates_per_tick):
                target = pick_id()
                if target is not None:
                    futures.append(pool.submit(_update_shifted, client, target, timed))
            for _ in range(plan.cancels_per_tick):
                target = pick_id()
                if target is not None:
                    futures.append(pool.submit(timed, "cancel", lambda target=target: client.cancel(target)))
            for _ in range(plan.availability_checks_per_tick):
                futures.append(pool.submit(timed, "availabilities", client.list_availabilities))
            return futures

        started = time.perf_counter()
        pending: list[Any] = []
        index = 0
        while time.perf_counter() - started < plan.duration_seconds:
            pending.extend(tick(index))
            index += 1
            time.sleep(plan.interval_seconds)
        wait(pending)
        for future in pending:
            future.result()
        elapsed = time.perf_counter() - started

    for operation, values in sorted(book.samples.items()):
        print(f"[OK] {operation.upper()} avg time = {mean(values) * 1000:.2f}ms over {len(values)} calls, statuses={book.statuses[operation]}")
    print(f"[OK] Number of requests: {book.total}")
    print(f"[OK] Execution time: {elapsed * 1000:.0f}ms")
    print(f"[OK] Requests per second: {book.total / elapsed:.0f}")
    print("[DONE] Load check completed successfully.")
    return 0


def _update_shifted(client: ReservationClient, reservation_id: UUID, timed: Callable[..., Any]) -> None:
    current = client.get(reservation_id)
    if current.reservation is None:
        return
    timed("update", lambda: client.update(reservation_id, shifted_update(current.reservation)))


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception:
        print("[ERROR] Load check failed.")
        traceback.print_exc()
        raise SystemExit(1)
