import threading
import unittest
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from uuid import UUID, uuid4

from reservation_engine import (
    InMemoryReservationStore,
    ReservationRequest,
    ReservationStatus,
    ReservationStorageError,
    ReservationUpdate,
)


def _request(arrival: date, nights: int = 1, name: str = "Emma Simon") -> ReservationRequest:
    return ReservationRequest(
        client_email=f"{name.split()[0].lower()}@example.com",
        client_name=name,
        arrival_date=arrival,
        departure_date=arrival + timedelta(days=nights),
    )


class TestInMemoryReservationStore(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryReservationStore()

    def test_create_assigns_id_and_active_status(self) -> None:
        created = self.store.create(_request(date(2024, 6, 5), 2))

        self.assertIsInstance(created.reservation_id, UUID)
        self.assertEqual(created.status, ReservationStatus.ACTIVE)
        self.assertEqual(created.client_name, "Emma Simon")
        self.assertEqual(self.store.find_by_id(created.reservation_id), created)
        self.assertEqual(len(self.store), 1)

    def test_create_uses_id_factory(self) -> None:
        fixed = uuid4()
        store = InMemoryReservationStore(id_factory=lambda: fixed)

        created = store.create(_request(date(2024, 6, 5)))

        self.assertEqual(created.reservation_id, fixed)
        with self.assertRaises(ReservationStorageError):
            store.create(_request(date(2024, 6, 8)))

    def test_update_changes_only_given_fields(self) -> None:
        created = self.store.create(_request(date(2024, 6, 5), 2))

        updated = self.store.update(created.reservation_id, ReservationUpdate(departure_date=date(2024, 6, 8)))

        self.assertIsNotNone(updated)
        self.assertEqual(updated.arrival_date, date(2024, 6, 5))
        self.assertEqual(updated.departure_date, date(2024, 6, 8))
        self.assertEqual(updated.status, ReservationStatus.ACTIVE)
        self.assertEqual(self.store.find_by_id(created.reservation_id), updated)

    def test_unknown_id_gives_nothing(self) -> None:
        missing = uuid4()

        self.assertIsNone(self.store.find_by_id(missing))
        self.assertIsNone(self.store.update(missing, ReservationUpdate(status=ReservationStatus.CANCELED)))
        self.assertIsNone(self.store.cancel(missing))

    def test_cancel_is_repeatable(self) -> None:
        created = self.store.create(_request(date(2024, 6, 5)))

        first = self.store.cancel(created.reservation_id)
        second = self.store.cancel(created.reservation_id)

        self.assertEqual(first.status, ReservationStatus.CANCELED)
        self.assertEqual(second.status, ReservationStatus.CANCELED)
        self.assertEqual(len(self.store), 1)

    def test_find_from_keeps_departures_on_or_after_date(self) -> None:
        before = self.store.create(_request(date(2024, 6, 1), 2))
        touching = self.store.create(_request(date(2024, 6, 8), 2))
        after = self.store.create(_request(date(2024, 6, 12), 1))
        self.store.cancel(after.reservation_id)

        found = {item.reservation_id for item in self.store.find_from(date(2024, 6, 10))}

        self.assertNotIn(before.reservation_id, found)
        self.assertIn(touching.reservation_id, found)
        self.assertIn(after.reservation_id, found)

    def test_find_from_can_exclude_one_id(self) -> None:
        first = self.store.create(_request(date(2024, 6, 8), 2))
        second = self.store.create(_request(date(2024, 6, 12), 1))

        found = self.store.find_from(date(2024, 6, 1), exclude_id=first.reservation_id)

        self.assertEqual([item.reservation_id for item in found], [second.reservation_id])

    def test_concurrent_creates_get_distinct_ids(self) -> None:
        with ThreadPoolExecutor(max_workers=16) as pool:
            created = list(pool.map(lambda index: self.store.create(_request(date(2024, 6, 5))), range(200)))

        self.assertEqual(len({item.reservation_id for item in created}), 200)
        self.assertEqual(len(self.store), 200)
        self.assertEqual(len(self.store.all()), 200)

    def test_concurrent_updates_of_one_id_stay_consistent(self) -> None:
        created = self.store.create(_request(date(2024, 6, 5), 1))
        start = threading.Barrier(8)

        def shift(index: int) -> None:
            start.wait()
            arrival = date(2024, 6, 5) + timedelta(days=index)
            for _ in range(50):
                self.store.update(
                    created.reservation_id,
                    ReservationUpdate(arrival_date=arrival, departure_date=arrival + timedelta(days=2)),
                )

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(shift, range(8)))

        final = self.store.find_by_id(created.reservation_id)
        self.assertEqual(final.departure_date - final.arrival_date, timedelta(days=2))


if __name__ == "__main__":
    unittest.main()
