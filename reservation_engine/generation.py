from __future__ import annotations

from datetime import date, timedelta
import random

from .booking import Reservation, ReservationRequest, ReservationUpdate
from .validation import DEFAULT_RULES, BookingRules

_FIRST_NAMES = ["Alice", "Bruno", "Chloe", "Diego", "Emma", "Farid", "Grace", "Hugo", "Ines", "Jonas"]
_LAST_NAMES = ["Martin", "Bernard", "Dubois", "Moreau", "Laurent", "Simon", "Michel", "Garcia", "Roux", "Fournier"]


def generate_reservation_requests(
    today: date,
    count: int,
    seed: str | int | None = None,
    rules: BookingRules = DEFAULT_RULES,
    spread_days: int = 10,
) -> list[ReservationRequest]:
    """Build random but valid requests arriving within spread_days of the earliest allowed arrival.

    Requests are valid one by one; they may overlap each other.
    """
    if count < 0:
        raise ValueError("count must not be negative")
    if spread_days <= 0:
        raise ValueError("spread_days must be greater than zero")

    rng = random.Random(seed if seed is not None else f"requests:{today.isoformat()}")
    earliest = rules.earliest_arrival(today)
    latest = rules.latest_arrival(today)
    max_offset = min(spread_days - 1, (latest - earliest).days)

    requests: list[ReservationRequest] = []
    for _ in range(count):
        arrival = earliest + timedelta(days=rng.randint(0, max(0, max_offset)))
        departure = arrival + timedelta(days=rng.randint(1, rules.max_stay_days))
        first_name = rng.choice(_FIRST_NAMES)
        last_name = rng.choice(_LAST_NAMES)
        requests.append(
            ReservationRequest(
                client_email=f"{first_name}.{last_name}{rng.randint(1, 999)}@example.com".lower(),
                client_name=f"{first_name} {last_name}",
                arrival_date=arrival,
                departure_date=departure,
            )
        )
    return requests


def generate_following_requests(today: date, count: int, rules: BookingRules = DEFAULT_RULES) -> list[ReservationRequest]:
    """Back-to-back one-night stays starting at the earliest allowed arrival."""
    earliest = rules.earliest_arrival(today)
    return [
        ReservationRequest(
            client_email=f"guest{index}@example.com",
            client_name=f"Guest {index}",
            arrival_date=earliest + timedelta(days=index),
            departure_date=earliest + timedelta(days=index + 1),
        )
        for index in range(count)
    ]


def shifted_update(reservation: Reservation) -> ReservationUpdate:
    arrival = reservation.arrival_date + timedelta(days=1)
    return ReservationUpdate(arrival_date=arrival, departure_date=arrival + timedelta(days=1))
