from __future__ import annotations

from datetime import date
from typing import Iterable

from .booking import Availability, Period, PeriodLike, has_period_overlap
from .errors import Outcome
from .validation import DEFAULT_RULES, BookingRules, validate_availability_window


def compute_availabilities(
    check_from: date,
    check_to: date,
    reservations: Iterable[PeriodLike],
    today: date | None = None,
    rules: BookingRules = DEFAULT_RULES,
) -> Outcome[list[Availability]]:
    """Return the free windows of [check_from, check_to] left by the given stays.

    Every period passed in counts as occupied; callers drop canceled reservations first.
    Stays are half-open, so one departing on check_from or arriving on check_to
    does not take anything out of the window.
    """
    checked = validate_availability_window(Period(check_from, check_to), today, rules)
    if not checked.ok:
        return Outcome.failure(checked.error)

    window = checked.value
    overlapping = sorted(
        (item for item in reservations if has_period_overlap(item, window)),
        key=lambda item: item.arrival_date,
    )
    if not overlapping:
        return Outcome.success([Availability(check_from, check_to)])

    windows: list[Availability] = []
    cursor_from = check_from
    cursor_to = check_from
    for item in overlapping:
        # cursor sits inside this stay
        if item.arrival_date <= cursor_from < item.departure_date:
            cursor_from = cursor_to = item.departure_date
            continue

        if cursor_to < item.arrival_date:
            cursor_to = item.arrival_date
        if cursor_to > cursor_from:
            windows.append(Availability(cursor_from, cursor_to))

        cursor_from = cursor_to = max(cursor_from, item.departure_date)

    if cursor_from < check_to:
        windows.append(Availability(cursor_from, check_to))
    return Outcome.success(windows)


def is_period_available(period: PeriodLike, availabilities: list[Availability]) -> bool:
    """A period is bookable only when the single free window is exactly that period."""
    if len(availabilities) != 1:
        return False
    return availabilities[0].matches(period)
