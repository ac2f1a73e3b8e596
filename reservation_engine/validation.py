from __future__ import annotations

from datetime import date, timedelta

from pydantic import BaseModel, Field

from .booking import Period, PeriodLike, add_months
from .errors import Outcome, ReservationErrorKind


class BookingRules(BaseModel):
    """[rules] section: booking lead time, horizon and stay length."""

    model_config = {"frozen": True, "extra": "ignore"}

    min_lead_days: int = Field(default=1, ge=0)
    horizon_months: int = Field(default=1, gt=0)
    max_stay_days: int = Field(default=3, gt=0)

    def earliest_arrival(self, today: date) -> date:
        return today + timedelta(days=self.min_lead_days)

    def latest_arrival(self, today: date) -> date:
        return add_months(today, self.horizon_months)


DEFAULT_RULES = BookingRules()


def validate_availability_window(
    period: PeriodLike,
    today: date | None = None,
    rules: BookingRules = DEFAULT_RULES,
) -> Outcome[Period]:
    """Check that a period may be queried or booked relative to today.

    Rules are checked in order and the first violation wins:
    past arrival, empty range, arrival before the lead time, arrival beyond the horizon.
    """
    effective_today = today or date.today()
    arrival = period.arrival_date
    departure = period.departure_date

    if arrival < effective_today:
        return Outcome.failure(ReservationErrorKind.ALREADY_PAST)
    if departure <= arrival:
        return Outcome.failure(ReservationErrorKind.TOO_SHORT)
    if arrival < rules.earliest_arrival(effective_today):
        return Outcome.failure(ReservationErrorKind.TOO_SOON)
    if arrival > rules.latest_arrival(effective_today):
        return Outcome.failure(ReservationErrorKind.TOO_FAR)
    return Outcome.success(Period(arrival, departure))


def validate_reservation_period(
    period: PeriodLike,
    today: date | None = None,
    rules: BookingRules = DEFAULT_RULES,
) -> Outcome[Period]:
    checked = validate_availability_window(period, today, rules)
    if not checked.ok:
        return checked

    if period.departure_date > period.arrival_date + timedelta(days=rules.max_stay_days):
        return Outcome.failure(ReservationErrorKind.TOO_LONG)
    return checked
