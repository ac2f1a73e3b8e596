from .availability import compute_availabilities, is_period_available
from .booking import (
	UNSET,
	Availability,
	Period,
	Reservation,
	ReservationRequest,
	ReservationStatus,
	ReservationUpdate,
	add_months,
	has_period_overlap,
)
from .client import ReservationClient
from .codec import CodecError, JsonCodec
from .config import EngineSettings, LoadCheckSettings, load_settings
from .engine import ReservationEngine
from .errors import ConfigError, EngineNotRunningError, EngineTimeoutError, Outcome, ReservationError, ReservationErrorKind
from .store import InMemoryReservationStore, ReservationStorageError
from .validation import DEFAULT_RULES, BookingRules, validate_availability_window, validate_reservation_period

__all__ = [
	"UNSET",
	"Availability",
	"BookingRules",
	"CodecError",
	"ConfigError",
	"DEFAULT_RULES",
	"EngineNotRunningError",
	"EngineSettings",
	"EngineTimeoutError",
	"InMemoryReservationStore",
	"JsonCodec",
	"LoadCheckSettings",
	"Outcome",
	"Period",
	"Reservation",
	"ReservationClient",
	"ReservationEngine",
	"ReservationError",
	"ReservationErrorKind",
	"ReservationRequest",
	"ReservationStatus",
	"ReservationStorageError",
	"ReservationUpdate",
	"add_months",
	"compute_availabilities",
	"has_period_overlap",
	"is_period_available",
	"load_settings",
	"validate_availability_window",
	"validate_reservation_period",
]
