from __future__ import annotations

from datetime import date
import re
from typing import Any
from uuid import UUID

from .booking import UNSET, Availability, Reservation, ReservationRequest, ReservationStatus, ReservationUpdate
from .commands import AvailabilitiesResponse, CommandResponse, ReservationResponse

_ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


class CodecError(ValueError):
    pass


class JsonCodec:
    """Maps commands' inputs and responses to JSON-ready dicts.

    Dates are ISO YYYY-MM-DD, unknown request keys are ignored and
    fields holding None are left out of the output.
    """

    def __init__(self, omit_none: bool = True) -> None:
        self.omit_none = omit_none

    def encode_response(self, response: CommandResponse) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "status_code": response.status_code,
            "error": response.error,
        }
        if isinstance(response, ReservationResponse):
            payload["reservation"] = self.encode_reservation(response.reservation) if response.reservation else None
        elif isinstance(response, AvailabilitiesResponse):
            payload["from"] = _format_date(response.from_date)
            payload["to"] = _format_date(response.to_date)
            if response.availabilities is not None:
                payload["availabilities"] = [self.encode_availability(item) for item in response.availabilities]
            else:
                payload["availabilities"] = None
        return self._clean(payload)

    def encode_reservation(self, reservation: Reservation) -> dict[str, Any]:
        return self._clean(
            {
                "id": str(reservation.reservation_id),
                "client_email": reservation.client_email,
                "client_name": reservation.client_name,
                "arrival_date": reservation.arrival_date.isoformat(),
                "departure_date": reservation.departure_date.isoformat(),
                "status": reservation.status.value,
            }
        )

    def encode_availability(self, availability: Availability) -> dict[str, Any]:
        return {
            "from": availability.from_date.isoformat(),
            "to": availability.to_date.isoformat(),
            "nb_days": availability.nb_days,
        }

    def decode_create(self, payload: Any) -> ReservationRequest:
        data = _require_mapping(payload)
        arrival = self.parse_date(data.get("arrival_date"), "arrival_date")
        departure = self.parse_date(data.get("departure_date"), "departure_date")
        if arrival is None or departure is None:
            raise CodecError("arrival_date and departure_date are required")

        return ReservationRequest(
            client_email=_require_text(data.get("client_email"), "client_email"),
            client_name=_require_text(data.get("client_name"), "client_name"),
            arrival_date=arrival,
            departure_date=departure,
        )

    def decode_update(self, payload: Any) -> ReservationUpdate:
        data = _require_mapping(payload)
        arrival = self.parse_date(data.get("arrival_date"), "arrival_date")
        departure = self.parse_date(data.get("departure_date"), "departure_date")
        status = self.parse_status(data.get("status"))
        return ReservationUpdate(
            arrival_date=UNSET if arrival is None else arrival,
            departure_date=UNSET if departure is None else departure,
            status=UNSET if status is None else status,
        )

    def parse_date(self, value: Any, field_name: str) -> date | None:
        if value is None or value == "":
            return None
        if not isinstance(value, str) or not _ISO_DATE.fullmatch(value):
            raise CodecError(f"{field_name} must be an ISO date (YYYY-MM-DD)")
        try:
            return date.fromisoformat(value)
        except ValueError as error:
            raise CodecError(f"{field_name} must be an ISO date (YYYY-MM-DD)") from error

    def parse_status(self, value: Any) -> ReservationStatus | None:
        if value is None or value == "":
            return None
        try:
            return ReservationStatus(str(value).strip().upper())
        except ValueError as error:
            allowed = ", ".join(status.value for status in ReservationStatus)
            raise CodecError(f"status must be one of: {allowed}") from error

    def parse_id(self, value: Any) -> UUID:
        try:
            return UUID(str(value))
        except ValueError as error:
            raise CodecError("reservation id must be a UUID") from error

    def _clean(self, payload: dict[str, Any]) -> dict[str, Any]:
        if not self.omit_none:
            return payload
        return {key: value for key, value in payload.items() if value is not None}


def _format_date(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _require_mapping(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise CodecError("request body must be a JSON object")
    return payload


def _require_text(value: Any, field_name: str) -> str:
    if value is None:
        raise CodecError(f"{field_name} is required")

    normalized = str(value).strip()
    if not normalized:
        raise CodecError(f"{field_name} must not be empty")
    return normalized
