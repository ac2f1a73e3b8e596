from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from reservation_engine import JsonCodec, ReservationClient, load_settings
from reservation_engine.log_config import configure_logging

mcp = FastMCP(
    "Room Reservation MCP Server",
    instructions="Book the room, change or cancel reservations and list free date ranges.",
    json_response=True,
)

SETTINGS = load_settings()
CLIENT = ReservationClient(settings=SETTINGS)
CODEC = JsonCodec()


@mcp.resource("reservation://rules")
async def booking_rules() -> dict[str, int]:
    """Describe the booking window and the stay length limit."""
    rules = SETTINGS.rules
    return {
        "min_lead_days": rules.min_lead_days,
        "horizon_months": rules.horizon_months,
        "max_stay_days": rules.max_stay_days,
    }


@mcp.tool()
def create_reservation(client_email: str, client_name: str, arrival_date: str, departure_date: str) -> dict[str, Any]:
    """Reserve the room from arrival_date to departure_date (ISO dates)."""
    request = CODEC.decode_create(
        {
            "client_email": client_email,
            "client_name": client_name,
            "arrival_date": arrival_date,
            "departure_date": departure_date,
        }
    )
    return CODEC.encode_response(CLIENT.create(request))


@mcp.tool()
def update_reservation(
    reservation_id: str,
    arrival_date: str | None = None,
    departure_date: str | None = None,
    status: str | None = None,
) -> dict[str, Any]:
    """Change the dates and/or status (ACTIVE, CANCELED) of a reservation."""
    changes = CODEC.decode_update({"arrival_date": arrival_date, "departure_date": departure_date, "status": status})
    return CODEC.encode_response(CLIENT.update(CODEC.parse_id(reservation_id), changes))


@mcp.tool()
def get_reservation(reservation_id: str) -> dict[str, Any]:
    """Return one reservation by id."""
    return CODEC.encode_response(CLIENT.get(CODEC.parse_id(reservation_id)))


@mcp.tool()
def cancel_reservation(reservation_id: str) -> dict[str, Any]:
    """Cancel a reservation. Canceling twice is allowed."""
    return CODEC.encode_response(CLIENT.cancel(CODEC.parse_id(reservation_id)))


@mcp.tool()
def list_availabilities(from_date: str | None = None, to_date: str | None = None) -> dict[str, Any]:
    """List free date ranges, by default from tomorrow to one month later."""
    check_from = CODEC.parse_date(from_date, "from_date")
    check_to = CODEC.parse_date(to_date, "to_date")
    return CODEC.encode_response(CLIENT.list_availabilities(check_from, check_to))


def main() -> None:
    configure_logging(verbose=SETTINGS.verbose, log_json=True)
    with CLIENT:
        mcp.run()


if __name__ == "__main__":
    main()
