from __future__ import annotations

from typing import Any

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException
import structlog

from .client import ReservationClient
from .codec import CodecError, JsonCodec
from .commands import CommandResponse, UnexpectedErrorResponse
from .config import EngineSettings, load_settings
from .log_config import configure_logging

logger = structlog.get_logger("reservation_engine.web_app")


def create_app(
    settings: EngineSettings | None = None,
    client: ReservationClient | None = None,
    codec: JsonCodec | None = None,
) -> Flask:
    app = Flask(__name__)
    reservations = client or ReservationClient(settings=settings)
    if not reservations.started:
        reservations.start()
    serializer = codec or JsonCodec()
    app.extensions["reservation_client"] = reservations

    def _respond(response: CommandResponse) -> Any:
        return jsonify(serializer.encode_response(response)), response.status_code

    def _bad_request(error: CodecError) -> Any:
        return jsonify({"status_code": 400, "error": str(error)}), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException) -> Any:
        return jsonify({"status_code": error.code, "error": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception) -> Any:
        logger.exception("request failed", path=request.path)
        return _respond(UnexpectedErrorResponse(error))

    @app.post("/reservations")
    def create_reservation() -> Any:
        try:
            body = serializer.decode_create(request.get_json(silent=True))
        except CodecError as error:
            return _bad_request(error)
        return _respond(reservations.create(body))

    @app.get("/reservations")
    def list_availabilities() -> Any:
        try:
            check_from = serializer.parse_date(request.args.get("from"), "from")
            check_to = serializer.parse_date(request.args.get("to"), "to")
        except CodecError as error:
            return _bad_request(error)
        return _respond(reservations.list_availabilities(check_from, check_to))

    @app.get("/reservations/<reservation_id>")
    def get_reservation(reservation_id: str) -> Any:
        try:
            parsed_id = serializer.parse_id(reservation_id)
        except CodecError as error:
            return _bad_request(error)
        return _respond(reservations.get(parsed_id))

    @app.put("/reservations/<reservation_id>")
    def update_reservation(reservation_id: str) -> Any:
        try:
            parsed_id = serializer.parse_id(reservation_id)
            changes = serializer.decode_update(request.get_json(silent=True))
        except CodecError as error:
            return _bad_request(error)
        return _respond(reservations.update(parsed_id, changes))

    @app.delete("/reservations/<reservation_id>")
    def cancel_reservation(reservation_id: str) -> Any:
        try:
            parsed_id = serializer.parse_id(reservation_id)
        except CodecError as error:
            return _bad_request(error)
        return _respond(reservations.cancel(parsed_id))

    return app


def main() -> None:
    settings = load_settings()
    configure_logging(verbose=settings.verbose, log_json=settings.log_json)
    app = create_app(settings)
    logger.info("server online", host=settings.host, port=settings.port)
    app.run(host=settings.host, port=settings.port, debug=False, threaded=True)


if __name__ == "__main__":
    main()
