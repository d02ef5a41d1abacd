from __future__ import annotations

import math
from typing import Any, Callable

from flask import Blueprint, jsonify, request

from .exceptions import ValidationError
from .playback import PlaybackTicket
from .service import RadioService

MEDIA_EVENTS = ("ready", "ended", "error")


def _json_body(required: bool = True) -> dict[str, Any]:
    body = request.get_json(silent=True)
    if body is None:
        if required:
            raise ValidationError("JSON payload is required")
        return {}
    if not isinstance(body, dict):
        raise ValidationError("JSON payload must be an object")
    return body


def _as_float(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        result = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be a number") from exc
    if math.isnan(result):
        raise ValidationError(f"{field} must be a number")
    return result


def _as_ticket(body: dict[str, Any]) -> PlaybackTicket:
    station_id = body.get("station_id")
    generation = body.get("generation")
    if not isinstance(station_id, str) or not station_id:
        raise ValidationError("station_id is required")
    if isinstance(generation, bool) or not isinstance(generation, int):
        raise ValidationError("generation must be an integer")
    return PlaybackTicket(station_id=station_id, generation=generation)


def build_api_blueprint(service: RadioService, throttle: Callable) -> Blueprint:
    api = Blueprint("api", __name__, url_prefix="/api")

    @api.get("/health")
    def health() -> Any:
        return jsonify(service.status())

    @api.get("/countries")
    def countries() -> Any:
        return jsonify(
            {
                "countries": service.country_markers(),
                "selected_country": service.selected_country,
                "catalog_version": service.catalog.version,
            }
        )

    @api.get("/globe")
    def globe() -> Any:
        return jsonify({"plot": service.globe_figure(), "catalog_version": service.catalog.version})

    @api.get("/stations")
    def stations() -> Any:
        country = request.args.get("country")
        term = request.args.get("q", "")
        records = service.stations(country=country, term=term)
        return jsonify(
            {
                "country": country,
                "query": term,
                "total": len(records),
                "stations": [record.to_dict() for record in records],
            }
        )

    @api.post("/selection")
    def selection() -> Any:
        body = _json_body()
        country = body.get("country")
        if country is not None and not isinstance(country, str):
            raise ValidationError("country must be a string or null")
        records = service.select_country(country)
        return jsonify(
            {
                "selected_country": service.selected_country,
                "total": len(records),
                "stations": [record.to_dict() for record in records],
            }
        )

    @api.post("/catalog/refresh")
    @throttle
    def refresh() -> Any:
        report = service.refresh(force=True)
        status_code = 502 if report["status"] == "error" else 200
        return jsonify(report), status_code

    @api.get("/player")
    def player() -> Any:
        return jsonify(service.player.snapshot())

    @api.post("/player/select")
    def player_select() -> Any:
        body = _json_body()
        station_id = body.get("station_id")
        if not isinstance(station_id, str) or not station_id:
            raise ValidationError("station_id is required")
        service.select_station(station_id)
        return jsonify(service.player.snapshot())

    @api.post("/player/play")
    def player_play() -> Any:
        service.player.play()
        return jsonify(service.player.snapshot())

    @api.post("/player/pause")
    def player_pause() -> Any:
        service.player.pause()
        return jsonify(service.player.snapshot())

    @api.post("/player/stop")
    def player_stop() -> Any:
        service.player.stop()
        return jsonify(service.player.snapshot())

    @api.post("/player/volume")
    def player_volume() -> Any:
        body = _json_body()
        service.player.set_volume(_as_float(body.get("volume"), "volume"))
        return jsonify(service.player.snapshot())

    @api.post("/player/events")
    def player_events() -> Any:
        body = _json_body()
        event = body.get("event")
        if event not in MEDIA_EVENTS:
            raise ValidationError(f"event must be one of {', '.join(MEDIA_EVENTS)}")
        ticket = _as_ticket(body)

        if event == "ready":
            applied = service.player.on_ready_to_play(ticket)
        elif event == "ended":
            applied = service.player.on_ended(ticket)
        else:
            applied = service.player.on_error(ticket, str(body.get("message") or "")) is not None

        payload = service.player.snapshot()
        payload["applied"] = applied
        return jsonify(payload)

    return api
