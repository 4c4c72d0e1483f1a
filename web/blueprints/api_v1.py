"""
API v1 Blueprint.

This blueprint provides versioned JSON endpoints under /api/v1/* for the
session timers, atomic entries and conflict checks.

Authentication and baby ownership are enforced in front of this blueprint.
"""

from datetime import datetime

import pytz
from flask import Blueprint, jsonify, request

from config import get_config
from logging_config import get_logger
from tracking.errors import (
    ActiveConflict,
    AlreadyActive,
    InvalidTimeRange,
    InvalidTransition,
    NoActiveSession,
    OverrideRequired,
    PersistenceFailure,
    TrackingError,
)
from tracking.interfaces import ActivityKind, ActivityType
from web.services import tracking_service

logger = get_logger(__name__)

# Create Blueprint
api_v1 = Blueprint("api_v1", __name__, url_prefix="/api/v1")

_ERROR_STATUS = {
    AlreadyActive: 409,
    ActiveConflict: 409,
    OverrideRequired: 409,
    NoActiveSession: 404,
    InvalidTimeRange: 400,
    InvalidTransition: 400,
    PersistenceFailure: 503,
}


class InvalidPayload(ValueError):
    """Malformed request payload."""


def _parse_time(value, field: str) -> datetime | None:
    """Parses ISO-8601; naive values are read in the configured TIMEZONE."""
    if value in (None, ""):
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as e:
        raise InvalidPayload(f"{field} must be an ISO-8601 timestamp") from e
    if parsed.tzinfo is None:
        try:
            tz = pytz.timezone(get_config().get("TIMEZONE", "UTC"))
        except pytz.exceptions.UnknownTimeZoneError:
            tz = pytz.UTC
        parsed = tz.localize(parsed)
    return parsed


def _payload() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidPayload("JSON body must be an object")
    return data


def _session_json(session) -> dict:
    return tracking_service.session_summary(session)


@api_v1.errorhandler(TrackingError)
def _handle_tracking_error(e: TrackingError):
    status = next(
        (code for err_type, code in _ERROR_STATUS.items() if isinstance(e, err_type)), 400
    )
    body = {"error": type(e).__name__, "message": str(e)}
    conflicts = getattr(e, "conflicts", None)
    if conflicts:
        body["conflicts"] = [c.to_dict() for c in conflicts]
    if status >= 500:
        logger.error(f"API request failed: {e}")
    return jsonify(body), status


@api_v1.errorhandler(InvalidPayload)
def _handle_bad_request(e: InvalidPayload):
    return jsonify({"error": "InvalidPayload", "message": str(e)}), 400


# --- Sessions ---


@api_v1.route("/babies/<baby_id>/sessions", methods=["GET"])
def list_sessions(baby_id):
    sessions = tracking_service.list_sessions(baby_id)
    return jsonify({"sessions": [_session_json(s) for s in sessions]})


@api_v1.route("/babies/<baby_id>/sessions/<kind>", methods=["GET"])
def get_session(baby_id, kind):
    """Resumes the session: durations include time since the last checkpoint."""
    session = tracking_service.resume_session(baby_id, _kind(kind))
    return jsonify(_session_json(session))


@api_v1.route("/babies/<baby_id>/sessions/<kind>", methods=["POST"])
def start_session(baby_id, kind):
    data = _payload()
    seed = data.get("seed") or {}
    if not isinstance(seed, dict):
        raise InvalidPayload("seed must be an object")
    session = tracking_service.start_session(
        baby_id,
        _kind(kind),
        start_time=_parse_time(data.get("start_time"), "start_time"),
        seed=seed,
        allow_override=bool(data.get("allow_override", False)),
        baby_name=data.get("baby_name"),
    )
    return jsonify(_session_json(session)), 201


@api_v1.route("/babies/<baby_id>/sessions/<kind>", methods=["DELETE"])
def cancel_session(baby_id, kind):
    tracking_service.cancel_session(baby_id, _kind(kind))
    return jsonify({"status": "cancelled"})


@api_v1.route("/babies/<baby_id>/sessions/<kind>/transition", methods=["POST"])
def transition_session(baby_id, kind):
    data = _payload()
    status = data.get("status")
    if not status:
        raise InvalidPayload("status is required")
    session = tracking_service.transition_session(baby_id, _kind(kind), status)
    return jsonify(_session_json(session))


@api_v1.route("/babies/<baby_id>/sessions/<kind>/start-time", methods=["POST"])
def adjust_start_time(baby_id, kind):
    start_time = _parse_time(_payload().get("start_time"), "start_time")
    if start_time is None:
        raise InvalidPayload("start_time is required")
    session = tracking_service.adjust_start_time(baby_id, _kind(kind), start_time)
    return jsonify(_session_json(session))


@api_v1.route("/babies/<baby_id>/sessions/nursing/press", methods=["POST"])
def press_side(baby_id):
    """Nursing side button: pause, resume or switch depending on the current side."""
    side = _payload().get("side")
    if not side:
        raise InvalidPayload("side is required")
    session = tracking_service.press_side(baby_id, side)
    return jsonify(_session_json(session))


@api_v1.route("/babies/<baby_id>/sessions/nursing/rebalance", methods=["POST"])
def rebalance_sides(baby_id):
    try:
        left_seconds = int(_payload().get("left_seconds"))
    except (TypeError, ValueError) as e:
        raise InvalidPayload("left_seconds must be an integer") from e
    session = tracking_service.rebalance_sides(baby_id, left_seconds)
    return jsonify(_session_json(session))


@api_v1.route("/babies/<baby_id>/sessions/<kind>/finalize", methods=["POST"])
def finalize_session(baby_id, kind):
    data = _payload()
    fields = data.get("fields") or {}
    if not isinstance(fields, dict):
        raise InvalidPayload("fields must be an object")
    record = tracking_service.finalize_session(
        baby_id,
        _kind(kind),
        end_time=_parse_time(data.get("end_time"), "end_time"),
        final_fields=fields,
    )
    return jsonify(record.to_dict()), 201


@api_v1.route("/babies/<baby_id>/last-side", methods=["GET"])
def last_side(baby_id):
    return jsonify({"side": tracking_service.last_nursing_side(baby_id)})


# --- Entries ---


@api_v1.route("/babies/<baby_id>/entries", methods=["GET"])
def list_entries(baby_id):
    limit = request.args.get("limit", default=50, type=int)
    records = tracking_service.fetch_records(baby_id, max(1, min(limit, 500)))
    return jsonify({"entries": [r.to_dict() for r in records]})


@api_v1.route("/babies/<baby_id>/entries", methods=["POST"])
def log_entry(baby_id):
    data = _payload()
    start_time = _parse_time(data.get("start_time"), "start_time")
    if start_time is None:
        raise InvalidPayload("start_time is required")
    fields = data.get("fields") or {}
    if not isinstance(fields, dict):
        raise InvalidPayload("fields must be an object")
    record = tracking_service.log_completed_entry(
        baby_id,
        _activity_type(data.get("activity_type")),
        start_time,
        _parse_time(data.get("end_time"), "end_time"),
        fields=fields,
        allow_override=bool(data.get("allow_override", False)),
        baby_name=data.get("baby_name"),
    )
    return jsonify(record.to_dict()), 201


# --- Conflicts ---


@api_v1.route("/babies/<baby_id>/conflicts", methods=["GET"])
def get_conflicts(baby_id):
    result = tracking_service.get_activity_conflicts(
        baby_id,
        _activity_type(request.args.get("type")),
        start_time=_parse_time(request.args.get("start_time"), "start_time"),
        end_time=_parse_time(request.args.get("end_time"), "end_time"),
        exclude_id=request.args.get("exclude_id") or None,
        baby_name=request.args.get("baby_name") or None,
    )
    return jsonify(result.to_dict())


# --- Validation ---

_KINDS = {k.value for k in ActivityKind}
_ACTIVITY_TYPES = {t.value for t in ActivityType}


def _kind(value: str) -> str:
    if value not in _KINDS:
        raise InvalidPayload(f"Unknown session kind: {value}")
    return value


def _activity_type(value) -> str:
    if value not in _ACTIVITY_TYPES:
        raise InvalidPayload(f"Unknown activity type: {value}")
    return value
