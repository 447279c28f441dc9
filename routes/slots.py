from flask import Blueprint, request, jsonify, g

from services import get_booking_engine, get_slot_queries
from services.errors import AlreadyBooked, Forbidden
from utils.audit import log_slot_event
from utils.auth_context import login_required

slots_bp = Blueprint("slots", __name__, url_prefix="/api/slots")


def slot_to_dict(slot, owner=None):
    out = {
        "id": slot.id,
        "date": slot.date,
        "time": slot.time,
        "court": slot.court,
        "price": slot.price,
        "duration": slot.duration,
        "status": slot.status.value,
        "booked": slot.is_booked,
        "booked_by": slot.booked_by,
        "booked_at": slot.booked_at.isoformat() if slot.booked_at else None,
    }
    if owner is not None:
        out["owner"] = {
            "id": owner.id,
            "username": owner.username,
            "email": owner.email,
            "first_name": owner.first_name,
            "last_name": owner.last_name,
        }
    return out


# ---------- public: availability ----------
@slots_bp.get("")
def list_available():
    # optional filters: date (YYYY-MM-DD), court
    date_str = (request.args.get("date") or "").strip() or None
    court = (request.args.get("court") or "").strip() or None

    slots = get_slot_queries().list_available(date=date_str, court=court)
    return jsonify([slot_to_dict(s) for s in slots]), 200


# ---------- players: book ----------
def _book(slot_id: str):
    try:
        slot = get_booking_engine().book(slot_id, g.user_id)
    except AlreadyBooked:
        log_slot_event("BOOKING_FAIL_ALREADY_BOOKED", g.user_id, slot_id)
        raise

    log_slot_event("BOOKING_CREATE", g.user_id, slot_id, date=slot.date, time=slot.time, court=slot.court)
    return jsonify(message="Slot booked successfully", slot=slot_to_dict(slot, owner=g.user)), 200


@slots_bp.post("/book")
@login_required
def book_slot():
    data = request.get_json(silent=True) or {}
    slot_id = data.get("slotId") or data.get("slot_id")
    if not isinstance(slot_id, str) or not slot_id.strip():
        return jsonify(error="Slot ID is required"), 400
    return _book(slot_id.strip())


@slots_bp.post("/<slot_id>/book")
@login_required
def book_slot_by_path(slot_id: str):
    return _book(slot_id)


# ---------- players: cancel own booking ----------
@slots_bp.delete("/cancel/<slot_id>")
@login_required
def cancel_booking(slot_id: str):
    try:
        get_booking_engine().cancel(slot_id, g.user_id)
    except Forbidden:
        log_slot_event("BOOKING_CANCEL_DENIED", g.user_id, slot_id)
        raise

    log_slot_event("BOOKING_CANCEL", g.user_id, slot_id)
    return jsonify(message="Booking cancelled successfully"), 200


# ---------- players: my bookings ----------
@slots_bp.get("/mine")
@login_required
def my_slots():
    slots = get_slot_queries().list_owned_by(g.user_id)
    return jsonify([slot_to_dict(s) for s in slots]), 200
