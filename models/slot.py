import enum

from utils.clock import utcnow
from models.db import db


class SlotStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    BOOKED = "BOOKED"


class Slot(db.Model):
    __tablename__ = "slots"

    id = db.Column(db.String(36), primary_key=True)  # opaque, uuid4 hex at seed time

    date = db.Column(db.String(10), nullable=False, index=True)   # YYYY-MM-DD
    time = db.Column(db.String(5), nullable=False)                # HH:MM
    court = db.Column(db.String(60), nullable=False)

    price = db.Column(db.Integer, nullable=False, default=1000)  # smallest currency unit
    duration = db.Column(db.String(30), nullable=False, default="1 hour")

    status = db.Column(db.String(20), nullable=False, default=SlotStatus.AVAILABLE.value, index=True)
    booked_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    booked_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("date", "time", "court", name="uq_slot_date_time_court"),
        # owner and timestamp travel with the status, never on their own
        db.CheckConstraint(
            "(status = 'AVAILABLE' AND booked_by IS NULL AND booked_at IS NULL)"
            " OR (status = 'BOOKED' AND booked_by IS NOT NULL AND booked_at IS NOT NULL)",
            name="ck_slot_booking_consistent",
        ),
    )
