"""
Slot storage behind a single contract.

``try_transition`` is the only way booking state changes. Every implementation
must apply it atomically per slot id: read the current status (and owner, when
asked), compare, write. Two callers racing on the same precondition get exactly
one winner; the loser sees ``StoreConflict`` and nothing is written.
"""
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, OperationalError

from models.db import db
from models.slot import Slot, SlotStatus
from services.errors import DuplicateSlot, SlotNotFound, StoreConflict, StoreUnavailable

log = logging.getLogger(__name__)

# Fields a transition is allowed to touch.
TRANSITION_FIELDS = frozenset({"status", "booked_by", "booked_at"})


class _AnyOwner:
    def __repr__(self):
        return "ANY_OWNER"


ANY_OWNER = _AnyOwner()


@dataclass(frozen=True)
class SlotRecord:
    id: str
    date: str
    time: str
    court: str
    price: int = 1000
    duration: str = "1 hour"
    status: SlotStatus = SlotStatus.AVAILABLE
    booked_by: Optional[Any] = None
    booked_at: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "status", SlotStatus(self.status))
        booked = self.status is SlotStatus.BOOKED
        if (self.booked_by is not None) != booked or (self.booked_at is not None) != booked:
            raise ValueError(
                f"slot {self.id}: status {self.status.value} with booked_by={self.booked_by!r}, "
                f"booked_at={self.booked_at!r}"
            )

    @property
    def is_booked(self) -> bool:
        return self.status is SlotStatus.BOOKED

    def sort_key(self):
        return (self.date, self.time, self.court)


def _check_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
    unknown = set(changes) - TRANSITION_FIELDS
    if unknown:
        raise ValueError(f"transition cannot change {sorted(unknown)}")
    out = dict(changes)
    if "status" in out:
        out["status"] = SlotStatus(out["status"])
    return out


class SlotStore(ABC):
    """Interface shared by the SQL and in-memory stores."""

    @abstractmethod
    def get(self, slot_id) -> SlotRecord:
        """Raises ``SlotNotFound``."""

    @abstractmethod
    def list_available(self) -> List[SlotRecord]:
        pass

    @abstractmethod
    def list_owned_by(self, user_id) -> List[SlotRecord]:
        pass

    @abstractmethod
    def try_transition(self, slot_id, expected_status, changes, expected_owner=ANY_OWNER) -> SlotRecord:
        """Raises ``StoreConflict`` or ``SlotNotFound``; writes nothing on either."""

    # Seeding only; never used for booking state.
    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def insert_many(self, records: Iterable[SlotRecord]) -> int:
        """All or nothing; raises ``DuplicateSlot`` if any record already exists."""


# ---------- SQL (Flask-SQLAlchemy) ----------

@contextmanager
def _storage_errors(action: str):
    try:
        yield
    except OperationalError as exc:
        db.session.rollback()
        log.error("slot store %s failed: %s", action, exc)
        raise StoreUnavailable() from exc


class SqlSlotStore(SlotStore):
    """Conditional UPDATE per transition; the WHERE clause is the precondition."""

    @staticmethod
    def _to_record(row: Slot) -> SlotRecord:
        return SlotRecord(
            id=row.id,
            date=row.date,
            time=row.time,
            court=row.court,
            price=row.price,
            duration=row.duration,
            status=row.status,
            booked_by=row.booked_by,
            booked_at=row.booked_at,
        )

    def get(self, slot_id) -> SlotRecord:
        with _storage_errors("get"):
            row = db.session.get(Slot, slot_id)
        if row is None:
            raise SlotNotFound(slot_id=slot_id)
        return self._to_record(row)

    def list_available(self) -> List[SlotRecord]:
        with _storage_errors("list_available"):
            rows = (
                Slot.query
                .filter_by(status=SlotStatus.AVAILABLE.value)
                .order_by(Slot.date.asc(), Slot.time.asc(), Slot.court.asc())
                .all()
            )
        return [self._to_record(r) for r in rows]

    def list_owned_by(self, user_id) -> List[SlotRecord]:
        with _storage_errors("list_owned_by"):
            rows = (
                Slot.query
                .filter_by(status=SlotStatus.BOOKED.value, booked_by=user_id)
                .order_by(Slot.date.asc(), Slot.time.asc(), Slot.court.asc())
                .all()
            )
        return [self._to_record(r) for r in rows]

    def try_transition(self, slot_id, expected_status, changes, expected_owner=ANY_OWNER) -> SlotRecord:
        expected = SlotStatus(expected_status)
        values = _check_changes(changes)
        if "status" in values:
            values["status"] = values["status"].value

        stmt = (
            update(Slot)
            .where(Slot.id == slot_id, Slot.status == expected.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if expected_owner is not ANY_OWNER:
            stmt = stmt.where(Slot.booked_by == expected_owner)

        with _storage_errors("try_transition"):
            try:
                result = db.session.execute(stmt)
            except IntegrityError:
                db.session.rollback()
                raise

            if result.rowcount != 1:
                db.session.rollback()
                if db.session.get(Slot, slot_id) is None:
                    raise SlotNotFound(slot_id=slot_id)
                raise StoreConflict(slot_id, expected.value)

            db.session.commit()
            row = db.session.get(Slot, slot_id)
        # report the state this call wrote, even if a later transition already landed
        return replace(self._to_record(row), **_check_changes(changes))

    def count(self) -> int:
        with _storage_errors("count"):
            return db.session.query(func.count(Slot.id)).scalar() or 0

    def insert_many(self, records: Iterable[SlotRecord]) -> int:
        rows = [
            Slot(
                id=r.id,
                date=r.date,
                time=r.time,
                court=r.court,
                price=r.price,
                duration=r.duration,
                status=r.status.value,
                booked_by=r.booked_by,
                booked_at=r.booked_at,
            )
            for r in records
        ]
        with _storage_errors("insert_many"):
            db.session.add_all(rows)
            try:
                db.session.commit()
            except IntegrityError as exc:
                db.session.rollback()
                raise DuplicateSlot("slots already exist") from exc
        return len(rows)


# ---------- In-memory ----------

class InMemorySlotStore(SlotStore):
    """Immutable records in a dict, one lock per slot id."""

    def __init__(self, records: Iterable[SlotRecord] = ()):
        self._records: Dict[str, SlotRecord] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self.insert_many(records)

    def _lock_for(self, slot_id) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(slot_id)
            if lock is None:
                lock = self._locks[slot_id] = threading.Lock()
            return lock

    def get(self, slot_id) -> SlotRecord:
        record = self._records.get(slot_id)
        if record is None:
            raise SlotNotFound(slot_id=slot_id)
        return record

    def list_available(self) -> List[SlotRecord]:
        rows = [r for r in list(self._records.values()) if not r.is_booked]
        return sorted(rows, key=SlotRecord.sort_key)

    def list_owned_by(self, user_id) -> List[SlotRecord]:
        rows = [r for r in list(self._records.values()) if r.is_booked and r.booked_by == user_id]
        return sorted(rows, key=SlotRecord.sort_key)

    def try_transition(self, slot_id, expected_status, changes, expected_owner=ANY_OWNER) -> SlotRecord:
        expected = SlotStatus(expected_status)
        values = _check_changes(changes)
        if slot_id not in self._records:
            raise SlotNotFound(slot_id=slot_id)

        with self._lock_for(slot_id):
            current = self._records[slot_id]
            if current.status is not expected:
                raise StoreConflict(slot_id, expected.value)
            if expected_owner is not ANY_OWNER and current.booked_by != expected_owner:
                raise StoreConflict(slot_id, expected.value)
            updated = replace(current, **values)
            self._records[slot_id] = updated
        return updated

    def count(self) -> int:
        return len(self._records)

    def insert_many(self, records: Iterable[SlotRecord]) -> int:
        records = list(records)
        with self._locks_guard:
            taken = {r.sort_key() for r in self._records.values()}
            for record in records:
                if record.id in self._records or record.sort_key() in taken:
                    raise DuplicateSlot(f"slot {record.id} already exists")
                taken.add(record.sort_key())
            for record in records:
                self._records[record.id] = record
        return len(records)


def build_slot_store(backend: str) -> SlotStore:
    if backend == "sql":
        return SqlSlotStore()
    if backend == "memory":
        return InMemorySlotStore()
    raise ValueError(f"Unknown SLOT_STORE_BACKEND: {backend!r}")
