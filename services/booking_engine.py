import logging

from models.slot import SlotStatus
from services.errors import AlreadyBooked, Forbidden, NotBooked, StoreConflict, Unauthenticated
from services.slot_store import SlotRecord, SlotStore
from utils.clock import utcnow

log = logging.getLogger(__name__)


class BookingEngine:
    """
    Per-slot state machine: AVAILABLE -> BOOKED (book) and BOOKED -> AVAILABLE
    (cancel, owner only). Each call is one conditional transition on the store
    and is never retried here.
    """

    def __init__(self, store: SlotStore, clock=utcnow):
        self.store = store
        self.clock = clock

    def book(self, slot_id, user_id) -> SlotRecord:
        if user_id is None:
            raise Unauthenticated()

        try:
            slot = self.store.try_transition(
                slot_id,
                SlotStatus.AVAILABLE,
                {"status": SlotStatus.BOOKED, "booked_by": user_id, "booked_at": self.clock()},
            )
        except StoreConflict as exc:
            log.info("book lost: slot=%s user=%s already booked", slot_id, user_id)
            raise AlreadyBooked(slot_id=slot_id) from exc

        log.info("booked: slot=%s user=%s", slot_id, user_id)
        return slot

    def cancel(self, slot_id, user_id) -> SlotRecord:
        if user_id is None:
            raise Unauthenticated()

        current = self.store.get(slot_id)
        if current.status is not SlotStatus.BOOKED:
            raise NotBooked(slot_id=slot_id)
        if current.booked_by != user_id:
            log.warning("cancel denied: slot=%s user=%s owner=%s", slot_id, user_id, current.booked_by)
            raise Forbidden(slot_id=slot_id)

        # The read above can be stale; the store's answer decides.
        try:
            slot = self.store.try_transition(
                slot_id,
                SlotStatus.BOOKED,
                {"status": SlotStatus.AVAILABLE, "booked_by": None, "booked_at": None},
                expected_owner=user_id,
            )
        except StoreConflict as exc:
            log.info("cancel lost: slot=%s user=%s no longer booked by caller", slot_id, user_id)
            raise NotBooked(slot_id=slot_id) from exc

        log.info("cancelled: slot=%s user=%s", slot_id, user_id)
        return slot
