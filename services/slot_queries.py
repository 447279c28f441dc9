from typing import List, Optional

from services.slot_store import SlotRecord, SlotStore


class SlotQueries:
    """Read-only views over the store. Always read through; nothing is cached."""

    def __init__(self, store: SlotStore):
        self.store = store

    def list_available(self, date: Optional[str] = None, court: Optional[str] = None) -> List[SlotRecord]:
        slots = self.store.list_available()
        if date:
            slots = [s for s in slots if s.date == date]
        if court:
            slots = [s for s in slots if s.court == court]
        return sorted(slots, key=SlotRecord.sort_key)

    def list_owned_by(self, user_id) -> List[SlotRecord]:
        return sorted(self.store.list_owned_by(user_id), key=SlotRecord.sort_key)
