import logging
import uuid
from datetime import date, timedelta
from typing import List, Sequence

from services.errors import DuplicateSlot
from services.slot_store import SlotRecord, SlotStore

log = logging.getLogger(__name__)

DEFAULT_TIMES = ["06:00", "07:00", "08:00", "09:00", "10:00", "16:00", "17:00", "18:00", "19:00", "20:00"]
DEFAULT_COURTS = ["Court 1", "Court 2", "Court 3"]
DEFAULT_PRICES = [1000, 1200, 1500]
DEFAULT_DURATION = "1 hour"


def build_seed_slots(
    start: date,
    days: int = 2,
    times: Sequence[str] = DEFAULT_TIMES,
    courts: Sequence[str] = DEFAULT_COURTS,
    prices: Sequence[int] = DEFAULT_PRICES,
    duration: str = DEFAULT_DURATION,
) -> List[SlotRecord]:
    """One AVAILABLE slot per (day, time, court). Court N is priced at prices[N], last price repeats."""
    if days < 1:
        raise ValueError("days must be >= 1")
    if not prices:
        raise ValueError("at least one price is required")

    slots = []
    for offset in range(days):
        day = (start + timedelta(days=offset)).isoformat()
        for time in times:
            for idx, court in enumerate(courts):
                slots.append(SlotRecord(
                    id=uuid.uuid4().hex,
                    date=day,
                    time=time,
                    court=court,
                    price=int(prices[min(idx, len(prices) - 1)]),
                    duration=duration,
                ))
    return slots


def seed_slots(store: SlotStore, start: date, days: int = 2, **options) -> int:
    """Fill an empty store. Returns the number of slots created (0 if it already had any)."""
    if store.count() > 0:
        return 0
    try:
        created = store.insert_many(build_seed_slots(start, days, **options))
    except DuplicateSlot:
        # another worker seeded between our count and insert
        log.info("slots seeded concurrently by another process, skipping")
        return 0
    log.info("seeded %d slots starting %s", created, start.isoformat())
    return created


def seed_from_config(store: SlotStore, config, start: date) -> int:
    return seed_slots(
        store,
        start,
        days=int(config.get("SEED_DAYS", 2)),
        times=config.get("SEED_TIMES", DEFAULT_TIMES),
        courts=config.get("SEED_COURTS", DEFAULT_COURTS),
        prices=config.get("SEED_PRICES", DEFAULT_PRICES),
        duration=config.get("SEED_DURATION", DEFAULT_DURATION),
    )
