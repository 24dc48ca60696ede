"""Inventory ledger.

Bottle counts are never stored. Every purchase or consumption appends a
signed entry to ``wine_inventory_events`` and a wine's stock is the sum of
its entries.
"""

import logging
from datetime import date, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from winecellar.errors import InvalidInputError
from winecellar.models import InventoryEvent
from winecellar.services import cellar_store

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
MAX_BOTTLES = 10_000


def parse_event_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` form value.

    Raises:
        InvalidInputError: If the value is not a valid date.
    """
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except (AttributeError, ValueError):
        raise InvalidInputError(f"Bad date format: {value!r} (expected YYYY-MM-DD)")


def compose_timestamp(day: date, now: datetime | None = None) -> datetime:
    """Combine the user's calendar date with the server's time of day.

    Entries recorded on the same date keep the order in which they were
    processed.
    """
    now = now or datetime.now()
    return datetime.combine(day, now.time())


def _require_positive(bottles: int) -> None:
    if bottles <= 0:
        raise InvalidInputError("Number of bottles must be greater than zero")
    if bottles > MAX_BOTTLES:
        raise InvalidInputError(f"Number of bottles must be at most {MAX_BOTTLES}")


async def record_event(
    db: AsyncSession, wine_id: int, delta_bottles: int, timestamp: datetime
) -> InventoryEvent:
    """Append one signed entry to a wine's ledger.

    A zero delta carries no information and is rejected.

    Raises:
        InvalidInputError: If ``delta_bottles`` is zero or larger than
            ``MAX_BOTTLES`` either way.
        NotFoundError: If the wine does not exist.
    """
    if delta_bottles == 0:
        raise InvalidInputError("A ledger entry must change the bottle count")
    if abs(delta_bottles) > MAX_BOTTLES:
        raise InvalidInputError(f"A ledger entry can move at most {MAX_BOTTLES} bottles")
    event = await cellar_store.insert_event(db, wine_id, delta_bottles, timestamp)
    logger.info("Ledger entry for wine %d: %+d at %s", wine_id, delta_bottles, timestamp)
    return event


async def current_stock(db: AsyncSession, wine_id: int) -> int:
    """Bottles in stock: the sum of every ledger entry (0 when there are none)."""
    return await cellar_store.sum_events(db, wine_id)


async def stock_levels(db: AsyncSession) -> dict[int, int]:
    """Current stock for every wine with at least one ledger entry."""
    return await cellar_store.sum_events_by_wine(db)


async def record_purchase(
    db: AsyncSession,
    wine_id: int,
    bottles: int,
    day: date,
    now: datetime | None = None,
) -> InventoryEvent:
    """Record bottles bought on ``day``.

    Raises:
        InvalidInputError: If ``bottles`` is not positive.
        NotFoundError: If the wine does not exist.
    """
    _require_positive(bottles)
    return await record_event(db, wine_id, bottles, compose_timestamp(day, now))


async def record_consumption(
    db: AsyncSession,
    wine_id: int,
    bottles: int,
    day: date,
    now: datetime | None = None,
) -> InventoryEvent:
    """Record bottles drunk on ``day``.

    ``bottles`` is the positive quantity consumed; it is stored negated.

    Raises:
        InvalidInputError: If ``bottles`` is not positive.
        NotFoundError: If the wine does not exist.
    """
    _require_positive(bottles)
    return await record_event(db, wine_id, -bottles, compose_timestamp(day, now))
