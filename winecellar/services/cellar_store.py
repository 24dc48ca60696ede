"""Persistence gateway for the cellar.

Every function takes the request's ``AsyncSession``. Writes commit before
returning; a failure rolls the session back so nothing partial is kept.
"""

import logging
from datetime import datetime

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from winecellar.errors import InvalidInputError, NotFoundError
from winecellar.models import Comment, GrapeVariety, InventoryEvent, Wine, WineGrape

logger = logging.getLogger(__name__)

# Rows owned by a wine, removed before the wine itself.
DEPENDENT_TABLES = (InventoryEvent, Comment, WineGrape)

MIN_YEAR = 1
MAX_YEAR = 9999


async def _commit(db: AsyncSession) -> None:
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise


async def ensure_wine_exists(db: AsyncSession, wine_id: int) -> None:
    """Raise NotFoundError unless a wine with this id exists."""
    result = await db.execute(select(Wine.id).where(Wine.id == wine_id))
    if result.scalar_one_or_none() is None:
        raise NotFoundError(f"Wine with ID {wine_id} not found")


# ---------------------------------------------------------------------------
# Wines
# ---------------------------------------------------------------------------


async def add_wine(db: AsyncSession, name: str, year: int) -> Wine:
    """Create a wine with no image, events or grapes.

    Raises:
        InvalidInputError: If the name is blank or the year is out of range.
    """
    name = name.strip()
    if not name:
        raise InvalidInputError("Wine name must not be empty")
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidInputError(f"Year must be between {MIN_YEAR} and {MAX_YEAR}")
    wine = Wine(name=name, year=year)
    db.add(wine)
    await _commit(db)
    logger.info("Added wine %d: %s %d", wine.id, name, year)
    return wine


async def get_wine(db: AsyncSession, wine_id: int) -> Wine:
    """Get a wine by id.

    Raises:
        NotFoundError: If the wine does not exist.
    """
    wine = await db.get(Wine, wine_id)
    if wine is None:
        raise NotFoundError(f"Wine with ID {wine_id} not found")
    return wine


async def list_wines(db: AsyncSession) -> list[Wine]:
    """List all wines ordered by name then vintage."""
    result = await db.execute(select(Wine).order_by(Wine.name, Wine.year, Wine.id))
    return list(result.scalars().all())


async def delete_wine(db: AsyncSession, wine_id: int) -> None:
    """Delete a wine and every event, comment and grape link that belongs to it.

    All statements run in one transaction; if any of them fails nothing is
    removed.

    Raises:
        NotFoundError: If the wine does not exist.
    """
    try:
        await ensure_wine_exists(db, wine_id)
        for table in DEPENDENT_TABLES:
            await db.execute(delete(table).where(table.wine_id == wine_id))
        await db.execute(delete(Wine).where(Wine.id == wine_id))
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info("Deleted wine %d", wine_id)


# ---------------------------------------------------------------------------
# Inventory events
# ---------------------------------------------------------------------------


async def list_events(db: AsyncSession, wine_id: int) -> list[InventoryEvent]:
    """List a wine's ledger entries, oldest first."""
    result = await db.execute(
        select(InventoryEvent)
        .where(InventoryEvent.wine_id == wine_id)
        .order_by(InventoryEvent.dt, InventoryEvent.id)
    )
    return list(result.scalars().all())


async def insert_event(
    db: AsyncSession, wine_id: int, delta: int, timestamp: datetime
) -> InventoryEvent:
    """Append one ledger entry.

    Raises:
        NotFoundError: If the wine does not exist.
    """
    try:
        await ensure_wine_exists(db, wine_id)
        event = InventoryEvent(wine_id=wine_id, bottles=delta, dt=timestamp)
        db.add(event)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    return event


async def sum_events(db: AsyncSession, wine_id: int) -> int:
    """Sum of all bottle deltas for one wine (0 without events)."""
    result = await db.execute(
        select(func.coalesce(func.sum(InventoryEvent.bottles), 0)).where(
            InventoryEvent.wine_id == wine_id
        )
    )
    return int(result.scalar_one())


async def sum_events_by_wine(db: AsyncSession) -> dict[int, int]:
    """Bottle delta sums for every wine that has events."""
    result = await db.execute(
        select(InventoryEvent.wine_id, func.sum(InventoryEvent.bottles)).group_by(
            InventoryEvent.wine_id
        )
    )
    return {wine_id: int(total) for wine_id, total in result.all()}


# ---------------------------------------------------------------------------
# Grapes
# ---------------------------------------------------------------------------


async def list_catalog_grapes(db: AsyncSession) -> list[dict]:
    """List the grape catalog as ``{"id", "name"}`` dicts, by name."""
    result = await db.execute(select(GrapeVariety.id, GrapeVariety.name).order_by(GrapeVariety.name))
    return [{"id": grape_id, "name": name} for grape_id, name in result.all()]


async def add_catalog_grapes(db: AsyncSession, names: list[str]) -> list[str]:
    """Add grape names missing from the catalog.

    Names already present are skipped, so repeated runs are harmless.

    Returns:
        The names that were actually inserted.
    """
    wanted = list(dict.fromkeys(name.strip() for name in names if name and name.strip()))
    if not wanted:
        return []
    result = await db.execute(select(GrapeVariety.name).where(GrapeVariety.name.in_(wanted)))
    existing = set(result.scalars().all())
    added = [name for name in wanted if name not in existing]
    db.add_all(GrapeVariety(name=name) for name in added)
    await _commit(db)
    if added:
        logger.info("Added %d grape(s) to the catalog", len(added))
    return added


async def get_grapes(db: AsyncSession, wine_id: int) -> list[str]:
    """Names of the grapes linked to a wine."""
    result = await db.execute(
        select(WineGrape.grape_name)
        .where(WineGrape.wine_id == wine_id)
        .order_by(WineGrape.grape_name)
    )
    return list(result.scalars().all())


async def get_grapes_by_wine(db: AsyncSession) -> dict[int, list[str]]:
    """Grape names for every wine that has any."""
    result = await db.execute(
        select(WineGrape.wine_id, WineGrape.grape_name).order_by(WineGrape.grape_name)
    )
    grapes: dict[int, list[str]] = {}
    for wine_id, name in result.all():
        grapes.setdefault(wine_id, []).append(name)
    return grapes


async def replace_grapes(db: AsyncSession, wine_id: int, names: list[str]) -> list[str]:
    """Set a wine's grapes to exactly ``names``.

    Existing links are deleted and the new set inserted in one transaction.
    An empty list clears the set.

    Raises:
        NotFoundError: If the wine does not exist.
        InvalidInputError: If a name is not in the grape catalog.
    """
    wanted = list(dict.fromkeys(names))
    try:
        await ensure_wine_exists(db, wine_id)
        if wanted:
            result = await db.execute(
                select(GrapeVariety.name).where(GrapeVariety.name.in_(wanted))
            )
            known = set(result.scalars().all())
            unknown = [name for name in wanted if name not in known]
            if unknown:
                raise InvalidInputError(f"Unknown grape: {', '.join(unknown)}")

        await db.execute(delete(WineGrape).where(WineGrape.wine_id == wine_id))
        db.add_all(WineGrape(wine_id=wine_id, grape_name=name) for name in wanted)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info("Set grapes for wine %d: %s", wine_id, wanted)
    return wanted


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


async def list_comments(db: AsyncSession, wine_id: int) -> list[Comment]:
    """A wine's comments, newest first."""
    result = await db.execute(
        select(Comment)
        .where(Comment.wine_id == wine_id)
        .order_by(desc(Comment.dt), desc(Comment.id))
    )
    return list(result.scalars().all())


async def latest_comment(db: AsyncSession, wine_id: int) -> Comment | None:
    """The most recent comment for a wine, if any."""
    result = await db.execute(
        select(Comment)
        .where(Comment.wine_id == wine_id)
        .order_by(desc(Comment.dt), desc(Comment.id))
        .limit(1)
    )
    return result.scalar_one_or_none()


async def latest_comments(db: AsyncSession) -> dict[int, Comment]:
    """The most recent comment of every wine that has any, in one query."""
    ranked = select(
        Comment.id,
        func.row_number()
        .over(partition_by=Comment.wine_id, order_by=(desc(Comment.dt), desc(Comment.id)))
        .label("position"),
    ).subquery()
    result = await db.execute(
        select(Comment).join(ranked, Comment.id == ranked.c.id).where(ranked.c.position == 1)
    )
    return {comment.wine_id: comment for comment in result.scalars().all()}


async def insert_comment(
    db: AsyncSession, wine_id: int, text: str, timestamp: datetime
) -> Comment:
    """Append a comment to a wine.

    Raises:
        NotFoundError: If the wine does not exist.
        InvalidInputError: If the comment is blank.
    """
    if not text or not text.strip():
        raise InvalidInputError("Comment must not be empty")
    try:
        await ensure_wine_exists(db, wine_id)
        comment = Comment(wine_id=wine_id, comment=text.strip(), dt=timestamp)
        db.add(comment)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    return comment


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


async def get_image(db: AsyncSession, wine_id: int) -> bytes | None:
    """Stored full-size PNG for a wine.

    Raises:
        NotFoundError: If the wine does not exist.
    """
    result = await db.execute(select(Wine.id, Wine.image).where(Wine.id == wine_id))
    row = result.one_or_none()
    if row is None:
        raise NotFoundError(f"Wine with ID {wine_id} not found")
    return row.image


async def has_image(db: AsyncSession, wine_id: int) -> bool:
    """Whether a wine has a stored image, without loading it.

    Raises:
        NotFoundError: If the wine does not exist.
    """
    result = await db.execute(select(Wine.image.is_not(None)).where(Wine.id == wine_id))
    flag = result.scalar_one_or_none()
    if flag is None:
        raise NotFoundError(f"Wine with ID {wine_id} not found")
    return bool(flag)


async def get_thumbnail(db: AsyncSession, wine_id: int) -> bytes | None:
    """Stored thumbnail PNG for a wine.

    Raises:
        NotFoundError: If the wine does not exist.
    """
    result = await db.execute(select(Wine.id, Wine.thumbnail).where(Wine.id == wine_id))
    row = result.one_or_none()
    if row is None:
        raise NotFoundError(f"Wine with ID {wine_id} not found")
    return row.thumbnail


async def get_thumbnails(db: AsyncSession) -> dict[int, bytes]:
    """Thumbnails for every wine that has one."""
    result = await db.execute(
        select(Wine.id, Wine.thumbnail).where(Wine.thumbnail.is_not(None))
    )
    return {wine_id: thumbnail for wine_id, thumbnail in result.all()}


async def set_image(
    db: AsyncSession,
    wine_id: int,
    image: bytes,
    thumbnail: bytes | None = None,
) -> None:
    """Overwrite a wine's image, and its thumbnail when one is given.

    Raises:
        NotFoundError: If the wine does not exist.
    """
    values: dict[str, bytes] = {"image": image}
    if thumbnail is not None:
        values["thumbnail"] = thumbnail
    try:
        result = await db.execute(update(Wine).where(Wine.id == wine_id).values(**values))
        if result.rowcount == 0:
            raise NotFoundError(f"Wine with ID {wine_id} not found")
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info("Stored image for wine %d (%d bytes)", wine_id, len(image))
