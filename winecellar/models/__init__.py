"""SQLAlchemy models for WineCellar."""

from winecellar.models.comment import Comment
from winecellar.models.grape_variety import GrapeVariety, WineGrape
from winecellar.models.inventory_event import InventoryEvent
from winecellar.models.wine import Wine

__all__ = [
    "Comment",
    "GrapeVariety",
    "InventoryEvent",
    "Wine",
    "WineGrape",
]
