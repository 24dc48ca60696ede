"""Inventory event model: one signed entry in a wine's bottle ledger."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from winecellar.database import Base

if TYPE_CHECKING:
    from winecellar.models.wine import Wine


class InventoryEvent(Base):
    """Append-only ledger row. Positive bottles are purchases, negative are consumption."""

    __tablename__ = "wine_inventory_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    wine_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("wines.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    dt: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    bottles: Mapped[int] = mapped_column(Integer, nullable=False)

    wine: Mapped["Wine"] = relationship("Wine", back_populates="events")

    def __repr__(self) -> str:
        return f"<InventoryEvent(wine_id={self.wine_id}, dt={self.dt}, bottles={self.bottles})>"
