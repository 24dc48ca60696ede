"""Wine model."""

from typing import TYPE_CHECKING

from sqlalchemy import Integer, LargeBinary, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from winecellar.database import Base

if TYPE_CHECKING:
    from winecellar.models.comment import Comment
    from winecellar.models.grape_variety import WineGrape
    from winecellar.models.inventory_event import InventoryEvent


class Wine(Base):
    """A wine in the cellar.

    The full-size image and its thumbnail are PNG blobs; both are deferred
    so listing wines does not pull image data.
    """

    __tablename__ = "wines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    image: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True, deferred=True)
    thumbnail: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True, deferred=True)

    # Relationships
    events: Mapped[list["InventoryEvent"]] = relationship(
        "InventoryEvent",
        back_populates="wine",
        passive_deletes=True,
        order_by="InventoryEvent.dt",
    )
    comments: Mapped[list["Comment"]] = relationship(
        "Comment",
        back_populates="wine",
        passive_deletes=True,
    )
    grapes: Mapped[list["WineGrape"]] = relationship(
        "WineGrape",
        back_populates="wine",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Wine(id={self.id}, name={self.name!r}, year={self.year})>"
