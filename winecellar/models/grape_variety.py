"""Grape catalog and the wine/grape association table."""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from winecellar.database import Base

if TYPE_CHECKING:
    from winecellar.models.wine import Wine


class GrapeVariety(Base):
    """Grape variety catalog entry."""

    __tablename__ = "grapes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<GrapeVariety(id={self.id}, name={self.name!r})>"


class WineGrape(Base):
    """Link between a wine and a catalog grape, keyed by grape name."""

    __tablename__ = "wine_grapes"

    wine_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("wines.id", ondelete="CASCADE"),
        primary_key=True,
    )
    grape_name: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("grapes.name", ondelete="CASCADE"),
        primary_key=True,
    )

    wine: Mapped["Wine"] = relationship("Wine", back_populates="grapes")

    def __repr__(self) -> str:
        return f"<WineGrape(wine_id={self.wine_id}, grape_name={self.grape_name!r})>"
