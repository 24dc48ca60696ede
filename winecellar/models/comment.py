"""Free-text comment attached to a wine."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from winecellar.database import Base

if TYPE_CHECKING:
    from winecellar.models.wine import Wine


class Comment(Base):
    """Comment model. Comments are never edited or deleted individually."""

    __tablename__ = "wine_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    wine_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("wines.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    dt: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)

    wine: Mapped["Wine"] = relationship("Wine", back_populates="comments")

    def __repr__(self) -> str:
        return f"<Comment(wine_id={self.wine_id}, dt={self.dt})>"
