"""SM-2 scheduling record, one per vocabulary item."""

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.models.base import Base


class Review(Base):
    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    vocabulary_id: Mapped[int] = mapped_column(
        ForeignKey("vocabulary.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    ease_factor: Mapped[float] = mapped_column(Float, nullable=False, default=2.5)
    interval: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # days
    repetitions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    next_review: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)
    last_reviewed: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    vocabulary: Mapped["Vocabulary"] = relationship(back_populates="review")  # type: ignore[name-defined] # noqa: F821
