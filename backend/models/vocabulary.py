"""Vocabulary model: one Polish/English pair the learner studies."""

from typing import Optional

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.models.base import Base, TimestampMixin


class Vocabulary(Base, TimestampMixin):
    __tablename__ = "vocabulary"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    polish: Mapped[str] = mapped_column(String(500), nullable=False)
    english: Mapped[str] = mapped_column(String(500), nullable=False)
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=2)  # 1=low, 3=important
    definition: Mapped[str | None] = mapped_column(Text, nullable=True)
    examples: Mapped[str | None] = mapped_column(Text, nullable=True)  # JSON array of strings

    category: Mapped[Optional["Category"]] = relationship(back_populates="vocabulary")  # type: ignore[name-defined] # noqa: F821
    review: Mapped[Optional["Review"]] = relationship(  # type: ignore[name-defined] # noqa: F821
        back_populates="vocabulary", cascade="all, delete-orphan", uselist=False
    )
    sentences: Mapped[list["Sentence"]] = relationship(  # type: ignore[name-defined] # noqa: F821
        back_populates="vocabulary", cascade="all, delete-orphan"
    )
    quiz_options: Mapped[Optional["QuizOption"]] = relationship(  # type: ignore[name-defined] # noqa: F821
        back_populates="vocabulary", cascade="all, delete-orphan", uselist=False
    )
