from sqlalchemy import ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.models.base import Base, TimestampMixin


class QuizOption(Base, TimestampMixin):
    """Cached multiple-choice answers for a vocabulary item."""

    __tablename__ = "quiz_options"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    vocabulary_id: Mapped[int] = mapped_column(
        ForeignKey("vocabulary.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    correct_answer: Mapped[str] = mapped_column(Text, nullable=False)
    distractor_1: Mapped[str] = mapped_column(Text, nullable=False)
    distractor_2: Mapped[str] = mapped_column(Text, nullable=False)
    distractor_3: Mapped[str] = mapped_column(Text, nullable=False)

    vocabulary: Mapped["Vocabulary"] = relationship(back_populates="quiz_options")  # type: ignore[name-defined] # noqa: F821
