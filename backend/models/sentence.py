from sqlalchemy import ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.models.base import Base, TimestampMixin


class Sentence(Base, TimestampMixin):
    __tablename__ = "sentences"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    vocabulary_id: Mapped[int] = mapped_column(
        ForeignKey("vocabulary.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sentence_english: Mapped[str] = mapped_column(Text, nullable=False)
    sentence_polish: Mapped[str] = mapped_column(Text, nullable=False)

    vocabulary: Mapped["Vocabulary"] = relationship(back_populates="sentences")  # type: ignore[name-defined] # noqa: F821
