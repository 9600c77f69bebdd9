"""SQLAlchemy ORM models for the Slowka database."""

from backend.models.base import Base
from backend.models.category import Category
from backend.models.quiz_option import QuizOption
from backend.models.review import Review
from backend.models.sentence import Sentence
from backend.models.vocabulary import Vocabulary

__all__ = ["Base", "Category", "QuizOption", "Review", "Sentence", "Vocabulary"]
