"""Answer options for multiple-choice review cards.

Cached distractors are used when a vocabulary item has them. Otherwise the
options are drawn at random from the other items in the session's pool, and
generation of proper distractors is kicked off in the background so the
next session can use them.
"""

import asyncio
import logging
import random
from collections.abc import Sequence
from typing import Protocol

from backend.srs.repository import QuizOptions, ReviewRepository, VocabularyItem

logger = logging.getLogger(__name__)

OPTION_COUNT = 4


class DistractorGenerator(Protocol):
    def generate_distractors(self, word: str, translation: str) -> QuizOptions: ...


class OptionProvider:
    """Builds shuffled answer options for vocabulary items."""

    def __init__(
        self,
        repository: ReviewRepository,
        generator: DistractorGenerator | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.repository = repository
        self.generator = generator
        self.rng = rng or random.Random()
        self._pending: dict[int, asyncio.Task] = {}

    async def options_for(self, item: VocabularyItem, pool: Sequence[VocabularyItem]) -> list[str]:
        """Return the correct English answer mixed with up to three distractors."""
        cached = await self.repository.get_quiz_options(item.id)
        if cached is not None and cached.correct != item.english:
            # The answer changed since these were generated
            logger.info("Discarding stale distractors for vocabulary %d", item.id)
            cached = None
        if cached is not None:
            options = [item.english, *(d for d in cached.distractors if d != item.english)]
        else:
            options = [item.english, *self._random_distractors(item, pool)]
            self._schedule_generation(item)

        self.rng.shuffle(options)
        return options

    def _random_distractors(self, item: VocabularyItem, pool: Sequence[VocabularyItem]) -> list[str]:
        answers = {other.english for other in pool if other.english != item.english}
        candidates = sorted(answers)
        count = min(OPTION_COUNT - 1, len(candidates))
        return self.rng.sample(candidates, count)

    def _schedule_generation(self, item: VocabularyItem) -> None:
        if self.generator is None or item.id in self._pending:
            return
        task = asyncio.create_task(self._generate_and_store(item))
        self._pending[item.id] = task
        task.add_done_callback(lambda _: self._pending.pop(item.id, None))

    async def _generate_and_store(self, item: VocabularyItem) -> None:
        try:
            generated = await asyncio.to_thread(
                self.generator.generate_distractors, item.english, item.polish
            )
            await self.repository.save_quiz_options(item.id, generated)
        except Exception:
            # Random options already cover this session
            logger.exception("Background distractor generation failed for %d", item.id)
            return
        logger.info("Stored generated distractors for vocabulary %d", item.id)

    async def wait_pending(self) -> None:
        """Wait for all background generation tasks to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending.values()))
