"""LLM-generated study material: definitions, distractors and example sentences."""

import json
import logging
from dataclasses import dataclass

from backend.errors import GenerationError
from backend.llm_client import LLMClient, parse_json_response
from backend.srs.repository import QuizOptions

logger = logging.getLogger(__name__)

DISTRACTOR_COUNT = 3

SYSTEM_PROMPT = """\
You help Polish speakers learn English vocabulary. You write clear, natural \
English and correct Polish, and you always answer with JSON only."""

ENRICHMENT_PROMPT = """\
Write a short English definition of the word "{word}" (Polish: "{translation}") \
and three example sentences that use it in everyday contexts.

Return ONLY a JSON object with this structure:
{{"definition": "...", "examples": ["...", "...", "..."]}}"""

DISTRACTOR_PROMPT = """\
Create a multiple-choice question for the Polish word "{translation}", whose \
English meaning is "{word}".

Rules:
- Exactly {count} distractors: plausible English words or phrases that are wrong
- Distractors must be the same part of speech as the correct answer
- No distractor may be a synonym of the correct answer

Return ONLY a JSON object with this structure:
{{"correct": "{word}", "distractors": ["...", "...", "..."]}}"""

SENTENCE_PROMPT = """\
Generate {count} diverse English sentences using the word "{word}", each with a \
Polish translation. Vary the contexts: formal, informal, questions, statements, \
past/present/future tense. The word "{word}" must appear in every English sentence.

Polish meaning: "{polish}"

Return ONLY a JSON array with this structure:
[{{"english": "...", "polish": "..."}}]"""


@dataclass(frozen=True)
class Enrichment:
    definition: str
    examples: tuple[str, ...]


@dataclass(frozen=True)
class SentenceVariation:
    english: str
    polish: str


class ContentGenerator:
    """Generates study content for vocabulary items with an LLM."""

    def __init__(self, llm: LLMClient) -> None:
        self.llm = llm

    def generate_definition_and_examples(self, word: str, translation: str) -> Enrichment:
        """Generate an English definition and example sentences for a word.

        Raises:
            GenerationError: If the response lacks a definition.
        """
        response = self.llm.create_message(
            prompt=ENRICHMENT_PROMPT.format(word=word, translation=translation),
            system=SYSTEM_PROMPT,
            temperature=0.7,
        )
        data = parse_json_response(response, context="definition")
        if not isinstance(data, dict) or not str(data.get("definition", "")).strip():
            raise GenerationError(f"No definition generated for {word!r}")

        examples = data.get("examples") or []
        if not isinstance(examples, list):
            examples = []
        return Enrichment(
            definition=str(data["definition"]).strip(),
            examples=tuple(str(e).strip() for e in examples if str(e).strip()),
        )

    def generate_distractors(self, word: str, translation: str) -> QuizOptions:
        """Generate three wrong answers for a multiple-choice card.

        Args:
            word: The English answer.
            translation: The Polish prompt.

        Raises:
            GenerationError: If fewer than three usable distractors come back.
        """
        response = self.llm.create_message(
            prompt=DISTRACTOR_PROMPT.format(
                word=word, translation=translation, count=DISTRACTOR_COUNT
            ),
            system=SYSTEM_PROMPT,
            max_tokens=500,
            temperature=0.8,
        )
        data = parse_json_response(response, context="distractors")
        raw = data.get("distractors") if isinstance(data, dict) else None
        if not isinstance(raw, list):
            raise GenerationError(f"No distractors generated for {word!r}")

        distractors: list[str] = []
        for candidate in raw:
            text = str(candidate).strip()
            if text and text.lower() != word.lower() and text not in distractors:
                distractors.append(text)

        if len(distractors) < DISTRACTOR_COUNT:
            raise GenerationError(
                f"Expected {DISTRACTOR_COUNT} distractors for {word!r}, got {len(distractors)}"
            )
        return QuizOptions(correct=word, distractors=tuple(distractors[:DISTRACTOR_COUNT]))

    def generate_sentences(self, word: str, polish: str, count: int = 8) -> list[SentenceVariation]:
        """Generate example sentence pairs that use a word."""
        response = self.llm.create_message(
            prompt=SENTENCE_PROMPT.format(word=word, polish=polish, count=count),
            system=SYSTEM_PROMPT,
        )
        data = parse_json_response(response, context="sentences")
        if not isinstance(data, list):
            raise GenerationError(f"No sentences generated for {word!r}")

        sentences = []
        for entry in data:
            if not isinstance(entry, dict):
                continue
            english, polish_text = entry.get("english"), entry.get("polish")
            if isinstance(english, str) and isinstance(polish_text, str) and english and polish_text:
                sentences.append(SentenceVariation(english=english.strip(), polish=polish_text.strip()))
            else:
                logger.warning("Skipping malformed sentence: %s", json.dumps(entry, ensure_ascii=False))
        return sentences
