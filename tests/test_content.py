"""Tests for LLM content generation and JSON parsing (LLM calls are mocked)."""

import json
from unittest.mock import MagicMock

import pytest

from backend.content import ContentGenerator, Enrichment, SentenceVariation
from backend.errors import GenerationError
from backend.llm_client import parse_json_response


def make_generator(response: str) -> tuple[ContentGenerator, MagicMock]:
    llm = MagicMock()
    llm.create_message.return_value = response
    return ContentGenerator(llm), llm


class TestParseJsonResponse:
    def test_plain(self) -> None:
        assert parse_json_response('{"a": 1}') == {"a": 1}

    def test_code_fence(self) -> None:
        assert parse_json_response('```json\n[1, 2]\n```') == [1, 2]

    def test_embedded_in_prose(self) -> None:
        assert parse_json_response('Sure! Here it is: {"a": [1]} Hope this helps.') == {"a": [1]}

    def test_garbage(self) -> None:
        assert parse_json_response("no json here") is None


class TestDefinitions:
    def test_definition_and_examples(self) -> None:
        generator, llm = make_generator(
            json.dumps({"definition": " A small domestic animal. ", "examples": ["The cat sleeps.", " "]})
        )
        result = generator.generate_definition_and_examples("cat", "kot")

        assert result == Enrichment(definition="A small domestic animal.", examples=("The cat sleeps.",))
        prompt = llm.create_message.call_args.kwargs["prompt"]
        assert '"cat"' in prompt
        assert '"kot"' in prompt

    def test_missing_definition(self) -> None:
        generator, _ = make_generator('{"examples": ["x"]}')
        with pytest.raises(GenerationError):
            generator.generate_definition_and_examples("cat", "kot")


class TestDistractors:
    def test_three_distractors(self) -> None:
        generator, _ = make_generator(
            json.dumps({"correct": "cat", "distractors": ["dog", "Cat", "dog", "cow", "bird", "fish"]})
        )
        options = generator.generate_distractors("cat", "kot")
        assert options.correct == "cat"
        assert options.distractors == ("dog", "cow", "bird")

    def test_too_few(self) -> None:
        generator, _ = make_generator('{"correct": "cat", "distractors": ["dog", "cat"]}')
        with pytest.raises(GenerationError):
            generator.generate_distractors("cat", "kot")

    def test_unparseable(self) -> None:
        generator, _ = make_generator("I cannot help with that.")
        with pytest.raises(GenerationError):
            generator.generate_distractors("cat", "kot")


class TestSentences:
    def test_sentences(self) -> None:
        generator, llm = make_generator(
            json.dumps(
                [
                    {"english": "I have a cat.", "polish": "Mam kota."},
                    {"english": "No Polish"},
                    "junk",
                    {"english": "Is the cat hungry?", "polish": "Czy kot jest głodny?"},
                ],
                ensure_ascii=False,
            )
        )
        sentences = generator.generate_sentences("cat", "kot", count=4)
        assert sentences == [
            SentenceVariation("I have a cat.", "Mam kota."),
            SentenceVariation("Is the cat hungry?", "Czy kot jest głodny?"),
        ]
        assert "Generate 4" in llm.create_message.call_args.kwargs["prompt"]

    def test_not_a_list(self) -> None:
        generator, _ = make_generator('{"english": "x", "polish": "y"}')
        with pytest.raises(GenerationError):
            generator.generate_sentences("cat", "kot")
