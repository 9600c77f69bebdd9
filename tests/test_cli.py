"""Tests for CLI commands (non-interactive paths)."""

import argparse
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio

from backend.database import engine
from slowka.__main__ import (
    build_parser,
    cmd_add,
    cmd_backfill,
    cmd_due,
    cmd_stats,
    ensure_db,
    get_repository,
    parse_category,
)


@pytest_asyncio.fixture(autouse=True)
async def dispose_engine() -> AsyncIterator[None]:
    yield
    # Pooled connections belong to this test's event loop
    await engine.dispose()


@pytest.mark.asyncio
async def test_ensure_db() -> None:
    """Database tables can be created."""
    await ensure_db()
    await ensure_db()


@pytest.mark.asyncio
async def test_add_word(capsys: pytest.CaptureFixture[str]) -> None:
    args = build_parser().parse_args(["add", "jabłko", "apple", "-c", "food", "-p", "3"])
    await cmd_add(args)
    assert "Added jabłko = apple" in capsys.readouterr().out

    item = await get_repository().find_vocabulary("jabłko")
    assert item.priority == 3
    assert item.category_id is not None

    # Second add is refused
    await cmd_add(args)
    assert "already exists" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_due_and_stats(capsys: pytest.CaptureFixture[str]) -> None:
    await cmd_add(build_parser().parse_args(["add", "gruszka", "pear"]))
    capsys.readouterr()

    await cmd_due(argparse.Namespace())
    assert "new words" in capsys.readouterr().out

    await cmd_stats(argparse.Namespace())
    out = capsys.readouterr().out
    assert "Total words:" in out
    assert "Known well:" in out


@pytest.mark.asyncio
async def test_backfill(capsys: pytest.CaptureFixture[str]) -> None:
    await cmd_add(build_parser().parse_args(["add", "śliwka", "plum"]))
    capsys.readouterr()

    await cmd_backfill(argparse.Namespace())
    assert "created" in capsys.readouterr().out

    item = await get_repository().find_vocabulary("śliwka")
    state = await get_repository().get_review_state(item.id)
    assert state is not None
    assert state.repetitions == 0


def test_parse_category() -> None:
    assert parse_category(None) == "all"
    assert parse_category("uncategorized") == "uncategorized"
    assert parse_category("3") == 3
    with pytest.raises(argparse.ArgumentTypeError):
        parse_category("animals")


def test_review_arguments() -> None:
    args = build_parser().parse_args(["review", "--max-cards", "5", "-c", "2", "-m"])
    assert (args.max_cards, args.category, args.multiple_choice) == (5, 2, True)
