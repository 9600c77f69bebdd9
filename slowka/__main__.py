"""CLI interface for Slowka.

Usage:
    python -m slowka review                  Start a review session
    python -m slowka due                     Show how many cards are due
    python -m slowka stats                   Show mastery statistics
    python -m slowka add "kot" "cat"         Add a word (omit English to translate it)
    python -m slowka translate "dzień dobry" Translate Polish to English
    python -m slowka enrich "kot"            Generate a definition and sentences
    python -m slowka backfill                Create missing review states
"""

import argparse
import asyncio
import logging

from backend.config import settings
from backend.content import ContentGenerator
from backend.database import async_session, init_db
from backend.errors import SlowkaError
from backend.llm_client import get_llm_client
from backend.srs.mastery import MasteryLevel, calculate_review_stats, summarize_mastery
from backend.srs.options import OptionProvider
from backend.srs.repository import SessionFilter, SqlReviewRepository
from backend.srs.session import SessionController, SessionStatus
from backend.srs.sm2 import Rating
from backend.translation import DeepLTranslator

logger = logging.getLogger(__name__)

RATING_KEYS = {
    "1": Rating.AGAIN,
    "2": Rating.HARD,
    "3": Rating.GOOD,
    "4": Rating.EASY,
}


def get_repository() -> SqlReviewRepository:
    return SqlReviewRepository(async_session)


def parse_category(value: str | None) -> int | str:
    """Turn a --category argument into a filter value."""
    if value is None:
        return "all"
    if value in ("all", "uncategorized"):
        return value
    try:
        return int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"category must be an id, 'all' or 'uncategorized', not {value!r}"
        ) from None


async def ensure_db() -> None:
    """Create tables if they don't exist."""
    await init_db()


async def cmd_review(args: argparse.Namespace) -> None:
    """Run an interactive review session."""
    await ensure_db()
    repository = get_repository()
    generator = ContentGenerator(get_llm_client()) if settings.anthropic_api_key else None
    provider = OptionProvider(repository, generator)
    controller = SessionController(repository, option_provider=provider)

    state = await controller.load_session(
        SessionFilter(category=args.category, size_limit=args.max_cards),
        multiple_choice=args.multiple_choice,
    )
    if state.status is SessionStatus.EMPTY:
        print("\nNo cards due for review. You're all caught up!")
        return

    print("\n  Review Session")
    print(f"  {state.stats.total} cards\n")
    print("  Ratings: 1=Again  2=Hard  3=Good  4=Easy")
    print("  Type 'q' to quit\n")

    while (card := controller.current_card(state)) is not None:
        progress = controller.progress(state)
        label = f"  [{progress.current}/{progress.total}]"
        if card.is_new:
            label += " (NEW)"
        print(label)
        print(f"  {card.item.polish}")

        suggested = Rating.GOOD
        if card.options:
            for j, option in enumerate(card.options, 1):
                print(f"    {j}. {option}")
            response = input("\n  Your answer: ").strip()
            if response.lower() == "q":
                print("\n  Session ended early.")
                break
            if response.isdigit() and 1 <= int(response) <= len(card.options):
                response = card.options[int(response) - 1]
            correct = response.strip().lower() == card.item.english.lower()
            print("  Correct!" if correct else "  Not quite.")
            suggested = Rating.GOOD if correct else Rating.AGAIN
        elif input("  [enter to reveal] ").strip().lower() == "q":
            print("\n  Session ended early.")
            break

        state = controller.reveal(state)
        print(f"  = {card.item.english}")
        if card.item.definition:
            print(f"    {card.item.definition}")

        default_key = next(k for k, r in RATING_KEYS.items() if r is suggested)
        rate_input = input(f"  Rate [1-4, enter={default_key}]: ").strip()
        rating = RATING_KEYS.get(rate_input, suggested)

        try:
            outcome = await controller.rate(state, rating)
        except SlowkaError as exc:
            print(f"  Could not save rating: {exc.message}")
            if input("  Retry this card? [Y/n] ").strip().lower() == "n":
                break
            continue
        if outcome is None:
            break
        state = outcome.state
        print(f"  Next review in {outcome.persisted.interval} days\n")

    s = state.stats
    accuracy = s.correct / s.completed * 100 if s.completed else 0
    print("\n  Session Complete!" if controller.is_complete(state) else "\n  Session Summary")
    print(
        f"  Reviewed: {s.completed}  Correct: {s.correct}  "
        f"Accuracy: {accuracy:.0f}%  Best streak: {s.max_streak}\n"
    )
    await provider.wait_pending()


async def cmd_due(args: argparse.Namespace) -> None:
    """Show how many cards are due."""
    await ensure_db()
    rows = await get_repository().list_review_states()
    reviewed = [state for _, state in rows if state is not None]
    stats = calculate_review_stats(reviewed)
    new = len(rows) - len(reviewed)
    print(f"  {stats.due_today} cards due, {stats.due_this_week} due this week, {new} new words")


async def cmd_stats(args: argparse.Namespace) -> None:
    """Show mastery statistics."""
    await ensure_db()
    rows = await get_repository().list_review_states()
    states = [state for _, state in rows]
    mastery = summarize_mastery(states)
    stats = calculate_review_stats([s for s in states if s is not None])

    print(f"\n  {settings.app_name} Statistics")
    print(f"  {'Total words:':<22} {len(rows)}")
    print(f"  {'Known well:':<22} {mastery[MasteryLevel.KNOWN]}")
    print(f"  {'Learning:':<22} {mastery[MasteryLevel.LEARNING]}")
    print(f"  {'Difficult:':<22} {mastery[MasteryLevel.DIFFICULT]}")
    print(f"  {'New:':<22} {mastery[MasteryLevel.NEW]}")
    print(f"  {'Due now:':<22} {stats.due_today}")
    print(f"  {'Mastered (30+ days):':<22} {stats.mastered}")
    print()


async def cmd_add(args: argparse.Namespace) -> None:
    """Add a new vocabulary item."""
    await ensure_db()
    repository = get_repository()

    existing = await repository.find_vocabulary(args.polish)
    if existing:
        print(f"  '{args.polish}' already exists (id={existing.id}).")
        return

    english = args.english
    if not english:
        english = await DeepLTranslator().translate(args.polish, "pl", "en")
        print(f"  Translated: {args.polish} -> {english}")

    category_id = None
    if args.category:
        category_id = await repository.get_or_create_category(args.category)

    item = await repository.add_vocabulary(
        args.polish, english, category_id=category_id, priority=args.priority
    )
    print(f"  Added {item.polish} = {item.english} (id={item.id}, ready for review)")


async def cmd_translate(args: argparse.Namespace) -> None:
    """Translate text between Polish and English."""
    target = "en" if args.source == "pl" else "pl"
    translated = await DeepLTranslator().translate(args.text, args.source, target)
    print(f"  {translated}")


async def cmd_enrich(args: argparse.Namespace) -> None:
    """Generate a definition, examples and sentences for a word."""
    await ensure_db()
    repository = get_repository()
    item = await repository.find_vocabulary(args.polish)
    if item is None:
        print(f"  '{args.polish}' not found. Add it first.")
        return

    generator = ContentGenerator(get_llm_client())
    enrichment = await asyncio.to_thread(
        generator.generate_definition_and_examples, item.english, item.polish
    )
    await repository.save_enrichment(item.id, enrichment.definition, enrichment.examples)
    print(f"  {item.english}: {enrichment.definition}")
    for example in enrichment.examples:
        print(f"    - {example}")

    if args.sentences:
        sentences = await asyncio.to_thread(
            generator.generate_sentences, item.english, item.polish, args.sentences
        )
        added = await repository.add_sentences(item.id, [(s.english, s.polish) for s in sentences])
        print(f"  Saved {added} example sentences")

    logger.debug("LLM usage: %s", get_llm_client().get_cost_estimate())


async def cmd_backfill(args: argparse.Namespace) -> None:
    """Create review states for vocabulary that has none."""
    await ensure_db()
    result = await get_repository().backfill_missing_reviews()
    print(
        f"  {result.total_vocabulary} words, {result.missing_reviews} missing reviews, "
        f"{result.created_reviews} created"
    )
    for error in result.errors:
        print(f"  ! {error}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slowka",
        description="Polish/English vocabulary trainer with spaced repetition",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # review
    review_parser = subparsers.add_parser("review", help="Start a review session")
    review_parser.add_argument(
        "--max-cards", type=int, default=settings.max_session_size, help="Max cards per session"
    )
    review_parser.add_argument(
        "-c", "--category", type=parse_category, default="all",
        help="Category id, 'all' or 'uncategorized'",
    )
    review_parser.add_argument(
        "-m", "--multiple-choice", action="store_true", help="Pick from answer options"
    )

    # due
    subparsers.add_parser("due", help="Show cards due for review")

    # stats
    subparsers.add_parser("stats", help="Show mastery statistics")

    # add
    add_parser = subparsers.add_parser("add", help="Add a new word")
    add_parser.add_argument("polish", help="Polish word or phrase")
    add_parser.add_argument("english", nargs="?", default="", help="English meaning (translated if omitted)")
    add_parser.add_argument("-c", "--category", default="", help="Category name")
    add_parser.add_argument(
        "-p", "--priority", type=int, choices=[1, 2, 3], default=settings.default_priority,
        help="1=low, 2=standard, 3=important",
    )

    # translate
    translate_parser = subparsers.add_parser("translate", help="Translate a word or phrase")
    translate_parser.add_argument("text", help="Text to translate")
    translate_parser.add_argument("-s", "--source", choices=["pl", "en"], default="pl")

    # enrich
    enrich_parser = subparsers.add_parser("enrich", help="Generate definition and examples")
    enrich_parser.add_argument("polish", help="Polish word already in your vocabulary")
    enrich_parser.add_argument(
        "--sentences", type=int, default=0, help="Also generate this many example sentences"
    )

    # backfill
    subparsers.add_parser("backfill", help="Create missing review states")

    return parser


def main() -> None:
    """Entry point for the Slowka CLI application."""
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if not args.command:
        parser.print_help()
        return

    cmd_map = {
        "review": cmd_review,
        "due": cmd_due,
        "stats": cmd_stats,
        "add": cmd_add,
        "translate": cmd_translate,
        "enrich": cmd_enrich,
        "backfill": cmd_backfill,
    }

    try:
        asyncio.run(cmd_map[args.command](args))
    except SlowkaError as exc:
        parser.exit(1, f"error: {exc.message}\n")


if __name__ == "__main__":
    main()
