"""leitbox CLI: card lifecycle, review queues and the HTTP server."""

import asyncio
import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Annotated, NoReturn

import typer

from leitbox.application.codec import card_to_dict
from leitbox.application.config import AppConfig, resolve_config
from leitbox.application.due_queue import load_due_queue
from leitbox.application.factory import Engine, build_engine
from leitbox.application.lessons import LessonContentError, find_day, load_days
from leitbox.application.micro_review import load_micro_review
from leitbox.application.review_plan import dump_review_plan

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="leitbox: Leitner-box review engine for daily lessons.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Inspect leitbox configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve_with_overrides(ctx: typer.Context, **overrides) -> AppConfig:
    """Merge global options from the callback with command-level overrides."""
    merged = dict(ctx.obj or {})
    merged.update(overrides)
    try:
        config = resolve_config(merged)
    except ValueError as e:
        _fail(f"Invalid configuration: {e}")
    if config.verbose >= 2:
        logging.getLogger("leitbox").setLevel(logging.DEBUG)
    return config


def _engine(ctx: typer.Context, **overrides) -> Engine:
    config = _resolve_with_overrides(ctx, **overrides)
    try:
        return build_engine(config)
    except ValueError as e:
        _fail(str(e))


def _parse_date(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got {value!r}") from e


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg="red", err=True)
    raise typer.Exit(1)


def _echo_json(data) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    data_dir: Annotated[Path | None, typer.Option(help="Directory holding the card store.")] = None,
    storage: Annotated[
        str | None, typer.Option(help="Storage backend: memory, file.")
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 1,
):
    """Global settings for leitbox."""
    ctx.ensure_object(dict)
    ctx.obj.update(
        {k: v for k, v in {"data_dir": data_dir, "storage_backend": storage}.items() if v is not None}
    )
    ctx.obj["verbose"] = verbose


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("ensure-day")
def ensure_day(
    ctx: typer.Context,
    day_number: Annotated[int, typer.Argument(help="Lesson day whose cards to create.")],
    lessons: Annotated[Path | None, typer.Option(help="Lesson content file (YAML/JSON).")] = None,
):
    """[bold green]Create[/bold green] review cards for a lesson day (idempotent)."""
    engine = _engine(ctx, lessons_file=lessons)
    if engine.config.lessons_file is None:
        _fail("No lesson file configured. Pass --lessons or set LEITBOX_LESSONS_FILE.")

    try:
        day = find_day(load_days(engine.config.lessons_file), day_number)
    except LessonContentError as e:
        _fail(str(e))

    async def run():
        before = len(await engine.store.load())
        cards = await engine.lifecycle.ensure_cards_for_day(day)
        return len(cards) - before, len(cards)

    added, total = asyncio.run(run())
    typer.echo(f"Day {day_number}: {added} new card(s), {total} total.")


@app.command()
def review(
    ctx: typer.Context,
    day_number: Annotated[int, typer.Argument(help="Lesson day of the card.")],
    section_id: Annotated[str, typer.Argument(help="Section id of the card.")],
    sentence_index: Annotated[int, typer.Argument(help="Sentence position in the section.")],
    grade: Annotated[str, typer.Argument(help="again, good or easy.")],
    sentence: Annotated[
        str | None, typer.Option(help="Source line 'prompt -> answer'. Read from lessons if omitted.")
    ] = None,
    lessons: Annotated[Path | None, typer.Option(help="Lesson content file (YAML/JSON).")] = None,
    date: Annotated[str | None, typer.Option(help="Review moment (ISO date/time). Defaults to now.")] = None,
):
    """Grade one card and reschedule it."""
    engine = _engine(ctx, lessons_file=lessons)
    now = _parse_date(date)

    if sentence is None:
        if engine.config.lessons_file is None:
            _fail("Pass --sentence, or --lessons to look the sentence up.")
        try:
            day = find_day(load_days(engine.config.lessons_file), day_number)
        except LessonContentError as e:
            _fail(str(e))
        section = next((s for s in day.sections if s.id == section_id), None)
        if section is None or not 0 <= sentence_index < len(section.sentences):
            _fail(f"No sentence {sentence_index} in section '{section_id}' of day {day_number}.")
        sentence = section.sentences[sentence_index]

    async def run():
        try:
            return await engine.lifecycle.review_card(
                day_number, section_id, sentence_index, sentence, grade, now=now
            )
        finally:
            await engine.lifecycle.close()

    try:
        card = asyncio.run(run())
    except ValueError as e:
        _fail(str(e))

    typer.secho(f"{card.id} '{card.prompt}' -> box {card.box}, due {card.due_date}", fg="green")


@app.command()
def due(
    ctx: typer.Context,
    date: Annotated[str | None, typer.Option(help="Evaluation date (YYYY-MM-DD). Defaults to today.")] = None,
    cap: Annotated[int | None, typer.Option(help="Maximum queue length.")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON.")] = False,
):
    """List cards due for review, weakest first within each due date."""
    engine = _engine(ctx)
    queue = asyncio.run(
        load_due_queue(
            engine.store,
            date=_parse_date(date),
            cap=engine.config.daily_cap if cap is None else cap,
        )
    )

    if as_json:
        _echo_json([card_to_dict(card) for card in queue])
        return
    if not queue:
        typer.secho("Nothing due.", fg="yellow")
        return
    for card in queue:
        typer.echo(f"{card.due_date}  box {card.box}  {card.id}  {card.prompt}")
    typer.echo(f"Due cards: {len(queue)}")


@app.command()
def micro(
    ctx: typer.Context,
    current_day: Annotated[int, typer.Argument(help="Lesson day the learner is on.")],
    plan: Annotated[Path | None, typer.Option(help="Review plan file (YAML/JSON).")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON.")] = False,
):
    """Select the micro-review refresher for a lesson day."""
    engine = _engine(ctx, review_plan_file=plan)
    payload = asyncio.run(load_micro_review(engine.store, current_day, engine.review_plan))

    if as_json:
        _echo_json(
            {
                "cards": [card_to_dict(card) for card in payload.cards],
                "memorySentences": payload.memory_sentences,
                "source": payload.source,
            }
        )
        return

    typer.echo(f"Source: {payload.source}")
    for card in payload.cards:
        typer.echo(f"  day {card.day_number}  {card.id}  {card.prompt}")
    if payload.memory_sentences:
        typer.echo("Memory sentences:")
        for sentence in payload.memory_sentences:
            typer.echo(f"  - {sentence}")


@app.command()
def stats(
    ctx: typer.Context,
    date: Annotated[str | None, typer.Option(help="Evaluation date (YYYY-MM-DD). Defaults to today.")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON.")] = False,
):
    """Show due count, accuracy and the box distribution."""
    engine = _engine(ctx)
    metrics = asyncio.run(engine.stats.get_metrics(_parse_date(date)))

    if as_json:
        _echo_json(asdict(metrics))
        return

    typer.echo(f"Cards: {metrics.total_cards} ({metrics.reviewed_cards} reviewed)")
    typer.echo(f"Due today: {metrics.due_today}")
    typer.echo(f"Accuracy: {metrics.accuracy_percent}% ({metrics.total_success}/{metrics.total_reviews})")
    for box, count in metrics.box_counts.items():
        typer.echo(f"  box {box}: {count}")


@app.command()
def serve(
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8787,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP server."""
    import uvicorn

    uvicorn.run("leitbox.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _resolve_with_overrides(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    _echo_json(d)


@config_app.command("plan")
def config_plan(
    ctx: typer.Context,
    plan: Annotated[Path | None, typer.Option(help="Review plan file (YAML/JSON).")] = None,
):
    """Display the effective review plan."""
    engine = _engine(ctx, review_plan_file=plan)
    typer.echo(dump_review_plan(engine.review_plan))


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
