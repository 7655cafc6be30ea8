import logging
import time
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import date as date_type
from datetime import datetime
from typing import Any, Literal

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from leitbox.application.codec import card_to_dict
from leitbox.application.due_queue import select_due
from leitbox.application.factory import Engine, build_engine
from leitbox.application.lessons import DaySchema
from leitbox.application.micro_review import select_micro_review
from leitbox.consts import VERSION

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("leitbox.server")

_engine: Engine | None = None


def get_engine() -> Engine:
    """Lazily wire the engine from the resolved configuration."""
    global _engine
    if _engine is None:
        from leitbox.application.config import resolve_config

        _engine = build_engine(resolve_config())
    return _engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"leitbox server v{VERSION} starting up...")
    yield
    # Shutdown
    if _engine is not None:
        await _engine.lifecycle.close()
    logger.info("leitbox server shutting down...")


app = FastAPI(
    title="leitbox server",
    description="Leitner-box review engine for daily lessons.",
    version=VERSION,
    lifespan=lifespan,
)


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


start_time = time.time()


def _as_moment(day: date_type | None) -> datetime | None:
    if day is None:
        return None
    return datetime(day.year, day.month, day.day)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.get("/cards")
async def list_cards(engine: Engine = Depends(get_engine)) -> list[dict[str, Any]]:
    cards = await engine.store.load()
    return [card_to_dict(card) for card in cards]


@app.get("/cards/due")
async def due_cards(
    date: date_type | None = None,
    cap: int | None = None,
    engine: Engine = Depends(get_engine),
) -> list[dict[str, Any]]:
    cards = await engine.store.load()
    queue = select_due(
        cards,
        date=_as_moment(date),
        cap=engine.config.daily_cap if cap is None else cap,
    )
    return [card_to_dict(card) for card in queue]


class ReviewRequest(BaseModel):
    day_number: int = Field(alias="dayNumber", gt=0)
    section_id: str = Field(alias="sectionId", min_length=1)
    sentence_index: int = Field(alias="sentenceIndex", ge=0)
    sentence: str
    grade: Literal["again", "good", "easy"]
    now: datetime | None = None


@app.post("/cards/review")
async def review_card(req: ReviewRequest, engine: Engine = Depends(get_engine)) -> dict[str, Any]:
    """
    Grade one card; returns the rescheduled card.
    """
    logger.info(f"Review requested: d{req.day_number}:{req.section_id}:{req.sentence_index} {req.grade}")
    try:
        card = await engine.lifecycle.review_card(
            req.day_number,
            req.section_id,
            req.sentence_index,
            req.sentence,
            req.grade,
            now=req.now,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Review failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e
    return card_to_dict(card)


@app.post("/days/{day_number}/ensure")
async def ensure_day(day_number: int, day: DaySchema, engine: Engine = Depends(get_engine)) -> dict[str, Any]:
    """Create cards for a lesson day's review section; returns the full collection."""
    if day.day_number != day_number:
        raise HTTPException(
            status_code=400,
            detail=f"Path day {day_number} does not match body dayNumber {day.day_number}",
        )
    try:
        cards = await engine.lifecycle.ensure_cards_for_day(day.to_day())
    except Exception as e:
        logger.error(f"Ensure cards failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e
    return {"count": len(cards), "cards": [card_to_dict(card) for card in cards]}


@app.get("/micro-review")
async def micro_review(current_day: int, engine: Engine = Depends(get_engine)) -> dict[str, Any]:
    cards = await engine.store.load()
    payload = select_micro_review(cards, current_day, engine.review_plan)
    return {
        "cards": [card_to_dict(card) for card in payload.cards],
        "memorySentences": payload.memory_sentences,
        "source": payload.source,
    }


@app.get("/stats")
async def get_stats(date: date_type | None = None, engine: Engine = Depends(get_engine)) -> dict[str, Any]:
    metrics = await engine.stats.get_metrics(_as_moment(date))
    return asdict(metrics)
