"""
Engine Factory
Centralizes the logic for selecting storage and analytics adapters.
"""

from dataclasses import dataclass

from leitbox.application.card_store import CardStore
from leitbox.application.config import AppConfig
from leitbox.application.lifecycle import CardLifecycleService
from leitbox.application.review_plan import load_review_plan
from leitbox.application.stats import ReviewStatsService
from leitbox.domain.models import ReviewPlan
from leitbox.domain.ports import AnalyticsSink, CardStorage
from leitbox.infrastructure.adapters.analytics import HttpAnalyticsSink, LoggingAnalyticsSink
from leitbox.infrastructure.adapters.storage import InMemoryCardStorage, JsonFileCardStorage


def get_card_storage(config: AppConfig) -> CardStorage:
    """
    Returns the CardStorage implementation selected by config.
    """
    if config.storage_backend == "memory":
        return InMemoryCardStorage()
    return JsonFileCardStorage(config.data_dir)


def get_analytics_sink(config: AppConfig) -> AnalyticsSink | None:
    """
    Returns the AnalyticsSink selected by config, or None when disabled.
    """
    if config.analytics_backend == "none":
        return None
    if config.analytics_backend == "http":
        if not config.analytics_url:
            raise ValueError("analytics_backend 'http' requires analytics_url")
        return HttpAnalyticsSink(config.analytics_url)
    return LoggingAnalyticsSink()


@dataclass
class Engine:
    """Wired-up services sharing one card store."""

    config: AppConfig
    store: CardStore
    lifecycle: CardLifecycleService
    stats: ReviewStatsService
    review_plan: ReviewPlan


def build_engine(config: AppConfig, storage: CardStorage | None = None) -> Engine:
    store = CardStore(storage or get_card_storage(config))
    return Engine(
        config=config,
        store=store,
        lifecycle=CardLifecycleService(
            store,
            analytics=get_analytics_sink(config),
            app_version=config.app_version,
        ),
        stats=ReviewStatsService(store),
        review_plan=load_review_plan(config.review_plan_file),
    )
