"""
Ports (interfaces) for persistence and analytics.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from typing import Any


class CardStorage(ABC):
    """
    Port for the key-value text store holding the card collection.

    Implementations:
        - InMemoryCardStorage: Process-local dict, used by tests and ephemeral runs.
        - JsonFileCardStorage: One file per key inside a data directory.
    """

    @abstractmethod
    async def load(self, key: str) -> str | None:
        """
        Read the raw text stored under ``key``.

        Returns:
            The stored text, or None if nothing was ever saved under the key.
        """
        pass

    @abstractmethod
    async def save(self, key: str, raw: str) -> None:
        """
        Replace the text stored under ``key``.

        Failures propagate to the caller.
        """
        pass


class AnalyticsSink(ABC):
    """
    Port for best-effort analytics delivery.

    Implementations:
        - LoggingAnalyticsSink: Emits structured log lines.
        - HttpAnalyticsSink: POSTs events to a collector endpoint.
    """

    @abstractmethod
    async def track(self, event: str, payload: dict[str, Any]) -> None:
        """Deliver one event. Callers treat failures as non-fatal."""
        pass

    async def close(self) -> None:
        """Release held resources. Sinks without any keep the default no-op."""
        pass
