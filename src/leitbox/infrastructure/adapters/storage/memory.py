"""
In-memory Card Storage: Infrastructure adapter backed by a dict.

Contents live only as long as the process.
"""

from leitbox.domain.ports import CardStorage


class InMemoryCardStorage(CardStorage):
    """Keeps raw blobs in a process-local dict."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    async def load(self, key: str) -> str | None:
        return self.data.get(key)

    async def save(self, key: str, raw: str) -> None:
        self.data[key] = raw
