"""Card store: binds the codec to a storage port under one fixed key."""

import asyncio
import logging

from leitbox.domain.constants import LEITNER_INTERVALS_DAYS, SRS_STORAGE_KEY
from leitbox.domain.models import ReviewCard
from leitbox.domain.ports import CardStorage

from .codec import decode_with_report, encode

logger = logging.getLogger(__name__)


class CardStore:
    """
    Whole-collection access to the persisted cards.

    Every read returns the full collection and every write replaces it.
    Mutating callers hold ``write_lock`` for the length of their
    load-mutate-save cycle so overlapping cycles in one process do not
    discard each other's changes. Readers never take the lock.
    """

    def __init__(
        self,
        storage: CardStorage,
        key: str = SRS_STORAGE_KEY,
        max_box: int = len(LEITNER_INTERVALS_DAYS),
    ):
        self._storage = storage
        self.key = key
        self.max_box = max_box
        self.write_lock = asyncio.Lock()

    async def load(self) -> list[ReviewCard]:
        raw = await self._storage.load(self.key)
        result = decode_with_report(raw, max_box=self.max_box)
        if result.dropped:
            logger.warning(f"Dropped {result.dropped} malformed card record(s) from '{self.key}'")
        return result.cards

    async def save(self, cards: list[ReviewCard]) -> None:
        await self._storage.save(self.key, encode(cards))
        logger.debug(f"Saved {len(cards)} card(s) to '{self.key}'")
