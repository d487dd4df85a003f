"""In-memory known-set: which story ids have already been handled.

One ``Tracker`` is created at process start and threaded through every
poll cycle.  Nothing is persisted, so a restart forgets everything and
the next first cycle treats all visible stories as backlog again.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable

from .common_types import StoryItem

logger = logging.getLogger(__name__)


class Tracker:
    """Classifies stories as new/known and remembers the result."""

    def __init__(self) -> None:
        self._known: set[str] = set()
        self._lock = threading.Lock()

    def observe(self, items: Iterable[StoryItem]) -> list[StoryItem]:
        """Mark every item whose id is not yet known as new, and remember it.

        Known items get ``is_new = False``.  Order is preserved.  A repeated
        id inside the same batch is new only on its first occurrence.
        """
        out: list[StoryItem] = []
        with self._lock:
            for it in items:
                if it.item_id in self._known:
                    it.is_new = False
                else:
                    self._known.add(it.item_id)
                    it.is_new = True
                out.append(it)
        return out

    def rollback(self, item_id: str) -> None:
        """Forget *item_id* so a later poll that still sees it retries it.

        Rolling back an unknown id is a no-op.
        """
        with self._lock:
            removed = item_id in self._known
            self._known.discard(item_id)
        if removed:
            logger.debug("Story %s rolled back; eligible for retry.", item_id)

    def is_known(self, item_id: str) -> bool:
        with self._lock:
            return item_id in self._known

    def __contains__(self, item_id: object) -> bool:
        return isinstance(item_id, str) and self.is_known(item_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._known)
