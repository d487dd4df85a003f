"""Shared schema between the story source, the tracker and the sink.

Every source adapter normalises its raw payload into a ``StoryItem``
before the pipeline sees it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class ItemKind(str, Enum):
    """How the sink should render the media behind ``StoryItem.url``."""

    IMAGE = "image"
    VIDEO = "video"


@dataclass
class StoryItem:
    """Provider-agnostic story record."""

    item_id: str  # provider-unique stable identifier
    url: str  # fetchable media URL
    kind: ItemKind = ItemKind.IMAGE
    taken_at: float = 0.0  # epoch seconds, 0.0 when unknown

    # Computed by Tracker.observe() on every cycle, never persisted.
    is_new: bool = False

    # ── Convenience ─────────────────────────────────────────────

    @property
    def is_video(self) -> bool:
        return self.kind is ItemKind.VIDEO

    @property
    def is_valid(self) -> bool:
        """Minimal sanity check before the pipeline accepts the item."""
        return bool(self.item_id and self.url)


class StorySource(Protocol):
    """Anything that can list the currently visible stories."""

    def fetch_candidates(self) -> list[StoryItem]:
        """Return the visible stories in source order; raise on failure."""
        ...


class StorySink(Protocol):
    """Anything that can forward a single story."""

    def deliver(self, item: StoryItem) -> None:
        """Forward *item*; raise on failure."""
        ...
