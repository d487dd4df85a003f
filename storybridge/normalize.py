"""Normalisation: raw Instagram story payloads → StoryItem.

The function is intentionally **schema-tolerant**: it tolerates missing
or oddly typed fields so that minor API changes don't raise in the
middle of a cycle.  The primary field names match the private API's
reel items:

    id / pk, taken_at, media_type,
    video_versions: [{url, width, height, type}, …],
    image_versions2: {candidates: [{url, width, height}, …]}
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .common_types import ItemKind, StoryItem

logger = logging.getLogger(__name__)


def _as_float(x: Any) -> float:
    try:
        return float(x)
    except (TypeError, ValueError):
        return 0.0


def _first_video_url(it: Dict[str, Any]) -> str:
    versions = it.get("video_versions")
    if not isinstance(versions, list):
        return ""
    for v in versions:
        if isinstance(v, dict) and isinstance(v.get("url"), str) and v["url"]:
            return v["url"]
    return ""


def best_image_url(candidates: Any) -> str:
    """Return the URL of the largest image candidate (width × height)."""
    if not isinstance(candidates, list):
        return ""
    best_url = ""
    best_area = -1.0
    for c in candidates:
        if not isinstance(c, dict):
            continue
        url = c.get("url")
        if not isinstance(url, str) or not url:
            continue
        area = _as_float(c.get("width")) * _as_float(c.get("height"))
        if area > best_area:
            best_url, best_area = url, area
    return best_url


def normalize_story(it: Dict[str, Any]) -> Optional[StoryItem]:
    """Convert one reel item into a ``StoryItem``.

    Videos win over images (a video story also carries a still frame).
    Returns ``None`` when the item has no usable media URL.
    """
    item_id = str(it.get("id") or it.get("pk") or "").strip()
    if not item_id:
        logger.debug("Story without id skipped.")
        return None

    url = _first_video_url(it)
    kind = ItemKind.VIDEO
    if not url:
        images = it.get("image_versions2")
        url = best_image_url(images.get("candidates") if isinstance(images, dict) else None)
        kind = ItemKind.IMAGE
    if not url:
        logger.debug("Story %s has no media URL, skipped.", item_id)
        return None

    return StoryItem(
        item_id=item_id,
        url=url,
        kind=kind,
        taken_at=_as_float(it.get("taken_at")),
    )


def normalize_reel(items: Any) -> List[StoryItem]:
    """Normalise a reel's ``items`` list, dropping unusable entries."""
    if not isinstance(items, list):
        if items is not None:
            logger.warning(
                "Instagram returned %s instead of list — 0 stories ingested.",
                type(items).__name__,
            )
        return []
    out: List[StoryItem] = []
    for raw in items:
        if not isinstance(raw, dict):
            continue
        story = normalize_story(raw)
        if story is not None:
            out.append(story)
    return out
