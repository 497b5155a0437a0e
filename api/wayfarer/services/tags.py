"""Tag vocabulary shared by posts and itineraries."""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from .. import models

logger = logging.getLogger(__name__)

MAX_TAG_LENGTH = 50


def normalize_tags(names: Iterable[str]) -> list[str]:
    """Lowercase and trim tag names, dropping blanks and repeats while keeping order."""
    seen: dict[str, None] = {}
    for name in names:
        tag = name.strip().lower()[:MAX_TAG_LENGTH]
        if tag:
            seen.setdefault(tag, None)
    return list(seen)


def get_or_create_tags(db: Session, names: Iterable[str]) -> list[models.Tag]:
    """
    Resolve tag names to rows, creating the missing ones.

    Runs inside the caller's transaction and flushes so new tags have ids.
    """
    wanted = normalize_tags(names)
    if not wanted:
        return []

    existing = {
        tag.tag_name: tag
        for tag in db.scalars(select(models.Tag).where(models.Tag.tag_name.in_(wanted)))
    }
    for name in wanted:
        if name not in existing:
            tag = models.Tag(tag_name=name)
            db.add(tag)
            existing[name] = tag
    db.flush()
    return [existing[name] for name in wanted]


def tag_post(db: Session, post_id: int, names: Iterable[str]) -> list[models.Tag]:
    tags = get_or_create_tags(db, names)
    for tag in tags:
        db.add(models.PostTag(post_id=post_id, tag_id=tag.id))
    return tags


def tag_itinerary(db: Session, itinerary_id: int, names: Iterable[str]) -> list[models.Tag]:
    tags = get_or_create_tags(db, names)
    for tag in tags:
        db.add(models.ItineraryTag(itinerary_id=itinerary_id, tag_id=tag.id))
    return tags
