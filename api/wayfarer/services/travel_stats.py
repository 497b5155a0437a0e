"""
Travel statistics aggregation.

Derives ``total_trips``, ``countries_visited`` and ``continents_visited`` for a
user from their itineraries' free-text destinations plus the countries they
declared on their profile. The computation is a pure function of those inputs,
so recomputing is always safe and last write wins.

Also hosts the full-recount repair of the social counters.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Iterable, Iterator, Mapping

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .. import models, schemas
from ..countries import continent_for, get_country_continent_map
from ..db import atomic
from ..errors import NotFound
from ..settings import STATS_ITINERARY_BATCH_SIZE
from . import counters

logger = logging.getLogger(__name__)


@dataclass
class TravelStats:
    """Aggregated travel figures for one user."""

    total_trips: int
    countries_visited: int
    continents_visited: int

    def to_dict(self) -> dict:
        return asdict(self)


def extract_country(destination: str | None) -> str | None:
    """
    Best-effort country from a free-text destination.

    "Kyoto, Japan" -> "Japan" (last comma-separated segment); a destination
    with no comma is taken whole ("Iceland" -> "Iceland"). This is a
    heuristic, not geocoding: "Paris, Texas" yields "Texas".
    """
    if not destination:
        return None
    parts = [part.strip() for part in destination.split(",")]
    country = parts[-1] if len(parts) > 1 else parts[0]
    return country or None


def compute_travel_stats(
    destinations: Iterable[str | None],
    declared_countries: Iterable[str] | None = None,
    lookup: Mapping[str, str] | None = None,
) -> TravelStats:
    """
    Pure aggregation over destinations and declared countries.

    Countries are matched case-sensitively. Countries missing from the lookup
    still count as visited but add no continent.
    """
    total_trips = 0
    countries: set[str] = set()
    for destination in destinations:
        total_trips += 1
        country = extract_country(destination)
        if country:
            countries.add(country)

    for country in declared_countries or ():
        if country and country.strip():
            countries.add(country.strip())

    table = lookup if lookup is not None else get_country_continent_map()
    continents = {
        continent
        for continent in (continent_for(country, table) for country in countries)
        if continent
    }

    return TravelStats(
        total_trips=total_trips,
        countries_visited=len(countries),
        continents_visited=len(continents),
    )


def _iter_destinations(db: Session, user_id: int, batch_size: int) -> Iterator[str | None]:
    """Stream a user's itinerary destinations in id order, one batch at a time."""
    last_id = 0
    while True:
        rows = db.execute(
            select(models.Itinerary.id, models.Itinerary.destination)
            .where(models.Itinerary.owner_id == user_id, models.Itinerary.id > last_id)
            .order_by(models.Itinerary.id)
            .limit(batch_size)
        ).all()
        if not rows:
            return
        for itinerary_id, destination in rows:
            yield destination
        last_id = rows[-1][0]
        if len(rows) < batch_size:
            return


def _declared_countries(db: Session, user_id: int) -> list[str]:
    declared = db.scalar(
        select(models.Profile.countries_explored).where(models.Profile.user_id == user_id)
    )
    return list(declared or [])


def write_travel_stats(db: Session, user_id: int) -> TravelStats:
    """
    Recompute and store travel figures without committing.

    For callers that already hold a transaction (itinerary writes, profile
    updates) so the figures change together with their inputs.
    """
    stats = compute_travel_stats(
        _iter_destinations(db, user_id, max(1, STATS_ITINERARY_BATCH_SIZE)),
        _declared_countries(db, user_id),
    )
    counters.ensure_user_statistics(db, user_id)
    (
        db.query(models.UserStatistics)
        .filter(models.UserStatistics.user_id == user_id)
        .update(stats.to_dict(), synchronize_session=False)
    )
    logger.debug(f"Travel stats for user {user_id}: {stats}")
    return stats


def recompute_statistics(db: Session, user_id: int) -> TravelStats:
    """
    Recompute and persist a user's travel statistics.

    Idempotent: running it twice with no intervening writes yields the same
    snapshot.

    Raises:
        NotFound: User does not exist
    """
    if db.get(models.User, user_id) is None:
        raise NotFound("User not found")
    with atomic(db):
        stats = write_travel_stats(db, user_id)
    logger.info(
        f"Recomputed travel stats for user {user_id}: "
        f"{stats.total_trips} trips, {stats.countries_visited} countries, "
        f"{stats.continents_visited} continents"
    )
    return stats


def get_statistics(db: Session, user_id: int) -> schemas.StatsSnapshot:
    """Current stored counters. Zeros if the user has no statistics row yet."""
    if db.get(models.User, user_id) is None:
        raise NotFound("User not found")
    row = (
        db.query(models.UserStatistics)
        .populate_existing()
        .filter(models.UserStatistics.user_id == user_id)
        .first()
    )
    if row is None:
        return schemas.StatsSnapshot(user_id=user_id)
    return schemas.StatsSnapshot.model_validate(row)


def reconcile_statistics(db: Session, user_id: int) -> schemas.StatsSnapshot:
    """
    Rebuild every counter of ``user_id`` from source tables.

    Repairs drift in ``total_followers``, ``total_following`` and
    ``total_posts`` by full recount, then recomputes the travel figures.
    """
    if db.get(models.User, user_id) is None:
        raise NotFound("User not found")

    with atomic(db):
        total_followers = db.scalar(
            select(func.count(models.Follow.id)).where(models.Follow.following_id == user_id)
        ) or 0
        total_following = db.scalar(
            select(func.count(models.Follow.id)).where(models.Follow.follower_id == user_id)
        ) or 0
        total_posts = db.scalar(
            select(func.count(models.Post.id)).where(
                models.Post.owner_id == user_id,
                models.Post.status == models.STATUS_ACTIVE,
            )
        ) or 0

        counters.ensure_user_statistics(db, user_id)
        (
            db.query(models.UserStatistics)
            .filter(models.UserStatistics.user_id == user_id)
            .update(
                {
                    "total_followers": total_followers,
                    "total_following": total_following,
                    "total_posts": total_posts,
                },
                synchronize_session=False,
            )
        )
        write_travel_stats(db, user_id)

    logger.info(
        f"Reconciled statistics for user {user_id}: "
        f"{total_followers} followers, {total_following} following, {total_posts} posts"
    )
    return get_statistics(db, user_id)
