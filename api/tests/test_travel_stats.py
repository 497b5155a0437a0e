"""Test travel statistics aggregation and counter reconciliation."""

from __future__ import annotations

import json

import pytest
from sqlalchemy.orm import Session

from wayfarer import countries, models, schemas
from wayfarer.errors import NotFound
from wayfarer.services import accounts, content, follow_graph, travel_stats
from wayfarer.services.travel_stats import (
    TravelStats,
    compute_travel_stats,
    extract_country,
    get_statistics,
)


@pytest.mark.parametrize(
    "destination, expected",
    [
        ("Kyoto, Japan", "Japan"),
        ("Paris, Texas", "Texas"),
        ("Iceland", "Iceland"),
        ("  Lisbon ,  Portugal  ", "Portugal"),
        ("Somewhere,", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_country(destination, expected):
    assert extract_country(destination) == expected


def test_compute_counts_trips_countries_and_continents():
    stats = compute_travel_stats(
        ["Kyoto, Japan", "Osaka, Japan", "Lima, Peru", None, "Atlantis"],
        declared_countries=["France", "Japan"],
    )

    assert stats == TravelStats(total_trips=5, countries_visited=4, continents_visited=3)


def test_unknown_country_counts_without_continent():
    lookup = {"Japan": "Asia"}
    stats = compute_travel_stats(["Kyoto, Japan", "Reykjavik, Iceland"], lookup=lookup)

    assert stats.countries_visited == 2
    assert stats.continents_visited == 1


def test_country_matching_is_case_sensitive():
    stats = compute_travel_stats(["Tokyo, Japan", "Nara, japan"])

    assert stats.countries_visited == 2
    assert stats.continents_visited == 1


def test_load_country_continent_map(tmp_path):
    path = tmp_path / "map.json"
    path.write_text(json.dumps({"Narnia": "Fantasia"}), encoding="utf-8")

    lookup = countries.load_country_continent_map(path)

    assert countries.continent_for("Narnia", lookup) == "Fantasia"
    assert countries.continent_for("Japan", lookup) is None


def test_load_country_continent_map_rejects_lists(tmp_path):
    path = tmp_path / "map.json"
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(ValueError):
        countries.load_country_continent_map(path)


def _itinerary(db: Session, owner: models.User, destination: str | None) -> models.Itinerary:
    return content.create_itinerary(
        db, owner.id, schemas.ItineraryCreate(title=destination or "Untitled", destination=destination)
    )


def test_itinerary_writes_refresh_statistics(db: Session, make_user):
    user = make_user("nomad")

    kyoto = _itinerary(db, user, "Kyoto, Japan")
    _itinerary(db, user, "Cusco, Peru")
    stats = get_statistics(db, user.id)
    assert (stats.total_trips, stats.countries_visited, stats.continents_visited) == (2, 2, 2)

    content.update_itinerary(db, kyoto.id, user.id, schemas.ItineraryUpdate(destination="Lima, Peru"))
    stats = get_statistics(db, user.id)
    assert (stats.total_trips, stats.countries_visited, stats.continents_visited) == (2, 1, 1)

    content.delete_itinerary(db, kyoto.id, user.id)
    stats = get_statistics(db, user.id)
    assert (stats.total_trips, stats.countries_visited, stats.continents_visited) == (1, 1, 1)


def test_declared_countries_feed_statistics(db: Session, make_user):
    user = make_user("nomad")
    _itinerary(db, user, "Kyoto, Japan")

    profile = accounts.update_profile(
        db, user.id, schemas.ProfileUpdate(countries_explored=["Kenya", "Japan", "Kenya", " "])
    )

    assert profile.countries_explored == ["Kenya", "Japan"]
    assert profile.statistics.countries_visited == 2
    assert profile.statistics.continents_visited == 2
    assert profile.statistics.total_trips == 1


def test_recompute_is_idempotent(db: Session, make_user):
    user = make_user("nomad")
    _itinerary(db, user, "Kyoto, Japan")
    _itinerary(db, user, "Nairobi, Kenya")

    first = travel_stats.recompute_statistics(db, user.id)
    snapshot = get_statistics(db, user.id)
    second = travel_stats.recompute_statistics(db, user.id)

    assert first == second
    assert get_statistics(db, user.id) == snapshot


def test_recompute_streams_in_batches(db: Session, make_user, monkeypatch):
    user = make_user("nomad")
    for city in ("Rome, Italy", "Oslo, Norway", "Quito, Ecuador", "Hanoi, Vietnam", "Perth, Australia"):
        _itinerary(db, user, city)

    monkeypatch.setattr(travel_stats, "STATS_ITINERARY_BATCH_SIZE", 2)
    stats = travel_stats.recompute_statistics(db, user.id)

    assert stats == TravelStats(total_trips=5, countries_visited=5, continents_visited=4)


def test_recompute_unknown_user(db: Session):
    with pytest.raises(NotFound):
        travel_stats.recompute_statistics(db, 999)
    with pytest.raises(NotFound):
        get_statistics(db, 999)


def test_reconcile_repairs_drift(db: Session, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    follow_graph.follow_user(db, alice.id, bob.id)
    content.create_post(db, bob.id, schemas.PostCreate(caption="one"))
    _itinerary(db, bob, "Kyoto, Japan")

    db.query(models.UserStatistics).filter(models.UserStatistics.user_id == bob.id).update(
        {
            "total_followers": 7,
            "total_following": 3,
            "total_posts": 0,
            "total_trips": 9,
            "countries_visited": 0,
        },
        synchronize_session=False,
    )
    db.commit()

    repaired = travel_stats.reconcile_statistics(db, bob.id)

    assert repaired.total_followers == 1
    assert repaired.total_following == 0
    assert repaired.total_posts == 1
    assert repaired.total_trips == 1
    assert repaired.countries_visited == 1
    assert repaired.continents_visited == 1


def test_declared_countries_trimmed_but_case_sensitive():
    stats = compute_travel_stats(
        ["Kyoto, Japan"], declared_countries=[" Japan ", "japan", "\t", ""]
    )

    # " Japan " merges with the destination's "Japan"; "japan" stays distinct
    assert stats.countries_visited == 2
    assert stats.continents_visited == 1
