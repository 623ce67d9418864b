import pytest

from app.core.exceptions import InvalidArgumentError
from app.modules.recommendations.schemas.recommendation import GeoPoint, MemberConstraints
from app.modules.recommendations.services.aggregator import (
    aggregate,
    compute_centroid,
    derive_category_hints,
    format_time_of_day,
    haversine_meters,
    max_affordable_tier,
    miles_to_meters,
    rank_candidates,
    reduce_constraints,
)

from conftest import FailingPlaceSearch, FakePlaceSearch, make_place


def _responses(prices, distances, times, preferences=None):
    preferences = preferences or [""] * len(prices)
    return [
        MemberConstraints(price_limit=p, distance_limit=d, time_of_day=t, preferences=pref)
        for p, d, t, pref in zip(prices, distances, times, preferences)
    ]


def test_effective_constraints_are_the_strictest():
    constraints = reduce_constraints(_responses([20, 50, 30], [5, 10, 3], [9, 13, 20]))

    assert constraints.price_ceiling == 20
    assert constraints.distance_ceiling == 3
    assert constraints.time_of_day == 13
    assert constraints.time_of_day_label == "1:00 PM"
    assert constraints.max_price_tier == 1


def test_median_of_even_count_is_the_midpoint():
    constraints = reduce_constraints(_responses([10, 10], [1, 1], [12, 15]))
    assert constraints.time_of_day == 13.5
    assert constraints.time_of_day_label == "1:30 PM"


def test_reduce_accepts_plain_dicts_and_skips_blank_preferences():
    constraints = reduce_constraints([
        {"price_limit": 40, "distance_limit": 2, "time_of_day": 18, "preferences": "live music"},
        {"price_limit": 25, "distance_limit": 4, "time_of_day": 19, "preferences": "   "},
        {"price_limit": 60, "distance_limit": 6, "time_of_day": 20, "preferences": "good food"},
    ])
    assert constraints.preferences == "live music; good food"
    assert constraints.category_hints == ["night_club", "restaurant"]


def test_reduce_with_no_responses_is_invalid():
    with pytest.raises(InvalidArgumentError):
        reduce_constraints([])


def test_centroid_is_the_arithmetic_mean():
    centroid = compute_centroid([GeoPoint(lat=40.0, lng=-74.0), GeoPoint(lat=42.0, lng=-72.0)])
    assert centroid.lat == pytest.approx(41.0)
    assert centroid.lng == pytest.approx(-73.0)


def test_aggregate_with_no_locations_is_invalid():
    with pytest.raises(InvalidArgumentError):
        aggregate([], _responses([20], [5], [12]), FakePlaceSearch())


def test_haversine_one_degree_of_latitude():
    distance = haversine_meters(GeoPoint(lat=0, lng=0), GeoPoint(lat=1, lng=0))
    assert distance == pytest.approx(111195, rel=1e-3)
    assert haversine_meters(GeoPoint(lat=10, lng=10), GeoPoint(lat=10, lng=10)) == 0


@pytest.mark.parametrize("ceiling, tier", [(0, 0), (14.99, 0), (15, 1), (45, 2), (60, 3), (500, 4)])
def test_max_affordable_tier(ceiling, tier):
    assert max_affordable_tier(ceiling) == tier


@pytest.mark.parametrize("value, label", [
    (0, "12:00 AM"),
    (9.25, "9:15 AM"),
    (12, "12:00 PM"),
    (13.5, "1:30 PM"),
    (23.75, "11:45 PM"),
])
def test_format_time_of_day(value, label):
    assert format_time_of_day(value) == label


def test_category_hints_follow_mention_order():
    assert derive_category_hints("Coffee, then hiking and a movie") == ["cafe", "park", "movie_theater"]
    assert derive_category_hints("") == []
    assert derive_category_hints("board games and books and bowling and art", limit=2) == ["amusement_center", "book_store"]


def test_ranking_filters_and_orders_candidates():
    centroid = GeoPoint(lat=40.0, lng=-74.0)
    constraints = reduce_constraints(_responses([30], [1], [18]))
    places = [
        make_place("Too Far", 40.02, -74.0, price_tier=0, rating=5.0),
        make_place("Too Pricey", 40.001, -74.0, price_tier=3, rating=5.0),
        make_place("Close Unrated", 40.002, -74.0, price_tier=None, rating=None),
        make_place("Close Rated", 40.002, -74.0, price_tier=2, rating=4.0),
        make_place("Closest", 40.0005, -74.0, price_tier=1, rating=3.5),
        make_place("Close Better Rated", 40.002, -74.0, price_tier=1, rating=4.5),
    ]

    ranked = rank_candidates(places, centroid, constraints, limit=10)

    assert [c.name for c in ranked] == ["Closest", "Close Better Rated", "Close Rated", "Close Unrated"]
    assert ranked[0].distance_from_centroid < ranked[1].distance_from_centroid
    assert all(c.distance_from_centroid <= miles_to_meters(1) for c in ranked)


def test_ranking_keeps_search_order_for_ties_and_caps():
    centroid = GeoPoint(lat=40.0, lng=-74.0)
    constraints = reduce_constraints(_responses([100], [5], [12]))
    places = [make_place(f"Spot {i}", 40.0, -74.0, price_tier=1, rating=4.0) for i in range(8)]

    ranked = rank_candidates(places, centroid, constraints, limit=5)

    assert [c.name for c in ranked] == [f"Spot {i}" for i in range(5)]


def test_aggregate_searches_around_the_centroid():
    search = FakePlaceSearch([make_place("Midpoint Cafe", 41.0, -73.0, price_tier=1, rating=4.0)])
    locations = [GeoPoint(lat=40.0, lng=-74.0), GeoPoint(lat=42.0, lng=-72.0)]

    result = aggregate(locations, _responses([20, 40], [200, 300], [10, 11], ["coffee", ""]), search, limit=3)

    call = search.calls[0]
    assert call["center"].lat == pytest.approx(41.0)
    assert call["radius_meters"] == pytest.approx(miles_to_meters(200))
    assert call["category_hints"] == ["cafe"]
    assert call["keyword"] == "coffee"
    assert result.used_fallback is False
    assert [c.name for c in result.candidates] == ["Midpoint Cafe"]


def test_aggregate_empty_search_is_a_valid_result():
    result = aggregate([GeoPoint(lat=40.0, lng=-74.0)], _responses([20], [5], [12]), FakePlaceSearch([]))
    assert result.candidates == []
    assert result.used_fallback is False


def test_aggregate_falls_back_when_search_fails():
    search = FailingPlaceSearch()
    result = aggregate([GeoPoint(lat=40.0, lng=-74.0)], _responses([0], [5], [12]), search)

    assert search.calls == 1
    assert result.used_fallback is True
    # Only free places fit a zero budget
    assert sorted(c.name for c in result.candidates) == ["Central Park Picnic", "Community Center"]
    assert all(c.location == result.centroid for c in result.candidates)


@pytest.mark.parametrize("text", ["ready when you are", "barely awake", "artificial light", "parking nearby", "gamer night"])
def test_category_hints_ignore_words_that_only_start_with_a_keyword(text):
    assert derive_category_hints(text) == []


def test_category_hints_accept_plurals():
    assert derive_category_hints("museums, sports and reading") == ["museum", "stadium", "library"]
