import pytest

from itinerary_engine.agents.route_optimizer import (
    day_summary,
    estimate_travel,
    format_cost,
    format_duration,
    haversine_km,
    nearest_neighbor_order,
    optimize_day,
    visit_minutes_for,
)
from itinerary_engine.schemas import Coordinate, RecommendedPlace

SEOUL = Coordinate(lat=37.5665, lng=126.9780)
BUSAN = Coordinate(lat=35.1796, lng=129.0756)


def _stop(pid, lat, lng, bucket="attraction", category="") -> RecommendedPlace:
    return RecommendedPlace(id=pid, name=pid, bucket=bucket, category=category, lat=lat, lng=lng)


def _scattered_stops():
    return [
        _stop("far-east", 33.50, 126.90),
        _stop("near", 33.50, 126.52),
        _stop("middle", 33.52, 126.65),
        _stop("north", 33.60, 126.55, bucket="food"),
        _stop("south", 33.30, 126.55, bucket="cafe"),
        _stop("west", 33.45, 126.30, bucket="shopping"),
    ]


def test_haversine_is_symmetric_and_zero_on_identity():
    assert haversine_km(SEOUL, BUSAN) == pytest.approx(haversine_km(BUSAN, SEOUL))
    assert haversine_km(SEOUL, SEOUL) == 0
    assert 320 < haversine_km(SEOUL, BUSAN) < 330


def test_each_step_picks_the_closest_unvisited_stop():
    start = Coordinate(lat=33.50, lng=126.50)
    stops = _scattered_stops()
    ordered = nearest_neighbor_order(start, stops)

    assert sorted(s.id for s in ordered) == sorted(s.id for s in stops)
    current = start
    remaining = list(ordered)
    for chosen in ordered:
        chosen_distance = haversine_km(current, chosen.coordinate)
        assert all(chosen_distance <= haversine_km(current, other.coordinate) for other in remaining)
        remaining.remove(chosen)
        current = chosen.coordinate


def test_optimize_day_attaches_segments_from_start():
    start = Coordinate(lat=33.50, lng=126.50)
    ordered = optimize_day(_scattered_stops(), start, "walking")

    assert ordered[0].id == "near"
    first = ordered[0].segment
    assert first is not None and first.mode == "walking"
    assert first.distance_km == pytest.approx(round(haversine_km(start, ordered[0].coordinate), 1))
    for previous, stop in zip(ordered, ordered[1:]):
        expected = estimate_travel(previous.coordinate, stop.coordinate, "walking")
        assert stop.segment == expected
    assert all(s.visit_minutes > 0 for s in ordered)


def test_optimize_day_with_no_stops():
    assert optimize_day([], SEOUL, "driving") == []


def test_mode_estimates():
    a = Coordinate(lat=37.0, lng=127.0)
    b = Coordinate(lat=37.09, lng=127.0)  # roughly 10 km
    driving = estimate_travel(a, b, "driving")
    walking = estimate_travel(a, b, "walking")
    bicycle = estimate_travel(a, b, "bicycle")
    transit = estimate_travel(a, b, "transit")
    taxi = estimate_travel(a, b, "taxi")

    assert driving.duration_minutes == 25  # 10 km at 25 km/h
    assert driving.cost == 5004
    assert walking.cost == 0 and walking.duration_minutes == 151
    assert bicycle.cost == 0 and bicycle.duration_minutes == 41
    assert transit.duration_minutes == 44
    assert transit.cost == 2000  # just over the 10 km band
    assert taxi.duration_minutes == 22
    assert taxi.cost == 4800 + 10008
    assert walking.duration_minutes > bicycle.duration_minutes > driving.duration_minutes


def test_long_drives_use_highway_speed():
    segment = estimate_travel(SEOUL, BUSAN, "driving")
    # 60 km/h means roughly one minute per kilometre
    assert segment.duration_minutes == pytest.approx(segment.distance_km, rel=0.01)


def test_unknown_mode_falls_back_to_driving():
    assert estimate_travel(SEOUL, BUSAN, "hovercraft").mode == "driving"


def test_visit_duration_table():
    assert visit_minutes_for(_stop("x", 0, 0, bucket="shopping")) == 120
    assert visit_minutes_for(_stop("x", 0, 0, bucket="cafe")) == 45
    assert visit_minutes_for(_stop("x", 0, 0, bucket="food")) == 90
    assert visit_minutes_for(_stop("x", 0, 0, bucket="culture", category="문화,예술 > 박물관")) == 90
    assert visit_minutes_for(_stop("x", 0, 0, category="여행 > 테마파크")) == 180
    assert visit_minutes_for(_stop("x", 0, 0)) == 60


def test_day_total_is_travel_plus_visits_and_repeatable():
    ordered = optimize_day(_scattered_stops(), Coordinate(lat=33.5, lng=126.5), "driving")

    first = day_summary(ordered)
    second = day_summary(ordered)

    expected_travel = sum(s.segment.duration_minutes for s in ordered)
    expected_visit = sum(s.visit_minutes for s in ordered)
    assert first == second
    assert first.total_minutes == expected_travel + expected_visit
    assert first.stops == len(ordered)


def test_formatting_helpers():
    assert format_duration(45) == "45min"
    assert format_duration(90) == "1h 30min"
    assert format_duration(120) == "2h"
    assert format_cost(12000) == "12,000 KRW"
