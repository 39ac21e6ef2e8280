import math
import random
from concurrent.futures import ThreadPoolExecutor

import pytest

from vehpos.geometry import Position, haversine_distance
from vehpos.nearest import QueryResult, find_batch, find_nearest, nearest_with_distance
from vehpos.record_store import PositionRecord, RecordStore, decode_store


@pytest.fixture
def two_vehicle_store(dump):
    return decode_store(dump([("A", 34.0, -102.0, 1), ("B", 32.0, -99.0, 2)]))


@pytest.fixture
def fleet_store():
    rng = random.Random(42)
    records = {}
    for i in range(500):
        registration = f"V{i:05d}"
        records[registration] = PositionRecord(
            registration=registration,
            latitude=rng.uniform(30.0, 37.0),
            longitude=rng.uniform(-104.0, -94.0),
            recorded_at=i,
        )
    return RecordStore(records)


@pytest.fixture
def fleet_queries():
    rng = random.Random(7)
    return [(rng.uniform(30.0, 37.0), rng.uniform(-104.0, -94.0)) for _ in range(40)]


def brute_force(store, latitude, longitude):
    return min(
        store.records,
        key=lambda r: haversine_distance(latitude, longitude, r.latitude, r.longitude),
    )


def test_find_nearest_two_vehicle_scenario(two_vehicle_store):
    assert find_nearest(two_vehicle_store, 34.544909, -102.100843).registration == "A"
    assert find_nearest(two_vehicle_store, 32.345544, -99.123124).registration == "B"


def test_find_batch_two_vehicle_scenario(two_vehicle_store):
    results = find_batch(
        two_vehicle_store, [(34.544909, -102.100843), (32.345544, -99.123124)]
    )

    assert [r.record.registration for r in results] == ["A", "B"]
    assert results[0].query == Position(34.544909, -102.100843)
    assert results[0].distance_km == pytest.approx(
        haversine_distance(34.544909, -102.100843, 34.0, -102.0)
    )
    assert all(r.found for r in results)


def test_find_nearest_empty_store_returns_none():
    assert find_nearest(RecordStore.empty(), 0.0, 0.0) is None
    assert find_nearest(RecordStore.empty(), 45.0, 90.0, scan_workers=4) is None


def test_find_batch_empty_store_returns_no_result_per_query():
    queries = [(1.0, 2.0), (3.0, 4.0), (5.0, 6.0)]
    results = find_batch(RecordStore.empty(), queries, workers=3)

    assert len(results) == 3
    for result, (lat, lon) in zip(results, queries):
        assert result == QueryResult(query=Position(lat, lon), record=None, distance_km=None)
        assert not result.found


def test_find_batch_empty_query_list(two_vehicle_store):
    assert find_batch(two_vehicle_store, []) == []


def test_find_nearest_matches_brute_force(fleet_store, fleet_queries):
    for lat, lon in fleet_queries:
        assert find_nearest(fleet_store, lat, lon) == brute_force(fleet_store, lat, lon)


@pytest.mark.parametrize("workers", [1, 2, 8, None])
def test_find_batch_preserves_query_order(fleet_store, fleet_queries, workers):
    results = find_batch(fleet_store, fleet_queries, workers=workers)

    assert [tuple(r.query) for r in results] == fleet_queries
    for result, (lat, lon) in zip(results, fleet_queries):
        assert result.record == brute_force(fleet_store, lat, lon)


@pytest.mark.parametrize(
    "options",
    [
        {"workers": 4},
        {"workers": 4, "scan_workers": 3, "chunk_size": 17},
        {"workers": 1, "scan_workers": 4, "chunk_size": 1},
        {"workers": 16, "scan_workers": 2, "chunk_size": 499},
    ],
)
def test_sequential_and_parallel_results_are_identical(fleet_store, fleet_queries, options):
    sequential = find_batch(fleet_store, fleet_queries, workers=1)
    parallel = find_batch(fleet_store, fleet_queries, **options)

    assert [r.record.registration for r in parallel] == [
        r.record.registration for r in sequential
    ]
    assert [r.distance_km for r in parallel] == [r.distance_km for r in sequential]


def test_chunked_scan_matches_single_loop(fleet_store, fleet_queries):
    for lat, lon in fleet_queries[:10]:
        single = find_nearest(fleet_store, lat, lon)
        chunked = find_nearest(fleet_store, lat, lon, scan_workers=4, chunk_size=23)
        assert chunked == single


def test_exact_tie_returns_a_minimal_record():
    store = RecordStore(
        {
            "EAST": PositionRecord("EAST", 0.0, 1.0, 0),
            "WEST": PositionRecord("WEST", 0.0, -1.0, 0),
        }
    )

    sequential = find_nearest(store, 0.0, 0.0)
    chunked = find_nearest(store, 0.0, 0.0, scan_workers=2, chunk_size=1)

    assert sequential.registration in {"EAST", "WEST"}
    assert chunked == sequential


def test_nearest_with_distance_returns_record_and_km(two_vehicle_store):
    record, distance = nearest_with_distance(two_vehicle_store, 34.0, -102.0)
    assert record.registration == "A"
    assert distance == pytest.approx(0.0, abs=1e-6)


def test_nearest_with_distance_empty_store():
    assert nearest_with_distance(RecordStore.empty(), 10.0, 10.0) is None


def test_queries_may_be_positions(two_vehicle_store):
    results = find_batch(two_vehicle_store, [Position(34.0, -102.0)])
    assert results[0].record.registration == "A"


@pytest.mark.parametrize(
    "options",
    [{"workers": 0}, {"scan_workers": 0}, {"chunk_size": 0}, {"workers": -2}],
)
def test_find_batch_rejects_non_positive_settings(two_vehicle_store, options):
    with pytest.raises(ValueError):
        find_batch(two_vehicle_store, [(0.0, 0.0)], **options)


def test_find_nearest_rejects_non_positive_scan_workers(two_vehicle_store):
    with pytest.raises(ValueError):
        find_nearest(two_vehicle_store, 0.0, 0.0, scan_workers=0)


def test_store_is_not_modified_by_search(fleet_store, fleet_queries):
    before = dict(fleet_store)
    find_batch(fleet_store, fleet_queries, workers=8, scan_workers=4, chunk_size=10)
    assert dict(fleet_store) == before


@pytest.fixture
def store_with_bad_coordinates():
    return RecordStore(
        {
            "BADNAN": PositionRecord("BADNAN", math.nan, 0.0, 0),
            "BADINF": PositionRecord("BADINF", math.inf, 0.0, 0),
            "GOOD": PositionRecord("GOOD", 34.0, -102.0, 0),
            "NEGINF": PositionRecord("NEGINF", 10.0, -math.inf, 0),
        }
    )


@pytest.mark.parametrize(
    "options",
    [{}, {"scan_workers": 2, "chunk_size": 1}, {"scan_workers": 3, "chunk_size": 2}],
)
def test_non_finite_records_never_beat_a_real_record(store_with_bad_coordinates, options):
    record = find_nearest(store_with_bad_coordinates, 34.0, -102.0, **options)
    assert record.registration == "GOOD"


def test_non_finite_records_do_not_break_batch(store_with_bad_coordinates):
    queries = [(34.0, -102.0), (0.0, 0.0), (-45.0, 170.0)]
    sequential = find_batch(store_with_bad_coordinates, queries, workers=1)
    chunked = find_batch(
        store_with_bad_coordinates, queries, workers=3, scan_workers=2, chunk_size=1
    )

    assert [r.record.registration for r in sequential] == ["GOOD"] * 3
    assert chunked == sequential
    assert all(math.isfinite(r.distance_km) for r in sequential)


def test_only_non_finite_records_returns_first_consistently():
    store = RecordStore(
        {
            "NAN1": PositionRecord("NAN1", math.nan, 0.0, 0),
            "INF2": PositionRecord("INF2", math.inf, 0.0, 0),
        }
    )

    sequential = nearest_with_distance(store, 1.0, 1.0)
    with ThreadPoolExecutor(max_workers=2) as pool:
        chunked = nearest_with_distance(store, 1.0, 1.0, chunk_size=1, executor=pool)

    assert sequential[0].registration == "NAN1"
    assert sequential[1] == math.inf
    assert chunked[0] is sequential[0]
