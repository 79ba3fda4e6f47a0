"""Tests for the search orchestrator, driven by a fake browser session."""

import asyncio

import pytest

from gmaps_scraper.events import CollectingEventSink
from gmaps_scraper.exceptions import BrowserError, ConfigurationError
from gmaps_scraper.geo import GeocodeResult
from gmaps_scraper.models import SearchRequest
from gmaps_scraper.scraper import MapsScraper, SearchState, batch_size

from conftest import FakeExtractor, FakeGeocoder, FakeSession, make_record, place_url

CENTER = (40.0, -75.0)


def _inside(name, step):
    # ~111 m north per step
    return make_record(name, lat=CENTER[0] + 0.001 * step, lng=CENTER[1])


def _outside(name):
    # ~5.5 km north
    return make_record(name, lat=CENTER[0] + 0.05, lng=CENTER[1])


def _scraper(config, candidates, records, geocoder=None, **extractor_args):
    session = FakeSession([place_url(name) for name in candidates])
    extractor = FakeExtractor({place_url(name): rec for name, rec in records.items()}, **extractor_args)
    events = CollectingEventSink()
    scraper = MapsScraper(
        config,
        events=events,
        session_factory=lambda: session,
        geocoder=geocoder or FakeGeocoder(),
        extractor=extractor,
    )
    return scraper, session, extractor, events


def test_batch_size():
    assert batch_size(need=5, remaining=8, min_batch_size=5, overfetch_factor=1.5) == 8
    assert batch_size(need=10, remaining=30, min_batch_size=5, overfetch_factor=1.5) == 15
    assert batch_size(need=1, remaining=30, min_batch_size=5, overfetch_factor=1.5) == 5
    assert batch_size(need=1, remaining=2, min_batch_size=5, overfetch_factor=1.5) == 2


def test_radius_search_stops_once_enough_records_accepted(fast_config):
    order = ["in1", "in2", "out1", "in3", "in4", "out2", "in5", "out3"]
    records = {name: (_inside(name, i + 1) if name.startswith("in") else _outside(name))
               for i, name in enumerate(order)}
    scraper, session, extractor, events = _scraper(fast_config, order, records)

    request = SearchRequest.by_radius("coffee", CENTER[0], CENTER[1], 1000, max_results=5)
    result = asyncio.run(scraper.search(request))

    assert result.count == 5
    assert all(r.distance_from_center is not None and r.distance_from_center <= 1000 for r in result)
    assert {r.name for r in result} == {"in1", "in2", "in3", "in4", "in5"}
    assert result.final_state is SearchState.CONVERGED
    # Last candidate never visited
    assert len(extractor.calls) == 7
    assert place_url("out3") not in extractor.calls
    assert result.statistics["inspected"] == 7
    assert result.statistics["outside_radius"] == 2
    assert result.statistics["batches"] == 3
    assert "/@40.0,-75.0,15z" in session.opened_urls[0]


def test_radius_search_inspects_all_candidates_when_too_few_qualify(fast_config):
    order = ["in1", "out1", "out2", "in2", "out3", "in3", "out4", "out5"]
    records = {name: (_inside(name, i + 1) if name.startswith("in") else _outside(name))
               for i, name in enumerate(order)}
    scraper, _, extractor, _ = _scraper(fast_config, order, records)

    result = asyncio.run(scraper.search_by_radius("coffee", CENTER[0], CENTER[1], 1000, max_results=5))

    assert result.count == 3
    assert len(extractor.calls) == 8
    assert result.final_state is SearchState.EXHAUSTED


def test_radius_search_counts_unlocatable_records(fast_config):
    records = {"nowhere": make_record("nowhere"), "in1": _inside("in1", 1)}
    scraper, _, _, _ = _scraper(fast_config, ["nowhere", "in1"], records)

    result = asyncio.run(scraper.search_by_radius("coffee", CENTER[0], CENTER[1], 1000, max_results=5))

    assert [r.name for r in result] == ["in1"]
    assert result.statistics["unlocatable"] == 1
    assert result.statistics["outside_radius"] == 0


def test_state_transitions_are_emitted(fast_config):
    records = {"in1": _inside("in1", 1)}
    scraper, _, _, events = _scraper(fast_config, ["in1"], records)

    asyncio.run(scraper.search_by_radius("coffee", CENTER[0], CENTER[1], 1000, max_results=1))

    states = [e["state"] for e in events.of_kind("state")]
    assert states == ["resolving", "collecting_urls", "fetching_batch", "filtering", "converged", "done"]
    assert events.of_kind("complete") == [{"count": 1}]
    assert scraper.state is SearchState.DONE


def test_zipcode_search_filters_and_counts_substring_matches(fast_config):
    records = {
        "exact": make_record("exact", zip_code="90401"),
        "plus4": make_record("plus4", zip_code="90401-1234"),
        "loose": make_record("loose", full_address="Pier 90401 Santa Monica"),
        "other": make_record("other", zip_code="90402", full_address="2 Main St, CA 90402, USA"),
    }
    geocoder = FakeGeocoder(GeocodeResult(34.01, -118.49, "Santa Monica, CA 90401"))
    scraper, session, _, events = _scraper(fast_config, list(records), records, geocoder=geocoder)

    result = asyncio.run(scraper.search_by_zipcode("dentists", "90401", state="CA", max_results=10))

    assert sorted(r.name for r in result) == ["exact", "loose", "plus4"]
    assert result.statistics["postal_substring_matches"] == 1
    assert result.statistics["rejected"] == 1
    assert geocoder.queries == ["90401, CA"]
    assert "dentists+in+90401" in session.opened_urls[0]
    assert any("Santa Monica" in e["message"] for e in events.of_kind("info"))


def test_location_search_is_single_pass_with_retry(fast_config):
    names = ["a", "b", "c"]
    records = {name: make_record(name) for name in names}
    geocoder = FakeGeocoder(GeocodeResult(30.2672, -97.7431, "Austin, TX"))
    scraper, session, extractor, _ = _scraper(
        fast_config, names, records, geocoder=geocoder, fail_times={place_url("b"): 1},
    )

    result = asyncio.run(scraper.search_by_location("coffee", "Austin, TX", max_results=3))

    assert sorted(r.name for r in result) == ["a", "b", "c"]
    assert extractor.calls.count(place_url("b")) == 2
    assert result.statistics["batches"] == 1
    assert result.statistics["skipped"] == 0
    assert "/@30.2672,-97.7431,12z" in session.opened_urls[0]


def test_location_search_falls_back_to_text_url(fast_config):
    scraper, session, _, _ = _scraper(fast_config, ["a"], {"a": make_record("a")})

    asyncio.run(scraper.search_by_location("coffee", "Austin, TX", max_results=1))

    assert "coffee+in+Austin" in session.opened_urls[0]


def test_page_failure_is_isolated(fast_config):
    names = ["a", "broken", "c"]
    records = {name: make_record(name) for name in names}
    scraper, session, _, events = _scraper(
        fast_config, names, records, fail_times={place_url("broken"): 99},
    )

    result = asyncio.run(scraper.search_by_location("coffee", "Austin, TX", max_results=3))

    assert sorted(r.name for r in result) == ["a", "c"]
    assert result.statistics["skipped"] == 1
    assert any(place_url("broken") == e.get("url") for e in events.of_kind("error"))
    assert all(page.closed for page in session.detail_pages)


def test_slow_page_times_out_and_is_skipped(fast_config):
    config = fast_config.replace(page_timeout=0.05, retry_count=0)
    records = {"fast": make_record("fast"), "slow": make_record("slow")}
    scraper, _, _, events = _scraper(config, ["fast", "slow"], records, delays={place_url("slow"): 5})

    result = asyncio.run(scraper.search_by_location("coffee", "Austin, TX", max_results=2))

    assert [r.name for r in result] == ["fast"]
    assert any("Timed out" in e["message"] for e in events.of_kind("error"))


def test_concurrency_is_bounded(fast_config):
    config = fast_config.replace(max_concurrency=2)
    names = [f"p{i}" for i in range(8)]
    records = {name: make_record(name) for name in names}
    scraper, _, extractor, _ = _scraper(config, names, records, delays={place_url(n): 0.01 for n in names})

    result = asyncio.run(scraper.search_by_location("coffee", "Austin, TX", max_results=8))

    assert result.count == 8
    assert extractor.peak <= 2


def test_no_candidates_returns_empty_result(fast_config):
    scraper, _, extractor, events = _scraper(fast_config, [], {})

    result = asyncio.run(scraper.search_by_location("coffee", "Nowhere", max_results=5))

    assert result.count == 0
    assert result.final_state is SearchState.EXHAUSTED
    assert extractor.calls == []
    assert events.of_kind("warning")


def test_invalid_request_raises_before_any_work(fast_config):
    def no_session():
        raise AssertionError("browser must not be opened")

    scraper = MapsScraper(fast_config, events=CollectingEventSink(), session_factory=no_session,
                          geocoder=FakeGeocoder())

    with pytest.raises(ConfigurationError):
        asyncio.run(scraper.search(SearchRequest.by_location("", "Austin")))
    with pytest.raises(ConfigurationError):
        asyncio.run(scraper.search(SearchRequest.by_radius("coffee", 95.0, 0.0, 1000)))
    with pytest.raises(ConfigurationError):
        asyncio.run(scraper.search(SearchRequest.by_zipcode("coffee", "")))


class UnlaunchableSession:
    async def __aenter__(self):
        raise BrowserError("Could not launch browser: chromium missing")

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


def test_browser_launch_failure_returns_empty_result(fast_config):
    events = CollectingEventSink()
    extractor = FakeExtractor({})
    scraper = MapsScraper(fast_config, events=events, session_factory=UnlaunchableSession,
                          geocoder=FakeGeocoder(), extractor=extractor)

    result = asyncio.run(scraper.search(SearchRequest.by_radius("coffee", 40.0, -75.0, 1000, 5)))

    assert result.count == 0
    assert result.final_state is SearchState.EXHAUSTED
    assert "chromium missing" in result.statistics["error"]
    assert extractor.calls == []
    assert any("chromium missing" in e["message"] for e in events.of_kind("error"))
    assert events.of_kind("complete") == [{"count": 0}]


def test_search_result_to_dict(fast_config):
    records = {"in1": _inside("in1", 1)}
    scraper, _, _, _ = _scraper(fast_config, ["in1"], records)

    result = asyncio.run(scraper.search_by_radius("coffee", CENTER[0], CENTER[1], 1000, max_results=1))
    data = result.to_dict()

    assert data["count"] == 1
    assert data["state"] == "converged"
    assert data["request"]["searchType"] == "radius"
    assert data["results"][0]["distanceFromCenter"] == 111
