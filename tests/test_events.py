"""Tests for event sinks."""

import io

from gmaps_scraper.events import CollectingEventSink, ConsoleEventSink, MultiEventSink, NullEventSink


def test_console_sink_prints_progress_and_completion():
    stream = io.StringIO()
    sink = ConsoleEventSink(verbose=True, stream=stream)

    sink.on_event("state", {"state": "collecting_urls"})
    sink.on_event("progress", {"current": 2, "total": 5, "name": "Blue Bottle"})
    sink.warning("slow page")
    sink.on_event("complete", {"count": 5})

    output = stream.getvalue()
    assert "[COLLECTING_URLS]" in output
    assert "[2/5] Blue Bottle" in output
    assert "[!] slow page" in output
    assert "[OK] Found 5 businesses" in output


def test_quiet_console_sink_still_prints_errors():
    stream = io.StringIO()
    sink = ConsoleEventSink(verbose=False, stream=stream)

    sink.info("hidden")
    sink.error("page crashed")

    assert stream.getvalue() == "  [!] page crashed\n"


def test_multi_sink_fans_out_and_skips_none():
    first, second = CollectingEventSink(), CollectingEventSink()
    sink = MultiEventSink(first, None, second, NullEventSink())

    sink.info("hello")

    assert first.of_kind("info") == [{"message": "hello"}]
    assert second.of_kind("info") == [{"message": "hello"}]
