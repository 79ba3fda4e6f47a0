"""
Structured progress events.

The scraper reports progress by calling on_event(kind, payload) on the sink
it was given. Transports decide what to do with the events: print them,
store them on a session, stream them to a browser.

Kinds:
    state     - orchestrator state transition   {"state": ...}
    info      - informational message           {"message": ...}
    progress  - detail-fetch progress           {"current", "total", "name"}
    warning   - non-fatal problem               {"message": ...}
    error     - page or phase failure           {"message": ..., "url"?}
    complete  - search finished                 {"count": ...}
"""

import sys
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict, List, Optional, Tuple

EVENT_KINDS = ("state", "info", "progress", "warning", "error", "complete")


class EventSink:
    """Receives scraper events. Subclasses override on_event."""

    def on_event(self, kind: str, payload: Dict[str, Any]) -> None:
        raise NotImplementedError

    def info(self, message: str, **extra):
        self.on_event("info", {"message": message, **extra})

    def warning(self, message: str, **extra):
        self.on_event("warning", {"message": message, **extra})

    def error(self, message: str, **extra):
        self.on_event("error", {"message": message, **extra})


class NullEventSink(EventSink):
    def on_event(self, kind, payload):
        pass


class ConsoleEventSink(EventSink):
    """Prints events the way the command line tools always have."""

    def __init__(self, verbose: bool = True, stream=None):
        self.verbose = verbose
        self.stream = stream

    def _print(self, text: str, err: bool = False):
        stream = self.stream or (sys.stderr if err else sys.stdout)
        try:
            print(text, file=stream)
        except UnicodeEncodeError:
            print(text.encode("ascii", "replace").decode("ascii"), file=stream)

    def on_event(self, kind, payload):
        if kind == "error":
            # Errors are shown even in quiet mode
            self._print(f"  [!] {payload.get('message', '')}", err=True)
            return
        if not self.verbose:
            return

        if kind == "state":
            self._print(f"\n[{payload.get('state', '').upper()}]")
        elif kind == "progress":
            name = payload.get("name") or payload.get("phase") or ""
            self._print(f"  Progress: [{payload.get('current')}/{payload.get('total')}] {name[:40]}")
        elif kind == "warning":
            self._print(f"  [!] {payload.get('message', '')}")
        elif kind == "complete":
            self._print(f"\n  [OK] Found {payload.get('count', 0)} businesses")
        else:
            self._print(f"  {payload.get('message', '')}")


class CollectingEventSink(EventSink):
    """Keeps every event in memory, in order."""

    def __init__(self):
        self.events: List[Tuple[str, Dict[str, Any]]] = []
        self._lock = Lock()

    def on_event(self, kind, payload):
        with self._lock:
            self.events.append((kind, dict(payload)))

    def of_kind(self, kind: str) -> List[Dict[str, Any]]:
        return [payload for k, payload in self.events if k == kind]


class MultiEventSink(EventSink):
    """Fans events out to several sinks."""

    def __init__(self, *sinks: Optional[EventSink]):
        self.sinks = [s for s in sinks if s is not None]

    def on_event(self, kind, payload):
        for sink in self.sinks:
            sink.on_event(kind, payload)


def make_log_entry(kind: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Timestamped, JSON-ready form of an event (used by session logs)."""
    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "type": kind,
    }
    entry.update(payload)
    return entry
