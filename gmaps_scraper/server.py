"""
FastAPI Server for Google Maps Business Scraper

Provides API endpoints for:
- Starting a scrape in the background
- Streaming its log as server-sent events
- Fetching and exporting its results
"""

import asyncio
import json
from typing import Any, Callable, Optional

from fastapi import BackgroundTasks, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import BaseModel

from .config import DEFAULT_CLI_MAX_RESULTS
from .config_manager import ScraperConfig
from .events import ConsoleEventSink, EventSink, MultiEventSink
from .exceptions import ConfigurationError
from .export import records_to_csv, records_to_json, get_timestamp
from .models import SearchRequest
from .scraper import MapsScraper
from .sessions import (
    STATUS_COMPLETED,
    STATUS_ERROR,
    InMemorySessionStore,
    SessionEventSink,
    SessionStore,
)

SSE_POLL_INTERVAL = 0.5

ScraperFactory = Callable[[EventSink], Any]


# Request Models
class ScrapeRequest(BaseModel):
    searchType: str = "location"
    query: Optional[str] = None
    maxResults: Optional[int] = None
    location: Optional[str] = None
    zipCode: Optional[str] = None
    state: Optional[str] = None
    countryName: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radiusMeters: Optional[int] = None


def default_scraper_factory(events: EventSink) -> MapsScraper:
    return MapsScraper(ScraperConfig(verbose=False), events=events)


def create_app(store: SessionStore = None, scraper_factory: ScraperFactory = None) -> FastAPI:
    """
    Build the API application.

    Args:
        store: Session storage (in-memory when omitted)
        scraper_factory: events -> object with async search(request)

    Returns:
        FastAPI app
    """
    store = store or InMemorySessionStore()
    scraper_factory = scraper_factory or default_scraper_factory

    app = FastAPI(title="Google Maps Business Scraper API")
    app.state.store = store

    # Enable CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": "Invalid request body"})

    async def run_scrape(session_id: str, request: SearchRequest):
        events = MultiEventSink(SessionEventSink(store, session_id), ConsoleEventSink(verbose=False))
        try:
            scraper = scraper_factory(events)
            result = await scraper.search(request)
            if result.statistics.get("error"):
                store.update(session_id, status=STATUS_ERROR, error=result.statistics["error"])
            else:
                store.update(session_id, status=STATUS_COMPLETED, results=list(result.records))
        except Exception as e:
            store.update(session_id, status=STATUS_ERROR, error=str(e))
            events.error(f"Scrape failed: {e}")

    def get_session_or_404(session_id: str):
        session = store.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail="Session not found")
        return session

    # API Endpoints
    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    @app.post("/api/scrape")
    async def start_scrape(body: ScrapeRequest, background_tasks: BackgroundTasks):
        """Validate a search and start it in the background."""
        try:
            request = SearchRequest.from_dict(body.model_dump(), default_max_results=DEFAULT_CLI_MAX_RESULTS)
            request.validate()
        except ConfigurationError as e:
            raise HTTPException(status_code=400, detail=str(e))

        session = store.create(request)
        background_tasks.add_task(run_scrape, session.id, request)
        return {"sessionId": session.id, "message": "Scraping started"}

    @app.get("/api/logs/{session_id}")
    async def stream_logs(session_id: str):
        """Replay the session log, then follow it until the session finishes."""
        get_session_or_404(session_id)

        async def event_stream():
            index = 0
            while True:
                entries = store.logs_since(session_id, index)
                for entry in entries:
                    yield f"data: {json.dumps(entry, ensure_ascii=False)}\n\n"
                index += len(entries)

                session = store.get(session_id)
                if session is None or (session.finished and not entries):
                    break
                await asyncio.sleep(SSE_POLL_INTERVAL)

        return StreamingResponse(
            event_stream(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    @app.get("/api/results/{session_id}")
    async def get_results(session_id: str):
        session = get_session_or_404(session_id)
        body = {
            "status": session.status,
            "results": [record.to_dict() for record in session.results],
            "count": len(session.results),
            "startedAt": session.started_at,
        }
        if session.error:
            body["error"] = session.error
        return body

    @app.get("/api/export/{session_id}/{fmt}")
    async def export_results(session_id: str, fmt: str):
        """Download results as a JSON or CSV attachment."""
        if fmt not in ("json", "csv"):
            raise HTTPException(status_code=400, detail="Format must be json or csv")
        session = get_session_or_404(session_id)
        if not session.results:
            raise HTTPException(status_code=400, detail="No results to export")

        filename = f"google_maps_results_{get_timestamp()}.{fmt}"
        headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
        if fmt == "json":
            return Response(records_to_json(session.results), media_type="application/json", headers=headers)
        return Response(records_to_csv(session.results), media_type="text/csv", headers=headers)

    @app.delete("/api/session/{session_id}")
    async def delete_session(session_id: str):
        if not store.delete(session_id):
            raise HTTPException(status_code=404, detail="Session not found")
        return {"message": "Session deleted"}

    return app


app = create_app()


def run_server(host: str = "0.0.0.0", port: int = 8000):
    """Run the API server."""
    import uvicorn
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
