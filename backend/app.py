import logging
from contextlib import asynccontextmanager
from datetime import date

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from buckets import parse_date
from config import FILTER_MODES, Settings, load_settings
from controller import build_dashboard
from db import create_db_and_tables, engine
from events import DashboardFeed, generate_sse_stream
from schemas import (
    ConfigResponse,
    DashboardResponse,
    EntryCreate,
    EntryResponse,
    SubmitResponse,
    UnlockRequest,
    UnlockResponse,
)
from store import EntryStore, StoreError, StoreUnavailableError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

settings = load_settings()
entry_store = EntryStore(engine)


def get_settings() -> Settings:
    return settings


def get_store() -> EntryStore:
    return entry_store


def resolve_view_params(
    settings: Settings, selected_date: str | None, person: str | None
) -> tuple[date, str]:
    """Validate the dashboard query parameters shared by the JSON and SSE views."""
    try:
        day = parse_date(selected_date) if selected_date else date.today()
    except ValueError as e:
        logger.error(f"Invalid date format: {str(e)}")
        raise HTTPException(
            status_code=400, detail="Invalid date format. Use YYYY-MM-DD"
        ) from e

    if person and person not in settings.roster:
        raise HTTPException(status_code=400, detail=f"Unknown consultant: {person}")
    return day, person or settings.roster[0]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    if entry_store.available:
        create_db_and_tables(entry_store.engine)
        logger.info("Database initialized")
    else:
        logger.warning("Running without an entry store: reads are empty, submissions fail")
    yield


# Create FastAPI app
app = FastAPI(title="Performance Dashboard API", version="1.0.0", lifespan=lifespan)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins in development
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/config", response_model=ConfigResponse)
def get_config(settings: Settings = Depends(get_settings)):
    """Roster and filter modes for the selectors."""
    return ConfigResponse(roster=list(settings.roster), filter_modes=list(FILTER_MODES))


@app.post("/gate/unlock", response_model=UnlockResponse)
def unlock_gate(request: UnlockRequest, settings: Settings = Depends(get_settings)):
    """Check an access code. Wrong codes can be retried without limit."""
    unlocked = request.pin == settings.pin
    if not unlocked:
        logger.info("Gate unlock attempt with wrong access code")
    return UnlockResponse(unlocked=unlocked)


@app.post("/entries", response_model=SubmitResponse)
def submit_entry(
    request: EntryCreate,
    x_access_code: str | None = Header(None),
    settings: Settings = Depends(get_settings),
    store: EntryStore = Depends(get_store),
):
    """Append one entry for a consultant. Requires the access code header."""
    if x_access_code != settings.pin:
        raise HTTPException(status_code=403, detail="Enter access code first")
    if request.name not in settings.roster:
        raise HTTPException(status_code=422, detail=f"Unknown consultant: {request.name}")

    logger.info(f"Submit request for {request.name} on {request.date}")

    try:
        entry = store.append(request)
    except StoreUnavailableError as e:
        logger.error(f"Submit refused: {str(e)}")
        raise HTTPException(status_code=503, detail="Entry store not configured") from e
    except StoreError as e:
        logger.error(f"Error saving entry: {str(e)}")
        raise HTTPException(status_code=503, detail=f"Could not save entry: {str(e)}") from e

    return SubmitResponse(
        ok=True,
        celebrate=entry.placements > 0,
        entry=EntryResponse.model_validate(entry, from_attributes=True),
    )


@app.get("/entries", response_model=list[EntryResponse])
def get_entries(store: EntryStore = Depends(get_store)):
    """All entries, newest first."""
    try:
        entries = store.list_entries()
    except Exception as e:
        logger.error(f"Error getting entries: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return [EntryResponse.model_validate(e, from_attributes=True) for e in entries]


@app.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    filter: str = Query("week", description="week, month, year; anything else means all"),
    selected_date: str = Query(None, alias="date", description="Reference date (YYYY-MM-DD)"),
    person: str = Query(None, description="Active consultant"),
    settings: Settings = Depends(get_settings),
    store: EntryStore = Depends(get_store),
):
    """Totals, chart series and ranking for the selected window."""
    day, active_person = resolve_view_params(settings, selected_date, person)
    logger.info(f"Dashboard request - filter: {filter}, date: {day}")

    try:
        entries = store.list_entries()
    except Exception as e:
        logger.error(f"Error loading entries for dashboard: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return build_dashboard(
        entries,
        filter,
        day,
        settings.roster,
        active_person=active_person,
        store_available=store.available,
    )


@app.get("/dashboard/stream")
async def stream_dashboard(
    filter: str = Query("week", description="week, month, year; anything else means all"),
    selected_date: str = Query(None, alias="date", description="Reference date (YYYY-MM-DD)"),
    person: str = Query(None, description="Active consultant"),
    settings: Settings = Depends(get_settings),
    store: EntryStore = Depends(get_store),
) -> StreamingResponse:
    """Server-Sent Events stream of the dashboard, re-rendered on every store change."""
    day, active_person = resolve_view_params(settings, selected_date, person)

    feed = DashboardFeed(
        store, settings, filter_mode=filter, selected_date=day, active_person=active_person
    )
    logger.info(f"Dashboard stream requested - filter: {filter}, date: {day}")

    # The feed subscribes inside the stream, so cleanup always pairs with it
    return StreamingResponse(
        generate_sse_stream(feed.events, open_callback=feed.open, cleanup_callback=feed.close),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )


@app.get("/")
def root():
    """Root endpoint."""
    return {"message": "Performance Dashboard API", "docs": "/docs"}
