"""
servicedesk/api/main.py — Service Desk FastAPI

Thin HTTP surface over one in-memory DeskEngine:
    POST   /v1/requesters          → 201  register
    DELETE /v1/requesters/{id}     → remove from waiting queue
    GET    /v1/requesters/waiting  → waiting queue with ranking scores
    GET    /v1/requesters/next     → preview who would be served next
    POST   /v1/serve               → serve highest-ranked requester
    GET    /v1/served              → served history
    GET    /v1/served/{id}         → search served history by id
    POST   /v1/undo                → undo the most recent action
    GET    /v1/ledger              → action ledger (most recent first)
    GET    /v1/stats               → counters

Shared:
    GET    /health                 → liveness

Run API:      uvicorn servicedesk.api.main:app --reload

Set optional env vars in .env:
    LOG_LEVEL=DEBUG
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from servicedesk.api.schemas import (
    ActionOut,
    LedgerOut,
    RankedRequesterOut,
    RequesterIn,
    RequesterOut,
    ServedOut,
    StatsOut,
    UndoOut,
    WaitingOut,
)
from servicedesk.config import API_TITLE, API_VERSION, CATEGORIES, DEFAULT_LOG_LEVEL
from servicedesk.core.engine import DeskEngine
from servicedesk.core.errors import (
    DeskError,
    EmptyLedgerError,
    EmptyQueueError,
    NotFoundError,
    ValidationError,
)

load_dotenv()

# ── logging ───────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
logger = logging.getLogger(__name__)

# ── state ─────────────────────────────────────────────────────────────────────
_state: dict[str, Any] = {
    "engine": None,
    "started_at": None,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    _state["engine"] = DeskEngine()
    _state["started_at"] = datetime.now(timezone.utc)
    logger.info("Service desk ready.")

    yield

    stats = _state["engine"].statistics()
    logger.info(
        "Shutdown complete (waiting=%d, served=%d, actions=%d).",
        stats.waiting_count, stats.served_count, stats.ledger_depth,
    )
    _state["engine"] = None


# ── app ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title=API_TITLE,
    description=(
        "In-memory service-desk queue. Requesters are ranked by priority "
        "class plus a decaying arrival-position bonus; every register / "
        "remove / serve can be undone once, most recent first."
    ),
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── helpers ───────────────────────────────────────────────────────────────────
def _engine() -> DeskEngine:
    engine = _state["engine"]
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service desk not initialised",
        )
    return engine


def _http_error(exc: DeskError) -> HTTPException:
    if isinstance(exc, ValidationError):
        code = 422
    elif isinstance(exc, (NotFoundError, EmptyQueueError)):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, EmptyLedgerError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(exc))


# ═════════════════════════════════════════════════════════════════════════════
# SHARED
# ═════════════════════════════════════════════════════════════════════════════

@app.get("/health", tags=["System"])
def health_check() -> dict[str, Any]:
    """Liveness probe: reports queue depth and uptime."""
    engine = _engine()
    stats = engine.statistics()
    uptime = (datetime.now(timezone.utc) - _state["started_at"]).total_seconds()
    return {
        "status":         "ok",
        "categories":     CATEGORIES,
        "waiting":        stats.waiting_count,
        "can_undo":       engine.can_undo(),
        "uptime_seconds": round(uptime, 1),
    }


# ═════════════════════════════════════════════════════════════════════════════
# REQUESTERS — /v1/requesters
# ═════════════════════════════════════════════════════════════════════════════

@app.post(
    "/v1/requesters",
    response_model=RequesterOut,
    status_code=status.HTTP_201_CREATED,
    tags=["Requesters"],
    summary="Register a requester",
)
def register(payload: RequesterIn) -> RequesterOut:
    try:
        requester = _engine().register(payload.name, payload.category, payload.priority_class)
    except DeskError as exc:
        raise _http_error(exc) from exc
    return RequesterOut.from_requester(requester)


@app.delete("/v1/requesters/{requester_id}", response_model=RequesterOut, tags=["Requesters"])
def remove_waiting(requester_id: str) -> RequesterOut:
    """Drop a requester from the waiting queue (undoable)."""
    try:
        requester = _engine().remove_waiting(requester_id)
    except DeskError as exc:
        raise _http_error(exc) from exc
    return RequesterOut.from_requester(requester)


@app.get("/v1/requesters/waiting", response_model=WaitingOut, tags=["Requesters"])
def waiting() -> WaitingOut:
    """Waiting queue in arrival order, with each requester's current score."""
    ranking = _engine().waiting_ranking()
    rows = [
        RankedRequesterOut(
            **RequesterOut.from_requester(r).model_dump(),
            position=pos,
            score=score,
        )
        for pos, (r, score) in enumerate(ranking)
    ]
    return WaitingOut(count=len(rows), requesters=rows)


@app.get("/v1/requesters/next", response_model=RequesterOut, tags=["Requesters"])
def peek_next() -> RequesterOut:
    """Preview who would be served next without serving."""
    try:
        requester = _engine().next_to_serve()
    except DeskError as exc:
        raise _http_error(exc) from exc
    return RequesterOut.from_requester(requester)


# ═════════════════════════════════════════════════════════════════════════════
# SERVICE — /v1/serve, /v1/served
# ═════════════════════════════════════════════════════════════════════════════

@app.post("/v1/serve", response_model=RequesterOut, tags=["Service"])
def serve() -> RequesterOut:
    """Serve the highest-ranked waiting requester."""
    try:
        requester = _engine().serve()
    except DeskError as exc:
        raise _http_error(exc) from exc
    return RequesterOut.from_requester(requester)


@app.get("/v1/served", response_model=ServedOut, tags=["Service"])
def served() -> ServedOut:
    rows = [RequesterOut.from_requester(r) for r in _engine().snapshot_served()]
    return ServedOut(count=len(rows), requesters=rows)


@app.get("/v1/served/{requester_id}", response_model=RequesterOut, tags=["Service"])
def search_served(requester_id: str) -> RequesterOut:
    try:
        requester = _engine().search_served(requester_id)
    except DeskError as exc:
        raise _http_error(exc) from exc
    return RequesterOut.from_requester(requester)


# ═════════════════════════════════════════════════════════════════════════════
# UNDO & LEDGER
# ═════════════════════════════════════════════════════════════════════════════

@app.post("/v1/undo", response_model=UndoOut, tags=["Undo"])
def undo() -> UndoOut:
    """Undo the most recent register / remove / serve."""
    try:
        result = _engine().undo()
    except DeskError as exc:
        raise _http_error(exc) from exc
    kind = result.action.kind.value
    message = (
        f"Undid {kind} of requester {result.action.requester_id}."
        if result.success
        else f"Could not undo {kind} of requester {result.action.requester_id}."
    )
    return UndoOut(
        success=result.success,
        undone=ActionOut.from_action(result.action),
        message=message,
    )


@app.get("/v1/ledger", response_model=LedgerOut, tags=["Undo"])
def ledger() -> LedgerOut:
    engine = _engine()
    actions = list(reversed(engine.snapshot_ledger()))
    return LedgerOut(
        depth=len(actions),
        actions=[ActionOut.from_action(a) for a in actions],
        rendered=engine.render_ledger(),
    )


@app.get("/v1/stats", response_model=StatsOut, tags=["System"])
def stats() -> StatsOut:
    return StatsOut.from_stats(_engine().statistics())
