"""FastAPI host: execution sessions and itinerary validation over HTTP."""

from __future__ import annotations

import datetime as dt
import logging
import os
import time
import uuid
from typing import Annotated, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Path, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from tripexec.api.schemas import (
    ActivityResponse,
    CanMoveRequest,
    CheckOutRequest,
    ClockRequest,
    DeferRequest,
    EventsResponse,
    ExtendRequest,
    HealthResponse,
    LocationRequest,
    LocationResponse,
    PauseRequest,
    SkipRequest,
    StartRequest,
    TickResponse,
    ValidateRequest,
    ValidateResponse,
)
from tripexec.config.settings import resolve_constraint_config, resolve_engine_settings
from tripexec.domain.constraints import ConstraintEngine
from tripexec.domain.exceptions import SessionNotFound, SessionNotStarted
from tripexec.domain.models import ActivityExecution, Coordinates
from tripexec.execution.engine import ExecutionState
from tripexec.execution.extension import ExtensionResult
from tripexec.execution.registry import SessionRegistry
from tripexec.infrastructure.logging import get_logger

_api_logger = logging.getLogger("trip-exec.api")
API_TRACE_ID = "trip-exec-api"

load_dotenv()

TripId = Annotated[str, Path(min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_-]+$")]

app = FastAPI(
    title="trip-exec",
    version="0.1.0",
    docs_url="/docs" if os.getenv("ENABLE_DOCS", "false").lower() == "true" else None,
    redoc_url=None,
)


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Tag every response with a request id and log its latency."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
        response.headers["X-Request-ID"] = request_id
        _api_logger.info("%s %s -> %s (%sms) rid=%s", request.method, request.url.path, response.status_code, elapsed_ms, request_id)
        return response


app.add_middleware(RequestLogMiddleware)

_cors_origins = os.getenv("CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)

registry = SessionRegistry(resolve_engine_settings())


@app.exception_handler(SessionNotFound)
async def _session_not_found(request: Request, exc: SessionNotFound):
    get_logger(API_TRACE_ID).error("api", str(exc), path=request.url.path, status=404)
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(SessionNotStarted)
async def _session_not_started(request: Request, exc: SessionNotStarted):
    get_logger(API_TRACE_ID).error("api", str(exc), path=request.url.path, status=409)
    return JSONResponse(status_code=409, content={"detail": str(exc)})


def _now(value: Optional[dt.datetime]) -> dt.datetime:
    return value or dt.datetime.now()


def _activity_response(record: Optional[ActivityExecution], action: str) -> ActivityResponse:
    if record is None:
        return ActivityResponse(applied=False, message=f"{action} not allowed in the current state")
    return ActivityResponse(applied=True, activity=record, message=f"{action} applied")


@app.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok", sessions=len(registry), active_sessions=registry.active_count())


# ── sessions ─────────────────────────────────────────

@app.post("/trips/{trip_id}/start", response_model=ExecutionState)
def start_trip(req: StartRequest, trip_id: TripId):
    now = _now(req.now)
    registry.open(trip_id)

    def action(engine):
        engine.start(req.day, now)
        engine.tick(now)
        return engine.get_state(now)

    return registry.run(trip_id, action)


@app.post("/trips/{trip_id}/tick", response_model=TickResponse)
def tick(req: ClockRequest, trip_id: TripId):
    now = _now(req.now)

    def action(engine):
        transitions = engine.tick(now)
        return TickResponse(transitions=transitions, state=engine.get_state(now))

    return registry.run(trip_id, action)


@app.post("/trips/{trip_id}/location", response_model=LocationResponse)
def update_location(req: LocationRequest, trip_id: TripId):
    now = _now(req.now)
    location = Coordinates(lat=req.lat, lng=req.lng)
    events = registry.run(trip_id, lambda engine: engine.update_location(location, now))
    return LocationResponse(events=events)


@app.post("/trips/{trip_id}/pause", response_model=ExecutionState)
def pause(req: PauseRequest, trip_id: TripId):
    now = _now(req.now)

    def action(engine):
        engine.pause(now, req.reason)
        return engine.get_state(now)

    return registry.run(trip_id, action)


@app.post("/trips/{trip_id}/resume", response_model=ExecutionState)
def resume(req: ClockRequest, trip_id: TripId):
    now = _now(req.now)

    def action(engine):
        engine.resume(now)
        return engine.get_state(now)

    return registry.run(trip_id, action)


@app.delete("/trips/{trip_id}")
def stop_trip(trip_id: TripId):
    now = dt.datetime.now()
    registry.run(trip_id, lambda engine: engine.stop(now))
    registry.close(trip_id)
    return {"trip_id": trip_id, "stopped": True}


@app.get("/trips/{trip_id}/state", response_model=ExecutionState)
def get_state(trip_id: TripId, now: Optional[dt.datetime] = Query(default=None)):
    moment = _now(now)
    return registry.run(trip_id, lambda engine: engine.get_state(moment))


@app.get("/trips/{trip_id}/events", response_model=EventsResponse)
def get_events(trip_id: TripId, event_type: Optional[str] = Query(default=None, alias="type")):
    history = registry.run(trip_id, lambda engine: engine.channel.history(event_type))
    return EventsResponse(events=[event.model_dump(mode="json") for event in history])


# ── activities ───────────────────────────────────────

@app.post("/trips/{trip_id}/activities/{slot_id}/check-in", response_model=ActivityResponse)
def check_in(slot_id: str, req: ClockRequest, trip_id: TripId):
    now = _now(req.now)
    return _activity_response(registry.run(trip_id, lambda engine: engine.check_in(slot_id, now)), "check-in")


@app.post("/trips/{trip_id}/activities/{slot_id}/check-out", response_model=ActivityResponse)
def check_out(slot_id: str, req: CheckOutRequest, trip_id: TripId):
    now = _now(req.now)
    record = registry.run(trip_id, lambda engine: engine.check_out(slot_id, now, req.rating, req.notes))
    return _activity_response(record, "check-out")


@app.post("/trips/{trip_id}/activities/{slot_id}/skip", response_model=ActivityResponse)
def skip(slot_id: str, req: SkipRequest, trip_id: TripId):
    now = _now(req.now)
    return _activity_response(registry.run(trip_id, lambda engine: engine.skip(slot_id, now, req.reason)), "skip")


@app.post("/trips/{trip_id}/activities/{slot_id}/defer", response_model=ActivityResponse)
def defer(slot_id: str, req: DeferRequest, trip_id: TripId):
    now = _now(req.now)
    record = registry.run(
        trip_id,
        lambda engine: engine.defer(slot_id, now, req.day_number, req.target_slot_id),
    )
    return _activity_response(record, "defer")


@app.post("/trips/{trip_id}/activities/{slot_id}/extend", response_model=ExtensionResult)
def extend(slot_id: str, req: ExtendRequest, trip_id: TripId):
    now = _now(req.now)
    return registry.run(
        trip_id,
        lambda engine: engine.extend(slot_id, req.minutes, now, accept_partial=req.accept_partial),
    )


@app.get("/trips/{trip_id}/activities/{slot_id}/extension-preview", response_model=ExtensionResult)
def extension_preview(slot_id: str, trip_id: TripId, minutes: int = Query(gt=0, le=240)):
    return registry.run(trip_id, lambda engine: engine.preview_extension(slot_id, minutes))


# ── itineraries ──────────────────────────────────────

def _constraint_engine(req: ValidateRequest) -> ConstraintEngine:
    return ConstraintEngine.default(req.config or resolve_constraint_config(registry.settings))


@app.post("/itineraries/validate", response_model=ValidateResponse)
def validate_itinerary(req: ValidateRequest):
    return ValidateResponse(analysis=_constraint_engine(req).validate_itinerary(req.itinerary))


@app.post("/itineraries/can-move", response_model=ValidateResponse)
def can_move(req: CanMoveRequest):
    analysis = _constraint_engine(req).can_move_slot(
        req.itinerary,
        req.slot_id,
        req.from_day,
        to_day=req.to_day,
        target_index=req.target_index,
    )
    return ValidateResponse(analysis=analysis)
