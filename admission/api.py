"""FastAPI service that applies admission control to a collaborative session."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from admission.config import get_settings
from admission.engine import AdmissionEngine
from admission.logging_config import configure_logging
from admission.models import Verdict
from admission.rate_limit import RateLimiter
from admission.utils import retry_after_header

settings = get_settings()
configure_logging(settings.log_level)
LOGGER = logging.getLogger(__name__)

rate_limiter = RateLimiter(settings.request_limit, settings.request_window_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    engine = AdmissionEngine(settings.policy())
    app.state.engine = engine
    LOGGER.info("Admission engine started")
    try:
        yield
    finally:
        engine.destroy()
        LOGGER.info("Admission engine stopped")


app = FastAPI(title="Session Admission Control", lifespan=lifespan)


@app.middleware("http")
async def apply_rate_limiting(request: Request, call_next):  # type: ignore[override]
    client_ip = request.client.host if request.client else "unknown"
    if not rate_limiter.allow(client_ip):
        LOGGER.warning("Client throttled", extra={"client_ip": client_ip})
        return JSONResponse(
            status_code=429,
            content={"detail": "Too many requests. Please slow down."},
            headers={"Retry-After": retry_after_header(rate_limiter.retry_after(client_ip))},
        )
    try:
        response = await call_next(request)
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Unhandled exception", extra={"client_ip": client_ip})
        raise exc
    return response


def get_engine(request: Request) -> AdmissionEngine:
    """Provide the process-wide admission engine."""

    return request.app.state.engine


def _denied(status_code: int, verdict: Verdict) -> JSONResponse:
    headers = {}
    if verdict.retry_after is not None:
        headers["Retry-After"] = retry_after_header(verdict.retry_after)
    return JSONResponse(
        status_code=status_code,
        content={"detail": verdict.reason, **verdict.to_dict()},
        headers=headers,
    )


def _invalid(exc: ValueError) -> HTTPException:
    return HTTPException(status_code=422, detail=str(exc))


@app.get("/healthz")
def healthz(engine: AdmissionEngine = Depends(get_engine)) -> dict:
    return {"status": "ok", "enforce": engine.policy.enforce}


@app.post("/api/actors/{actor_id}/submissions")
def submit(actor_id: str, engine: AdmissionEngine = Depends(get_engine)):
    """Check whether an actor may create content right now."""

    try:
        verdict = engine.check_submission(actor_id)
    except ValueError as exc:
        raise _invalid(exc) from exc
    if not verdict.allowed:
        return _denied(429, verdict)
    return verdict.to_dict()


@app.get("/api/actors/{actor_id}/status")
def status(actor_id: str, engine: AdmissionEngine = Depends(get_engine)) -> dict:
    """Report an actor's quota without consuming any of it."""

    try:
        return engine.get_status(actor_id).to_dict()
    except ValueError as exc:
        raise _invalid(exc) from exc


@app.delete("/api/actors/{actor_id}", status_code=204)
def reset_actor(actor_id: str, engine: AdmissionEngine = Depends(get_engine)) -> Response:
    try:
        engine.reset(actor_id)
    except ValueError as exc:
        raise _invalid(exc) from exc
    return Response(status_code=204)


@app.post("/api/sessions/{session_id}/participants/{actor_id}")
def join_session(
    session_id: str,
    actor_id: str,
    engine: AdmissionEngine = Depends(get_engine),
):
    """Admit a participant unless the session is at capacity."""

    try:
        verdict = engine.check_join(session_id, actor_id)
    except ValueError as exc:
        raise _invalid(exc) from exc
    if not verdict.allowed:
        return _denied(409, verdict)
    return verdict.to_dict()


@app.delete("/api/sessions/{session_id}/participants/{actor_id}", status_code=204)
def leave_session(
    session_id: str,
    actor_id: str,
    engine: AdmissionEngine = Depends(get_engine),
) -> Response:
    try:
        engine.remove_participant(session_id, actor_id)
    except ValueError as exc:
        raise _invalid(exc) from exc
    return Response(status_code=204)


@app.delete("/api/sessions/{session_id}", status_code=204)
def clear_session(session_id: str, engine: AdmissionEngine = Depends(get_engine)) -> Response:
    try:
        engine.clear_session(session_id)
    except ValueError as exc:
        raise _invalid(exc) from exc
    return Response(status_code=204)
