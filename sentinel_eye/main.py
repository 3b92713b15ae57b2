"""FastAPI entry point. Wires remote analysis -> heuristic fallback -> incident
log. Exposes GET / (health), POST /api/analyze, POST /api/heuristic and the
per-session incident endpoints."""

import logging
from typing import List

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from sentinel_eye import __version__, config
from sentinel_eye.detector import risk_aggregator
from sentinel_eye.gemini_client import gemini_client
from sentinel_eye.memory import incident_log
from sentinel_eye.models import AnalyzeRequest, Incident, RiskAssessment
from sentinel_eye.service import ENGINE_HEURISTIC, analyze_locally, analyze_threat

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Sentinel Eye API",
    description="Fraud and social-engineering threat analysis with offline heuristic fallback",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def _on_startup() -> None:
    logger.info(
        f"Sentinel Eye API v{__version__} started | "
        f"remote={'on' if _remote_available() else 'off'} "
        f"rules={risk_aggregator.ruleset.version}"
    )


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.error(f"422 VALIDATION ERROR | {request.url.path} | {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors(), "message": "Invalid request payload."},
    )


def _remote_available() -> bool:
    return config.REMOTE_ANALYSIS_ENABLED and bool(gemini_client.api_key)


def _short(session_id: str) -> str:
    return session_id[:8]


@app.get("/")
async def health_check() -> dict:
    return {
        "status": "online",
        "service": "Sentinel Eye API",
        "version": __version__,
        "remote_enabled": _remote_available(),
        "ruleset": risk_aggregator.ruleset.version,
    }


@app.post("/api/analyze", response_model=RiskAssessment)
def analyze(request: AnalyzeRequest) -> RiskAssessment:
    """Analyse one input with the remote engine, falling back to heuristics.

    When a sessionId is supplied and the client sent no history of its own,
    prior incidents from the log are forwarded as context; the result is
    then appended to that session's log.
    """
    session_id = request.sessionId
    if session_id and not request.history:
        history = incident_log.get_history(session_id)
        if history:
            request = request.model_copy(update={"history": history})

    logger.info(
        f"[{_short(session_id) if session_id else '-'}] ANALYZE  "
        f"text_len={len(request.input)} images={len(request.images)} "
        f"audio={'yes' if request.has_audio else 'no'} history={len(request.history)}"
    )

    outcome = analyze_threat(request, client=gemini_client, aggregator=risk_aggregator)

    if session_id:
        incident_log.record(session_id, request.input, outcome.assessment, outcome.engine)

    logger.info(
        f"[{_short(session_id) if session_id else '-'}] RESULT  "
        f"engine={outcome.engine} status={outcome.assessment.status.value} "
        f"risk={outcome.assessment.risk_level.value}"
    )
    return outcome.assessment


@app.post("/api/heuristic", response_model=RiskAssessment)
def analyze_offline(request: AnalyzeRequest) -> RiskAssessment:
    """Local heuristic engine only; never contacts the remote service."""
    assessment = analyze_locally(request, risk_aggregator)
    if request.sessionId:
        incident_log.record(request.sessionId, request.input, assessment, ENGINE_HEURISTIC)
    return assessment


@app.get("/api/incidents/{session_id}", response_model=List[Incident])
def list_incidents(session_id: str) -> List[Incident]:
    return incident_log.get_incidents(session_id)


@app.delete("/api/incidents/{session_id}")
def clear_incidents(session_id: str) -> dict:
    cleared = incident_log.clear(session_id)
    logger.info(f"[{_short(session_id)}] CLEARED incidents={cleared}")
    return {"cleared": cleared}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
