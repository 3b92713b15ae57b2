"""Two-tier threat analysis: remote engine first, local heuristic on failure.

A successful remote verdict is shallow-merged over DEFAULT_RESPONSE (so any
field the model omitted gets a neutral default) and validated. Any failure,
including a verdict that does not validate, discards the remote data
entirely and returns the heuristic assessment instead. Remote and heuristic
fields are never mixed.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError

from sentinel_eye import config
from sentinel_eye.detector import RiskAggregator, risk_aggregator
from sentinel_eye.errors import RemoteAnalysisError
from sentinel_eye.gemini_client import GeminiClient, gemini_client
from sentinel_eye.models import AnalyzeRequest, RiskAssessment

logger = logging.getLogger(__name__)

ENGINE_REMOTE = "remote"
ENGINE_HEURISTIC = "heuristic"


# Fills every field the remote verdict leaves out
DEFAULT_RESPONSE: dict = {
    "status": "MONITORING",
    "call_status": "MONITORING",
    "threat_type": "Analýza prerušená",
    "technical_detail": "Vyskytol sa problém pri spracovaní odpovede z AI servisu.",
    "risk_level": "MEDIUM",
    "user_message": "Analýza prebehla s chybou. Odporúčame zvýšenú opatrnosť.",
    "risk_matrix": {"likelihood": 0.5, "impact": 0.5, "composite_score": 50},
    "forensics": [],
    "mitigation_workflow": [],
    "scam_probability": 0.5,
    "detected_keyword": "N/A",
    "alert_message": "⚠️ CHYBA ANALÝZY ⚠️",
    "action_button": {"label": "MONITOR", "action": "trace", "color": "YELLOW"},
}


@dataclass(frozen=True)
class AnalysisOutcome:
    """Assessment plus the name of the engine that produced it."""
    assessment: RiskAssessment
    engine: str


def merge_with_defaults(remote: dict) -> RiskAssessment:
    """Top-level override of DEFAULT_RESPONSE by the remote verdict.

    Nested objects are replaced whole, not merged key by key.

    Raises:
        ValidationError: the merged payload does not fit RiskAssessment.
    """
    merged = {**copy.deepcopy(DEFAULT_RESPONSE), **remote}
    return RiskAssessment.model_validate(merged)


def analyze_locally(
    request: AnalyzeRequest,
    aggregator: RiskAggregator = risk_aggregator,
) -> RiskAssessment:
    return aggregator.assess(request.input, has_audio=request.has_audio)


def analyze_threat(
    request: AnalyzeRequest,
    client: GeminiClient = gemini_client,
    aggregator: RiskAggregator = risk_aggregator,
    remote_enabled: Optional[bool] = None,
) -> AnalysisOutcome:
    """Resolve one analysis request. Always returns an assessment."""
    if remote_enabled is None:
        remote_enabled = config.REMOTE_ANALYSIS_ENABLED

    if remote_enabled:
        try:
            verdict = client.analyze(
                request.input,
                images=request.images,
                audio_data=request.audioData,
                history=request.history,
            )
            assessment = merge_with_defaults(verdict)
            logger.info(
                f"Remote analysis ok status={assessment.status.value} "
                f"score={assessment.risk_matrix.composite_score}"
            )
            return AnalysisOutcome(assessment=assessment, engine=ENGINE_REMOTE)
        except RemoteAnalysisError as exc:
            logger.warning(f"API analysis failed, initiating heuristic fallback: {exc}")
        except ValidationError as exc:
            logger.warning(
                f"Remote verdict rejected ({exc.error_count()} schema errors), "
                "initiating heuristic fallback"
            )
    else:
        logger.info("Remote analysis disabled, using heuristic engine")

    assessment = analyze_locally(request, aggregator)
    logger.info(
        f"Heuristic analysis status={assessment.status.value} "
        f"score={assessment.risk_matrix.composite_score} "
        f"keyword={assessment.detected_keyword}"
    )
    return AnalysisOutcome(assessment=assessment, engine=ENGINE_HEURISTIC)
