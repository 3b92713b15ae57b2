"""
models.py — Pydantic Request/Response Schemas
===============================================

Defines the threat assessment shape shared by both analysis engines, plus
the HTTP request payloads.

Request flow:
    Client → AnalyzeRequest (POST /api/analyze) → remote engine | heuristic → RiskAssessment

Design decisions:
    - RiskAssessment mirrors the JSON schema the remote analysis service is
      instructed to return, so consumers never need to know which engine ran.
    - Assessments are frozen: produced once, never mutated afterwards.
    - Request models use ConfigDict(extra="ignore") so older clients that send
      additional UI fields keep working.
"""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ═══════════════════════════════════════════════════════════════════════
# ENUMERATIONS
# ═══════════════════════════════════════════════════════════════════════

class ThreatStatus(str, Enum):
    SAFE = "SAFE"
    WARNING = "WARNING"
    DANGER = "DANGER"
    MONITORING = "MONITORING"


class RiskLevel(str, Enum):
    INFO = "INFO"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ButtonColor(str, Enum):
    GREEN = "GREEN"
    YELLOW = "YELLOW"
    RED = "RED"


# ═══════════════════════════════════════════════════════════════════════
# ASSESSMENT MODEL — Produced by either engine
# ═══════════════════════════════════════════════════════════════════════

class ActionButton(BaseModel):
    """Recommended next operator action."""
    model_config = ConfigDict(frozen=True)

    label: str
    action: str
    color: ButtonColor


class RiskMatrix(BaseModel):
    """Likelihood x impact summary.

    The remote schema allows composite_score up to 100; the local
    heuristic never goes past 99.
    """
    model_config = ConfigDict(frozen=True)

    likelihood: float = Field(..., ge=0.0, le=1.0)
    impact: float = Field(..., ge=0.0, le=1.0)
    # int first so whole-number scores serialize as 30, not 30.0
    composite_score: Union[
        Annotated[int, Field(ge=0, le=100)],
        Annotated[float, Field(ge=0.0, le=100.0)],
    ]


class ForensicIndicator(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    value: str
    confidence: float = Field(..., ge=0.0, le=1.0)


class MitigationStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    step: str
    status: Literal["pending", "active", "completed"] = "pending"


class RiskAssessment(BaseModel):
    """Structured threat assessment returned to the caller.

    Attributes:
        status / call_status: Overall verdict; always equal for local output.
        risk_level:           Severity bucket.
        threat_type:          Short headline for the verdict.
        technical_detail:     Which indicators fired and why.
        user_message:         Plain-language instruction for the user.
        risk_matrix:          Likelihood, impact and composite score.
        forensics:            Evidence records backing the verdict.
        mitigation_workflow:  Ordered response steps.
        scam_probability:     Probability in [0, 1].
        detected_keyword:     Single representative indicator label.
        alert_message:        High-visibility banner text.
        action_button:        Recommended operator action.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    status: ThreatStatus
    call_status: ThreatStatus
    threat_type: str
    technical_detail: str
    risk_level: RiskLevel
    user_message: str
    risk_matrix: RiskMatrix
    forensics: List[ForensicIndicator] = Field(default_factory=list)
    mitigation_workflow: List[MitigationStep] = Field(default_factory=list)
    scam_probability: float = Field(..., ge=0.0, le=1.0)
    detected_keyword: str
    alert_message: str
    action_button: ActionButton


# ═══════════════════════════════════════════════════════════════════════
# REQUEST MODELS — Incoming data from the client
# ═══════════════════════════════════════════════════════════════════════

class HistoryEntry(BaseModel):
    """Opaque summary of a prior incident, e.g. "Vishing: DANGER"."""
    model_config = ConfigDict(extra="ignore")

    input: str = Field(default="")
    result: str = Field(default="")


class AnalyzeRequest(BaseModel):
    """Incoming POST /api/analyze payload.

    Attributes:
        input:     Free text to analyse (transcript, SMS, e-mail...). May be empty.
        images:    Screenshots as data URLs ("data:image/png;base64,...").
        audioData: Base64 16 kHz PCM capture. Only its presence is used locally.
        history:   Prior incident summaries forwarded to the remote engine.
        sessionId: Optional incident-log key.
    """
    model_config = ConfigDict(extra="ignore")

    input: str = Field(default="")
    images: List[str] = Field(default_factory=list)
    audioData: Optional[str] = Field(default=None)
    history: List[HistoryEntry] = Field(default_factory=list)
    sessionId: Optional[str] = Field(default=None)

    @field_validator("input", mode="before")
    @classmethod
    def _coerce_input(cls, value):
        """Treat an explicit null as empty text."""
        if value is None:
            return ""
        return value

    @property
    def has_audio(self) -> bool:
        return bool(self.audioData)


class Incident(BaseModel):
    """One analysed input as stored in the incident log."""

    id: str
    timestamp: str
    input: str
    engine: Literal["remote", "heuristic"]
    result: RiskAssessment
