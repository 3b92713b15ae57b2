"""
detector.py — Offline Heuristic Risk Aggregator
================================================

Local fallback engine used whenever the remote analysis service is
unavailable. Turns the category flags produced by the PatternMatcher into a
complete RiskAssessment.

Scoring mechanics:
    1. Each matched category adds its fixed weight from the RuleSet
    2. An audio payload adds the deepfake weight
    3. Combination bonuses fire when both categories of a pair matched
       (pressure + impersonation, pressure + auth), independently of each other
    4. The raw score is unbounded; the reported composite score is capped at 99

Status thresholds (on the raw score):
    raw >= 50        → DANGER / CRITICAL
    20 < raw < 50    → WARNING / HIGH
    raw <= 20        → MONITORING / MEDIUM

The engine holds no per-call state: every assessment is built from scratch,
so one instance can serve concurrent requests.
"""

from typing import List, Optional, Tuple

from sentinel_eye.models import (
    ActionButton,
    ButtonColor,
    ForensicIndicator,
    MitigationStep,
    RiskAssessment,
    RiskLevel,
    RiskMatrix,
    ThreatStatus,
)
from sentinel_eye.patterns import (
    DEFAULT_RULESET,
    MatchResult,
    PatternMatcher,
    RuleSet,
    ThreatCategory,
)


class RiskAggregator:
    """Weighted scoring model and assessment builder for the local engine."""

    DANGER_THRESHOLD: int = 50
    WARNING_THRESHOLD: int = 20   # strictly greater than
    COMPOSITE_CAP: int = 99
    LIKELIHOOD_CAP: float = 0.99
    AUTH_IMPACT: float = 0.95
    BASE_IMPACT: float = 0.70

    # Order in which matched categories are listed in technical_detail
    REPORT_ORDER: Tuple[ThreatCategory, ...] = (
        ThreatCategory.BANK,
        ThreatCategory.CRYPTO,
        ThreatCategory.AUTH,
        ThreatCategory.PRESSURE,
        ThreatCategory.DELIVERY,
        ThreatCategory.LINK,
        ThreatCategory.IMPERSONATION,
        ThreatCategory.SESSION,
        ThreatCategory.FAMILY,
    )

    # detected_keyword: first matching rule wins
    KEYWORD_RULES: Tuple[Tuple[ThreatCategory, str], ...] = (
        (ThreatCategory.AUTH, "Kreditná Karta / Identita"),
        (ThreatCategory.BANK, "Bankové údaje"),
    )
    DEFAULT_KEYWORD: str = "Nátlak"

    COMPLIANCE_PREFIX: str = "Súlad s NIST SP 800-61r2 & OWASP."
    NO_INDICATORS: str = "žiadne indikátory"

    DANGER_THREAT_TYPE = "NIST/OWASP Detekcia: Kritická hrozba"
    MONITOR_THREAT_TYPE = "NIST/OWASP Analýza: Monitorovanie"

    DANGER_USER_MESSAGE = (
        "Pozor! Lokálna analýza detekovala vysoké riziko podvodu. "
        "Neodovzdávajte žiadne údaje!"
    )
    MONITOR_USER_MESSAGE = (
        "Systém monitoruje podozrivý priebeh hovoru. Zachovajte ostražitosť."
    )
    DANGER_ALERT = "⚠️ KRITICKÁ HROZBA: PODVOD ⚠️"
    MONITOR_ALERT = "⚠️ PODOZRIVÝ HOVOR ⚠️"

    def __init__(
        self,
        ruleset: RuleSet = DEFAULT_RULESET,
        matcher: Optional[PatternMatcher] = None,
    ) -> None:
        self.ruleset = ruleset
        self.matcher = matcher or PatternMatcher(ruleset)

    def assess(self, text: Optional[str], has_audio: bool = False) -> RiskAssessment:
        """Run the matcher and build the assessment. Never raises."""
        return self.build_assessment(self.matcher.match(text, has_audio))

    def score(self, match: MatchResult) -> int:
        """Raw (unclamped) risk score for a match set."""
        total = sum(self.ruleset.weight_of(category) for category in match.categories)
        if match.has_deepfake:
            total += self.ruleset.deepfake_weight
        for first, second, bonus in self.ruleset.combination_bonuses:
            if first in match and second in match:
                total += bonus
        return total

    @classmethod
    def classify(cls, raw_score: int) -> Tuple[ThreatStatus, RiskLevel]:
        """Map a raw score to (status, risk_level)."""
        if raw_score >= cls.DANGER_THRESHOLD:
            return ThreatStatus.DANGER, RiskLevel.CRITICAL
        if raw_score > cls.WARNING_THRESHOLD:
            return ThreatStatus.WARNING, RiskLevel.HIGH
        return ThreatStatus.MONITORING, RiskLevel.MEDIUM

    def build_assessment(self, match: MatchResult) -> RiskAssessment:
        raw_score = self.score(match)
        status, risk_level = self.classify(raw_score)
        is_danger = status == ThreatStatus.DANGER

        return RiskAssessment(
            status=status,
            call_status=status,
            threat_type=self.DANGER_THREAT_TYPE if is_danger else self.MONITOR_THREAT_TYPE,
            technical_detail=self._technical_detail(match),
            risk_level=risk_level,
            user_message=self.DANGER_USER_MESSAGE if is_danger else self.MONITOR_USER_MESSAGE,
            risk_matrix=RiskMatrix(
                likelihood=min(raw_score / 100, self.LIKELIHOOD_CAP),
                impact=self.AUTH_IMPACT if ThreatCategory.AUTH in match else self.BASE_IMPACT,
                composite_score=min(raw_score, self.COMPOSITE_CAP),
            ),
            forensics=_local_forensics(),
            mitigation_workflow=_local_workflow(),
            scam_probability=min(raw_score / 100, 1.0),
            detected_keyword=self._detected_keyword(match),
            alert_message=self.DANGER_ALERT if is_danger else self.MONITOR_ALERT,
            action_button=_action_button(is_danger),
        )

    def _technical_detail(self, match: MatchResult) -> str:
        labels = [
            self.ruleset.label_of(category)
            for category in self.REPORT_ORDER
            if category in match
        ]
        detected = ", ".join(labels) if labels else self.NO_INDICATORS
        return f"{self.COMPLIANCE_PREFIX} Detekované: {detected}."

    def _detected_keyword(self, match: MatchResult) -> str:
        for category, label in self.KEYWORD_RULES:
            if category in match:
                return label
        return self.DEFAULT_KEYWORD


def _local_forensics() -> List[ForensicIndicator]:
    """Static evidence that the verdict was produced offline."""
    return [
        ForensicIndicator(type="LOCAL_HEURISTICS", value="PATTERN_MATCH", confidence=0.85),
        ForensicIndicator(type="API_STATUS", value="OFFLINE_FALLBACK", confidence=1.0),
    ]


def _local_workflow() -> List[MitigationStep]:
    return [
        MitigationStep(id="f1", step="Local heuristic scan", status="completed"),
        MitigationStep(id="f2", step="UI Alert triggering", status="completed"),
        MitigationStep(id="f3", step="Automatic response generation", status="pending"),
    ]


def _action_button(is_danger: bool) -> ActionButton:
    if is_danger:
        return ActionButton(label="TERMINATE", action="jam", color=ButtonColor.RED)
    return ActionButton(label="MONITOR", action="trace", color=ButtonColor.YELLOW)


# Module-level singleton
risk_aggregator = RiskAggregator()
