"""Tests for the offline heuristic risk aggregator.

Expected raw scores are computed from the weight table:
BANK 30, CRYPTO 35, AUTH 40, PRESSURE 30, DELIVERY 20, FAMILY 35, LINK 30,
IMPERSONATION 35, SESSION 25, audio 15, PRESSURE+IMPERSONATION +20,
PRESSURE+AUTH +20.
"""

import pytest

from sentinel_eye.detector import RiskAggregator, risk_aggregator
from sentinel_eye.models import ButtonColor, RiskLevel, ThreatStatus
from sentinel_eye.patterns import (
    CategoryRule,
    MatchResult,
    RuleSet,
    ThreatCategory,
)

C = ThreatCategory

EVERYTHING = "bank bitcoin heslo súrne balík syn link microsoft session"


def raw_score(text, has_audio=False):
    return risk_aggregator.score(risk_aggregator.matcher.match(text, has_audio))


# ── Scoring model ─────────────────────────────────────────────────────────────

@pytest.mark.parametrize("text, has_audio, expected", [
    ("Prosím pošlite číslo účtu a IBAN", False, 70),                         # bank + auth
    ("Zadajte heslo a PIN kód ku kreditnej karte ihneď!", False, 90),       # auth + pressure + bonus
    ("Dobrý deň, ako sa máte?", False, 0),
    ("Ahoj babi, som tvoj vnuk, mal som nehodu a potrebujem peniaze", False, 65),  # family + bank
    ("polícia", False, 85),                                                 # pressure + impersonation + bonus
    ("", True, 15),                                                         # audio only
    ("balík", False, 20),
    ("cookie", False, 25),
    ("balík link", False, 50),
    (EVERYTHING, False, 320),
    (EVERYTHING, True, 335),
])
def test_raw_score(text, has_audio, expected):
    assert raw_score(text, has_audio) == expected


def test_both_bonuses_can_apply():
    # pressure 30 + auth 40 + impersonation 35 + 20 + 20
    match = MatchResult(categories=frozenset({C.PRESSURE, C.AUTH, C.IMPERSONATION}))
    assert risk_aggregator.score(match) == 145


def test_bonus_needs_both_categories():
    assert risk_aggregator.score(MatchResult(categories=frozenset({C.PRESSURE}))) == 30
    assert risk_aggregator.score(MatchResult(categories=frozenset({C.AUTH}))) == 40


# ── Status thresholds ─────────────────────────────────────────────────────────

@pytest.mark.parametrize("raw, status, level", [
    (0, ThreatStatus.MONITORING, RiskLevel.MEDIUM),
    (15, ThreatStatus.MONITORING, RiskLevel.MEDIUM),
    (20, ThreatStatus.MONITORING, RiskLevel.MEDIUM),
    (21, ThreatStatus.WARNING, RiskLevel.HIGH),
    (49, ThreatStatus.WARNING, RiskLevel.HIGH),
    (50, ThreatStatus.DANGER, RiskLevel.CRITICAL),
    (320, ThreatStatus.DANGER, RiskLevel.CRITICAL),
])
def test_classify_thresholds(raw, status, level):
    assert RiskAggregator.classify(raw) == (status, level)


# ── Scenarios ─────────────────────────────────────────────────────────────────

SCAM_SCENARIOS = [
    ("Prosím pošlite číslo účtu a IBAN", ["Bank", "Auth"]),
    ("Volám z banky, potrebujem číslo vašej karty a CVC kód pre zablokovanie transakcie.",
     ["Bank", "Auth"]),
    ("Ahoj babi, som tvoj vnuk, mal som nehodu a potrebujem peniaze, nehovor to mame.",
     ["Family"]),
    ("Babička, som tvoj vnúča, mal som nehodu, potrebujem peniaze", ["Family"]),
    ("Tu je polícia, máte zatykač, zaplaťte pokutu ihneď alebo vás zatkneme.",
     ["Urgency", "Impersonation"]),
    ("Investujte do Bitcoin cez našu peňaženku a získajte 100% zisk okamžite.",
     ["Crypto", "Urgency"]),
    ("Váš balík čaká na doručenie, kliknite na http://bit.ly/track pre zaplatenie cla.",
     ["Delivery", "Link"]),
]


@pytest.mark.parametrize("text, labels", SCAM_SCENARIOS)
def test_scam_scenarios_are_danger(text, labels):
    result = risk_aggregator.assess(text)
    assert result.status == ThreatStatus.DANGER
    assert result.call_status == ThreatStatus.DANGER
    assert result.risk_level == RiskLevel.CRITICAL
    for label in labels:
        assert label in result.technical_detail


def test_auth_pressure_scenario():
    result = risk_aggregator.assess("Zadajte heslo a PIN kód ku kreditnej karte ihneď!")
    assert result.status == ThreatStatus.DANGER
    assert result.risk_level == RiskLevel.CRITICAL
    assert result.scam_probability > 0.5
    assert result.scam_probability == pytest.approx(0.9)
    assert result.risk_matrix.composite_score == 90
    assert result.risk_matrix.impact == pytest.approx(0.95)
    assert result.detected_keyword == "Kreditná Karta / Identita"


def test_tech_support_scenario_is_warning():
    result = risk_aggregator.assess(
        "This is Microsoft Support, your computer has a virus, give me remote access."
    )
    assert result.status == ThreatStatus.WARNING
    assert result.risk_level == RiskLevel.HIGH
    assert "Impersonation" in result.technical_detail


def test_session_hijack_scenario():
    result = risk_aggregator.assess(
        "Your session has expired, please re-authenticate with your token"
    )
    assert result.status == ThreatStatus.WARNING
    assert "Session" in result.technical_detail


def test_benign_input_is_monitoring():
    result = risk_aggregator.assess("Dobrý deň, ako sa máte?")
    assert result.status == ThreatStatus.MONITORING
    assert result.risk_level == RiskLevel.MEDIUM
    assert result.risk_matrix.composite_score == 0
    assert result.risk_matrix.likelihood == 0
    assert result.scam_probability == 0
    assert result.detected_keyword == "Nátlak"


def test_audio_only_stays_monitoring():
    result = risk_aggregator.assess("", has_audio=True)
    assert result.status == ThreatStatus.MONITORING
    assert result.risk_matrix.composite_score == 15
    assert result.risk_matrix.likelihood == pytest.approx(0.15)
    assert result.risk_matrix.impact == pytest.approx(0.70)


def test_empty_input_is_well_formed():
    result = risk_aggregator.assess("")
    assert result.status == ThreatStatus.MONITORING
    assert result.technical_detail.endswith("Detekované: žiadne indikátory.")
    assert len(result.forensics) == 2
    assert len(result.mitigation_workflow) == 3


# ── Bounds and invariants ─────────────────────────────────────────────────────

def test_composite_score_clamped_below_100():
    result = risk_aggregator.assess(EVERYTHING, has_audio=True)
    assert result.risk_matrix.composite_score == 99
    assert result.risk_matrix.likelihood == pytest.approx(0.99)
    assert result.scam_probability == 1.0


@pytest.mark.parametrize("text, _labels", SCAM_SCENARIOS + [("", []), ("cookie", []), (EVERYTHING, [])])
def test_matrix_invariants(text, _labels):
    raw = raw_score(text)
    result = risk_aggregator.assess(text)
    matrix = result.risk_matrix
    assert 0 <= matrix.composite_score <= 99
    assert matrix.composite_score == min(raw, 99)
    assert matrix.likelihood == pytest.approx(min(raw / 100, 0.99))
    has_auth = C.AUTH in risk_aggregator.matcher.match(text)
    assert matrix.impact == pytest.approx(0.95 if has_auth else 0.70)


def test_adding_keywords_never_lowers_score():
    base = "Prosím pošlite číslo účtu"
    previous = raw_score(base)
    for extra in (" ihneď", " cez link", " microsoft", " bitcoin", " syn", " session"):
        base += extra
        current = raw_score(base)
        assert current >= previous
        previous = current


def test_assessment_is_idempotent():
    text = "Tu je polícia, máte zatykač, zaplaťte pokutu ihneď."
    first = risk_aggregator.assess(text, has_audio=True)
    second = risk_aggregator.assess(text, has_audio=True)
    assert first == second


# ── Text assembly ─────────────────────────────────────────────────────────────

def test_technical_detail_uses_fixed_order():
    result = risk_aggregator.assess(EVERYTHING)
    assert result.technical_detail == (
        "Súlad s NIST SP 800-61r2 & OWASP. Detekované: Bank, Crypto, Auth, Urgency, "
        "Delivery, Link, Impersonation, Session, Family."
    )


@pytest.mark.parametrize("text, keyword", [
    ("heslo k účtu", "Kreditná Karta / Identita"),   # auth wins over bank
    ("iban", "Bankové údaje"),
    ("súrne", "Nátlak"),
    ("", "Nátlak"),
])
def test_detected_keyword_priority(text, keyword):
    assert risk_aggregator.assess(text).detected_keyword == keyword


def test_danger_templates_and_button():
    result = risk_aggregator.assess("Zadajte heslo a PIN ihneď, máte dlh!")
    assert result.threat_type == "NIST/OWASP Detekcia: Kritická hrozba"
    assert result.alert_message == "⚠️ KRITICKÁ HROZBA: PODVOD ⚠️"
    assert result.user_message.startswith("Pozor!")
    assert result.action_button.label == "TERMINATE"
    assert result.action_button.action == "jam"
    assert result.action_button.color == ButtonColor.RED


@pytest.mark.parametrize("text", ["cookie", "", "balík"])
def test_non_danger_templates_and_button(text):
    result = risk_aggregator.assess(text)
    assert result.threat_type == "NIST/OWASP Analýza: Monitorovanie"
    assert result.alert_message == "⚠️ PODOZRIVÝ HOVOR ⚠️"
    assert result.action_button.label == "MONITOR"
    assert result.action_button.action == "trace"
    assert result.action_button.color == ButtonColor.YELLOW


def test_local_forensics_and_workflow_are_static():
    for text in ("", "Prosím pošlite číslo účtu a IBAN"):
        result = risk_aggregator.assess(text)
        assert [(f.type, f.value, f.confidence) for f in result.forensics] == [
            ("LOCAL_HEURISTICS", "PATTERN_MATCH", 0.85),
            ("API_STATUS", "OFFLINE_FALLBACK", 1.0),
        ]
        assert [(s.id, s.status) for s in result.mitigation_workflow] == [
            ("f1", "completed"), ("f2", "completed"), ("f3", "pending"),
        ]


def test_custom_ruleset_drives_scoring():
    ruleset = RuleSet(
        version="test",
        rules=(
            CategoryRule(C.BANK, ("wire",), 60, "Wire"),
            CategoryRule(C.PRESSURE, ("now",), 5, "Now"),
        ),
        deepfake_weight=0,
        combination_bonuses=((C.BANK, C.PRESSURE, 7),),
    )
    engine = RiskAggregator(ruleset)
    assert engine.score(engine.matcher.match("wire it now", has_audio=True)) == 72
    result = engine.assess("wire it now")
    assert result.status == ThreatStatus.DANGER
    assert "Detekované: Wire, Now." in result.technical_detail


def test_serialized_shape_matches_remote_schema():
    data = risk_aggregator.assess("iban").model_dump(mode="json")
    assert set(data) == {
        "status", "call_status", "threat_type", "technical_detail", "risk_level",
        "user_message", "risk_matrix", "forensics", "mitigation_workflow",
        "scam_probability", "detected_keyword", "alert_message", "action_button",
    }
    assert set(data["risk_matrix"]) == {"likelihood", "impact", "composite_score"}
    assert data["risk_matrix"]["composite_score"] == 30
    assert isinstance(data["risk_matrix"]["composite_score"], int)
    assert data["status"] == "WARNING"
    assert data["action_button"]["color"] == "YELLOW"
