"""Remote threat analysis via the Gemini generateContent REST endpoint.

Builds one multimodal request per analysis (text + prior incident context,
screenshots, audio capture) and parses the JSON verdict out of the model
reply. Every failure mode is raised as RemoteAnalysisError so the caller
can fall back to the local heuristic engine.
"""

import json
import logging
import re
from typing import List, Optional, Sequence

import requests

from sentinel_eye import config
from sentinel_eye.errors import RemoteAnalysisError
from sentinel_eye.models import HistoryEntry

logger = logging.getLogger(__name__)


SYSTEM_INSTRUCTION = """You are "Sentinel Eye EXTREME", the ultimate Incident Response AI.
You operate under NIST SP 800-61 Rev 2, OWASP Top 10 API Security, and Slovak Penal Code (§ 221 Trestný zákon) standards.

CORE INTELLIGENCE MODULES:
1. FRAUD_CLASSIFICATION: Identify specific attack vectors:
   - PHISHING: Email-based credential theft.
   - SMISHING: SMS-based link redirection (often impersonating Pošta, Packeta, Bank).
   - VISHING: Voice-based manipulation using SEPA, police, or tech support pretexts.
   - BEC (Business Email Compromise): Targeted corporate payment redirection.
   - ROMANCE_SCAM / "VNÚČATKO": Emotional manipulation of vulnerable targets.
   - CRYPTO_DRAINER: Fraudulent investment/wallet drainage schemes.
2. SLOVAK_LEGAL_CONTEXT: Reference § 221 TZ (Podvod) for high-confidence threats.
3. DEEPFAKE_DETECTION: Flag synthetic audio patterns and inconsistent conversational flow.
4. NIST_IR_WORKFLOW: Generate containment, eradication, and recovery steps.

Response Language: Slovak (Slovenčina).

STRICT JSON OUTPUT REQUIREMENT:
{
  "call_status": "SAFE | WARNING | DANGER | MONITORING",
  "status": "SAFE | WARNING | DANGER | MONITORING",
  "threat_type": "string (Use precise terms: nahr. Vishing, Smishing, BEC)",
  "technical_detail": "string (Directly cite NIST/OWASP/Legal vectors)",
  "risk_level": "INFO | LOW | MEDIUM | HIGH | CRITICAL",
  "user_message": "string (Clear instruction for the user)",
  "risk_matrix": {
    "likelihood": number (0-1),
    "impact": number (0-1),
    "composite_score": number (0-100)
  },
  "forensics": [
    { "type": "IOC_SOURCE | ATTACK_VECTOR | LEGAL_PRETEXT", "value": "string", "confidence": number }
  ],
  "mitigation_workflow": [
    { "id": "string", "step": "string", "status": "pending" }
  ],
  "scam_probability": number,
  "detected_keyword": "string",
  "alert_message": "string (HIGH VISIBILITY ALERT)",
  "action_button": {
    "label": "string",
    "action": "string",
    "color": "GREEN | YELLOW | RED"
  }
}"""

DEFAULT_PROMPT = "Analyzuj tento vstup."
DEFAULT_FOLLOWUP_PROMPT = "Analyzuj tento nový vstup."

IMAGE_MIME_TYPE = "image/png"
AUDIO_MIME_TYPE = "audio/pcm;rate=16000"

_FENCE_RE = re.compile(r"```json|```")


def build_prompt_text(text: str, history: Sequence[HistoryEntry] = ()) -> str:
    """Text part of the request, with prior incidents as context."""
    if not history:
        return text or DEFAULT_PROMPT

    history_text = "\n\n".join(
        f"[HISTÓRIA INCIDENTU {idx}]\nVSTUP: {entry.input}\nVÝSLEDOK: {entry.result}"
        for idx, entry in enumerate(history, start=1)
    )
    return (
        "KONTEXT PREDCHÁDZAJÚCICH INCIDENTOV V TEJTO RELÁCII:\n"
        f"{history_text}\n\n"
        "AKTUÁLNY NOVÝ VSTUP NA ANALÝZU:\n"
        f"{text or DEFAULT_FOLLOWUP_PROMPT}"
    )


def _strip_data_url(image: str) -> str:
    """Drop the "data:image/png;base64," prefix if present."""
    _, sep, payload = image.partition(",")
    return payload if sep else image


def build_request_body(
    text: str,
    images: Sequence[str] = (),
    audio_data: Optional[str] = None,
    history: Sequence[HistoryEntry] = (),
) -> dict:
    parts: List[dict] = [{"text": build_prompt_text(text, history)}]

    for image in images:
        parts.append({
            "inlineData": {"mimeType": IMAGE_MIME_TYPE, "data": _strip_data_url(image)},
        })

    if audio_data:
        parts.append({
            "inlineData": {"mimeType": AUDIO_MIME_TYPE, "data": audio_data},
        })

    return {
        "contents": [{"parts": parts}],
        "generationConfig": {"responseMimeType": "application/json"},
        "systemInstruction": {"parts": [{"text": SYSTEM_INSTRUCTION}]},
    }


def parse_model_reply(data: dict) -> dict:
    """Pull the JSON verdict out of a generateContent response body.

    The model sometimes wraps its JSON in markdown fences; those are removed.
    A reply with no text parses as an empty object.
    """
    try:
        text = data["candidates"][0]["content"]["parts"][0].get("text")
    except (KeyError, IndexError, TypeError, AttributeError):
        text = None

    if text is not None and not isinstance(text, str):
        raise RemoteAnalysisError("Model reply text is not a string")

    cleaned = _FENCE_RE.sub("", text or "").strip()
    try:
        verdict = json.loads(cleaned or "{}")
    except (json.JSONDecodeError, ValueError) as exc:
        raise RemoteAnalysisError(f"Model reply is not valid JSON: {exc}") from exc

    if not isinstance(verdict, dict):
        raise RemoteAnalysisError(
            f"Model reply is JSON {type(verdict).__name__}, expected an object"
        )
    return verdict


class GeminiClient:
    """Thin synchronous client for one-shot threat analysis."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = config.GEMINI_API_KEY if api_key is None else api_key
        self.model = model or config.GEMINI_MODEL
        self.api_base = (api_base or config.GEMINI_API_BASE).rstrip("/")
        self.timeout = config.GEMINI_TIMEOUT_SECONDS if timeout is None else timeout
        # No shared Session by default: handlers run concurrently in a threadpool
        self._http = session

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/models/{self.model}:generateContent"

    def analyze(
        self,
        text: str,
        images: Sequence[str] = (),
        audio_data: Optional[str] = None,
        history: Sequence[HistoryEntry] = (),
    ) -> dict:
        """POST the analysis request and return the parsed verdict dict.

        Raises:
            RemoteAnalysisError: missing key, network failure, non-2xx
                status or a reply that is not a JSON object.
        """
        if not self.api_key:
            raise RemoteAnalysisError("GEMINI_API_KEY is not configured")

        body = build_request_body(text, images, audio_data, history)
        logger.info(
            f"Remote analysis request model={self.model} "
            f"text_len={len(text or '')} images={len(images)} "
            f"audio={'yes' if audio_data else 'no'} history={len(history)}"
        )

        try:
            post = self._http.post if self._http is not None else requests.post
            response = post(
                self.endpoint,
                params={"key": self.api_key},
                json=body,
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
            )
        except requests.exceptions.Timeout as exc:
            raise RemoteAnalysisError("Remote analysis timed out") from exc
        except requests.exceptions.RequestException as exc:
            raise RemoteAnalysisError(f"Remote analysis network error: {exc}") from exc

        if not response.ok:
            logger.error(
                f"Gemini API error: {response.status_code} {response.text[:200]}"
            )
            raise RemoteAnalysisError(
                f"Gemini API error: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise RemoteAnalysisError("Gemini API returned a non-JSON body") from exc

        return parse_model_reply(data)


# Module-level singleton
gemini_client = GeminiClient()
