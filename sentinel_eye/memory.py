"""memory.py — Thread-Safe In-Memory Incident Log
================================================

Keeps the analysed inputs of each session so follow-up analyses can send
prior verdicts to the remote engine as context.

Each session tracks:
    - Incidents, newest first (id, timestamp, input, engine, assessment)
    - Last activity time, used for expiry

Thread safety:
    All mutations are protected by a threading.Lock; FastAPI runs the sync
    route handlers in a threadpool.

Session lifecycle:
    1. record()          → Session created on first incident
    2. get_history()     → Summaries fed to the remote engine
    3. clear()           → Explicit reset by the user
    4. _maybe_cleanup()  → Idle sessions purged every 10 minutes
"""

import threading
import uuid
from datetime import datetime, timezone, timedelta
from typing import Dict, List

from sentinel_eye import config
from sentinel_eye.models import HistoryEntry, Incident, RiskAssessment


class IncidentLog:
    """Per-session incident history with a size cap and idle expiry."""

    def __init__(
        self,
        max_incidents: int = config.INCIDENT_HISTORY_LIMIT,
        expiry_seconds: int = config.SESSION_EXPIRY_SECONDS,
    ) -> None:
        self._sessions: Dict[str, dict] = {}
        self._lock = threading.Lock()
        self._last_cleanup: datetime = datetime.now(timezone.utc)
        self.max_incidents = max_incidents
        self.expiry_seconds = expiry_seconds

    def record(
        self,
        session_id: str,
        text: str,
        result: RiskAssessment,
        engine: str,
    ) -> Incident:
        """Prepend an incident; the oldest one is evicted past the cap."""
        now = datetime.now(timezone.utc)
        incident = Incident(
            id=uuid.uuid4().hex[:12],
            timestamp=now.isoformat(),
            input=text,
            engine=engine,
            result=result,
        )
        with self._lock:
            self._maybe_cleanup(now)
            session = self._sessions.setdefault(
                session_id, {"incidents": [], "last_seen": now}
            )
            session["incidents"].insert(0, incident)
            del session["incidents"][self.max_incidents:]
            session["last_seen"] = now
        return incident

    def get_incidents(self, session_id: str) -> List[Incident]:
        """Incidents for a session, newest first."""
        with self._lock:
            session = self._sessions.get(session_id)
            return list(session["incidents"]) if session else []

    def get_history(self, session_id: str) -> List[HistoryEntry]:
        """Prior incidents as "<threat_type>: <status>" summaries, oldest first."""
        return [
            HistoryEntry(
                input=incident.input,
                result=f"{incident.result.threat_type}: {incident.result.status.value}",
            )
            for incident in reversed(self.get_incidents(session_id))
        ]

    def clear(self, session_id: str) -> int:
        """Drop a session's incidents. Returns how many were removed."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
        return len(session["incidents"]) if session else 0

    def get_session_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _maybe_cleanup(self, now: datetime) -> None:
        """Purge idle sessions. Called under lock; runs every 10 minutes max."""
        if (now - self._last_cleanup) < timedelta(minutes=10):
            return

        self._last_cleanup = now
        expiry_threshold = now - timedelta(seconds=self.expiry_seconds)
        expired = [
            sid for sid, sess in self._sessions.items()
            if sess["last_seen"] < expiry_threshold
        ]
        for sid in expired:
            del self._sessions[sid]


# Module-level singleton
incident_log = IncidentLog()
