"""Exception types raised by the orchestration layer.

The heuristic engine itself never raises; these only describe why the
remote analysis path was abandoned in favour of the local fallback.
"""

from typing import Optional


class SentinelError(Exception):
    """Base class for all Sentinel Eye errors."""


class RemoteAnalysisError(SentinelError):
    """The remote analysis service could not produce a usable verdict.

    Attributes:
        status_code: HTTP status returned by the service, if one was received.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
