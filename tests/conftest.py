"""
pytest configuration and shared fixtures for the Sentinel Eye tests.

No test needs network access or a Gemini key: the remote client is either
replaced by a stub or driven through a mocked requests session.
"""

import pytest

from sentinel_eye.detector import RiskAggregator
from sentinel_eye.errors import RemoteAnalysisError


class StubClient:
    """Stands in for GeminiClient. Returns a canned verdict or raises."""

    def __init__(self, verdict=None, error=None):
        self.verdict = verdict
        self.error = error
        self.calls = []

    def analyze(self, text, images=(), audio_data=None, history=()):
        self.calls.append({
            "text": text,
            "images": list(images),
            "audio_data": audio_data,
            "history": list(history),
        })
        if self.error is not None:
            raise self.error
        return self.verdict


@pytest.fixture()
def aggregator():
    return RiskAggregator()


@pytest.fixture()
def offline_client():
    return StubClient(error=RemoteAnalysisError("Testing Offline Mode"))


@pytest.fixture()
def stub_client_factory():
    """Build a StubClient with a given verdict or error."""
    return StubClient
