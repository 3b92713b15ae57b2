"""
Sentinel Eye — Source Package
==============================

Fraud / social-engineering threat analysis with an offline heuristic fallback:
    - main.py          : FastAPI application entry point
    - service.py       : Remote-first analysis with heuristic fallback
    - gemini_client.py : Remote analysis client (Gemini generateContent)
    - patterns.py      : Threat category keyword tables and matcher
    - detector.py      : Weighted risk aggregator (local heuristic engine)
    - memory.py        : Thread-safe in-memory incident log
    - models.py        : Pydantic request/response schemas
    - config.py        : Environment configuration
    - errors.py        : Exception types
"""

__version__ = "1.0.0"
