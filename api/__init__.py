"""
API Module for the lead triage engine.

FastAPI application with routes for:
- Single and batch lead scoring
- Scoring profile discovery
- Health checks
"""

from .main import create_app, app

__all__ = ["create_app", "app"]
