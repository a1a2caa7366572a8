"""
API Routes for the lead triage engine.
"""

from . import leads

__all__ = ["leads"]
