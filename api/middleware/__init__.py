"""
API Middleware.
"""

from .auth import api_key_auth

__all__ = ["api_key_auth"]
