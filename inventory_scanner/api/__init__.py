"""
==============================================================================
API Package
==============================================================================

REST API routes mounted under /api.

==============================================================================
"""

from .router import MainAPIRouter, api_router

__all__ = ["MainAPIRouter", "api_router"]
