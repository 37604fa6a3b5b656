"""
API Interface - FastAPI REST API over the reasoning engine and the nexus.
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
