"""API package for the decision portal."""

from src.api.main import app
from src.api.routes import router

__all__ = ["app", "router"]
