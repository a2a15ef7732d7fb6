"""API route handlers."""

from api.routes import deposits, health

__all__ = ["deposits", "health"]
