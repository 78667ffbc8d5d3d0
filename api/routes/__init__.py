"""API route modules."""
from api.routes import sessions, tests

__all__ = ["sessions", "tests"]
