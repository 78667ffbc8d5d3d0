"""FastAPI dependencies."""
from api.dependencies.auth import get_current_student, get_optional_student

__all__ = ["get_current_student", "get_optional_student"]
