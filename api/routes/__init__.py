"""API route modules."""
from api.routes import questions

__all__ = ["questions"]
