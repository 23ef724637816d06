"""Route group exports."""

from . import health, plans

__all__ = ["health", "plans"]
