"""Route group exports."""

from . import deliveries, health

__all__ = ["deliveries", "health"]
