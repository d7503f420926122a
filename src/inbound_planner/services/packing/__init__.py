"""Container estimation helpers."""

from .containers import estimate_containers, estimate_for_quantity, produce_bucket

__all__ = ["estimate_containers", "estimate_for_quantity", "produce_bucket"]
