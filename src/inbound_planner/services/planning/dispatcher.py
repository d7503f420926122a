"""Factory for trip packing strategies based on configuration."""

from __future__ import annotations

from typing import Any

from .base import SlaLimits, TripPackingStrategy
from .greedy import GreedyTripPacker


def get_strategy(name: str, **kwargs: Any) -> TripPackingStrategy:
    match name:
        case "greedy":
            limits = kwargs.get("limits")
            return GreedyTripPacker(limits=limits if isinstance(limits, SlaLimits) else None)
        case _:
            raise ValueError(f"Unknown packing strategy '{name}'.")
