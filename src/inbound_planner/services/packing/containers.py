"""Stateless container capacity estimates for produce quantities.

Answers "how many containers do we need for X kg of this item?" from the item's
produce bucket (which fixes a density in kg/L) and the configured container
sizes. Bad or missing catalog data yields zero containers instead of an error.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from ...models.domain import ContainerSize, ItemInfo

# density by bucket (kg/L)
DENSITY_KG_PER_L: dict[str, float] = {
    "leafy": 0.15,
    "herbs": 0.15,
    "berries": 0.35,
    "tomatoes": 0.6,
    "cucumbers": 0.6,
    "peppers": 0.6,
    "apples": 0.65,
    "citrus": 0.7,
    "roots": 0.8,
    "bundled": 0.5,
    "generic": 0.5,
}

_LEAFY_TYPES = ("lettuce", "spinach", "kale", "chard", "arugula")
_ROOT_WORDS = ("carrot", "potato", "beet", "root")
_BUNDLED_TYPES = ("egg", "bread", "milk")


@dataclass(slots=True)
class ContainerCapacity:
    container_key: str
    container_name: Optional[str]
    usable_liters: float
    density_kg_per_l: float
    max_kg_by_volume: float
    max_kg_by_weight_limit: float
    limiting_kg: float
    limiting_factor: Literal["weight", "volume"]


@dataclass(slots=True)
class ContainerEstimate:
    item_id: str
    quantity_kg: float
    container_key: str
    container_name: Optional[str]
    containers_needed: int
    capacity_kg_per_container: float
    limiting_factor: Literal["weight", "volume"]


def _round2(value: float) -> float:
    return round(value + 1e-12, 2)


def produce_bucket(item: ItemInfo) -> str:
    """Classify an item into the bucket that determines its packing density."""

    t = (item.type or "").lower()
    v = (item.variety or "").lower()
    c = (item.category or "").lower()

    if "leaf" in c or any(word in t for word in _LEAFY_TYPES):
        return "leafy"
    if "herb" in t:
        return "herbs"
    if "strawberry" in t or "blueberry" in t or "berry" in v:
        return "berries"
    if "tomato" in t:
        return "tomatoes"
    if "cucumber" in t:
        return "cucumbers"
    if "pepper" in t:
        return "peppers"
    if "apple" in t:
        return "apples"
    if "orange" in t or "mandarin" in t or "citrus" in c:
        return "citrus"
    if any(word in t or word in c for word in _ROOT_WORDS):
        return "roots"
    if any(word in t for word in _BUNDLED_TYPES):
        return "bundled"
    return "generic"


def estimate_capacity(item: ItemInfo, container: ContainerSize) -> ContainerCapacity:
    density = DENSITY_KG_PER_L.get(produce_bucket(item), DENSITY_KG_PER_L["generic"])
    max_by_volume = _round2(container.usable_liters * density)
    max_by_weight = container.max_weight_kg
    limiting_kg = _round2(min(max_by_volume, max_by_weight))
    return ContainerCapacity(
        container_key=container.key,
        container_name=container.name,
        usable_liters=container.usable_liters,
        density_kg_per_l=density,
        max_kg_by_volume=max_by_volume,
        max_kg_by_weight_limit=max_by_weight,
        limiting_kg=limiting_kg,
        limiting_factor="weight" if max_by_weight < max_by_volume else "volume",
    )


def pick_best_container(capacities: Sequence[ContainerCapacity], total_kg: float) -> ContainerCapacity | None:
    """Smallest container that holds everything in one, otherwise the largest one."""

    viable = sorted((cap for cap in capacities if cap.limiting_kg > 0), key=lambda cap: cap.limiting_kg)
    if not viable:
        return None
    for capacity in viable:
        if capacity.limiting_kg >= total_kg:
            return capacity
    return viable[-1]


def estimate_for_quantity(
    item: ItemInfo,
    quantity_kg: float,
    containers: Sequence[ContainerSize],
) -> ContainerEstimate | None:
    if not quantity_kg or quantity_kg <= 0 or not containers:
        return None

    best = pick_best_container([estimate_capacity(item, c) for c in containers], quantity_kg)
    if best is None:
        return None

    return ContainerEstimate(
        item_id=item.id,
        quantity_kg=_round2(quantity_kg),
        container_key=best.container_key,
        container_name=best.container_name,
        containers_needed=math.ceil(quantity_kg / best.limiting_kg),
        capacity_kg_per_container=best.limiting_kg,
        limiting_factor=best.limiting_factor,
    )


def estimate_containers(
    item: ItemInfo | None,
    quantity_kg: float,
    containers: Sequence[ContainerSize],
) -> int:
    """Number of containers needed for ``quantity_kg`` of ``item``; 0 when unknown."""

    if item is None:
        return 0
    estimate = estimate_for_quantity(item, quantity_kg, containers)
    return estimate.containers_needed if estimate else 0
