"""Domain models for farmer orders, catalog entries, centers and shifts."""

from dataclasses import dataclass
from typing import Literal, Optional

Shift = Literal["morning", "afternoon", "evening", "night"]


@dataclass(slots=True, frozen=True)
class Address:
    """A geocoded location snapshot."""

    longitude: float
    latitude: float
    label: str
    note: str = ""


@dataclass(slots=True)
class PickupRequest:
    """A farmer order waiting to be collected for a center, date and shift."""

    id: str
    logistic_center_id: str
    pickup_date: str
    shift: str
    farmer_id: str
    farmer_name: str
    farm_name: str
    item_id: str
    pickup_address: Optional[Address] = None
    farmer_status: str = "ok"
    final_quantity_kg: Optional[float] = None
    forecasted_quantity_kg: Optional[float] = None
    sum_ordered_quantity_kg: Optional[float] = None


@dataclass(slots=True)
class ItemInfo:
    """Catalog entry used to classify produce for container estimation."""

    id: str
    name: str = ""
    category: Optional[str] = None
    type: Optional[str] = None
    variety: Optional[str] = None
    avg_weight_per_unit_gr: Optional[float] = None


@dataclass(slots=True)
class ContainerSize:
    key: str
    usable_liters: float
    max_weight_kg: float
    name: Optional[str] = None
    vented: bool = False


@dataclass(slots=True)
class LogisticCenter:
    """Represents a warehouse that trips start from and return to."""

    id: str
    address: Address
    timezone: Optional[str] = None


@dataclass(slots=True)
class ShiftConfig:
    """Working-window configuration of one shift at one center, in minutes from midnight."""

    logistic_center_id: str
    name: str
    timezone: str
    general_start_min: int
    general_end_min: int
    industrial_deliverer_start_min: int
    industrial_deliverer_end_min: int
