"""Farmer delivery request/response schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import Shift


class PlanRequest(BaseModel):
    logistic_center_id: str = Field(..., min_length=1)
    pickup_date: date
    shift: Shift
    requested_by: str = Field(default="system", description="Person or system requesting the plan.")
    persist: bool = Field(default=False, description="Also export the plan to a run directory.")


class AddressModel(BaseModel):
    longitude: float
    latitude: float
    label: str
    note: str = ""


class TripStopModel(BaseModel):
    sequence: int
    label: str
    address: AddressModel
    farmer_id: str
    farmer_name: str
    farm_name: str
    farmer_order_ids: List[str]
    expected_containers: int
    expected_weight_kg: float
    status: str
    planned_at: datetime
    loaded_containers_count: int = 0
    loaded_weight_kg: float = 0.0


class StageModel(BaseModel):
    key: str
    label: str
    status: str
    expected_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class DeliveryModel(BaseModel):
    id: str
    logistic_center_id: str
    pickup_date: str
    shift: str
    trip_index: int
    stage_key: str
    stages: List[StageModel]
    stops: List[TripStopModel]
    shift_start_at: datetime
    planned_start_at: Optional[datetime] = None
    planned_end_at: Optional[datetime] = None
    deliverer_id: Optional[str] = None
    total_expected_containers: int
    total_loaded_containers: int
    total_expected_weight_kg: float
    total_loaded_weight_kg: float
    distance_km_planned: Optional[float] = None


class PlanResponse(BaseModel):
    created: bool
    trip_count: int
    deliveries: List[DeliveryModel]


class ShiftSummaryModel(BaseModel):
    date: str
    shift: str
    farmer_order_count: int
    delivery_count: int
    has_plan: bool


class OrderContainerEstimateModel(BaseModel):
    farmer_order_id: str
    farmer_id: str
    item_id: str
    estimated_containers: int
    currently_estimated_containers: int


class ContainerEstimatesResponse(BaseModel):
    orders: List[OrderContainerEstimateModel]
    total_estimated_containers: int
    total_currently_estimated_containers: int
