"""Farmer delivery planning endpoints."""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import date
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...data.centers_repository import resolve_center
from ...db.supabase import get_supabase_client
from ...exceptions import PlannerError
from ...persistence.database import SupabaseStore
from ...persistence.filesystem import FileStorage
from ...persistence.memory import MemoryStore
from ...schemas.deliveries import (
    ContainerEstimatesResponse,
    DeliveryModel,
    PlanRequest,
    PlanResponse,
    ShiftSummaryModel,
)
from ...services.outputs.delivery_formatter import delivery_to_json
from ...services.planning.service import (
    compute_container_estimates,
    ensure_plan_for_shift,
    get_deliveries_for_shift,
    summarize_upcoming_shifts,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/farmer-deliveries", tags=["farmer-deliveries"])


@lru_cache()
def _memory_store() -> MemoryStore:
    logger.warning("Supabase not configured - farmer deliveries are kept in process memory only")
    return MemoryStore()


def get_store() -> SupabaseStore | MemoryStore:
    client = get_supabase_client()
    if client is None:
        return _memory_store()
    return SupabaseStore(client)


def get_center_resolver():
    return resolve_center


def _to_models(deliveries) -> list[DeliveryModel]:
    return [DeliveryModel.model_validate(delivery_to_json(delivery)) for delivery in deliveries]


@router.post("/plan", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
def plan_shift(
    payload: PlanRequest,
    response: Response,
    store=Depends(get_store),
    centers=Depends(get_center_resolver),
) -> PlanResponse:
    try:
        result = ensure_plan_for_shift(
            payload.logistic_center_id,
            payload.pickup_date.isoformat(),
            payload.shift,
            payload.requested_by,
            orders=store,
            catalog=store,
            shifts=store,
            centers=centers,
            storage=FileStorage() if payload.persist else None,
        )
    except PlannerError:
        raise
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error planning {payload.logistic_center_id}/{payload.pickup_date}/{payload.shift}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to plan farmer deliveries: {exc}",
        ) from exc
    if not result.created:
        response.status_code = status.HTTP_200_OK
    return PlanResponse(
        created=result.created,
        trip_count=len(result.deliveries),
        deliveries=_to_models(result.deliveries),
    )


@router.get("", response_model=list[DeliveryModel])
def list_deliveries(
    logistic_center_id: str = Query(..., min_length=1),
    pickup_date: date = Query(...),
    shift: str = Query(...),
    store=Depends(get_store),
) -> list[DeliveryModel]:
    try:
        deliveries = get_deliveries_for_shift(logistic_center_id, pickup_date.isoformat(), shift, orders=store)
    except Exception as exc:
        logger.exception(f"Error loading farmer deliveries: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to load farmer deliveries: {exc}",
        ) from exc
    return _to_models(deliveries)


@router.get("/summary", response_model=list[ShiftSummaryModel])
def shift_summary(
    logistic_center_id: str = Query(..., min_length=1),
    count: Optional[int] = Query(default=None, ge=1, le=28),
    store=Depends(get_store),
) -> list[ShiftSummaryModel]:
    try:
        summaries = summarize_upcoming_shifts(logistic_center_id, orders=store, shifts=store, count=count)
    except Exception as exc:
        logger.exception(f"Error summarizing shifts for {logistic_center_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to summarize shifts: {exc}",
        ) from exc
    return [ShiftSummaryModel(**asdict(summary)) for summary in summaries]


@router.get("/container-estimates", response_model=ContainerEstimatesResponse)
def container_estimates(
    logistic_center_id: str = Query(..., min_length=1),
    pickup_date: date = Query(...),
    shift: str = Query(...),
    store=Depends(get_store),
) -> ContainerEstimatesResponse:
    try:
        estimates = compute_container_estimates(
            logistic_center_id, pickup_date.isoformat(), shift, orders=store, catalog=store
        )
    except Exception as exc:
        logger.exception(f"Error estimating containers for {logistic_center_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to estimate containers: {exc}",
        ) from exc
    return ContainerEstimatesResponse.model_validate(asdict(estimates))
