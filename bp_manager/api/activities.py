"""
Endpoints de actividades de estilo de vida
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from bp_manager.core.config import get_settings
from bp_manager.core.database import get_db
from bp_manager.core.dependencies import (
    get_current_user,
    get_pagination_params,
    get_date_range_params,
    DateRangeParams,
    PaginationParams
)
from bp_manager.models.activity import Activity, ActivityType
from bp_manager.models.user import User
from bp_manager.schemas.activity import (
    ActivityCreate, ActivityUpdate, ActivityResponse, ActivityPage, ActivityTypeStats
)
from bp_manager.services.activity_service import ActivityService
from bp_manager.utils.timezone import resolve_timezone, start_of_day, end_of_day

router = APIRouter()

settings = get_settings()


def get_activity_or_404(activity_id: int, current_user: User, service: ActivityService) -> Activity:
    activity = service.get_activity(activity_id, current_user.id)
    if not activity:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Actividad no encontrada"
        )
    return activity


def _date_bounds(date_range: DateRangeParams, current_user: User):
    tz = resolve_timezone(current_user.timezone, settings.DEFAULT_TIMEZONE)
    start = start_of_day(date_range.start_date, tz) if date_range.start_date else None
    end = end_of_day(date_range.end_date, tz) if date_range.end_date else None
    return start, end


@router.post("/", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
async def create_activity(
        activity_data: ActivityCreate,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Registrar ejercicio, dieta, peso o manejo de estrés
    """
    return ActivityService(db).create_activity(current_user.id, activity_data)


@router.get("/", response_model=ActivityPage)
async def list_activities(
        type: Optional[ActivityType] = Query(None, description="Filtrar por tipo"),
        date_range: DateRangeParams = Depends(get_date_range_params),
        pagination: PaginationParams = Depends(get_pagination_params),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    start, end = _date_bounds(date_range, current_user)
    activities, total = ActivityService(db).get_activities(
        current_user.id,
        activity_type=type,
        start=start,
        end=end,
        skip=pagination.skip,
        limit=pagination.limit
    )
    return {"activities": activities, "total": total, "skip": pagination.skip, "limit": pagination.limit}


@router.get("/stats", response_model=List[ActivityTypeStats])
async def get_activity_stats(
        type: Optional[ActivityType] = Query(None, description="Filtrar por tipo"),
        date_range: DateRangeParams = Depends(get_date_range_params),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Estadísticas por tipo de actividad
    """
    start, end = _date_bounds(date_range, current_user)
    return ActivityService(db).get_stats(current_user.id, activity_type=type, start=start, end=end)


@router.get("/{activity_id}", response_model=ActivityResponse)
async def get_activity(
        activity_id: int,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    return get_activity_or_404(activity_id, current_user, ActivityService(db))


@router.put("/{activity_id}", response_model=ActivityResponse)
async def update_activity(
        activity_id: int,
        activity_data: ActivityUpdate,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    service = ActivityService(db)
    activity = get_activity_or_404(activity_id, current_user, service)
    return service.update_activity(activity, activity_data)


@router.delete("/{activity_id}")
async def delete_activity(
        activity_id: int,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    service = ActivityService(db)
    activity = get_activity_or_404(activity_id, current_user, service)
    service.delete_activity(activity)
    return {"message": "Actividad eliminada exitosamente"}
