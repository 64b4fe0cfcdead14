"""
Endpoints de lecturas de presión arterial
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from bp_manager.core.database import get_db
from bp_manager.core.dependencies import (
    get_current_user,
    get_pagination_params,
    get_date_range_params,
    DateRangeParams,
    PaginationParams
)
from bp_manager.models.blood_pressure import BloodPressureReading
from bp_manager.models.user import User
from bp_manager.schemas.blood_pressure import ReadingCreate, ReadingUpdate, ReadingResponse, ReadingPage, ReadingStats
from bp_manager.services.blood_pressure_service import BloodPressureService
from bp_manager.utils.timezone import resolve_timezone, start_of_day, end_of_day
from bp_manager.core.config import get_settings

router = APIRouter()

settings = get_settings()


def get_reading_or_404(reading_id: int, current_user: User, service: BloodPressureService) -> BloodPressureReading:
    reading = service.get_reading(reading_id, current_user.id)
    if not reading:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Lectura no encontrada"
        )
    return reading


@router.post("/", response_model=ReadingResponse, status_code=status.HTTP_201_CREATED)
async def create_reading(
        reading_data: ReadingCreate,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Registrar lectura de presión arterial
    """
    return BloodPressureService(db).create_reading(current_user, reading_data)


@router.get("/", response_model=ReadingPage)
async def list_readings(
        abnormal_only: bool = Query(False, description="Solo lecturas anormales"),
        date_range: DateRangeParams = Depends(get_date_range_params),
        pagination: PaginationParams = Depends(get_pagination_params),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Listar lecturas del usuario
    """
    tz = resolve_timezone(current_user.timezone, settings.DEFAULT_TIMEZONE)

    readings, total = BloodPressureService(db).get_readings(
        current_user.id,
        start=start_of_day(date_range.start_date, tz) if date_range.start_date else None,
        end=end_of_day(date_range.end_date, tz) if date_range.end_date else None,
        abnormal_only=abnormal_only,
        skip=pagination.skip,
        limit=pagination.limit
    )

    return {"readings": readings, "total": total, "skip": pagination.skip, "limit": pagination.limit}


@router.get("/stats", response_model=ReadingStats)
async def get_reading_stats(
        days: int = Query(30, ge=1, le=365, description="Días hacia atrás"),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Estadísticas de lecturas
    """
    return BloodPressureService(db).get_stats(current_user.id, days=days)


@router.get("/abnormal", response_model=ReadingPage)
async def list_abnormal_readings(
        pagination: PaginationParams = Depends(get_pagination_params),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Lecturas fuera de los umbrales del usuario
    """
    readings, total = BloodPressureService(db).get_readings(
        current_user.id,
        abnormal_only=True,
        skip=pagination.skip,
        limit=pagination.limit
    )
    return {"readings": readings, "total": total, "skip": pagination.skip, "limit": pagination.limit}


@router.get("/{reading_id}", response_model=ReadingResponse)
async def get_reading(
        reading_id: int,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    return get_reading_or_404(reading_id, current_user, BloodPressureService(db))


@router.put("/{reading_id}", response_model=ReadingResponse)
async def update_reading(
        reading_id: int,
        reading_update: ReadingUpdate,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Actualizar lectura (se reclasifica contra los umbrales actuales)
    """
    service = BloodPressureService(db)
    reading = get_reading_or_404(reading_id, current_user, service)

    try:
        return service.update_reading(reading, reading_update, current_user)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.delete("/{reading_id}")
async def delete_reading(
        reading_id: int,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    service = BloodPressureService(db)
    reading = get_reading_or_404(reading_id, current_user, service)
    service.delete_reading(reading)
    return {"message": "Lectura eliminada exitosamente"}
