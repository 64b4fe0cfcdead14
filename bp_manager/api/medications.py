"""
Endpoints de medicamentos, registros de dosis y adherencia
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date, datetime, timedelta

from bp_manager.core.config import get_settings
from bp_manager.core.database import get_db
from bp_manager.core.dependencies import (
    get_current_user,
    get_provider_user,
    get_pagination_params,
    get_date_range_params,
    DateRangeParams,
    PaginationParams
)
from bp_manager.models.medication import Medication
from bp_manager.models.user import User
from bp_manager.schemas.medication import MedicationCreate, MedicationUpdate, MedicationResponse
from bp_manager.schemas.adherence import (
    DoseLogCreate,
    DoseLogResponse,
    DoseLogPage,
    DoseDecisionResponse,
    AdherenceResponse,
    AdherenceSummaryResponse
)
from bp_manager.services.adherence_engine import (
    DoseDecision,
    InvalidRangeError,
    REASON_ALREADY_LOGGED_TODAY,
    REASON_INTERVAL_NOT_ELAPSED
)
from bp_manager.services.medication_service import MedicationService
from bp_manager.utils.timezone import local_date, start_of_day, end_of_day, utcnow

router = APIRouter()

settings = get_settings()

REJECTION_MESSAGES = {
    REASON_ALREADY_LOGGED_TODAY: "Ya registraste la dosis de hoy para este medicamento",
    REASON_INTERVAL_NOT_ELAPSED: "Aún no ha pasado el intervalo mínimo desde la última dosis",
}


def decision_payload(decision: DoseDecision) -> dict:
    """Respuesta informativa de la verificación de dosis"""
    return {
        "allowed": decision.allowed,
        "reason": decision.reason,
        "message": REJECTION_MESSAGES.get(decision.reason) if decision.reason else None,
        "next_allowed_at": decision.next_allowed_at,
    }


def get_owned_medication(
        medication_id: int,
        current_user: User,
        service: MedicationService
) -> Medication:
    medication = service.get_medication(medication_id, current_user.id)
    if not medication:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Medicamento no encontrado"
        )
    return medication


def get_active_medication(
        medication_id: int,
        current_user: User,
        service: MedicationService
) -> Medication:
    """Solo los medicamentos activos aceptan dosis"""
    medication = get_owned_medication(medication_id, current_user, service)
    if not medication.active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Medicamento no encontrado"
        )
    return medication


@router.get("/", response_model=List[MedicationResponse])
async def list_medications(
        active: Optional[bool] = Query(None, description="Filtrar por estado activo"),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Listar medicamentos del usuario actual
    """
    return MedicationService(db).get_medications(current_user.id, active=active)


@router.post("/", response_model=MedicationResponse, status_code=status.HTTP_201_CREATED)
async def create_medication(
        medication_data: MedicationCreate,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Crear nuevo medicamento
    """
    return MedicationService(db).create_medication(current_user.id, medication_data)


@router.get("/refills", response_model=List[MedicationResponse])
async def get_upcoming_refills(
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Medicamentos activos con resurtido próximo
    """
    service = MedicationService(db)
    today = local_date(utcnow(), service.patient_timezone(current_user))
    return service.get_upcoming_refills(current_user.id, today=today)


@router.get("/prescriptions", response_model=List[MedicationResponse])
async def get_my_prescriptions(
        patient_id: Optional[int] = Query(None, description="Filtrar por paciente"),
        active: Optional[bool] = Query(None, description="Filtrar por estado activo"),
        pagination: PaginationParams = Depends(get_pagination_params),
        current_user: User = Depends(get_provider_user),
        db: Session = Depends(get_db)
):
    """
    Medicamentos prescritos por el proveedor actual
    """
    return MedicationService(db).get_prescriptions(
        provider_id=current_user.id,
        patient_id=patient_id,
        active=active,
        skip=pagination.skip,
        limit=pagination.limit
    )


@router.get("/adherence", response_model=AdherenceSummaryResponse)
async def get_adherence_summary(
        days: int = Query(settings.ADHERENCE_WINDOW_DAYS, ge=1, le=365, description="Días hacia atrás"),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Resumen de adherencia de todos los medicamentos del usuario
    """
    return MedicationService(db).get_adherence_summary(current_user, days=days)


@router.get("/{medication_id}", response_model=MedicationResponse)
async def get_medication(
        medication_id: int,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Obtener medicamento específico
    """
    return get_owned_medication(medication_id, current_user, MedicationService(db))


@router.put("/{medication_id}", response_model=MedicationResponse)
async def update_medication(
        medication_id: int,
        medication_update: MedicationUpdate,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Actualizar medicamento
    """
    service = MedicationService(db)
    medication = get_owned_medication(medication_id, current_user, service)

    try:
        return service.update_medication(medication, medication_update)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.delete("/{medication_id}")
async def deactivate_medication(
        medication_id: int,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Desactivar medicamento (el historial de dosis se conserva)
    """
    service = MedicationService(db)
    medication = get_owned_medication(medication_id, current_user, service)
    service.deactivate_medication(medication)
    return {"message": "Medicamento desactivado exitosamente"}


@router.get("/{medication_id}/can-log", response_model=DoseDecisionResponse)
async def can_log_dose(
        medication_id: int,
        taken_at: Optional[datetime] = Query(None, description="Momento a verificar (por defecto ahora)"),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Verificar si se puede registrar una dosis sin registrarla
    """
    service = MedicationService(db)
    medication = get_active_medication(medication_id, current_user, service)

    try:
        decision = service.check_dose(medication, taken_at)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    return decision_payload(decision)


@router.post("/{medication_id}/log", response_model=DoseLogResponse, status_code=status.HTTP_201_CREATED)
async def log_dose(
        medication_id: int,
        dose_data: DoseLogCreate,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Registrar una dosis tomada.
    Responde 409 con un mensaje informativo si la política de intervalo lo impide
    y 400 si la fecha de la toma está en el futuro.
    """
    service = MedicationService(db)
    medication = get_active_medication(medication_id, current_user, service)

    try:
        decision, log = service.log_dose(
            medication,
            taken_at=dose_data.taken_at,
            notes=dose_data.notes,
            side_effects=dose_data.side_effects
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    if not decision.allowed:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=jsonable_encoder(decision_payload(decision))
        )

    return log


@router.get("/{medication_id}/logs", response_model=DoseLogPage)
async def get_dose_logs(
        medication_id: int,
        date_range: DateRangeParams = Depends(get_date_range_params),
        pagination: PaginationParams = Depends(get_pagination_params),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Historial de dosis de un medicamento
    """
    service = MedicationService(db)
    medication = get_owned_medication(medication_id, current_user, service)
    tz = service.patient_timezone(current_user)

    logs, total = service.get_dose_logs(
        medication.id,
        start=start_of_day(date_range.start_date, tz) if date_range.start_date else None,
        end=end_of_day(date_range.end_date, tz) if date_range.end_date else None,
        skip=pagination.skip,
        limit=pagination.limit
    )

    return {"logs": logs, "total": total, "skip": pagination.skip, "limit": pagination.limit}


@router.delete("/{medication_id}/logs/{log_id}")
async def delete_dose_log(
        medication_id: int,
        log_id: int,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Eliminar un registro de dosis propio
    """
    service = MedicationService(db)
    medication = get_owned_medication(medication_id, current_user, service)

    if not service.delete_dose_log(medication.id, log_id, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Registro de dosis no encontrado"
        )

    return {"message": "Registro de dosis eliminado exitosamente"}


@router.get("/{medication_id}/adherence", response_model=AdherenceResponse)
async def get_medication_adherence(
        medication_id: int,
        start_date: Optional[date] = Query(None, description="Fecha de inicio (YYYY-MM-DD)"),
        end_date: Optional[date] = Query(None, description="Fecha de fin (YYYY-MM-DD)"),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Adherencia de un medicamento; por defecto los últimos días configurados
    """
    service = MedicationService(db)
    medication = get_owned_medication(medication_id, current_user, service)

    end = end_date or local_date(utcnow(), service.patient_timezone(current_user))
    start = start_date or end - timedelta(days=settings.ADHERENCE_WINDOW_DAYS - 1)

    try:
        result = service.get_adherence(medication, start, end)
    except InvalidRangeError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    return service.adherence_payload(medication, result)
