"""
Endpoints de pacientes para proveedores
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from bp_manager.core.config import get_settings
from bp_manager.core.database import get_db
from bp_manager.core.dependencies import get_provider_user, get_pagination_params, PaginationParams
from bp_manager.models.user import User, UserRole
from bp_manager.schemas.user import PatientCreate, UserResponse
from bp_manager.schemas.medication import PrescriptionCreate, MedicationResponse
from bp_manager.schemas.adherence import AdherenceSummaryResponse
from bp_manager.schemas.blood_pressure import ReadingStats
from bp_manager.services.auth_service import AuthService
from bp_manager.services.blood_pressure_service import BloodPressureService
from bp_manager.services.medication_service import MedicationService

router = APIRouter()

settings = get_settings()


def get_patient_or_404(patient_id: int, provider: User, db: Session) -> User:
    patient = AuthService(db).get_patient_for_provider(patient_id, provider)
    if not patient:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Paciente no encontrado o no está bajo tu cuidado"
        )
    return patient


@router.get("/", response_model=List[UserResponse])
async def list_patients(
        pagination: PaginationParams = Depends(get_pagination_params),
        current_user: User = Depends(get_provider_user),
        db: Session = Depends(get_db)
):
    """
    Listar pacientes del proveedor actual
    """
    return AuthService(db).get_patients_of_provider(
        current_user.id,
        skip=pagination.skip,
        limit=pagination.limit
    )


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_patient(
        patient_data: PatientCreate,
        current_user: User = Depends(get_provider_user),
        db: Session = Depends(get_db)
):
    """
    Dar de alta un paciente bajo el cuidado del proveedor
    """
    auth_service = AuthService(db)

    if auth_service.get_user_by_email(patient_data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="El email ya está registrado"
        )

    return auth_service.create_user(
        email=patient_data.email,
        password=patient_data.password,
        first_name=patient_data.first_name,
        last_name=patient_data.last_name,
        role=UserRole.PATIENT,
        phone=patient_data.phone,
        timezone=patient_data.timezone,
        created_by_id=current_user.id
    )


@router.get("/{patient_id}/medications", response_model=List[MedicationResponse])
async def get_patient_medications(
        patient_id: int,
        active: Optional[bool] = Query(None, description="Filtrar por estado activo"),
        current_user: User = Depends(get_provider_user),
        db: Session = Depends(get_db)
):
    """
    Medicamentos de un paciente
    """
    patient = get_patient_or_404(patient_id, current_user, db)
    return MedicationService(db).get_medications(patient.id, active=active)


@router.post("/{patient_id}/medications", response_model=MedicationResponse, status_code=status.HTTP_201_CREATED)
async def prescribe_medication(
        patient_id: int,
        prescription: PrescriptionCreate,
        current_user: User = Depends(get_provider_user),
        db: Session = Depends(get_db)
):
    """
    Prescribir medicamento a un paciente
    """
    patient = get_patient_or_404(patient_id, current_user, db)
    return MedicationService(db).create_medication(patient.id, prescription, prescriber=current_user)


@router.get("/{patient_id}/adherence", response_model=AdherenceSummaryResponse)
async def get_patient_adherence(
        patient_id: int,
        days: int = Query(settings.ADHERENCE_WINDOW_DAYS, ge=1, le=365),
        current_user: User = Depends(get_provider_user),
        db: Session = Depends(get_db)
):
    """
    Resumen de adherencia de un paciente
    """
    patient = get_patient_or_404(patient_id, current_user, db)
    return MedicationService(db).get_adherence_summary(patient, days=days)


@router.get("/{patient_id}/blood-pressure/stats", response_model=ReadingStats)
async def get_patient_bp_stats(
        patient_id: int,
        days: int = Query(30, ge=1, le=365),
        current_user: User = Depends(get_provider_user),
        db: Session = Depends(get_db)
):
    """
    Estadísticas de presión arterial de un paciente
    """
    patient = get_patient_or_404(patient_id, current_user, db)
    return BloodPressureService(db).get_stats(patient.id, days=days)
