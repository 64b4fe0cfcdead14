"""
Endpoints específicos del dashboard
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bp_manager.core.database import get_db
from bp_manager.core.dependencies import get_current_user
from bp_manager.models.user import User
from bp_manager.schemas.blood_pressure import ReadingResponse
from bp_manager.services.blood_pressure_service import BloodPressureService
from bp_manager.services.medication_service import MedicationService
from bp_manager.utils.timezone import local_date, utcnow

router = APIRouter()


@router.get("/summary")
async def get_dashboard_summary(
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Resumen del paciente: última lectura, estadísticas de 30 días,
    adherencia de la última semana y resurtidos próximos
    """
    bp_service = BloodPressureService(db)
    medication_service = MedicationService(db)

    latest = bp_service.get_latest_reading(current_user.id)
    today = local_date(utcnow(), medication_service.patient_timezone(current_user))

    adherence = medication_service.get_adherence_summary(current_user)
    adherence.pop("medications")

    return {
        "latestReading": ReadingResponse.model_validate(latest).model_dump() if latest else None,
        "bloodPressure": bp_service.get_stats(current_user.id, days=30),
        "adherence": adherence,
        "activeMedications": len(medication_service.get_medications(current_user.id, active=True)),
        "upcomingRefills": len(medication_service.get_upcoming_refills(current_user.id, today=today)),
    }
