"""
Servicio de gestión de medicamentos, registros de dosis y adherencia
"""
from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
from datetime import date, datetime, timedelta, tzinfo

from bp_manager.core.config import get_settings
from bp_manager.models.medication import Medication, MedicationFrequency
from bp_manager.models.dose_log import DoseLog
from bp_manager.models.user import User
from bp_manager.schemas.medication import MedicationBase, MedicationUpdate
from bp_manager.services.adherence_engine import (
    AdherenceResult,
    DoseDecision,
    adherence_level,
    can_log_dose,
    compute_adherence,
    summarize_adherence,
)
from bp_manager.utils.timezone import as_utc, local_date, local_day_bounds, resolve_timezone, utcnow
import logging

logger = logging.getLogger(__name__)

settings = get_settings()


class MedicationService:
    """Servicio para gestión de medicamentos de un paciente"""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Medicamentos
    # ------------------------------------------------------------------

    def get_medications(
            self,
            patient_id: int,
            active: Optional[bool] = None
    ) -> List[Medication]:
        """Obtener medicamentos de un paciente"""
        query = self.db.query(Medication).filter(Medication.patient_id == patient_id)

        if active is not None:
            query = query.filter(Medication.active.is_(active))

        return query.order_by(Medication.created_at.desc(), Medication.id.desc()).all()

    def get_medication(self, medication_id: int, patient_id: int) -> Optional[Medication]:
        """Obtener medicamento del paciente por ID"""
        return self.db.query(Medication).filter(
            Medication.id == medication_id,
            Medication.patient_id == patient_id
        ).first()

    def create_medication(
            self,
            patient_id: int,
            medication_data: MedicationBase,
            prescriber: Optional[User] = None
    ) -> Medication:
        """Crear medicamento; si hay prescriptor se guarda quién lo prescribió"""
        data = medication_data.dict(exclude={"custom_schedule"})
        db_medication = Medication(
            patient_id=patient_id,
            custom_schedule=[item.model_dump(mode="json") for item in medication_data.custom_schedule],
            active=True,
            **data
        )

        if prescriber is not None:
            db_medication.prescribed_by_id = prescriber.id
            db_medication.prescribed_by_name = prescriber.full_name
            db_medication.prescribed_by_contact = prescriber.email

        self.db.add(db_medication)
        self.db.commit()
        self.db.refresh(db_medication)

        logger.info(f"Medicamento creado: {db_medication.full_name} (ID: {db_medication.id}, paciente {patient_id})")
        return db_medication

    def update_medication(
            self,
            medication: Medication,
            medication_update: MedicationUpdate
    ) -> Medication:
        """
        Actualizar medicamento.
        Lanza ValueError si el resultado rompe la regla de horario custom
        o el orden de fechas.
        """
        update_data = medication_update.dict(exclude_unset=True, exclude={"custom_schedule"})
        if medication_update.custom_schedule is not None:
            update_data["custom_schedule"] = [
                item.model_dump(mode="json") for item in medication_update.custom_schedule
            ]

        for field, value in update_data.items():
            if hasattr(medication, field):
                setattr(medication, field, value)

        if medication.frequency == MedicationFrequency.CUSTOM:
            if not medication.custom_schedule:
                self.db.rollback()
                raise ValueError("La frecuencia custom requiere al menos un horario")
        else:
            medication.custom_schedule = []

        if medication.end_date is not None and medication.end_date < medication.start_date:
            self.db.rollback()
            raise ValueError("La fecha de fin debe ser igual o posterior a la fecha de inicio")

        self.db.commit()
        self.db.refresh(medication)

        logger.info(f"Medicamento actualizado: {medication.full_name} (ID: {medication.id})")
        return medication

    def deactivate_medication(self, medication: Medication, now: Optional[datetime] = None) -> Medication:
        """Desactivar medicamento; nunca se elimina para conservar el historial"""
        if medication.active:
            medication.active = False
            medication.deactivated_at = now or utcnow()
            self.db.commit()
            self.db.refresh(medication)
            logger.info(f"Medicamento desactivado: {medication.full_name} (ID: {medication.id})")
        return medication

    def get_upcoming_refills(self, patient_id: int, today: Optional[date] = None) -> List[Medication]:
        """Medicamentos activos con resurtido en los próximos días"""
        today = today or date.today()
        limit_date = today + timedelta(days=settings.REFILL_LOOKAHEAD_DAYS)

        return self.db.query(Medication).filter(
            Medication.patient_id == patient_id,
            Medication.active.is_(True),
            Medication.refill_date.isnot(None),
            Medication.refill_date >= today,
            Medication.refill_date <= limit_date
        ).order_by(Medication.refill_date).all()

    def get_prescriptions(
            self,
            provider_id: int,
            patient_id: Optional[int] = None,
            active: Optional[bool] = None,
            skip: int = 0,
            limit: int = 100
    ) -> List[Medication]:
        """Medicamentos prescritos por un proveedor"""
        query = self.db.query(Medication).filter(Medication.prescribed_by_id == provider_id)

        if patient_id:
            query = query.filter(Medication.patient_id == patient_id)

        if active is not None:
            query = query.filter(Medication.active.is_(active))

        return query.order_by(Medication.created_at.desc(), Medication.id.desc()).offset(skip).limit(limit).all()

    # ------------------------------------------------------------------
    # Registros de dosis
    # ------------------------------------------------------------------

    def patient_timezone(self, patient: Optional[User]) -> tzinfo:
        """Zona horaria del paciente para comparar días calendario"""
        name = patient.timezone if patient is not None else None
        return resolve_timezone(name, settings.DEFAULT_TIMEZONE)

    def get_latest_dose_log(self, medication_id: int, until: Optional[datetime] = None) -> Optional[DoseLog]:
        """Último registro vigente en o antes de `until` (taken_at desc, id desc)"""
        query = self.db.query(DoseLog).filter(
            DoseLog.medication_id == medication_id,
            DoseLog.deleted_at.is_(None)
        )
        if until is not None:
            query = query.filter(DoseLog.taken_at <= until)
        return query.order_by(DoseLog.taken_at.desc(), DoseLog.id.desc()).first()

    def get_next_dose_log(self, medication_id: int, after: datetime) -> Optional[DoseLog]:
        """Primer registro vigente posterior a `after`"""
        return self.db.query(DoseLog).filter(
            DoseLog.medication_id == medication_id,
            DoseLog.deleted_at.is_(None),
            DoseLog.taken_at > after
        ).order_by(DoseLog.taken_at.asc(), DoseLog.id.asc()).first()

    def resolve_dose_time(self, at: Optional[datetime] = None, now: Optional[datetime] = None) -> datetime:
        """
        Momento de la toma en UTC; por defecto ahora.
        Lanza ValueError si está en el futuro más allá de la tolerancia de reloj.
        """
        now = now or utcnow()
        if at is None:
            return now

        when = as_utc(at)
        if when > now + timedelta(minutes=settings.DOSE_CLOCK_SKEW_MINUTES):
            raise ValueError("No se puede registrar una dosis con fecha futura")
        return when

    def check_dose(
            self,
            medication: Medication,
            at: Optional[datetime] = None
    ) -> DoseDecision:
        """
        Verificar sin registrar si se puede tomar una dosis.
        Se comparan los registros vecinos de `at` para admitir dosis atrasadas.
        """
        when = self.resolve_dose_time(at)
        history = [
            self.get_latest_dose_log(medication.id, until=when),
            self.get_next_dose_log(medication.id, after=when),
        ]
        return can_log_dose(medication, history, when, self.patient_timezone(medication.patient))

    def log_dose(
            self,
            medication: Medication,
            taken_at: Optional[datetime] = None,
            notes: Optional[str] = None,
            side_effects: Optional[List[str]] = None
    ) -> Tuple[DoseDecision, Optional[DoseLog]]:
        """
        Registrar una dosis si la política de intervalo lo permite.

        Bloquea la fila del medicamento durante verificar-y-agregar para que
        dos solicitudes concurrentes no pasen ambas con el mismo historial.
        Lanza ValueError si `taken_at` está en el futuro.
        """
        when = self.resolve_dose_time(taken_at)

        # SELECT ... FOR UPDATE (ignorado en SQLite)
        self.db.query(Medication).filter(Medication.id == medication.id).with_for_update().first()

        decision = self.check_dose(medication, when)
        if not decision.allowed:
            self.db.rollback()
            logger.info(
                f"Dosis rechazada para medicamento {medication.id}: {decision.reason} "
                f"(siguiente: {decision.next_allowed_at})"
            )
            return decision, None

        log = DoseLog(
            medication_id=medication.id,
            patient_id=medication.patient_id,
            taken_at=when,
            notes=notes,
            side_effects=side_effects or []
        )
        self.db.add(log)

        if medication.pills_remaining:
            medication.pills_remaining -= 1

        self.db.commit()
        self.db.refresh(log)

        logger.info(f"Dosis registrada: medicamento {medication.id}, log {log.id} a las {when.isoformat()}")
        return decision, log

    def get_dose_logs(
            self,
            medication_id: int,
            start: Optional[datetime] = None,
            end: Optional[datetime] = None,
            skip: int = 0,
            limit: int = 50
    ) -> Tuple[List[DoseLog], int]:
        """Registros vigentes de un medicamento, más recientes primero"""
        query = self.db.query(DoseLog).filter(
            DoseLog.medication_id == medication_id,
            DoseLog.deleted_at.is_(None)
        )

        if start:
            query = query.filter(DoseLog.taken_at >= start)
        if end:
            query = query.filter(DoseLog.taken_at <= end)

        total = query.count()
        logs = query.order_by(DoseLog.taken_at.desc(), DoseLog.id.desc()).offset(skip).limit(limit).all()
        return logs, total

    def delete_dose_log(self, medication_id: int, log_id: int, patient_id: int) -> bool:
        """Borrado lógico de un registro, solo por el paciente dueño"""
        log = self.db.query(DoseLog).filter(
            DoseLog.id == log_id,
            DoseLog.medication_id == medication_id,
            DoseLog.patient_id == patient_id,
            DoseLog.deleted_at.is_(None)
        ).first()

        if not log:
            return False

        log.deleted_at = utcnow()
        self.db.commit()

        logger.info(f"Registro de dosis {log_id} eliminado por paciente {patient_id}")
        return True

    # ------------------------------------------------------------------
    # Adherencia
    # ------------------------------------------------------------------

    def get_adherence(
            self,
            medication: Medication,
            start: date,
            end: date
    ) -> AdherenceResult:
        """
        Adherencia de un medicamento entre dos fechas locales del paciente.
        Lanza InvalidRangeError si start > end.
        """
        tz = self.patient_timezone(medication.patient)
        query = self.db.query(DoseLog).filter(
            DoseLog.medication_id == medication.id,
            DoseLog.deleted_at.is_(None)
        )

        if start <= end:
            window_start, _ = local_day_bounds(start, tz)
            _, window_end = local_day_bounds(end, tz)
            query = query.filter(DoseLog.taken_at >= window_start, DoseLog.taken_at <= window_end)

        return compute_adherence(medication, query.all(), start, end, tz)

    def adherence_payload(self, medication: Medication, result: AdherenceResult) -> dict:
        """Respuesta serializable de la adherencia de un medicamento"""
        return {
            "medication_id": medication.id,
            "medication_name": medication.name,
            "frequency": medication.frequency,
            "active": medication.active,
            "window_start": result.window_start,
            "window_end": result.window_end,
            "expected_doses": result.expected_doses,
            "actual_doses": result.actual_doses,
            "rate_percent": result.rate_percent,
            "excess_doses": result.excess_doses,
            "over_logged": result.over_logged,
            "level": adherence_level(
                result.rate_percent,
                good=settings.ADHERENCE_GOOD_THRESHOLD,
                fair=settings.ADHERENCE_FAIR_THRESHOLD
            ),
        }

    def get_adherence_summary(
            self,
            patient: User,
            days: Optional[int] = None,
            now: Optional[datetime] = None
    ) -> dict:
        """
        Resumen de adherencia de los últimos `days` días locales
        (incluido hoy) para todos los medicamentos del paciente.
        Los inactivos solo se incluyen si se desactivaron dentro de la ventana.
        """
        days = days or settings.ADHERENCE_WINDOW_DAYS
        tz = self.patient_timezone(patient)
        end = local_date(now or utcnow(), tz)
        start = end - timedelta(days=days - 1)

        medications = [
            m for m in self.get_medications(patient.id)
            if m.active or (m.deactivated_at is not None and local_date(m.deactivated_at, tz) >= start)
        ]

        results = []
        payloads = []
        for medication in medications:
            result = self.get_adherence(medication, start, end)
            results.append(result)
            payloads.append(self.adherence_payload(medication, result))

        summary = summarize_adherence(results)
        summary.update({
            "patient_id": patient.id,
            "days": days,
            "level": adherence_level(
                summary["rate_percent"],
                good=settings.ADHERENCE_GOOD_THRESHOLD,
                fair=settings.ADHERENCE_FAIR_THRESHOLD
            ),
            "medications": payloads,
        })
        return summary
