"""
Servicio de plantillas de medicamento para proveedores
"""
from sqlalchemy.orm import Session
from sqlalchemy import and_, or_
from typing import List, Optional, Tuple
from datetime import date, timedelta

from bp_manager.models.medication import Medication
from bp_manager.models.medication_template import (
    MedicationTemplate, TemplateCategory, DurationUnit, ApprovalStatus
)
from bp_manager.models.user import User
from bp_manager.schemas.medication import MedicationBase
from bp_manager.schemas.medication_template import TemplateCreate, TemplateUpdate, TemplatePrescription
from bp_manager.services.medication_service import MedicationService
from bp_manager.utils.timezone import utcnow
import logging

logger = logging.getLogger(__name__)

TEMPLATE_CATEGORY_LABELS = {
    TemplateCategory.HYPERTENSION: "Hipertensión",
    TemplateCategory.DIABETES: "Diabetes",
    TemplateCategory.HEART_DISEASE: "Enfermedad cardíaca",
    TemplateCategory.CHOLESTEROL: "Colesterol",
    TemplateCategory.ANXIETY: "Ansiedad",
    TemplateCategory.DEPRESSION: "Depresión",
    TemplateCategory.PAIN_RELIEF: "Alivio del dolor",
    TemplateCategory.ANTIBIOTICS: "Antibióticos",
    TemplateCategory.VITAMINS: "Vitaminas y suplementos",
    TemplateCategory.OTHER: "Otro",
}

# Aproximación en días para calcular la fecha de fin
_DURATION_DAYS = {
    DurationUnit.DAYS: 1,
    DurationUnit.WEEKS: 7,
    DurationUnit.MONTHS: 30,
    DurationUnit.YEARS: 365,
}


def template_end_date(template: MedicationTemplate, start_date: date) -> Optional[date]:
    """Fecha de fin según la duración por defecto de la plantilla (inclusiva)"""
    if not template.default_duration_amount or not template.default_duration_unit:
        return None
    days = template.default_duration_amount * _DURATION_DAYS[template.default_duration_unit]
    return start_date + timedelta(days=days - 1)


class MedicationTemplateService:
    """Servicio para plantillas de medicamento"""

    def __init__(self, db: Session):
        self.db = db

    def _public_filter(self):
        return and_(
            MedicationTemplate.is_public.is_(True),
            MedicationTemplate.approval_status == ApprovalStatus.APPROVED
        )

    def _apply_filters(self, query, category: Optional[TemplateCategory], search: Optional[str]):
        if category:
            query = query.filter(MedicationTemplate.category == category)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                MedicationTemplate.name.ilike(pattern),
                MedicationTemplate.description.ilike(pattern)
            ))
        return query

    def create_template(self, provider: User, template_data: TemplateCreate) -> MedicationTemplate:
        data = template_data.dict(exclude={"custom_schedule"})
        template = MedicationTemplate(
            provider_id=provider.id,
            custom_schedule=[item.model_dump(mode="json") for item in template_data.custom_schedule],
            is_active=True,
            usage_count=0,
            approval_status=ApprovalStatus.PENDING,
            **data
        )
        self.db.add(template)
        self.db.commit()
        self.db.refresh(template)

        logger.info(f"Plantilla creada: {template.name} (ID: {template.id}, proveedor {provider.id})")
        return template

    def get_accessible_templates(
            self,
            provider_id: int,
            category: Optional[TemplateCategory] = None,
            search: Optional[str] = None,
            skip: int = 0,
            limit: int = 20
    ) -> Tuple[List[MedicationTemplate], int]:
        """Plantillas propias más las públicas aprobadas"""
        query = self.db.query(MedicationTemplate).filter(
            MedicationTemplate.is_active.is_(True),
            or_(MedicationTemplate.provider_id == provider_id, self._public_filter())
        )
        query = self._apply_filters(query, category, search)

        total = query.count()
        templates = query.order_by(
            MedicationTemplate.created_at.desc(), MedicationTemplate.id.desc()
        ).offset(skip).limit(limit).all()
        return templates, total

    def get_public_templates(
            self,
            category: Optional[TemplateCategory] = None,
            search: Optional[str] = None,
            skip: int = 0,
            limit: int = 20
    ) -> Tuple[List[MedicationTemplate], int]:
        """Plantillas públicas aprobadas, más usadas primero"""
        query = self.db.query(MedicationTemplate).filter(
            MedicationTemplate.is_active.is_(True),
            self._public_filter()
        )
        query = self._apply_filters(query, category, search)

        total = query.count()
        templates = query.order_by(
            MedicationTemplate.usage_count.desc(),
            MedicationTemplate.created_at.desc(),
            MedicationTemplate.id.desc()
        ).offset(skip).limit(limit).all()
        return templates, total

    def get_template(self, template_id: int, user: User) -> Optional[MedicationTemplate]:
        """Plantilla activa visible para el usuario (propia o pública aprobada)"""
        query = self.db.query(MedicationTemplate).filter(
            MedicationTemplate.id == template_id,
            MedicationTemplate.is_active.is_(True)
        )
        if not user.is_admin:
            query = query.filter(or_(MedicationTemplate.provider_id == user.id, self._public_filter()))
        return query.first()

    def get_own_template(self, template_id: int, provider_id: int) -> Optional[MedicationTemplate]:
        return self.db.query(MedicationTemplate).filter(
            MedicationTemplate.id == template_id,
            MedicationTemplate.provider_id == provider_id,
            MedicationTemplate.is_active.is_(True)
        ).first()

    def update_template(self, template: MedicationTemplate, template_data: TemplateUpdate) -> MedicationTemplate:
        """
        Reemplazar la plantilla.
        Una plantilla pública modificada vuelve a revisión.
        """
        data = template_data.dict(exclude={"custom_schedule"})
        for field, value in data.items():
            setattr(template, field, value)
        template.custom_schedule = [item.model_dump(mode="json") for item in template_data.custom_schedule]

        if template.is_public:
            template.approval_status = ApprovalStatus.PENDING
            template.approved_by_id = None
            template.approved_at = None

        self.db.commit()
        self.db.refresh(template)
        return template

    def deactivate_template(self, template: MedicationTemplate) -> MedicationTemplate:
        template.is_active = False
        self.db.commit()
        logger.info(f"Plantilla desactivada: {template.id}")
        return template

    def get_categories(self) -> List[dict]:
        return [
            {"value": category.value, "label": TEMPLATE_CATEGORY_LABELS[category]}
            for category in TemplateCategory
        ]

    def get_pending_templates(self, skip: int = 0, limit: int = 20) -> Tuple[List[MedicationTemplate], int]:
        query = self.db.query(MedicationTemplate).filter(
            MedicationTemplate.is_active.is_(True),
            MedicationTemplate.is_public.is_(True),
            MedicationTemplate.approval_status == ApprovalStatus.PENDING
        )
        total = query.count()
        templates = query.order_by(
            MedicationTemplate.created_at.desc(), MedicationTemplate.id.desc()
        ).offset(skip).limit(limit).all()
        return templates, total

    def review_template(self, template_id: int, admin: User, approve: bool) -> Optional[MedicationTemplate]:
        """Aprobar o rechazar una plantilla pública pendiente"""
        template = self.db.query(MedicationTemplate).filter(
            MedicationTemplate.id == template_id,
            MedicationTemplate.is_public.is_(True),
            MedicationTemplate.approval_status == ApprovalStatus.PENDING
        ).first()
        if not template:
            return None

        template.approval_status = ApprovalStatus.APPROVED if approve else ApprovalStatus.REJECTED
        template.approved_by_id = admin.id
        template.approved_at = utcnow()
        self.db.commit()
        self.db.refresh(template)

        logger.info(f"Plantilla {template.id} {template.approval_status.value} por admin {admin.id}")
        return template

    def prescribe_from_template(
            self,
            template: MedicationTemplate,
            patient: User,
            provider: User,
            prescription: TemplatePrescription
    ) -> Medication:
        """Crear el medicamento del paciente a partir de la plantilla y contar el uso"""
        medication_data = MedicationBase(
            name=template.name,
            dosage_amount=template.dosage_amount,
            dosage_unit=template.dosage_unit,
            frequency=template.frequency,
            custom_schedule=template.custom_schedule or [],
            start_date=prescription.start_date,
            end_date=prescription.end_date or template_end_date(template, prescription.start_date),
            instructions=template.instructions,
            side_effects=template.common_side_effects or [],
            pills_remaining=prescription.pills_remaining,
            refill_date=prescription.refill_date
        )

        template.usage_count = (template.usage_count or 0) + 1
        medication = MedicationService(self.db).create_medication(patient.id, medication_data, prescriber=provider)

        logger.info(f"Plantilla {template.id} usada para medicamento {medication.id}")
        return medication
