"""
Modelo de Plantilla de medicamento de un proveedor
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Float, JSON, Enum, ForeignKey, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from bp_manager.core.database import Base
from bp_manager.models.medication import MedicationFrequency


class TemplateCategory(str, enum.Enum):
    HYPERTENSION = "hypertension"
    DIABETES = "diabetes"
    HEART_DISEASE = "heart_disease"
    CHOLESTEROL = "cholesterol"
    ANXIETY = "anxiety"
    DEPRESSION = "depression"
    PAIN_RELIEF = "pain_relief"
    ANTIBIOTICS = "antibiotics"
    VITAMINS = "vitamins"
    OTHER = "other"


class DurationUnit(str, enum.Enum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    YEARS = "years"


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class MedicationTemplate(Base):
    """
    Plantilla reutilizable para prescribir.
    Las públicas solo son visibles para otros cuando un admin las aprueba.
    """
    __tablename__ = "medication_templates"
    __table_args__ = (
        Index("ix_templates_public_approval", "is_public", "approval_status", "is_active"),
    )

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    name = Column(String(100), nullable=False, index=True)
    description = Column(String(500), nullable=True)
    dosage_amount = Column(Float, nullable=False)
    dosage_unit = Column(String(50), nullable=False)
    frequency = Column(Enum(MedicationFrequency), nullable=False)
    custom_schedule = Column(JSON, default=list)

    category = Column(Enum(TemplateCategory), nullable=False, index=True)
    instructions = Column(Text, nullable=True)
    common_side_effects = Column(JSON, default=list)
    warnings = Column(JSON, default=list)
    tags = Column(JSON, default=list)

    default_duration_amount = Column(Integer, nullable=True)
    default_duration_unit = Column(Enum(DurationUnit), nullable=True)

    # Estado
    is_active = Column(Boolean, default=True, nullable=False)
    is_public = Column(Boolean, default=False, nullable=False)
    usage_count = Column(Integer, default=0, nullable=False)

    approval_status = Column(Enum(ApprovalStatus), default=ApprovalStatus.PENDING, nullable=False)
    approved_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relaciones
    provider = relationship("User", foreign_keys=[provider_id])

    def __repr__(self):
        return f"<MedicationTemplate(id={self.id}, name='{self.name}', provider={self.provider_id})>"

    @property
    def provider_name(self):
        return self.provider.full_name if self.provider else None
