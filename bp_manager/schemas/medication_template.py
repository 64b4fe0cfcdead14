"""
Esquemas Pydantic para Plantillas de medicamento
"""
from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import date, datetime
from bp_manager.models.medication import MedicationFrequency
from bp_manager.models.medication_template import TemplateCategory, DurationUnit, ApprovalStatus
from bp_manager.schemas.medication import CustomScheduleItem


def _clean_list(v):
    if v:
        return list(dict.fromkeys(filter(None, [item.strip() for item in v])))
    return []


class TemplateBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    dosage_amount: float = Field(..., ge=0)
    dosage_unit: str = Field(..., min_length=1, max_length=50)
    frequency: MedicationFrequency
    custom_schedule: List[CustomScheduleItem] = Field(default=[])
    category: TemplateCategory
    instructions: Optional[str] = Field(None, max_length=1000)
    common_side_effects: List[str] = Field(default=[])
    warnings: List[str] = Field(default=[])
    tags: List[str] = Field(default=[])
    default_duration_amount: Optional[int] = Field(None, ge=1)
    default_duration_unit: Optional[DurationUnit] = None
    is_public: bool = False

    @validator('name', 'dosage_unit')
    def strip_text(cls, v):
        if not v.strip():
            raise ValueError('El campo no puede estar vacío')
        return v.strip()

    @validator('custom_schedule', always=True)
    def validate_custom_schedule(cls, v, values):
        frequency = values.get('frequency')
        if frequency == MedicationFrequency.CUSTOM and not v:
            raise ValueError('La frecuencia custom requiere al menos un horario')
        if frequency != MedicationFrequency.CUSTOM:
            return []
        return v

    @validator('common_side_effects', 'warnings', 'tags')
    def validate_lists(cls, v):
        return _clean_list(v)

    @validator('default_duration_unit', always=True)
    def validate_duration(cls, v, values):
        if values.get('default_duration_amount') is not None and v is None:
            raise ValueError('La duración requiere una unidad')
        return v


class TemplateCreate(TemplateBase):
    pass


class TemplateUpdate(TemplateBase):
    """Reemplaza la plantilla completa"""
    pass


class TemplateResponse(BaseModel):
    id: int
    provider_id: int
    provider_name: Optional[str] = None
    name: str
    description: Optional[str] = None
    dosage_amount: float
    dosage_unit: str
    frequency: MedicationFrequency
    custom_schedule: List[CustomScheduleItem] = []
    category: TemplateCategory
    instructions: Optional[str] = None
    common_side_effects: List[str] = []
    warnings: List[str] = []
    tags: List[str] = []
    default_duration_amount: Optional[int] = None
    default_duration_unit: Optional[DurationUnit] = None
    is_active: bool
    is_public: bool
    usage_count: int
    approval_status: ApprovalStatus
    approved_by_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @validator('custom_schedule', 'common_side_effects', 'warnings', 'tags', pre=True)
    def none_to_list(cls, v):
        return v or []


class TemplatePage(BaseModel):
    templates: List[TemplateResponse]
    total: int
    skip: int
    limit: int


class TemplateApproval(BaseModel):
    action: str

    @validator('action')
    def validate_action(cls, v):
        if v not in ("approve", "reject"):
            raise ValueError("La acción debe ser 'approve' o 'reject'")
        return v


class TemplatePrescription(BaseModel):
    """Prescribir a un paciente a partir de una plantilla"""
    patient_id: int
    start_date: date
    end_date: Optional[date] = None
    pills_remaining: Optional[int] = Field(None, ge=0)
    refill_date: Optional[date] = None
