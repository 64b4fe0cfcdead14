"""
Esquemas Pydantic para registros de dosis y adherencia
"""
from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime
from bp_manager.models.medication import MedicationFrequency


class DoseLogCreate(BaseModel):
    """Registrar una dosis tomada"""
    taken_at: Optional[datetime] = Field(None, description="Momento de la toma (por defecto ahora)")
    notes: Optional[str] = Field(None, max_length=500)
    side_effects: List[str] = Field(default=[])

    @validator('side_effects')
    def validate_lists(cls, v):
        if v:
            return list(dict.fromkeys(filter(None, [item.strip() for item in v])))
        return []


class DoseLogResponse(BaseModel):
    id: int
    medication_id: int
    patient_id: int
    taken_at: datetime
    notes: Optional[str] = None
    side_effects: List[str] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @validator('side_effects', pre=True)
    def none_to_list(cls, v):
        return v or []


class DoseLogPage(BaseModel):
    """Página de registros de dosis"""
    logs: List[DoseLogResponse]
    total: int
    skip: int
    limit: int


class DoseDecisionResponse(BaseModel):
    """Resultado de verificar si se puede registrar una dosis"""
    allowed: bool
    reason: Optional[str] = None
    message: Optional[str] = None
    next_allowed_at: Optional[datetime] = None


class AdherenceResponse(BaseModel):
    """Adherencia de un medicamento en una ventana"""
    medication_id: int
    medication_name: str
    frequency: MedicationFrequency
    active: bool
    window_start: datetime
    window_end: datetime
    expected_doses: Optional[int] = None
    actual_doses: int
    rate_percent: Optional[float] = None
    excess_doses: int = 0
    over_logged: bool = False
    level: str


class AdherenceSummaryResponse(BaseModel):
    """Resumen de adherencia de todos los medicamentos de un paciente"""
    patient_id: int
    days: int
    medications_counted: int
    expected_doses: int
    actual_doses: int
    rate_percent: Optional[float] = None
    level: str
    over_logged_medications: int
    medications: List[AdherenceResponse]
