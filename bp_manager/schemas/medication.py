"""
Esquemas Pydantic para Medicamentos
"""
from pydantic import BaseModel, validator, Field
from typing import Optional, List
from datetime import date, datetime
from bp_manager.models.medication import MedicationFrequency, Weekday


class CustomScheduleItem(BaseModel):
    """Horario personalizado: hora del día y días de la semana"""
    time: str = Field(..., description="Hora en formato HH:MM")
    days: List[Weekday] = Field(..., min_length=1, description="Días de la semana")

    @validator('time')
    def validate_time_format(cls, v):
        try:
            datetime.strptime(v, "%H:%M")
            return v
        except ValueError:
            raise ValueError('El tiempo debe estar en formato HH:MM')

    @validator('days')
    def validate_days(cls, v):
        # Remover duplicados conservando el orden
        return list(dict.fromkeys(v))


# Esquemas base
class MedicationBase(BaseModel):
    """Base para esquemas de medicamento"""
    name: str = Field(..., min_length=1, max_length=255, description="Nombre del medicamento")
    dosage_amount: float = Field(..., ge=0, description="Cantidad por dosis")
    dosage_unit: str = Field(..., min_length=1, max_length=50, description="Unidad (mg, ml, tablets...)")
    frequency: MedicationFrequency = Field(..., description="Frecuencia prescrita")
    custom_schedule: List[CustomScheduleItem] = Field(default=[], description="Solo para frecuencia custom")
    start_date: date = Field(..., description="Fecha de inicio")
    end_date: Optional[date] = Field(None, description="Fecha de fin")
    instructions: Optional[str] = Field(None, max_length=1000, description="Instrucciones de uso")
    side_effects: List[str] = Field(default=[], description="Efectos secundarios conocidos")
    pills_remaining: Optional[int] = Field(None, ge=0)
    refill_date: Optional[date] = None
    pharmacy_name: Optional[str] = Field(None, max_length=255)
    pharmacy_phone: Optional[str] = Field(None, max_length=20)

    @validator('name')
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('El nombre del medicamento es requerido')
        return v.strip()

    @validator('dosage_unit')
    def validate_unit(cls, v):
        if not v or not v.strip():
            raise ValueError('La unidad de dosis es requerida')
        return v.strip()

    @validator('custom_schedule', always=True)
    def validate_custom_schedule(cls, v, values):
        frequency = values.get('frequency')
        if frequency == MedicationFrequency.CUSTOM and not v:
            raise ValueError('La frecuencia custom requiere al menos un horario')
        if frequency != MedicationFrequency.CUSTOM:
            return []
        return v

    @validator('end_date')
    def validate_end_date(cls, v, values):
        if v is not None and 'start_date' in values and v < values['start_date']:
            raise ValueError('La fecha de fin debe ser igual o posterior a la fecha de inicio')
        return v

    @validator('side_effects')
    def validate_lists(cls, v):
        if v:
            # Remover duplicados y elementos vacíos
            return list(dict.fromkeys(filter(None, [item.strip() for item in v])))
        return []


class MedicationCreate(MedicationBase):
    """Esquema para crear medicamento (paciente)"""
    pass


class PrescriptionCreate(MedicationBase):
    """Esquema para prescribir medicamento (proveedor)"""
    pass


class MedicationUpdate(BaseModel):
    """Esquema para actualizar medicamento"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    dosage_amount: Optional[float] = Field(None, ge=0)
    dosage_unit: Optional[str] = Field(None, min_length=1, max_length=50)
    frequency: Optional[MedicationFrequency] = None
    custom_schedule: Optional[List[CustomScheduleItem]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    instructions: Optional[str] = Field(None, max_length=1000)
    side_effects: Optional[List[str]] = None
    pills_remaining: Optional[int] = Field(None, ge=0)
    refill_date: Optional[date] = None
    pharmacy_name: Optional[str] = Field(None, max_length=255)
    pharmacy_phone: Optional[str] = Field(None, max_length=20)

    @validator('side_effects')
    def validate_lists(cls, v):
        if v is not None:
            return list(dict.fromkeys(filter(None, [item.strip() for item in v])))
        return v


class MedicationResponse(BaseModel):
    """Esquema de respuesta de medicamento"""
    id: int
    patient_id: int
    name: str
    dosage_amount: float
    dosage_unit: str
    frequency: MedicationFrequency
    custom_schedule: List[CustomScheduleItem] = []
    start_date: date
    end_date: Optional[date] = None
    instructions: Optional[str] = None
    side_effects: List[str] = []
    prescribed_by_id: Optional[int] = None
    prescribed_by_name: Optional[str] = None
    prescribed_by_contact: Optional[str] = None
    pills_remaining: Optional[int] = None
    refill_date: Optional[date] = None
    pharmacy_name: Optional[str] = None
    pharmacy_phone: Optional[str] = None
    active: bool
    deactivated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @validator('custom_schedule', 'side_effects', pre=True)
    def none_to_list(cls, v):
        return v or []
