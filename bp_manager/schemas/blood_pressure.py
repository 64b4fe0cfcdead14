"""
Esquemas Pydantic para lecturas de presión arterial
"""
from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime
from bp_manager.models.blood_pressure import ReadingLocation, ReadingPosition, ReadingArm


class ReadingCreate(BaseModel):
    """Registrar una lectura"""
    systolic: int = Field(..., ge=50, le=300)
    diastolic: int = Field(..., ge=30, le=200)
    pulse: Optional[int] = Field(None, ge=30, le=200)
    measured_at: Optional[datetime] = Field(None, description="Momento de la lectura (por defecto ahora)")
    notes: Optional[str] = Field(None, max_length=500)
    location: ReadingLocation = ReadingLocation.HOME
    position: ReadingPosition = ReadingPosition.SITTING
    arm: ReadingArm = ReadingArm.LEFT

    @validator('diastolic')
    def validate_diastolic(cls, v, values):
        if 'systolic' in values and v >= values['systolic']:
            raise ValueError('La presión diastólica debe ser menor a la sistólica')
        return v


class ReadingUpdate(BaseModel):
    systolic: Optional[int] = Field(None, ge=50, le=300)
    diastolic: Optional[int] = Field(None, ge=30, le=200)
    pulse: Optional[int] = Field(None, ge=30, le=200)
    measured_at: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=500)
    location: Optional[ReadingLocation] = None
    position: Optional[ReadingPosition] = None
    arm: Optional[ReadingArm] = None


class ReadingResponse(BaseModel):
    id: int
    user_id: int
    systolic: int
    diastolic: int
    pulse: Optional[int] = None
    measured_at: datetime
    notes: Optional[str] = None
    location: Optional[ReadingLocation] = None
    position: Optional[ReadingPosition] = None
    arm: Optional[ReadingArm] = None
    is_abnormal: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReadingPage(BaseModel):
    readings: List[ReadingResponse]
    total: int
    skip: int
    limit: int


class ReadingStats(BaseModel):
    """Estadísticas de lecturas en un período"""
    days: int
    total_readings: int = 0
    abnormal_readings: int = 0
    abnormal_percentage: float = 0.0
    avg_systolic: Optional[float] = None
    avg_diastolic: Optional[float] = None
    avg_pulse: Optional[float] = None
    max_systolic: Optional[int] = None
    max_diastolic: Optional[int] = None
    min_systolic: Optional[int] = None
    min_diastolic: Optional[int] = None
