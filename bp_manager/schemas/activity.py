"""
Esquemas Pydantic para Actividades de estilo de vida
"""
from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from bp_manager.models.activity import ActivityType


class ActivityBase(BaseModel):
    type: ActivityType
    date: datetime
    data: Dict[str, Any] = Field(..., description="Datos según el tipo de actividad")
    notes: Optional[str] = Field(None, max_length=500)

    @validator('data')
    def validate_data(cls, v):
        if not v:
            raise ValueError('Los datos de la actividad son requeridos')
        for key in ("duration", "calories", "weight"):
            value = v.get(key)
            if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0):
                raise ValueError(f'{key} debe ser un número positivo')
        return v


class ActivityCreate(ActivityBase):
    pass


class ActivityUpdate(ActivityBase):
    """Reemplaza la actividad completa"""
    pass


class ActivityResponse(BaseModel):
    id: int
    user_id: int
    type: ActivityType
    date: datetime
    data: Dict[str, Any] = {}
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ActivityPage(BaseModel):
    activities: List[ActivityResponse]
    total: int
    skip: int
    limit: int


class ActivityTypeStats(BaseModel):
    type: ActivityType
    count: int
    avg_duration: Optional[float] = None
    total_calories: float = 0
    avg_weight: Optional[float] = None
