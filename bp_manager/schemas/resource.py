"""
Esquemas Pydantic para Recursos educativos
"""
from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import date, datetime
from bp_manager.models.resource import (
    ResourceCategory, ResourceDifficulty, AssignmentStatus, AssignmentPriority
)


def _clean_list(v):
    if v:
        return list(dict.fromkeys(filter(None, [item.strip() for item in v])))
    return []


class ResourceBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    category: ResourceCategory
    tags: List[str] = Field(default=[])
    published: bool = True
    featured: bool = False
    read_time: Optional[int] = Field(None, ge=1, description="Minutos estimados de lectura")
    difficulty: ResourceDifficulty = ResourceDifficulty.BEGINNER
    sources: List[str] = Field(default=[])

    @validator('title', 'content')
    def strip_text(cls, v):
        if not v.strip():
            raise ValueError('El campo no puede estar vacío')
        return v.strip()

    @validator('tags', 'sources')
    def validate_lists(cls, v):
        return _clean_list(v)


class ResourceCreate(ResourceBase):
    pass


class ResourceUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    category: Optional[ResourceCategory] = None
    tags: Optional[List[str]] = None
    published: Optional[bool] = None
    featured: Optional[bool] = None
    read_time: Optional[int] = Field(None, ge=1)
    difficulty: Optional[ResourceDifficulty] = None
    sources: Optional[List[str]] = None

    @validator('tags', 'sources')
    def validate_lists(cls, v):
        if v is None:
            return v
        return _clean_list(v)


class ResourceResponse(BaseModel):
    id: int
    title: str
    content: str
    category: ResourceCategory
    tags: List[str] = []
    published: bool
    featured: bool
    views: int
    read_time: Optional[int] = None
    difficulty: Optional[ResourceDifficulty] = None
    sources: List[str] = []
    created_by_id: int
    updated_by_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @validator('tags', 'sources', pre=True)
    def none_to_list(cls, v):
        return v or []


class ResourcePage(BaseModel):
    resources: List[ResourceResponse]
    total: int
    skip: int
    limit: int


class AssignmentCreate(BaseModel):
    notes: Optional[str] = Field(None, max_length=500)
    priority: AssignmentPriority = AssignmentPriority.MEDIUM
    due_date: Optional[date] = None


class AssignmentStatusUpdate(BaseModel):
    status: AssignmentStatus


class AssignmentResponse(BaseModel):
    id: int
    resource_id: int
    patient_id: int
    provider_id: int
    status: AssignmentStatus
    priority: AssignmentPriority
    notes: Optional[str] = None
    due_date: Optional[date] = None
    assigned_at: Optional[datetime] = None
    viewed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    resource: Optional[ResourceResponse] = None

    class Config:
        from_attributes = True


class AssignmentPage(BaseModel):
    assignments: List[AssignmentResponse]
    total: int
    skip: int
    limit: int
