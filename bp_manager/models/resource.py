"""
Modelos de Recursos educativos y su asignación a pacientes
"""
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Date, JSON, Enum, ForeignKey, UniqueConstraint
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from bp_manager.core.database import Base


class ResourceCategory(str, enum.Enum):
    HYPERTENSION = "hypertension"
    DIET = "diet"
    EXERCISE = "exercise"
    MEDICATION = "medication"
    LIFESTYLE = "lifestyle"
    GENERAL = "general"


class ResourceDifficulty(str, enum.Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class AssignmentStatus(str, enum.Enum):
    ASSIGNED = "assigned"
    VIEWED = "viewed"
    COMPLETED = "completed"


class AssignmentPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Resource(Base):
    """Artículo educativo publicado por un proveedor o admin"""
    __tablename__ = "resources"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False, index=True)
    content = Column(Text, nullable=False)
    category = Column(Enum(ResourceCategory), nullable=False, index=True)
    tags = Column(JSON, default=list)

    published = Column(Boolean, default=True, nullable=False)
    featured = Column(Boolean, default=False, nullable=False)
    views = Column(Integer, default=0, nullable=False)

    # Metadatos de lectura
    read_time = Column(Integer, nullable=True)  # minutos
    difficulty = Column(Enum(ResourceDifficulty), default=ResourceDifficulty.BEGINNER)
    sources = Column(JSON, default=list)

    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    updated_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relaciones
    created_by = relationship("User", foreign_keys=[created_by_id])
    assignments = relationship("ResourceAssignment", back_populates="resource", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Resource(id={self.id}, title='{self.title}')>"


class ResourceAssignment(Base):
    """Recurso asignado por un proveedor a un paciente"""
    __tablename__ = "resource_assignments"
    __table_args__ = (
        UniqueConstraint("resource_id", "patient_id", name="uq_resource_assignment_patient"),
    )

    id = Column(Integer, primary_key=True, index=True)
    resource_id = Column(Integer, ForeignKey("resources.id"), nullable=False)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(Enum(AssignmentStatus), default=AssignmentStatus.ASSIGNED, nullable=False)
    priority = Column(Enum(AssignmentPriority), default=AssignmentPriority.MEDIUM, nullable=False)
    notes = Column(String(500), nullable=True)
    due_date = Column(Date, nullable=True)

    assigned_at = Column(DateTime(timezone=True), server_default=func.now())
    viewed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Relaciones
    resource = relationship("Resource", back_populates="assignments")
    patient = relationship("User", foreign_keys=[patient_id])
    provider = relationship("User", foreign_keys=[provider_id])

    def __repr__(self):
        return f"<ResourceAssignment(id={self.id}, resource={self.resource_id}, patient={self.patient_id})>"
