"""
Modelo de Actividad de estilo de vida
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON, Enum, ForeignKey, Index
from sqlalchemy.sql import func
import enum

from bp_manager.core.database import Base


class ActivityType(str, enum.Enum):
    EXERCISE = "exercise"
    DIET = "diet"
    WEIGHT = "weight"
    STRESS_REDUCTION = "stress_reduction"


class Activity(Base):
    """Registro de ejercicio, dieta, peso o manejo de estrés"""
    __tablename__ = "activities"
    __table_args__ = (
        Index("ix_activities_user_type_date", "user_id", "type", "date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(Enum(ActivityType), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)  # UTC

    # Datos según el tipo: {"duration": 30, "calories": 200}, {"weight": 72.5}...
    data = Column(JSON, nullable=False, default=dict)
    notes = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Activity(id={self.id}, user_id={self.user_id}, type='{self.type}')>"
