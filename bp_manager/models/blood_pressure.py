"""
Modelo de Lectura de Presión Arterial
"""
from sqlalchemy import Column, Integer, Text, DateTime, Boolean, Enum, ForeignKey, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from bp_manager.core.database import Base


class ReadingLocation(str, enum.Enum):
    HOME = "home"
    CLINIC = "clinic"
    PHARMACY = "pharmacy"
    OTHER = "other"


class ReadingPosition(str, enum.Enum):
    SITTING = "sitting"
    STANDING = "standing"
    LYING = "lying"


class ReadingArm(str, enum.Enum):
    LEFT = "left"
    RIGHT = "right"


class BloodPressureReading(Base):
    """Modelo de Lectura de Presión Arterial"""
    __tablename__ = "blood_pressure_readings"
    __table_args__ = (
        Index("ix_bp_user_measured_at", "user_id", "measured_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    systolic = Column(Integer, nullable=False)
    diastolic = Column(Integer, nullable=False)
    pulse = Column(Integer, nullable=True)
    measured_at = Column(DateTime(timezone=True), nullable=False)

    notes = Column(Text, nullable=True)
    location = Column(Enum(ReadingLocation), default=ReadingLocation.HOME)
    position = Column(Enum(ReadingPosition), default=ReadingPosition.SITTING)
    arm = Column(Enum(ReadingArm), default=ReadingArm.LEFT)

    # Calculado contra los umbrales del usuario al guardar
    is_abnormal = Column(Boolean, default=False, index=True)

    # Metadatos
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User")

    def __repr__(self):
        return f"<BloodPressureReading(id={self.id}, {self.systolic}/{self.diastolic})>"
