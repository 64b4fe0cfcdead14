"""
Modelo de Medicamento
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, Date, Float, Boolean, JSON, Enum, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from bp_manager.core.database import Base


class MedicationFrequency(str, enum.Enum):
    """Frecuencias de toma prescritas"""
    ONCE_DAILY = "once_daily"
    TWICE_DAILY = "twice_daily"
    THREE_TIMES_DAILY = "three_times_daily"
    FOUR_TIMES_DAILY = "four_times_daily"
    AS_NEEDED = "as_needed"
    CUSTOM = "custom"


class Weekday(str, enum.Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


class Medication(Base):
    """Modelo de Medicamento de un paciente"""
    __tablename__ = "medications"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Información básica
    name = Column(String(255), nullable=False, index=True)
    dosage_amount = Column(Float, nullable=False)
    dosage_unit = Column(String(50), nullable=False)  # mg, ml, tablets...

    # Frecuencia
    frequency = Column(Enum(MedicationFrequency), nullable=False)
    custom_schedule = Column(JSON, default=list)
    # Estructura: [{"time": "08:00", "days": ["monday", ...]}]

    # Fechas
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)

    # Instrucciones y efectos
    instructions = Column(Text, nullable=True)
    side_effects = Column(JSON, default=list)

    # Prescripción
    prescribed_by_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    prescribed_by_name = Column(String(255), nullable=True)
    prescribed_by_contact = Column(String(255), nullable=True)

    # Resurtido
    pills_remaining = Column(Integer, nullable=True)
    refill_date = Column(Date, nullable=True, index=True)
    pharmacy_name = Column(String(255), nullable=True)
    pharmacy_phone = Column(String(20), nullable=True)

    # Estado (nunca se elimina, solo se desactiva)
    active = Column(Boolean, default=True, nullable=False, index=True)
    deactivated_at = Column(DateTime(timezone=True), nullable=True)

    # Metadatos
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relaciones
    patient = relationship("User", back_populates="medications", foreign_keys=[patient_id])
    prescribed_by = relationship("User", foreign_keys=[prescribed_by_id])
    dose_logs = relationship("DoseLog", back_populates="medication")

    def __repr__(self):
        return f"<Medication(id={self.id}, name='{self.name}', frequency='{self.frequency}')>"

    @property
    def full_name(self) -> str:
        """Nombre completo del medicamento"""
        amount = f"{self.dosage_amount:g}" if self.dosage_amount is not None else ""
        return f"{self.name} {amount}{self.dosage_unit}"
