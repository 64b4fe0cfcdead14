# bp_manager/models/dose_log.py
"""
Modelo de Registro de Dosis
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, Text, JSON, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from bp_manager.core.database import Base


class DoseLog(Base):
    """Registro inmutable de una dosis tomada"""
    __tablename__ = "dose_logs"
    __table_args__ = (
        Index("ix_dose_logs_medication_taken_at", "medication_id", "taken_at"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    medication_id = Column(Integer, ForeignKey("medications.id"), nullable=False)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    taken_at = Column(DateTime(timezone=True), nullable=False)  # UTC
    notes = Column(Text, nullable=True)
    side_effects = Column(JSON, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Borrado lógico, solo por el paciente dueño
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    # Relaciones
    medication = relationship("Medication", back_populates="dose_logs")

    def __repr__(self):
        return f"<DoseLog(id={self.id}, medication_id={self.medication_id}, taken_at={self.taken_at})>"
