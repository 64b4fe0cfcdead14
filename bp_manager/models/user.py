"""
Modelo de Usuario para el sistema
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from bp_manager.core.database import Base


class UserRole(str, enum.Enum):
    """Roles de usuario (DB en MAYÚSCULAS)"""
    ADMIN = "ADMIN"
    PROVIDER = "PROVIDER"
    PATIENT = "PATIENT"


class User(Base):
    """Modelo de Usuario"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    hashed_password = Column(String(255), nullable=False)

    role = Column(
        Enum(UserRole, name="userrole"),
        nullable=False,
        default=UserRole.PATIENT
    )

    is_active = Column(Boolean, default=True)
    phone = Column(String(20), nullable=True)

    # Proveedor que dio de alta al paciente
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # Configuraciones de usuario
    timezone = Column(String(50), default="UTC")

    # Umbrales de presión arterial (mmHg)
    systolic_high = Column(Integer, default=140)
    systolic_low = Column(Integer, default=90)
    diastolic_high = Column(Integer, default=90)
    diastolic_low = Column(Integer, default=60)

    # Metadatos
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    last_login = Column(DateTime(timezone=True), nullable=True)

    # Relaciones
    created_by = relationship("User", remote_side=[id], back_populates="patients")
    patients = relationship("User", back_populates="created_by")
    medications = relationship(
        "Medication",
        back_populates="patient",
        foreign_keys="Medication.patient_id"
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_provider(self) -> bool:
        return self.role == UserRole.PROVIDER

    @property
    def bp_thresholds(self) -> dict:
        """Umbrales de presión arterial del usuario"""
        return {
            "systolic_high": self.systolic_high,
            "systolic_low": self.systolic_low,
            "diastolic_high": self.diastolic_high,
            "diastolic_low": self.diastolic_low,
        }
