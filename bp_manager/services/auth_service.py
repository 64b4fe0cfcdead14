"""
Servicio de autenticación y usuarios
"""
from sqlalchemy.orm import Session
from sqlalchemy import or_
from typing import List, Optional

from bp_manager.core.config import get_settings
from bp_manager.core.security import get_password_hash, verify_password
from bp_manager.models.user import User, UserRole
from bp_manager.utils.timezone import utcnow
import logging

logger = logging.getLogger(__name__)

settings = get_settings()


class AuthService:
    """Servicio para manejo de autenticación"""

    def __init__(self, db: Session):
        self.db = db

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Obtener usuario por email"""
        return self.db.query(User).filter(User.email == email.lower()).first()

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Obtener usuario por ID"""
        return self.db.query(User).filter(User.id == user_id).first()

    def create_user(
            self,
            email: str,
            password: str,
            first_name: str,
            last_name: str,
            role: UserRole = UserRole.PATIENT,
            phone: Optional[str] = None,
            timezone: Optional[str] = None,
            created_by_id: Optional[int] = None
    ) -> User:
        """Crear nuevo usuario con los umbrales por defecto"""
        db_user = User(
            email=email.lower(),
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            hashed_password=get_password_hash(password),
            role=role,
            phone=phone,
            timezone=timezone or settings.DEFAULT_TIMEZONE,
            created_by_id=created_by_id,
            is_active=True,
            systolic_high=settings.BP_SYSTOLIC_HIGH,
            systolic_low=settings.BP_SYSTOLIC_LOW,
            diastolic_high=settings.BP_DIASTOLIC_HIGH,
            diastolic_low=settings.BP_DIASTOLIC_LOW
        )

        self.db.add(db_user)
        self.db.commit()
        self.db.refresh(db_user)

        logger.info(f"Usuario creado: {db_user.email} ({db_user.role.value}, ID: {db_user.id})")
        return db_user

    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Autenticar usuario"""
        user = self.get_user_by_email(email)
        if not user:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    def update_last_login(self, user_id: int):
        """Actualizar último login"""
        user = self.get_user_by_id(user_id)
        if user:
            user.last_login = utcnow()
            self.db.commit()

    def update_user(self, user_id: int, user_data: dict) -> Optional[User]:
        """Actualizar usuario"""
        user = self.get_user_by_id(user_id)
        if not user:
            return None

        for field, value in user_data.items():
            if hasattr(user, field):
                setattr(user, field, value)

        if user.systolic_low >= user.systolic_high or user.diastolic_low >= user.diastolic_high:
            self.db.rollback()
            raise ValueError("Los umbrales bajos deben ser menores a los altos")

        self.db.commit()
        self.db.refresh(user)
        return user

    def update_password(self, user_id: int, new_password: str):
        """Actualizar contraseña"""
        user = self.get_user_by_id(user_id)
        if user:
            user.hashed_password = get_password_hash(new_password)
            self.db.commit()

    def get_patients_of_provider(self, provider_id: int, skip: int = 0, limit: int = 100) -> List[User]:
        """Pacientes dados de alta por un proveedor"""
        return self.db.query(User).filter(
            User.created_by_id == provider_id,
            User.role == UserRole.PATIENT,
            User.is_active.is_(True)
        ).order_by(User.last_name, User.first_name).offset(skip).limit(limit).all()

    def get_patient_for_provider(self, patient_id: int, provider: User) -> Optional[User]:
        """Paciente activo bajo el cuidado del proveedor (los admins ven todos)"""
        query = self.db.query(User).filter(
            User.id == patient_id,
            User.role == UserRole.PATIENT,
            User.is_active.is_(True)
        )
        if not provider.is_admin:
            query = query.filter(User.created_by_id == provider.id)
        return query.first()

    def list_users(
            self,
            role: Optional[UserRole] = None,
            search: Optional[str] = None,
            skip: int = 0,
            limit: int = 100
    ) -> List[User]:
        """Usuarios activos, filtrados por rol o por nombre/email"""
        query = self.db.query(User).filter(User.is_active.is_(True))

        if role:
            query = query.filter(User.role == role)

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                User.email.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern)
            ))

        return query.order_by(User.id).offset(skip).limit(limit).all()

    def update_role(self, user_id: int, role: UserRole) -> Optional[User]:
        """Cambiar el rol de un usuario (solo admin)"""
        user = self.get_user_by_id(user_id)
        if not user:
            return None

        previous = user.role
        user.role = role
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"Rol de usuario {user.id} cambiado de {previous.value} a {role.value}")
        return user

    def deactivate_user(self, user: User) -> User:
        """Baja lógica de la cuenta; el historial clínico se conserva"""
        user.is_active = False
        self.db.commit()
        logger.info(f"Cuenta desactivada: {user.email} (ID: {user.id})")
        return user
