"""
Dependencias globales de la aplicación
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date, datetime

from bp_manager.core.database import get_db
from bp_manager.core.security import verify_token
from bp_manager.models.user import User
from bp_manager.services.auth_service import AuthService

# Configurar OAuth2
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="api/auth/login",
    auto_error=False
)


async def get_current_user(
        token: Optional[str] = Depends(oauth2_scheme),
        db: Session = Depends(get_db)
) -> User:
    """
    Obtener usuario actual del token JWT
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="No se pudo validar las credenciales",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    payload = verify_token(token)
    user_id = payload.get("sub")
    if user_id is None:
        raise credentials_exception

    auth_service = AuthService(db)
    user = auth_service.get_user_by_id(int(user_id))
    if user is None:
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Usuario inactivo"
        )

    return user


async def get_admin_user(
        current_user: User = Depends(get_current_user)
) -> User:
    """
    Verificar que el usuario sea administrador
    """
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tienes permisos de administrador"
        )
    return current_user


async def get_provider_user(
        current_user: User = Depends(get_current_user)
) -> User:
    """
    Verificar que el usuario sea proveedor o admin
    """
    if not (current_user.is_provider or current_user.is_admin):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tienes permisos de proveedor"
        )
    return current_user


# Dependencias para paginación
class PaginationParams:
    def __init__(self, skip: int = 0, limit: int = 100):
        self.skip = max(0, skip)
        self.limit = max(1, min(limit, 1000))  # Máximo 1000 registros por página


def get_pagination_params(skip: int = 0, limit: int = 100) -> PaginationParams:
    """
    Parámetros de paginación
    """
    return PaginationParams(skip=skip, limit=limit)


# Dependencias para filtros comunes
class DateRangeParams:
    def __init__(
            self,
            start_date: Optional[str] = None,
            end_date: Optional[str] = None
    ):
        self.start_date: Optional[date] = None
        self.end_date: Optional[date] = None

        if start_date:
            self.start_date = _parse_date(start_date)

        if end_date:
            self.end_date = _parse_date(end_date)

        # Validar que start_date <= end_date
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="La fecha de inicio debe ser menor o igual a la fecha de fin"
            )


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Formato de fecha inválido. Use YYYY-MM-DD"
        )


def get_date_range_params(
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
) -> DateRangeParams:
    """
    Parámetros de rango de fechas
    """
    return DateRangeParams(start_date=start_date, end_date=end_date)
