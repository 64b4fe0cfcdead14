"""
Endpoints de autenticación
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from typing import List, Optional

from bp_manager.core.database import get_db
from bp_manager.core.security import (
    verify_password, create_access_token, create_refresh_token, verify_refresh_token, PasswordPolicy
)
from bp_manager.core.dependencies import (
    get_current_user, get_admin_user, get_provider_user, get_pagination_params, PaginationParams
)
from bp_manager.models.user import User, UserRole
from bp_manager.schemas.user import (
    UserCreate, UserResponse, UserProfile, UserUpdate, LoginResponse,
    RefreshRequest, TokenResponse, PasswordChange, RoleUpdate
)
from bp_manager.services.auth_service import AuthService

router = APIRouter()

# Roles que se pueden auto-registrar
SELF_REGISTER_ROLES = {UserRole.PATIENT, UserRole.PROVIDER}


def _issue_tokens(user: User) -> dict:
    return {
        "access_token": create_access_token(data={"sub": str(user.id), "email": user.email}),
        "refresh_token": create_refresh_token(user.id),
        "token_type": "bearer",
    }


# =========================
# REGISTER
# =========================
@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: Session = Depends(get_db)
):
    """
    Registrar nuevo usuario
    """
    auth_service = AuthService(db)

    # Verificar si el email ya existe
    if auth_service.get_user_by_email(user_data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="El email ya está registrado"
        )

    # Normalizar role a MAYÚSCULAS del enum
    try:
        role = UserRole[user_data.role.upper()]
    except KeyError:
        role = None

    if role not in SELF_REGISTER_ROLES:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Rol inválido"
        )

    return auth_service.create_user(
        email=user_data.email,
        password=user_data.password,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        role=role,
        phone=user_data.phone,
        timezone=user_data.timezone
    )


# =========================
# LOGIN
# =========================
@router.post("/login", response_model=LoginResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """
    Login de usuario
    """
    auth_service = AuthService(db)

    user = auth_service.authenticate_user(
        form_data.username,
        form_data.password
    )

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email o contraseña incorrectos",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Usuario inactivo"
        )

    auth_service.update_last_login(user.id)

    return {**_issue_tokens(user), "user": user}


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    refresh_data: RefreshRequest,
    db: Session = Depends(get_db)
):
    """
    Intercambiar un token de actualización por tokens nuevos
    """
    user_id = verify_refresh_token(refresh_data.refresh_token)
    user = AuthService(db).get_user_by_id(user_id) if user_id else None

    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token de actualización inválido",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return _issue_tokens(user)


# =========================
# PERFIL
# =========================
@router.get("/me", response_model=UserProfile)
async def get_current_user_profile(
    current_user: User = Depends(get_current_user)
):
    return current_user


@router.put("/me", response_model=UserProfile)
async def update_profile(
    user_update: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Actualizar perfil, zona horaria y umbrales de presión arterial
    """
    auth_service = AuthService(db)
    try:
        return auth_service.update_user(current_user.id, user_update.dict(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


# =========================
# PASSWORD
# =========================
@router.post("/change-password")
async def change_password(
    password_data: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    auth_service = AuthService(db)

    if not verify_password(
        password_data.current_password,
        current_user.hashed_password
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Contraseña actual incorrecta"
        )

    is_valid, errors = PasswordPolicy.validate(password_data.new_password)
    if not is_valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "La contraseña no cumple la política", "errors": errors}
        )

    auth_service.update_password(
        current_user.id,
        password_data.new_password
    )

    return {"message": "Contraseña actualizada exitosamente"}


# =========================
# ADMIN
# =========================
@router.get("/users", response_model=List[UserResponse])
async def list_users(
    role: Optional[UserRole] = Query(None, description="Filtrar por rol"),
    search: Optional[str] = Query(None, description="Buscar por nombre o email"),
    pagination: PaginationParams = Depends(get_pagination_params),
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    return AuthService(db).list_users(
        role=role,
        search=search,
        skip=pagination.skip,
        limit=pagination.limit
    )


@router.get("/users/{user_id}", response_model=UserProfile)
async def get_user(
    user_id: int,
    current_user: User = Depends(get_provider_user),
    db: Session = Depends(get_db)
):
    """
    Detalle de un usuario. Los proveedores solo ven a sus pacientes.
    """
    auth_service = AuthService(db)
    if current_user.is_admin:
        user = auth_service.get_user_by_id(user_id)
    else:
        user = auth_service.get_patient_for_provider(user_id, current_user)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Usuario no encontrado"
        )
    return user


@router.put("/users/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: int,
    role_data: RoleUpdate,
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    if user_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No puedes cambiar tu propio rol"
        )

    user = AuthService(db).update_role(user_id, role_data.role)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Usuario no encontrado"
        )
    return user


# =========================
# CUENTA
# =========================
@router.delete("/account")
async def delete_account(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Desactivar la cuenta propia (los registros se conservan)
    """
    AuthService(db).deactivate_user(current_user)
    return {"message": "Cuenta desactivada exitosamente"}
