"""
Esquemas Pydantic para Usuario y Autenticación
"""
from pydantic import BaseModel, EmailStr, Field, validator
from typing import Optional
from datetime import datetime
from bp_manager.models.user import UserRole


class UserCreate(BaseModel):
    """Esquema para crear usuario"""
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    password: str
    confirm_password: str
    role: str = "PATIENT"   # STRING, se normaliza al enum en el endpoint
    phone: Optional[str] = None
    timezone: Optional[str] = None

    @validator('confirm_password')
    def passwords_match(cls, v, values):
        if 'password' in values and v != values['password']:
            raise ValueError('Las contraseñas no coinciden')
        return v

    @validator('password')
    def validate_password(cls, v):
        if len(v) < 8:
            raise ValueError('La contraseña debe tener al menos 8 caracteres')
        return v


class PatientCreate(BaseModel):
    """Esquema para que un proveedor dé de alta a un paciente"""
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=8)
    phone: Optional[str] = None
    timezone: Optional[str] = None


class UserUpdate(BaseModel):
    """Esquema para actualizar perfil y umbrales"""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = None
    timezone: Optional[str] = None
    systolic_high: Optional[int] = Field(None, ge=50, le=300)
    systolic_low: Optional[int] = Field(None, ge=50, le=300)
    diastolic_high: Optional[int] = Field(None, ge=30, le=200)
    diastolic_low: Optional[int] = Field(None, ge=30, le=200)

    @validator('systolic_low')
    def validate_systolic(cls, v, values):
        high = values.get('systolic_high')
        if v is not None and high is not None and v >= high:
            raise ValueError('El umbral sistólico bajo debe ser menor al alto')
        return v

    @validator('diastolic_low')
    def validate_diastolic(cls, v, values):
        high = values.get('diastolic_high')
        if v is not None and high is not None and v >= high:
            raise ValueError('El umbral diastólico bajo debe ser menor al alto')
        return v


class UserResponse(BaseModel):
    """Esquema de respuesta de usuario"""
    id: int
    email: str
    first_name: str
    last_name: str
    role: UserRole
    phone: Optional[str] = None
    timezone: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserProfile(UserResponse):
    """Esquema de perfil con umbrales de presión arterial"""
    systolic_high: Optional[int] = None
    systolic_low: Optional[int] = None
    diastolic_high: Optional[int] = None
    diastolic_low: Optional[int] = None

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    """Respuesta de login"""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class PasswordChange(BaseModel):
    """Cambio de contraseña"""
    current_password: str
    new_password: str = Field(..., min_length=8)


class RoleUpdate(BaseModel):
    """Cambio de rol por un administrador"""
    role: UserRole

    @validator('role', pre=True)
    def normalize_role(cls, v):
        return v.upper() if isinstance(v, str) else v
