# bp_manager/api/__init__.py
"""
Router principal de la API
"""
from fastapi import APIRouter, Depends
from bp_manager.core.dependencies import get_current_user
from bp_manager.models.user import User

# Importar todos los routers
from . import (
    auth,
    patients,
    medications,
    blood_pressure,
    dashboard,
    messages,
    activities,
    resources,
    medication_templates
)

# Router principal de la API
api_router = APIRouter()

api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["authentication"]
)

api_router.include_router(
    patients.router,
    prefix="/patients",
    tags=["patients"],
    dependencies=[Depends(get_current_user)]
)

api_router.include_router(
    medications.router,
    prefix="/medications",
    tags=["medications"],
    dependencies=[Depends(get_current_user)]
)

api_router.include_router(
    blood_pressure.router,
    prefix="/blood-pressure",
    tags=["blood-pressure"],
    dependencies=[Depends(get_current_user)]
)

api_router.include_router(
    dashboard.router,
    prefix="/dashboard",
    tags=["dashboard"],
    dependencies=[Depends(get_current_user)]
)

api_router.include_router(
    messages.router,
    prefix="/messages",
    tags=["messages"],
    dependencies=[Depends(get_current_user)]
)

api_router.include_router(
    activities.router,
    prefix="/activities",
    tags=["activities"],
    dependencies=[Depends(get_current_user)]
)

# Listado y lectura de recursos publicados sin autenticación
api_router.include_router(
    resources.router,
    prefix="/resources",
    tags=["resources"]
)

api_router.include_router(
    medication_templates.router,
    prefix="/medication-templates",
    tags=["medication-templates"],
    dependencies=[Depends(get_current_user)]
)


# Endpoints adicionales de la API
@api_router.get("/health")
async def api_health():
    """Health check específico de la API"""
    return {
        "status": "healthy",
        "service": "BP Manager API",
        "version": "1.0.0"
    }


@api_router.get("/info")
async def api_info(current_user: User = Depends(get_current_user)):
    """Información de la API para el usuario actual"""
    return {
        "user": {
            "id": current_user.id,
            "name": current_user.full_name,
            "role": current_user.role,
            "is_admin": current_user.is_admin
        },
        "api": {
            "version": "1.0.0",
            "available_endpoints": [
                "/auth",
                "/patients",
                "/medications",
                "/medications/{id}/log",
                "/medications/{id}/adherence",
                "/blood-pressure",
                "/dashboard",
                "/messages",
                "/activities",
                "/resources",
                "/medication-templates"
            ]
        }
    }
