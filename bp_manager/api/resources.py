"""
Endpoints de recursos educativos
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from bp_manager.core.database import get_db
from bp_manager.core.dependencies import (
    get_current_user,
    get_provider_user,
    get_pagination_params,
    PaginationParams
)
from bp_manager.models.resource import Resource, ResourceCategory, AssignmentStatus
from bp_manager.models.user import User
from bp_manager.schemas.resource import (
    ResourceCreate,
    ResourceUpdate,
    ResourceResponse,
    ResourcePage,
    AssignmentCreate,
    AssignmentStatusUpdate,
    AssignmentResponse,
    AssignmentPage
)
from bp_manager.services.auth_service import AuthService
from bp_manager.services.resource_service import ResourceService

router = APIRouter()


def get_editable_resource(resource_id: int, current_user: User, service: ResourceService) -> Resource:
    """Recurso que el usuario puede modificar (autor o admin)"""
    resource = service.get_resource(resource_id)
    if not resource:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Recurso no encontrado"
        )
    if not service.can_edit(resource, current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Solo el autor o un administrador puede modificar el recurso"
        )
    return resource


@router.post("/", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED)
async def create_resource(
        resource_data: ResourceCreate,
        current_user: User = Depends(get_provider_user),
        db: Session = Depends(get_db)
):
    """
    Publicar recurso educativo (proveedor o admin)
    """
    return ResourceService(db).create_resource(current_user, resource_data)


@router.get("/", response_model=ResourcePage)
async def list_resources(
        category: Optional[ResourceCategory] = Query(None, description="Filtrar por categoría"),
        search: Optional[str] = Query(None, description="Buscar en título, contenido y etiquetas"),
        pagination: PaginationParams = Depends(get_pagination_params),
        db: Session = Depends(get_db)
):
    """
    Recursos publicados (no requiere autenticación)
    """
    resources, total = ResourceService(db).get_resources(
        category=category,
        search=search,
        skip=pagination.skip,
        limit=pagination.limit
    )
    return {"resources": resources, "total": total, "skip": pagination.skip, "limit": pagination.limit}


@router.get("/categories", response_model=List[str])
async def list_resource_categories(db: Session = Depends(get_db)):
    return ResourceService(db).get_categories()


@router.get("/my-assigned", response_model=AssignmentPage)
async def list_my_assigned_resources(
        status_filter: Optional[AssignmentStatus] = Query(None, alias="status"),
        category: Optional[ResourceCategory] = Query(None),
        pagination: PaginationParams = Depends(get_pagination_params),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Recursos asignados al paciente actual
    """
    assignments, total = ResourceService(db).get_patient_assignments(
        current_user.id,
        status=status_filter,
        category=category,
        skip=pagination.skip,
        limit=pagination.limit
    )
    return {"assignments": assignments, "total": total, "skip": pagination.skip, "limit": pagination.limit}


@router.get("/my-assignments", response_model=AssignmentPage)
async def list_my_resource_assignments(
        patient_id: Optional[int] = Query(None),
        status_filter: Optional[AssignmentStatus] = Query(None, alias="status"),
        pagination: PaginationParams = Depends(get_pagination_params),
        current_user: User = Depends(get_provider_user),
        db: Session = Depends(get_db)
):
    """
    Asignaciones hechas por el proveedor actual
    """
    assignments, total = ResourceService(db).get_provider_assignments(
        current_user.id,
        patient_id=patient_id,
        status=status_filter,
        skip=pagination.skip,
        limit=pagination.limit
    )
    return {"assignments": assignments, "total": total, "skip": pagination.skip, "limit": pagination.limit}


@router.post(
    "/assign/{resource_id}/{patient_id}",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED
)
async def assign_resource(
        resource_id: int,
        patient_id: int,
        assignment_data: AssignmentCreate,
        current_user: User = Depends(get_provider_user),
        db: Session = Depends(get_db)
):
    """
    Asignar un recurso publicado a un paciente bajo el cuidado del proveedor
    """
    service = ResourceService(db)
    resource = service.get_resource(resource_id)
    if not resource or not resource.published:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Recurso no encontrado"
        )

    patient = AuthService(db).get_patient_for_provider(patient_id, current_user)
    if not patient:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Paciente no encontrado o no está bajo tu cuidado"
        )

    try:
        return service.assign_resource(resource, patient, current_user, assignment_data)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.put("/assignment/{assignment_id}/status", response_model=AssignmentResponse)
async def update_assignment_status(
        assignment_id: int,
        status_data: AssignmentStatusUpdate,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    El paciente marca un recurso asignado como visto o completado
    """
    assignment = ResourceService(db).update_assignment_status(assignment_id, current_user.id, status_data.status)
    if not assignment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Asignación no encontrada"
        )
    return assignment


@router.delete("/assignment/{assignment_id}")
async def remove_assignment(
        assignment_id: int,
        current_user: User = Depends(get_provider_user),
        db: Session = Depends(get_db)
):
    if not ResourceService(db).remove_assignment(assignment_id, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Asignación no encontrada"
        )
    return {"message": "Asignación eliminada exitosamente"}


@router.get("/{resource_id}", response_model=ResourceResponse)
async def get_resource(
        resource_id: int,
        db: Session = Depends(get_db)
):
    """
    Ver un recurso publicado (incrementa sus vistas)
    """
    resource = ResourceService(db).view_resource(resource_id)
    if not resource:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Recurso no encontrado"
        )
    return resource


@router.put("/{resource_id}", response_model=ResourceResponse)
async def update_resource(
        resource_id: int,
        resource_update: ResourceUpdate,
        current_user: User = Depends(get_provider_user),
        db: Session = Depends(get_db)
):
    service = ResourceService(db)
    resource = get_editable_resource(resource_id, current_user, service)
    return service.update_resource(resource, resource_update, current_user)


@router.delete("/{resource_id}")
async def delete_resource(
        resource_id: int,
        current_user: User = Depends(get_provider_user),
        db: Session = Depends(get_db)
):
    service = ResourceService(db)
    resource = get_editable_resource(resource_id, current_user, service)
    service.delete_resource(resource)
    return {"message": "Recurso eliminado exitosamente"}
