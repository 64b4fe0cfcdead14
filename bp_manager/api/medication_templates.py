"""
Endpoints de plantillas de medicamento
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from bp_manager.core.database import get_db
from bp_manager.core.dependencies import (
    get_current_user,
    get_provider_user,
    get_admin_user,
    get_pagination_params,
    PaginationParams
)
from bp_manager.models.medication_template import MedicationTemplate, TemplateCategory
from bp_manager.models.user import User
from bp_manager.schemas.medication import MedicationResponse
from bp_manager.schemas.medication_template import (
    TemplateCreate,
    TemplateUpdate,
    TemplateResponse,
    TemplatePage,
    TemplateApproval,
    TemplatePrescription
)
from bp_manager.services.auth_service import AuthService
from bp_manager.services.medication_template_service import MedicationTemplateService

router = APIRouter()


def get_own_template_or_404(
        template_id: int,
        current_user: User,
        service: MedicationTemplateService
) -> MedicationTemplate:
    template = service.get_own_template(template_id, current_user.id)
    if not template:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Plantilla no encontrada o no tienes permiso para modificarla"
        )
    return template


@router.post("/", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
        template_data: TemplateCreate,
        current_user: User = Depends(get_provider_user),
        db: Session = Depends(get_db)
):
    """
    Crear plantilla; si es pública queda pendiente de aprobación
    """
    return MedicationTemplateService(db).create_template(current_user, template_data)


@router.get("/provider", response_model=TemplatePage)
async def list_provider_templates(
        category: Optional[TemplateCategory] = Query(None),
        search: Optional[str] = Query(None),
        pagination: PaginationParams = Depends(get_pagination_params),
        current_user: User = Depends(get_provider_user),
        db: Session = Depends(get_db)
):
    """
    Plantillas propias y públicas aprobadas
    """
    templates, total = MedicationTemplateService(db).get_accessible_templates(
        current_user.id,
        category=category,
        search=search,
        skip=pagination.skip,
        limit=pagination.limit
    )
    return {"templates": templates, "total": total, "skip": pagination.skip, "limit": pagination.limit}


@router.get("/public", response_model=TemplatePage)
async def list_public_templates(
        category: Optional[TemplateCategory] = Query(None),
        search: Optional[str] = Query(None),
        pagination: PaginationParams = Depends(get_pagination_params),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    templates, total = MedicationTemplateService(db).get_public_templates(
        category=category,
        search=search,
        skip=pagination.skip,
        limit=pagination.limit
    )
    return {"templates": templates, "total": total, "skip": pagination.skip, "limit": pagination.limit}


@router.get("/categories", response_model=List[dict])
async def list_template_categories(
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    return MedicationTemplateService(db).get_categories()


@router.get("/pending", response_model=TemplatePage)
async def list_pending_templates(
        pagination: PaginationParams = Depends(get_pagination_params),
        current_user: User = Depends(get_admin_user),
        db: Session = Depends(get_db)
):
    """
    Plantillas públicas pendientes de aprobación (admin)
    """
    templates, total = MedicationTemplateService(db).get_pending_templates(
        skip=pagination.skip,
        limit=pagination.limit
    )
    return {"templates": templates, "total": total, "skip": pagination.skip, "limit": pagination.limit}


@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template(
        template_id: int,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    template = MedicationTemplateService(db).get_template(template_id, current_user)
    if not template:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Plantilla no encontrada"
        )
    return template


@router.put("/{template_id}", response_model=TemplateResponse)
async def update_template(
        template_id: int,
        template_data: TemplateUpdate,
        current_user: User = Depends(get_provider_user),
        db: Session = Depends(get_db)
):
    service = MedicationTemplateService(db)
    template = get_own_template_or_404(template_id, current_user, service)
    return service.update_template(template, template_data)


@router.delete("/{template_id}")
async def delete_template(
        template_id: int,
        current_user: User = Depends(get_provider_user),
        db: Session = Depends(get_db)
):
    """
    Desactivar plantilla propia
    """
    service = MedicationTemplateService(db)
    template = get_own_template_or_404(template_id, current_user, service)
    service.deactivate_template(template)
    return {"message": "Plantilla eliminada exitosamente"}


@router.post("/{template_id}/approve", response_model=TemplateResponse)
async def review_template(
        template_id: int,
        approval: TemplateApproval,
        current_user: User = Depends(get_admin_user),
        db: Session = Depends(get_db)
):
    """
    Aprobar o rechazar una plantilla pública pendiente (admin)
    """
    template = MedicationTemplateService(db).review_template(
        template_id,
        current_user,
        approve=approval.action == "approve"
    )
    if not template:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Plantilla no encontrada o no está pendiente de aprobación"
        )
    return template


@router.post("/{template_id}/prescribe", response_model=MedicationResponse, status_code=status.HTTP_201_CREATED)
async def prescribe_from_template(
        template_id: int,
        prescription: TemplatePrescription,
        current_user: User = Depends(get_provider_user),
        db: Session = Depends(get_db)
):
    """
    Prescribir a un paciente del proveedor a partir de una plantilla
    """
    service = MedicationTemplateService(db)
    template = service.get_template(template_id, current_user)
    if not template:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Plantilla no encontrada"
        )

    patient = AuthService(db).get_patient_for_provider(prescription.patient_id, current_user)
    if not patient:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Paciente no encontrado o no está bajo tu cuidado"
        )

    try:
        return service.prescribe_from_template(template, patient, current_user, prescription)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
