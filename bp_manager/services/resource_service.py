"""
Servicio de recursos educativos y asignaciones a pacientes
"""
from sqlalchemy.orm import Session
from sqlalchemy import String, cast, or_
from typing import List, Optional, Tuple

from bp_manager.models.resource import (
    Resource, ResourceAssignment, ResourceCategory, AssignmentStatus
)
from bp_manager.models.user import User
from bp_manager.schemas.resource import ResourceCreate, ResourceUpdate, AssignmentCreate
from bp_manager.utils.timezone import utcnow
import logging

logger = logging.getLogger(__name__)


class ResourceService:
    """Servicio para recursos educativos"""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Recursos
    # ------------------------------------------------------------------

    def create_resource(self, author: User, resource_data: ResourceCreate) -> Resource:
        resource = Resource(created_by_id=author.id, views=0, **resource_data.dict())
        self.db.add(resource)
        self.db.commit()
        self.db.refresh(resource)

        logger.info(f"Recurso creado: {resource.title} (ID: {resource.id}, autor {author.id})")
        return resource

    def get_resources(
            self,
            category: Optional[ResourceCategory] = None,
            search: Optional[str] = None,
            skip: int = 0,
            limit: int = 20
    ) -> Tuple[List[Resource], int]:
        """Recursos publicados; la búsqueda cubre título, contenido y etiquetas"""
        query = self.db.query(Resource).filter(Resource.published.is_(True))

        if category:
            query = query.filter(Resource.category == category)

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Resource.title.ilike(pattern),
                Resource.content.ilike(pattern),
                cast(Resource.tags, String).ilike(pattern)
            ))

        total = query.count()
        resources = query.order_by(
            Resource.featured.desc(), Resource.created_at.desc(), Resource.id.desc()
        ).offset(skip).limit(limit).all()
        return resources, total

    def get_resource(self, resource_id: int) -> Optional[Resource]:
        return self.db.query(Resource).filter(Resource.id == resource_id).first()

    def view_resource(self, resource_id: int) -> Optional[Resource]:
        """Obtener un recurso publicado e incrementar sus vistas"""
        resource = self.db.query(Resource).filter(
            Resource.id == resource_id,
            Resource.published.is_(True)
        ).first()
        if not resource:
            return None

        resource.views = (resource.views or 0) + 1
        self.db.commit()
        self.db.refresh(resource)
        return resource

    def can_edit(self, resource: Resource, user: User) -> bool:
        return user.is_admin or resource.created_by_id == user.id

    def update_resource(self, resource: Resource, resource_update: ResourceUpdate, editor: User) -> Resource:
        for field, value in resource_update.dict(exclude_unset=True).items():
            if value is not None and hasattr(resource, field):
                setattr(resource, field, value)

        resource.updated_by_id = editor.id
        self.db.commit()
        self.db.refresh(resource)

        logger.info(f"Recurso actualizado: {resource.id} por usuario {editor.id}")
        return resource

    def delete_resource(self, resource: Resource):
        """Eliminar recurso junto con sus asignaciones"""
        resource_id = resource.id
        self.db.delete(resource)
        self.db.commit()
        logger.info(f"Recurso eliminado: {resource_id}")

    def get_categories(self) -> List[str]:
        """Categorías con al menos un recurso publicado"""
        rows = self.db.query(Resource.category).filter(
            Resource.published.is_(True)
        ).distinct().all()
        return sorted(row[0].value for row in rows)

    # ------------------------------------------------------------------
    # Asignaciones
    # ------------------------------------------------------------------

    def assign_resource(
            self,
            resource: Resource,
            patient: User,
            provider: User,
            assignment_data: AssignmentCreate
    ) -> ResourceAssignment:
        """
        Asignar un recurso a un paciente.
        Lanza ValueError si ya estaba asignado.
        """
        existing = self.db.query(ResourceAssignment).filter(
            ResourceAssignment.resource_id == resource.id,
            ResourceAssignment.patient_id == patient.id
        ).first()
        if existing:
            raise ValueError("El recurso ya está asignado a este paciente")

        assignment = ResourceAssignment(
            resource_id=resource.id,
            patient_id=patient.id,
            provider_id=provider.id,
            status=AssignmentStatus.ASSIGNED,
            **assignment_data.dict()
        )
        self.db.add(assignment)
        self.db.commit()
        self.db.refresh(assignment)

        logger.info(f"Recurso {resource.id} asignado a paciente {patient.id} por proveedor {provider.id}")
        return assignment

    def get_patient_assignments(
            self,
            patient_id: int,
            status: Optional[AssignmentStatus] = None,
            category: Optional[ResourceCategory] = None,
            skip: int = 0,
            limit: int = 20
    ) -> Tuple[List[ResourceAssignment], int]:
        query = self.db.query(ResourceAssignment).join(Resource).filter(
            ResourceAssignment.patient_id == patient_id
        )

        if status:
            query = query.filter(ResourceAssignment.status == status)
        if category:
            query = query.filter(Resource.category == category)

        total = query.count()
        assignments = query.order_by(
            ResourceAssignment.assigned_at.desc(), ResourceAssignment.id.desc()
        ).offset(skip).limit(limit).all()
        return assignments, total

    def get_provider_assignments(
            self,
            provider_id: int,
            patient_id: Optional[int] = None,
            status: Optional[AssignmentStatus] = None,
            skip: int = 0,
            limit: int = 20
    ) -> Tuple[List[ResourceAssignment], int]:
        query = self.db.query(ResourceAssignment).filter(ResourceAssignment.provider_id == provider_id)

        if patient_id:
            query = query.filter(ResourceAssignment.patient_id == patient_id)
        if status:
            query = query.filter(ResourceAssignment.status == status)

        total = query.count()
        assignments = query.order_by(
            ResourceAssignment.assigned_at.desc(), ResourceAssignment.id.desc()
        ).offset(skip).limit(limit).all()
        return assignments, total

    def update_assignment_status(
            self,
            assignment_id: int,
            patient_id: int,
            status: AssignmentStatus
    ) -> Optional[ResourceAssignment]:
        """El paciente marca el recurso como visto o completado"""
        assignment = self.db.query(ResourceAssignment).filter(
            ResourceAssignment.id == assignment_id,
            ResourceAssignment.patient_id == patient_id
        ).first()
        if not assignment:
            return None

        now = utcnow()
        assignment.status = status
        if status in (AssignmentStatus.VIEWED, AssignmentStatus.COMPLETED) and not assignment.viewed_at:
            assignment.viewed_at = now
        if status == AssignmentStatus.COMPLETED:
            assignment.completed_at = now

        self.db.commit()
        self.db.refresh(assignment)
        return assignment

    def remove_assignment(self, assignment_id: int, provider_id: int) -> bool:
        assignment = self.db.query(ResourceAssignment).filter(
            ResourceAssignment.id == assignment_id,
            ResourceAssignment.provider_id == provider_id
        ).first()
        if not assignment:
            return False

        self.db.delete(assignment)
        self.db.commit()
        logger.info(f"Asignación de recurso {assignment_id} eliminada por proveedor {provider_id}")
        return True
