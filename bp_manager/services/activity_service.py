"""
Servicio de actividades de estilo de vida
"""
from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
from datetime import datetime

from bp_manager.models.activity import Activity, ActivityType
from bp_manager.schemas.activity import ActivityCreate, ActivityUpdate
from bp_manager.utils.timezone import as_utc
import logging

logger = logging.getLogger(__name__)


def _number(value) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _average(values: List[float]) -> Optional[float]:
    return round(sum(values) / len(values), 1) if values else None


class ActivityService:
    """Servicio para el registro de actividades"""

    def __init__(self, db: Session):
        self.db = db

    def create_activity(self, user_id: int, activity_data: ActivityCreate) -> Activity:
        activity = Activity(
            user_id=user_id,
            type=activity_data.type,
            date=as_utc(activity_data.date),
            data=activity_data.data,
            notes=activity_data.notes
        )
        self.db.add(activity)
        self.db.commit()
        self.db.refresh(activity)

        logger.info(f"Actividad registrada: {activity.type.value} (ID: {activity.id}, usuario {user_id})")
        return activity

    def get_activity(self, activity_id: int, user_id: int) -> Optional[Activity]:
        return self.db.query(Activity).filter(
            Activity.id == activity_id,
            Activity.user_id == user_id
        ).first()

    def _filtered_query(
            self,
            user_id: int,
            activity_type: Optional[ActivityType] = None,
            start: Optional[datetime] = None,
            end: Optional[datetime] = None
    ):
        query = self.db.query(Activity).filter(Activity.user_id == user_id)

        if activity_type:
            query = query.filter(Activity.type == activity_type)
        if start:
            query = query.filter(Activity.date >= start)
        if end:
            query = query.filter(Activity.date <= end)

        return query

    def get_activities(
            self,
            user_id: int,
            activity_type: Optional[ActivityType] = None,
            start: Optional[datetime] = None,
            end: Optional[datetime] = None,
            skip: int = 0,
            limit: int = 20
    ) -> Tuple[List[Activity], int]:
        """Actividades del usuario, más recientes primero"""
        query = self._filtered_query(user_id, activity_type, start, end)
        total = query.count()
        activities = query.order_by(Activity.date.desc(), Activity.id.desc()).offset(skip).limit(limit).all()
        return activities, total

    def update_activity(self, activity: Activity, activity_data: ActivityUpdate) -> Activity:
        activity.type = activity_data.type
        activity.date = as_utc(activity_data.date)
        activity.data = activity_data.data
        activity.notes = activity_data.notes

        self.db.commit()
        self.db.refresh(activity)
        return activity

    def delete_activity(self, activity: Activity):
        activity_id = activity.id
        self.db.delete(activity)
        self.db.commit()
        logger.info(f"Actividad eliminada: {activity_id}")

    def get_stats(
            self,
            user_id: int,
            activity_type: Optional[ActivityType] = None,
            start: Optional[datetime] = None,
            end: Optional[datetime] = None
    ) -> List[dict]:
        """
        Estadísticas por tipo: conteo, duración promedio, calorías totales
        y peso promedio, a partir de los datos de cada actividad
        """
        grouped = {}
        for activity in self._filtered_query(user_id, activity_type, start, end).all():
            grouped.setdefault(activity.type, []).append(activity.data or {})

        stats = []
        for kind in ActivityType:
            entries = grouped.get(kind)
            if not entries:
                continue

            durations = [v for v in (_number(d.get("duration")) for d in entries) if v is not None]
            calories = [v for v in (_number(d.get("calories")) for d in entries) if v is not None]
            weights = [v for v in (_number(d.get("weight")) for d in entries) if v is not None]

            stats.append({
                "type": kind,
                "count": len(entries),
                "avg_duration": _average(durations),
                "total_calories": sum(calories),
                "avg_weight": _average(weights),
            })
        return stats
