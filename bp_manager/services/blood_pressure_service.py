"""
Servicio de lecturas de presión arterial
"""
from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import List, Optional, Tuple
from datetime import datetime, timedelta

from bp_manager.models.blood_pressure import BloodPressureReading
from bp_manager.models.user import User
from bp_manager.schemas.blood_pressure import ReadingCreate, ReadingUpdate
from bp_manager.utils.timezone import as_utc, utcnow
import logging

logger = logging.getLogger(__name__)


def is_abnormal_reading(systolic: int, diastolic: int, thresholds: dict) -> bool:
    """Una lectura es anormal si sale de cualquiera de los umbrales del usuario"""
    return (
        systolic > thresholds["systolic_high"]
        or systolic < thresholds["systolic_low"]
        or diastolic > thresholds["diastolic_high"]
        or diastolic < thresholds["diastolic_low"]
    )


class BloodPressureService:
    """Servicio para lecturas de presión arterial"""

    def __init__(self, db: Session):
        self.db = db

    def create_reading(self, user: User, reading_data: ReadingCreate) -> BloodPressureReading:
        """Registrar lectura y clasificarla contra los umbrales del usuario"""
        data = reading_data.dict(exclude={"measured_at"})
        reading = BloodPressureReading(
            user_id=user.id,
            measured_at=as_utc(reading_data.measured_at) if reading_data.measured_at else utcnow(),
            is_abnormal=is_abnormal_reading(reading_data.systolic, reading_data.diastolic, user.bp_thresholds),
            **data
        )

        self.db.add(reading)
        self.db.commit()
        self.db.refresh(reading)

        if reading.is_abnormal:
            logger.warning(
                f"Lectura anormal para usuario {user.id}: {reading.systolic}/{reading.diastolic} mmHg"
            )
        return reading

    def get_reading(self, reading_id: int, user_id: int) -> Optional[BloodPressureReading]:
        return self.db.query(BloodPressureReading).filter(
            BloodPressureReading.id == reading_id,
            BloodPressureReading.user_id == user_id
        ).first()

    def get_readings(
            self,
            user_id: int,
            start: Optional[datetime] = None,
            end: Optional[datetime] = None,
            abnormal_only: bool = False,
            skip: int = 0,
            limit: int = 20
    ) -> Tuple[List[BloodPressureReading], int]:
        """Lecturas del usuario, más recientes primero"""
        query = self.db.query(BloodPressureReading).filter(BloodPressureReading.user_id == user_id)

        if start:
            query = query.filter(BloodPressureReading.measured_at >= start)
        if end:
            query = query.filter(BloodPressureReading.measured_at <= end)
        if abnormal_only:
            query = query.filter(BloodPressureReading.is_abnormal.is_(True))

        total = query.count()
        readings = query.order_by(
            BloodPressureReading.measured_at.desc(),
            BloodPressureReading.id.desc()
        ).offset(skip).limit(limit).all()
        return readings, total

    def get_latest_reading(self, user_id: int) -> Optional[BloodPressureReading]:
        readings, _ = self.get_readings(user_id, limit=1)
        return readings[0] if readings else None

    def update_reading(
            self,
            reading: BloodPressureReading,
            reading_update: ReadingUpdate,
            user: User
    ) -> BloodPressureReading:
        """Actualizar lectura y reclasificarla"""
        update_data = reading_update.dict(exclude_unset=True)
        if update_data.get("measured_at") is not None:
            update_data["measured_at"] = as_utc(update_data["measured_at"])

        for field, value in update_data.items():
            if value is not None and hasattr(reading, field):
                setattr(reading, field, value)

        if reading.diastolic >= reading.systolic:
            self.db.rollback()
            raise ValueError("La presión diastólica debe ser menor a la sistólica")

        reading.is_abnormal = is_abnormal_reading(reading.systolic, reading.diastolic, user.bp_thresholds)
        self.db.commit()
        self.db.refresh(reading)
        return reading

    def delete_reading(self, reading: BloodPressureReading):
        reading_id = reading.id
        self.db.delete(reading)
        self.db.commit()
        logger.info(f"Lectura eliminada: {reading_id}")

    def get_stats(self, user_id: int, days: int = 30, now: Optional[datetime] = None) -> dict:
        """Estadísticas de los últimos `days` días"""
        since = (now or utcnow()) - timedelta(days=days)

        row = self.db.query(
            func.count(BloodPressureReading.id),
            func.avg(BloodPressureReading.systolic),
            func.avg(BloodPressureReading.diastolic),
            func.avg(BloodPressureReading.pulse),
            func.max(BloodPressureReading.systolic),
            func.max(BloodPressureReading.diastolic),
            func.min(BloodPressureReading.systolic),
            func.min(BloodPressureReading.diastolic),
        ).filter(
            BloodPressureReading.user_id == user_id,
            BloodPressureReading.measured_at >= as_utc(since)
        ).one()

        total = row[0] or 0
        abnormal = self.db.query(func.count(BloodPressureReading.id)).filter(
            BloodPressureReading.user_id == user_id,
            BloodPressureReading.measured_at >= as_utc(since),
            BloodPressureReading.is_abnormal.is_(True)
        ).scalar() or 0

        def _round(value):
            return round(float(value), 1) if value is not None else None

        return {
            "days": days,
            "total_readings": total,
            "abnormal_readings": abnormal,
            "abnormal_percentage": round(abnormal / total * 100, 1) if total else 0.0,
            "avg_systolic": _round(row[1]),
            "avg_diastolic": _round(row[2]),
            "avg_pulse": _round(row[3]),
            "max_systolic": row[4],
            "max_diastolic": row[5],
            "min_systolic": row[6],
            "min_diastolic": row[7],
        }
