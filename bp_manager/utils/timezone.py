# bp_manager/utils/timezone.py
"""
Utilidades de zona horaria: normalización a UTC y días calendario locales
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """
    Normalizar un datetime a UTC.
    Los datetimes sin tzinfo (ej. los que devuelve SQLite) se interpretan como UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_timezone(name: Optional[str], default: str = "UTC") -> tzinfo:
    """
    Obtener la zona horaria IANA del paciente.
    Si el nombre no existe se usa la zona por defecto.
    """
    for candidate in (name, default):
        if not candidate:
            continue
        try:
            return ZoneInfo(candidate)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Zona horaria desconocida: {candidate!r}")
    return timezone.utc


def local_date(value: datetime, tz: tzinfo) -> date:
    """Fecha calendario de un instante en la zona del paciente"""
    return as_utc(value).astimezone(tz).date()


def start_of_day(day: date, tz: tzinfo) -> datetime:
    """Medianoche local de `day`, expresada en UTC"""
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)


def end_of_day(day: date, tz: tzinfo) -> datetime:
    """Último instante local de `day`, expresado en UTC"""
    return datetime.combine(day, time.max, tzinfo=tz).astimezone(timezone.utc)


def local_day_bounds(day: date, tz: tzinfo) -> Tuple[datetime, datetime]:
    return start_of_day(day, tz), end_of_day(day, tz)


def next_local_midnight(value: datetime, tz: tzinfo) -> datetime:
    """Inicio del día local siguiente al instante dado, en UTC"""
    return start_of_day(local_date(value, tz) + timedelta(days=1), tz)
