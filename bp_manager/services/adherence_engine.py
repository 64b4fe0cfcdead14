"""
Motor de verificación de adherencia

Funciones puras, sin acceso a base de datos ni al reloj del sistema:
- resolve_minimum_gap: frecuencia -> política de intervalo mínimo entre dosis
- can_log_dose: decide si una nueva dosis puede registrarse ahora
- compute_adherence: tasa de cumplimiento en una ventana de tiempo

El llamador inyecta "now" y la zona horaria del paciente.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Iterable, List, Optional, Union

from bp_manager.models.medication import MedicationFrequency
from bp_manager.utils.timezone import as_utc, end_of_day, local_date, next_local_midnight, start_of_day

logger = logging.getLogger(__name__)

REASON_ALREADY_LOGGED_TODAY = "already logged today"
REASON_INTERVAL_NOT_ELAPSED = "interval not yet elapsed"

# Intervalo mínimo entre dosis (24h / dosis por día)
_MINIMUM_GAPS = {
    MedicationFrequency.TWICE_DAILY: timedelta(hours=12),
    MedicationFrequency.THREE_TIMES_DAILY: timedelta(hours=8),
    MedicationFrequency.FOUR_TIMES_DAILY: timedelta(hours=6),
}

DOSES_PER_DAY = {
    MedicationFrequency.ONCE_DAILY: 1,
    MedicationFrequency.TWICE_DAILY: 2,
    MedicationFrequency.THREE_TIMES_DAILY: 3,
    MedicationFrequency.FOUR_TIMES_DAILY: 4,
}

WindowBound = Union[date, datetime]


class InvalidRangeError(ValueError):
    """La ventana de adherencia tiene inicio posterior al fin"""

    def __init__(self, window_start, window_end):
        self.window_start = window_start
        self.window_end = window_end
        super().__init__(f"Rango inválido: {window_start} es posterior a {window_end}")


@dataclass(frozen=True)
class IntervalPolicy:
    """Política derivada de la frecuencia; no se persiste"""
    frequency: Optional[MedicationFrequency]
    minimum_gap: Optional[timedelta] = None
    calendar_day: bool = False

    @property
    def is_unbounded(self) -> bool:
        return self.minimum_gap is None and not self.calendar_day


@dataclass(frozen=True)
class DoseDecision:
    """Resultado de la verificación: permitir o rechazar con motivo"""
    allowed: bool
    reason: Optional[str] = None
    next_allowed_at: Optional[datetime] = None

    @classmethod
    def allow(cls) -> "DoseDecision":
        return cls(allowed=True)

    @classmethod
    def reject(cls, reason: str, next_allowed_at: Optional[datetime] = None) -> "DoseDecision":
        return cls(allowed=False, reason=reason, next_allowed_at=next_allowed_at)


@dataclass(frozen=True)
class AdherenceResult:
    """Estadística de cumplimiento para una ventana"""
    expected_doses: Optional[int]
    actual_doses: int
    rate_percent: Optional[float]
    excess_doses: int
    window_start: datetime
    window_end: datetime

    @property
    def applicable(self) -> bool:
        return self.rate_percent is not None

    @property
    def over_logged(self) -> bool:
        return self.excess_doses > 0


def normalize_frequency(value: Any) -> Optional[MedicationFrequency]:
    """Convertir un valor de frecuencia al enum; None si no se reconoce"""
    if isinstance(value, MedicationFrequency):
        return value
    if not isinstance(value, str):
        return None
    try:
        return MedicationFrequency(value.strip().lower())
    except ValueError:
        return None


def resolve_minimum_gap(frequency: Any) -> IntervalPolicy:
    """
    Resolver la política de intervalo para una frecuencia.

    once_daily usa el cambio de fecha calendario local en lugar de 24h fijas.
    as_needed, custom y cualquier valor desconocido no tienen restricción.
    """
    normalized = normalize_frequency(frequency)

    if normalized is None:
        logger.warning(f"Frecuencia no reconocida {frequency!r}, se aplica política sin restricción")
        return IntervalPolicy(frequency=None)

    if normalized == MedicationFrequency.ONCE_DAILY:
        return IntervalPolicy(frequency=normalized, calendar_day=True)

    return IntervalPolicy(frequency=normalized, minimum_gap=_MINIMUM_GAPS.get(normalized))


def _entry_sort_key(entry: Any):
    return as_utc(entry.taken_at), getattr(entry, "id", None) or 0


def most_recent_entry(dose_history: Iterable[Any]) -> Optional[Any]:
    """Registro más reciente por taken_at; en empate gana el id mayor"""
    entries = [e for e in dose_history if e is not None]
    if not entries:
        return None
    return max(entries, key=_entry_sort_key)


def earliest_entry_after(dose_history: Iterable[Any], instant: datetime) -> Optional[Any]:
    """Primer registro estrictamente posterior a `instant`"""
    limit = as_utc(instant)
    entries = [e for e in dose_history if e is not None and as_utc(e.taken_at) > limit]
    if not entries:
        return None
    return min(entries, key=_entry_sort_key)


def can_log_dose(
        medication: Any,
        dose_history: Iterable[Any],
        now: datetime,
        tz: tzinfo = timezone.utc
) -> DoseDecision:
    """
    Decidir si se puede registrar una dosis en el instante `now`.

    `dose_history` puede ser el historial completo o solo los vecinos de `now`:
    el último registro en o antes de `now` y el primero después.
    Cada entrada necesita `taken_at` y opcionalmente `id`.
    Los registros posteriores a `now` solo existen al registrar una dosis
    atrasada, y el intervalo se exige también contra ellos.
    La función no tiene efectos secundarios: el llamador agrega el registro
    solo cuando la decisión es `allowed`.
    """
    history = [e for e in dose_history if e is not None]
    if not history:
        return DoseDecision.allow()

    policy = resolve_minimum_gap(getattr(medication, "frequency", None))
    if policy.is_unbounded:
        return DoseDecision.allow()

    now_utc = as_utc(now)
    previous = most_recent_entry(e for e in history if as_utc(e.taken_at) <= now_utc)
    following = earliest_entry_after(history, now_utc)

    if policy.calendar_day:
        today = local_date(now_utc, tz)
        for entry in (previous, following):
            if entry is not None and local_date(entry.taken_at, tz) == today:
                return DoseDecision.reject(
                    REASON_ALREADY_LOGGED_TODAY,
                    next_allowed_at=next_local_midnight(now_utc, tz)
                )
        return DoseDecision.allow()

    if previous is not None:
        previous_taken = as_utc(previous.taken_at)
        if now_utc - previous_taken < policy.minimum_gap:
            return DoseDecision.reject(
                REASON_INTERVAL_NOT_ELAPSED,
                next_allowed_at=previous_taken + policy.minimum_gap
            )

    if following is not None:
        following_taken = as_utc(following.taken_at)
        if following_taken - now_utc < policy.minimum_gap:
            return DoseDecision.reject(
                REASON_INTERVAL_NOT_ELAPSED,
                next_allowed_at=following_taken + policy.minimum_gap
            )

    return DoseDecision.allow()


def _window_start(value: WindowBound, tz: tzinfo) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    return start_of_day(value, tz)


def _window_end(value: WindowBound, tz: tzinfo) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    return end_of_day(value, tz)


def _round_half_up_percent(actual: int, expected: int) -> int:
    # round(actual / expected * 100) con redondeo hacia arriba en .5, en enteros
    return (actual * 200 + expected) // (2 * expected)


def compute_adherence(
        medication: Any,
        dose_history: Iterable[Any],
        window_start: WindowBound,
        window_end: WindowBound,
        tz: tzinfo = timezone.utc
) -> AdherenceResult:
    """
    Calcular la tasa de cumplimiento de un medicamento en [window_start, window_end].

    Los límites pueden ser `date` (día local completo en `tz`) o `datetime`.
    Dosis esperadas = días calendario locales de la ventana x dosis por día.
    Para as_needed, custom o frecuencias desconocidas la tasa no aplica (None).
    La tasa se limita a 100; el exceso se reporta en `excess_doses`.
    Un medicamento inactivo solo cuenta hasta su fecha de desactivación.

    Lanza InvalidRangeError si window_start > window_end.
    """
    start = _window_start(window_start, tz)
    end = _window_end(window_end, tz)

    if start > end:
        raise InvalidRangeError(window_start, window_end)

    effective_end = end
    deactivated_at = getattr(medication, "deactivated_at", None)
    if not getattr(medication, "active", True) and deactivated_at is not None:
        effective_end = min(end, as_utc(deactivated_at))

    actual = sum(
        1 for entry in dose_history
        if start <= as_utc(entry.taken_at) <= effective_end
    )

    per_day = DOSES_PER_DAY.get(normalize_frequency(getattr(medication, "frequency", None)))
    if per_day is None:
        return AdherenceResult(
            expected_doses=None,
            actual_doses=actual,
            rate_percent=None,
            excess_doses=0,
            window_start=start,
            window_end=end,
        )

    if effective_end < start:
        days = 0
    else:
        days = (local_date(effective_end, tz) - local_date(start, tz)).days + 1
    expected = days * per_day

    rate = None
    if expected > 0:
        rate = float(min(100, _round_half_up_percent(actual, expected)))

    return AdherenceResult(
        expected_doses=expected,
        actual_doses=actual,
        rate_percent=rate,
        excess_doses=max(0, actual - expected),
        window_start=start,
        window_end=end,
    )


def adherence_level(rate_percent: Optional[float], good: float = 90.0, fair: float = 75.0) -> str:
    """Clasificar una tasa de cumplimiento: good, fair, poor o not_applicable"""
    if rate_percent is None:
        return "not_applicable"
    if rate_percent >= good:
        return "good"
    if rate_percent >= fair:
        return "fair"
    return "poor"


def summarize_adherence(results: List[AdherenceResult]) -> dict:
    """
    Agregar varios resultados; solo cuentan los que tienen tasa aplicable.
    Las dosis en exceso de un medicamento no compensan las faltantes de otro.
    """
    applicable = [r for r in results if r.applicable]
    expected = sum(r.expected_doses for r in applicable)
    actual = sum(min(r.actual_doses, r.expected_doses) for r in applicable)

    rate = None
    if expected > 0:
        rate = float(min(100, _round_half_up_percent(actual, expected)))

    return {
        "medications_counted": len(applicable),
        "expected_doses": expected,
        "actual_doses": actual,
        "rate_percent": rate,
        "over_logged_medications": sum(1 for r in applicable if r.over_logged),
    }
