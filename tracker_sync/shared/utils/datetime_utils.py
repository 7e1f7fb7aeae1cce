"""
Utilidades para manejo de fechas y horas.

Todos los timestamps que el sync persiste se expresan en un offset fijo
respecto de UTC (por defecto +05:30). El instante absoluto no cambia: solo
la representación de pared.
"""
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional


def utc_now() -> datetime:
    """Retorna la hora actual en UTC, como datetime aware."""
    return datetime.now(timezone.utc)


class TimestampNormalizer:
    """
    Normalizador de timestamps hacia un offset fijo.

    Uso:
        normalizer = TimestampNormalizer(offset_minutes=330, grace_minutes=10)
        normalizer.normalize(created_at)   # mismo instante, en +05:30
        normalizer.now()                    # ahora, en +05:30
        normalizer.adjusted_now()           # ahora - 10 min, en +05:30
    """

    def __init__(
        self,
        offset_minutes: int = 330,
        grace_minutes: int = 10,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Args:
            offset_minutes: Offset fijo respecto de UTC (positivo = al este)
            grace_minutes: Margen restado por adjusted_now()
            clock: Fuente de "ahora" (aware). Inyectable para tests
        """
        self.tz = timezone(timedelta(minutes=offset_minutes))
        self.grace = timedelta(minutes=grace_minutes)
        self._clock = clock

    def normalize(self, dt: Optional[datetime] = None) -> datetime:
        """
        Convierte un instante al offset fijo. Sin argumento, retorna "ahora".

        Un datetime naive se interpreta como UTC.
        """
        if dt is None:
            return self.now()
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(self.tz)

    def now(self) -> datetime:
        """Hora actual en el offset fijo."""
        return self._clock().astimezone(self.tz)

    def adjusted_now(self) -> datetime:
        """
        Hora actual menos el margen de gracia, en el offset fijo.

        Se usa para start_time/end_time: aproxima el instante del cambio de
        estado restando la latencia de procesamiento. No es un timestamp causal.
        """
        return self.now() - self.grace


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Convierte un string ISO 8601 (GitHub usa sufijo 'Z') a datetime aware.

    Returns:
        Optional[datetime]: datetime o None si el valor falta o es inválido
    """
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
