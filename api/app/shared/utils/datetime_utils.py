"""
Utilidades para manejo de fechas y horas.
"""
from datetime import datetime, time, timedelta, timezone
from typing import Optional


class DateTimeUtils:
    """Clase de utilidades para operaciones con fechas y horas."""

    @staticmethod
    def now_utc() -> datetime:
        """
        Obtiene la fecha y hora actual en UTC.

        Returns:
            datetime: Fecha y hora actual en UTC
        """
        return datetime.now(timezone.utc)

    @staticmethod
    def ensure_utc(dt: datetime) -> datetime:
        """
        Normaliza un datetime a UTC (aware).
        Los datetime naive se asumen en UTC.
        """
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    @staticmethod
    def to_iso_string(dt: datetime) -> str:
        """
        Convierte un datetime a string ISO 8601 en UTC con sufijo 'Z'.

        Args:
            dt: Objeto datetime (un date se interpreta como medianoche UTC)

        Returns:
            str: Fecha en formato ISO 8601, p.ej. 2025-01-15T06:30:00.000000Z
        """
        if not isinstance(dt, datetime):
            dt = datetime.combine(dt, time.min)
        dt_utc = DateTimeUtils.ensure_utc(dt)
        return dt_utc.isoformat(timespec="microseconds").replace("+00:00", "Z")

    @staticmethod
    def from_iso_string(iso_string: str) -> Optional[datetime]:
        """
        Convierte un string ISO 8601 a datetime UTC.

        Args:
            iso_string: String en formato ISO 8601 (acepta sufijo 'Z')

        Returns:
            Optional[datetime]: Objeto datetime o None si hay error
        """
        try:
            parsed = datetime.fromisoformat(iso_string.strip().replace("Z", "+00:00"))
        except (ValueError, TypeError, AttributeError):
            return None
        return DateTimeUtils.ensure_utc(parsed)

    @staticmethod
    def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
        """
        Retorna el primer y el último instante de un mes en UTC.
        """
        start = datetime(year, month, 1, tzinfo=timezone.utc)
        if month == 12:
            next_start = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
        else:
            next_start = datetime(year, month + 1, 1, tzinfo=timezone.utc)
        return start, next_start - timedelta(microseconds=1)
