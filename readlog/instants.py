# readlog/instants.py
import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Los instantes sin zona se interpretan como UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def earliest(values: Iterable[Optional[datetime]]) -> Optional[datetime]:
    """El mínimo de los instantes no nulos, o None si no hay ninguno."""
    present = [as_utc(v) for v in values if v is not None]
    return min(present) if present else None


def parse_instant(raw) -> Optional[datetime]:
    """
    ISO 8601 → datetime UTC.
    Acepta el sufijo "Z" que escriben los clientes JS.
    Un valor ilegible se registra y se trata como ausente.
    """
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return as_utc(raw)
    text = str(raw).strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return as_utc(datetime.fromisoformat(text))
    except ValueError:
        logger.warning("Instante ilegible ignorado: %r", raw)
        return None


def format_instant(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return as_utc(value).isoformat()
