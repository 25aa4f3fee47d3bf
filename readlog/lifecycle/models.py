# lifecycle/models.py
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Optional, Union


class _Unchanged:
    """Marca "no tocar este campo" en una edición explícita (None sí borra)."""

    def __repr__(self) -> str:
        return "UNCHANGED"


UNCHANGED = _Unchanged()


@dataclass(frozen=True)
class LifecycleDates:
    """Fechas explícitas que puede traer una alta (p.ej. un libro leído el año pasado)."""
    started_at:   Optional[datetime] = None
    finished_at:  Optional[datetime] = None
    abandoned_at: Optional[datetime] = None


@dataclass(frozen=True)
class LifecycleTimestamps:
    created_at:   datetime
    started_at:   Optional[datetime] = None
    finished_at:  Optional[datetime] = None
    abandoned_at: Optional[datetime] = None


@dataclass(frozen=True)
class LifecycleEdit:
    """
    Edición manual de la línea de tiempo.
    Los campos en UNCHANGED se conservan; None borra la fecha.
    """
    started_at:   Union[datetime, None, _Unchanged] = UNCHANGED
    finished_at:  Union[datetime, None, _Unchanged] = UNCHANGED
    abandoned_at: Union[datetime, None, _Unchanged] = UNCHANGED

    def changes(self) -> dict[str, Optional[datetime]]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNCHANGED
        }
