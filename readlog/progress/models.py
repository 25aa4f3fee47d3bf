# progress/models.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


class TrackerKind(Enum):
    PERCENT  = "percent"
    PAGES    = "pages"
    CHAPTERS = "chapters"
    TIME     = "time"


# ------------------------------------------------------------------
# Trackers: lo que se muestra
# ------------------------------------------------------------------

@dataclass(frozen=True)
class PercentTracker:
    percent: int
    enabled: bool        = True
    kind:    TrackerKind = TrackerKind.PERCENT


@dataclass(frozen=True)
class UnitTracker:
    """Páginas (libros) o capítulos (seriales)."""
    kind:    TrackerKind
    current: Optional[int]
    total:   Optional[int]
    enabled: bool


@dataclass(frozen=True)
class TimeTracker:
    current_seconds: Optional[int]
    total_seconds:   Optional[int]
    enabled:         bool
    kind:            TrackerKind = TrackerKind.TIME


Tracker = Union[PercentTracker, UnitTracker, TimeTracker]


@dataclass(frozen=True)
class ProgressSnapshot:
    """
    Vista de progreso para la UI.
    percent siempre está presente; trackers trae las vistas alternativas.
    """
    percent:  PercentTracker
    trackers: list[Tracker] = field(default_factory=list)

    def tracker(self, kind: TrackerKind) -> Optional[Tracker]:
        for tracker in self.trackers:
            if tracker.kind == kind:
                return tracker
        return None


# ------------------------------------------------------------------
# Updates: lo que el usuario acaba de hacer
# ------------------------------------------------------------------

@dataclass(frozen=True)
class PercentUpdate:
    percent: float


@dataclass(frozen=True)
class UnitUpdate:
    """
    Nueva posición en páginas o capítulos.
    unit restringe el tipo de registro: PAGES solo aplica a libros,
    CHAPTERS solo a seriales. None aplica al eje de unidades que tenga el registro.
    """
    value: float
    unit:  Optional[TrackerKind] = None


@dataclass(frozen=True)
class TimeUpdate:
    """Posición en segundos. total=None reutiliza el total ya guardado."""
    current: float
    total:   Optional[float] = None


ProgressUpdate = Union[PercentUpdate, UnitUpdate, TimeUpdate]
