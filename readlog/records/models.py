# records/models.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar, Optional, Union


class Status(Enum):
    QUEUED    = "queued"
    ACTIVE    = "active"
    DONE      = "done"
    ABANDONED = "abandoned"


class RecordKind(Enum):
    BOOK   = "book"
    SERIAL = "serial"


class ProgressMode(Enum):
    """Eje que el usuario editó por última vez."""
    UNITS   = "units"
    TIME    = "time"
    PERCENT = "percent"


class BookSource(Enum):
    MANUAL        = "manual"
    GOOGLE_BOOKS  = "google_books"
    OPEN_LIBRARY  = "open_library"
    GOODREADS     = "goodreads"


class Rating(Enum):
    GENERAL   = "G"
    TEEN      = "T"
    MATURE    = "M"
    EXPLICIT  = "E"
    NOT_RATED = "NR"


MIN_PRIORITY = 1
MAX_PRIORITY = 5


@dataclass(kw_only=True)
class ReadableRecord:
    """
    Registro canónico en memoria.
    Nunca se instancia directamente: usar BookRecord o SerialRecord.

    progress_percent es la fuente de verdad del progreso y siempre está
    definido (0–100). Las vistas por unidades o por tiempo se derivan de él.
    """
    kind: ClassVar[RecordKind]

    id:           str                    = ""
    title:        str                    = ""
    author:       str                    = ""
    status:       Status                 = Status.QUEUED
    priority:     int                    = 3
    tags:         list[str]              = field(default_factory=list)
    description:  Optional[str]          = None
    notes:        Optional[str]          = None

    created_at:   Optional[datetime]     = None
    updated_at:   Optional[datetime]     = None
    started_at:   Optional[datetime]     = None
    finished_at:  Optional[datetime]     = None
    abandoned_at: Optional[datetime]     = None

    progress_percent: int                    = 0
    progress_mode:    Optional[ProgressMode] = None

    # Eje de tiempo (audiolibros, tiempo de Kindle)
    time_current_seconds: Optional[int] = None
    time_total_seconds:   Optional[int] = None


@dataclass(kw_only=True)
class BookRecord(ReadableRecord):
    kind: ClassVar[RecordKind] = RecordKind.BOOK

    page_count:   Optional[int] = None
    current_page: Optional[int] = None
    source:       BookSource    = BookSource.MANUAL
    source_id:    Optional[str] = None
    genres:       list[str]     = field(default_factory=list)


@dataclass(kw_only=True)
class SerialRecord(ReadableRecord):
    """
    Obra publicada por capítulos (fanfic).

    available_units: capítulos publicados (X en "X/Y")
    total_units:     total planeado (Y en "X/Y"), None cuando el archivo muestra "?"
    legacy_unit_count: campo de versiones anteriores, se conserva para lectores viejos
    """
    kind: ClassVar[RecordKind] = RecordKind.SERIAL

    available_units:   Optional[int]  = None
    total_units:       Optional[int]  = None
    legacy_unit_count: Optional[int]  = None
    complete:          Optional[bool] = None
    current_unit:      Optional[int]  = None

    work_id:       str              = ""
    url:           str              = ""
    rating:        Optional[Rating] = None
    fandoms:       list[str]        = field(default_factory=list)
    relationships: list[str]        = field(default_factory=list)
    characters:    list[str]        = field(default_factory=list)
    archive_tags:  list[str]        = field(default_factory=list)
    warnings:      list[str]        = field(default_factory=list)
    word_count:    Optional[int]    = None


AnyRecord = Union[BookRecord, SerialRecord]


# Estado del ciclo de vida → campo de timestamp que le corresponde.
# QUEUED no tiene timestamp propio.
LIFECYCLE_FIELDS: dict[Status, str] = {
    Status.ACTIVE:    "started_at",
    Status.DONE:      "finished_at",
    Status.ABANDONED: "abandoned_at",
}
