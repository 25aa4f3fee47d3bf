# chapters/models.py
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StoredChapterFields:
    """
    Los cuatro campos de capítulos tal como viven en la fila.
    Convivencia de tres generaciones del esquema:
    - legacy_count: el viejo conteo único (columna chapter_count)
    - available / total: el par "X/Y" actual
    - complete_flag: 0/1/None (o bool, si viene de un payload)
    """
    legacy_count:  Optional[int]          = None
    available:     Optional[int]          = None
    total:         Optional[int]          = None
    complete_flag: Optional[int | bool]   = None

    @property
    def is_complete(self) -> bool:
        return bool(self.complete_flag)


@dataclass(frozen=True)
class ChapterMetadata:
    """
    Vista canónica de capítulos. Nunca se persiste tal cual:
    siempre se re-deriva de StoredChapterFields.

    None significa "desconocido" (el "?" del archivo), nunca 0.
    """
    available: Optional[int]  = None
    total:     Optional[int]  = None
    complete:  Optional[bool] = None

    @property
    def is_unknown(self) -> bool:
        return self.available is None and self.total is None
