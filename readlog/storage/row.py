# storage/row.py
import json
import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)


# Generación 1 del esquema: valores de estado y tipo anteriores
_LEGACY_STATUS = {
    "to-read":  "queued",
    "reading":  "active",
    "finished": "done",
    "DNF":      "abandoned",
    "dnf":      "abandoned",
}
_CURRENT_STATUS = {"queued", "active", "done", "abandoned"}

_LEGACY_TYPE = {"fanfic": "serial"}
_CURRENT_TYPE = {"book", "serial"}

_LEGACY_PROGRESS_MODE = {"pages": "units", "chapters": "units"}
_CURRENT_PROGRESS_MODE = {"units", "time", "percent"}

# columna actual → nombres anteriores que se aceptan en lectura
_COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "abandoned_at":      ("dnf_at",),
    "tags_json":         ("mood_tags_json",),
    "work_id":           ("ao3_work_id",),
    "url":               ("ao3_url",),
    "archive_tags_json": ("ao3_tags_json",),
}


@dataclass
class StorageRow:
    """
    Una fila de la tabla readables, columna a columna.
    Las listas viajan como JSON; los instantes como ISO 8601.

    chapter_count es el campo legacy: se sigue escribiendo para que
    lectores anteriores del almacén sigan funcionando.
    """
    id:         str
    type:       str
    title:      str
    author:     str
    status:     str
    priority:   int
    created_at: Optional[str]
    updated_at: Optional[str]

    description:      Optional[str] = None
    notes:            Optional[str] = None
    tags_json:        Optional[str] = None
    progress_percent: Optional[int] = 0
    progress_mode:    Optional[str] = None

    started_at:   Optional[str] = None
    finished_at:  Optional[str] = None
    abandoned_at: Optional[str] = None

    time_current_seconds: Optional[int] = None
    time_total_seconds:   Optional[int] = None

    # Libros
    source:       Optional[str] = None
    source_id:    Optional[str] = None
    page_count:   Optional[int] = None
    current_page: Optional[int] = None
    genres_json:  Optional[str] = None

    # Seriales
    work_id:            Optional[str] = None
    url:                Optional[str] = None
    rating:             Optional[str] = None
    fandoms_json:       Optional[str] = None
    relationships_json: Optional[str] = None
    characters_json:    Optional[str] = None
    archive_tags_json:  Optional[str] = None
    warnings_json:      Optional[str] = None
    word_count:         Optional[int] = None
    chapter_count:      Optional[int] = None
    available_chapters: Optional[int] = None
    total_chapters:     Optional[int] = None
    current_chapter:    Optional[int] = None
    is_complete:        Optional[int] = None

    # ------------------------------------------------------------------
    # Conversión desde/hacia mappings (dict, sqlite3.Row, JSON)
    # ------------------------------------------------------------------

    @classmethod
    def columns(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "StorageRow":
        """
        Lee cualquier generación del esquema.
        Columnas desconocidas se ignoran; las renombradas se leen por su alias.
        """
        keys   = set(mapping.keys())
        values = {}
        for column in cls.columns():
            for name in (column, *_COLUMN_ALIASES.get(column, ())):
                if name in keys and mapping[name] is not None:
                    values[column] = mapping[name]
                    break

        row_id = str(values.get("id", ""))
        values["id"]       = row_id
        values["type"]     = canonical_type(values.get("type"), row_id)
        values["status"]   = canonical_status(values.get("status"), row_id)
        values["title"]    = values.get("title") or ""
        values["author"]   = values.get("author") or ""
        values["priority"] = values.get("priority")
        values.setdefault("created_at", None)
        values.setdefault("updated_at", None)
        # Filas anteriores a la columna progress_percent
        values.setdefault("progress_percent", 0)
        if "progress_mode" in values:
            values["progress_mode"] = canonical_progress_mode(values["progress_mode"])

        return cls(**values)

    def to_mapping(self) -> dict[str, Any]:
        return asdict(self)


def canonical_status(raw, row_id: str) -> str:
    if raw in _CURRENT_STATUS:
        return raw
    if raw in _LEGACY_STATUS:
        return _LEGACY_STATUS[raw]
    logger.warning("Fila %s con estado desconocido %r — se lee como queued", row_id, raw)
    return "queued"


def canonical_type(raw, row_id: str) -> str:
    if raw in _CURRENT_TYPE:
        return raw
    if raw in _LEGACY_TYPE:
        return _LEGACY_TYPE[raw]
    logger.warning("Fila %s con tipo desconocido %r — se lee como book", row_id, raw)
    return "book"


def canonical_progress_mode(raw) -> Optional[str]:
    if raw in _CURRENT_PROGRESS_MODE:
        return raw
    return _LEGACY_PROGRESS_MODE.get(raw)


# ------------------------------------------------------------------
# Listas JSON
# ------------------------------------------------------------------

def parse_json_list(raw: Optional[str], column: str = "") -> list[str]:
    """JSON → lista. Nulo, vacío, ilegible o no-lista → []."""
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning("Columna %s con JSON ilegible: %s", column or "?", e)
        return []
    if not isinstance(parsed, list):
        logger.warning("Columna %s no contiene una lista JSON", column or "?")
        return []
    return [str(item) for item in parsed if item is not None]


def dump_json_list(values: list[str]) -> str:
    return json.dumps(list(values), ensure_ascii=False)
