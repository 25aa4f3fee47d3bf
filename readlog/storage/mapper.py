# storage/mapper.py
import logging
from typing import Any, Mapping, Optional, Union

from readlog.chapters.models import ChapterMetadata, StoredChapterFields
from readlog.chapters.normalizer import ChapterMetadataNormalizer
from readlog.instants import earliest, format_instant, parse_instant
from readlog.numeric import clamp_int, clamp_percent, clean_count
from readlog.records.models import (
    MAX_PRIORITY, MIN_PRIORITY,
    BookRecord, BookSource, ProgressMode, Rating, ReadableRecord,
    RecordKind, SerialRecord, Status,
)
from readlog.storage.row import (
    StorageRow, canonical_progress_mode, canonical_status, canonical_type,
    dump_json_list, parse_json_list,
)

logger = logging.getLogger(__name__)

# Valores de source escritos por versiones anteriores
_LEGACY_BOOK_SOURCE = {
    "googleBooks": BookSource.GOOGLE_BOOKS,
    "openLibrary": BookSource.OPEN_LIBRARY,
}


class RecordMapper:
    """
    Frontera entre la fila almacenada y el registro canónico.

    Ley de ida y vuelta: from_storage(to_storage(from_storage(row)))
    == from_storage(row). Los bytes de la fila pueden cambiar (p.ej. el
    campo legacy se rellena), el registro no.
    """

    def __init__(
        self,
        normalizer:       Optional[ChapterMetadataNormalizer] = None,
        default_priority: int = 3,
    ):
        self._normalizer       = normalizer or ChapterMetadataNormalizer()
        self._default_priority = clamp_int(default_priority, MIN_PRIORITY, MAX_PRIORITY)

    # ------------------------------------------------------------------
    # Lectura
    # ------------------------------------------------------------------

    def from_storage(self, row: Union[StorageRow, Mapping[str, Any]]) -> ReadableRecord:
        if not isinstance(row, StorageRow):
            row = StorageRow.from_mapping(row)

        common = self._common_from_row(row)

        if canonical_type(row.type, row.id) == RecordKind.SERIAL.value:
            return self._serial_from_row(row, common)
        return self._book_from_row(row, common)

    def _common_from_row(self, row: StorageRow) -> dict:
        started_at   = parse_instant(row.started_at)
        finished_at  = parse_instant(row.finished_at)
        abandoned_at = parse_instant(row.abandoned_at)
        updated_at   = parse_instant(row.updated_at)
        created_at   = parse_instant(row.created_at)

        if created_at is None:
            # Fila sin created_at legible: la fecha conocida más temprana
            created_at = earliest([started_at, finished_at, abandoned_at, updated_at])
            logger.debug("Fila %s sin created_at — se usa %s", row.id, created_at)

        return dict(
            id                   = row.id,
            title                = row.title,
            author               = row.author,
            status               = Status(canonical_status(row.status, row.id)),
            priority             = self._clean_priority(row.priority),
            tags                 = parse_json_list(row.tags_json, "tags_json"),
            description          = row.description,
            notes                = row.notes,
            created_at           = created_at,
            updated_at           = updated_at,
            started_at           = started_at,
            finished_at          = finished_at,
            abandoned_at         = abandoned_at,
            progress_percent     = clamp_percent(row.progress_percent),
            progress_mode        = _progress_mode(row.progress_mode),
            time_current_seconds = clean_count(row.time_current_seconds),
            time_total_seconds   = clean_count(row.time_total_seconds),
        )

    def _book_from_row(self, row: StorageRow, common: dict) -> BookRecord:
        return BookRecord(
            **common,
            page_count   = clean_count(row.page_count),
            current_page = clean_count(row.current_page),
            source       = _book_source(row.source),
            source_id    = row.source_id,
            genres       = parse_json_list(row.genres_json, "genres_json"),
        )

    def _serial_from_row(self, row: StorageRow, common: dict) -> SerialRecord:
        legacy   = clean_count(row.chapter_count)
        metadata = self._normalizer.normalize_on_read(StoredChapterFields(
            legacy_count  = legacy,
            available     = row.available_chapters,
            total         = row.total_chapters,
            complete_flag = row.is_complete,
        ))

        return SerialRecord(
            **common,
            available_units   = metadata.available,
            total_units       = metadata.total,
            # el valor que se volvería a escribir, para que la ida y vuelta sea estable
            legacy_unit_count = self._normalizer.legacy_count_for(
                metadata.available, metadata.total, legacy,
            ),
            complete          = metadata.complete,
            current_unit      = clean_count(row.current_chapter),
            work_id           = row.work_id or "",
            url               = row.url or "",
            rating            = _rating(row.rating),
            fandoms           = parse_json_list(row.fandoms_json, "fandoms_json"),
            relationships     = parse_json_list(row.relationships_json, "relationships_json"),
            characters        = parse_json_list(row.characters_json, "characters_json"),
            archive_tags      = parse_json_list(row.archive_tags_json, "archive_tags_json"),
            warnings          = parse_json_list(row.warnings_json, "warnings_json"),
            word_count        = clean_count(row.word_count),
        )

    # ------------------------------------------------------------------
    # Escritura
    # ------------------------------------------------------------------

    def to_storage(self, record: ReadableRecord) -> StorageRow:
        row = StorageRow(
            id                   = record.id,
            type                 = record.kind.value,
            title                = record.title,
            author               = record.author,
            status               = record.status.value,
            priority             = self._clean_priority(record.priority),
            created_at           = format_instant(record.created_at),
            updated_at           = format_instant(record.updated_at),
            description          = record.description,
            notes                = record.notes,
            tags_json            = dump_json_list(record.tags),
            progress_percent     = clamp_percent(record.progress_percent),
            progress_mode        = record.progress_mode.value if record.progress_mode else None,
            started_at           = format_instant(record.started_at),
            finished_at          = format_instant(record.finished_at),
            abandoned_at         = format_instant(record.abandoned_at),
            time_current_seconds = clean_count(record.time_current_seconds),
            time_total_seconds   = clean_count(record.time_total_seconds),
        )

        if isinstance(record, BookRecord):
            row.source       = record.source.value
            row.source_id    = record.source_id
            row.page_count   = clean_count(record.page_count)
            row.current_page = clean_count(record.current_page)
            row.genres_json  = dump_json_list(record.genres)

        elif isinstance(record, SerialRecord):
            stored = self._normalizer.normalize_on_write(
                ChapterMetadata(record.available_units, record.total_units, record.complete),
                record.legacy_unit_count,
            )
            row.work_id            = record.work_id
            row.url                = record.url
            row.rating             = record.rating.value if record.rating else None
            row.fandoms_json       = dump_json_list(record.fandoms)
            row.relationships_json = dump_json_list(record.relationships)
            row.characters_json    = dump_json_list(record.characters)
            row.archive_tags_json  = dump_json_list(record.archive_tags)
            row.warnings_json      = dump_json_list(record.warnings)
            row.word_count         = clean_count(record.word_count)
            row.chapter_count      = stored.legacy_count
            row.available_chapters = stored.available
            row.total_chapters     = stored.total
            row.is_complete        = stored.complete_flag
            row.current_chapter    = clean_count(record.current_unit)

        return row

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def chapter_metadata(self, record: SerialRecord) -> ChapterMetadata:
        """Tripleta canónica de un registro, re-derivada como se persistiría."""
        stored = self._normalizer.normalize_on_write(
            ChapterMetadata(record.available_units, record.total_units, record.complete),
            record.legacy_unit_count,
        )
        return self._normalizer.normalize_on_read(stored)

    def _clean_priority(self, raw) -> int:
        value = clean_count(raw)
        if value is None:
            return self._default_priority
        return clamp_int(value, MIN_PRIORITY, MAX_PRIORITY)


def _book_source(raw: Optional[str]) -> BookSource:
    if raw in _LEGACY_BOOK_SOURCE:
        return _LEGACY_BOOK_SOURCE[raw]
    try:
        return BookSource(raw)
    except ValueError:
        return BookSource.MANUAL


def _rating(raw: Optional[str]) -> Optional[Rating]:
    if raw is None:
        return None
    try:
        return Rating(raw)
    except ValueError:
        logger.warning("Rating desconocido %r — se ignora", raw)
        return None


_default = RecordMapper()


def from_storage(row: Union[StorageRow, Mapping[str, Any]]) -> ReadableRecord:
    return _default.from_storage(row)


def to_storage(record: ReadableRecord) -> StorageRow:
    return _default.to_storage(record)


def _progress_mode(raw: Optional[str]) -> Optional[ProgressMode]:
    value = canonical_progress_mode(raw)
    return ProgressMode(value) if value else None
