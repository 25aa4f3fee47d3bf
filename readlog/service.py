# readlog/service.py
import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from readlog.chapters.models import ChapterMetadata
from readlog.config_loader import EngineConfig
from readlog.instants import utc_now
from readlog.lifecycle.models import LifecycleDates, LifecycleEdit
from readlog.lifecycle.reconciler import LifecycleTimestampReconciler
from readlog.progress.models import ProgressSnapshot, ProgressUpdate
from readlog.progress.projector import ProgressAxisProjector
from readlog.records.models import ReadableRecord, SerialRecord, Status
from readlog.storage.mapper import RecordMapper
from readlog.storage.store import ReadableStore

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Errores propios del servicio
# ------------------------------------------------------------------

class ReadableNotFoundError(Exception):
    """El almacén no tiene ninguna fila con ese id."""
    pass


def generate_id() -> str:
    return uuid.uuid4().hex


class ReadableService:
    """
    Conecta el motor de reconciliación con el almacén.
    No tiene lógica de negocio propia, solo coordina módulos:

    fila → RecordMapper → registro → (projector | reconciler) → registro → fila

    El reloj y la generación de ids se inyectan para que los tests sean
    deterministas. La serialización de escrituras concurrentes sobre un
    mismo id es responsabilidad del almacén.
    """

    def __init__(
        self,
        store:      ReadableStore,
        mapper:     Optional[RecordMapper]                 = None,
        projector:  Optional[ProgressAxisProjector]        = None,
        reconciler: Optional[LifecycleTimestampReconciler] = None,
        clock:      Callable[[], datetime]                 = utc_now,
        id_factory: Callable[[], str]                      = generate_id,
        config:     Optional[EngineConfig]                 = None,
    ):
        self._config     = config or EngineConfig()
        self._store      = store
        self._mapper     = mapper or RecordMapper(default_priority=self._config.default_priority)
        self._projector  = projector or ProgressAxisProjector()
        self._reconciler = reconciler or LifecycleTimestampReconciler()
        self._clock      = clock
        self._id_factory = id_factory

    @property
    def config(self) -> EngineConfig:
        return self._config

    # ------------------------------------------------------------------
    # Lectura
    # ------------------------------------------------------------------

    def get(self, readable_id: str) -> Optional[ReadableRecord]:
        row = self._store.get_by_id(readable_id)
        return self._mapper.from_storage(row) if row else None

    def progress_snapshot(self, readable_id: str) -> ProgressSnapshot:
        return self._projector.compute_snapshot(self._require(readable_id))

    def chapter_metadata(self, readable_id: str) -> Optional[ChapterMetadata]:
        """Tripleta canónica de capítulos; None si el registro no es un serial."""
        record = self._require(readable_id)
        if not isinstance(record, SerialRecord):
            return None
        return self._mapper.chapter_metadata(record)

    # ------------------------------------------------------------------
    # Alta / baja
    # ------------------------------------------------------------------

    def insert(self, draft: ReadableRecord) -> ReadableRecord:
        """
        Da de alta un registro nuevo.
        Las fechas que traiga el borrador se respetan; si no, se derivan
        del estado inicial. Asigna id, created_at y updated_at.
        """
        now        = self._clock()
        timestamps = self._reconciler.on_create(
            draft.status,
            LifecycleDates(
                started_at   = draft.started_at,
                finished_at  = draft.finished_at,
                abandoned_at = draft.abandoned_at,
            ),
            now,
        )
        record = replace(
            draft,
            id           = draft.id or self._id_factory(),
            created_at   = timestamps.created_at,
            updated_at   = now,
            started_at   = timestamps.started_at,
            finished_at  = timestamps.finished_at,
            abandoned_at = timestamps.abandoned_at,
        )
        if record.status is Status.DONE:
            record = replace(record, progress_percent=100)

        row = self._store.insert(self._mapper.to_storage(record))
        logger.info("Alta de %s '%s' (id=%s)", record.kind.value, record.title, record.id)
        return self._mapper.from_storage(row)

    def remove(self, readable_id: str) -> None:
        self._require(readable_id)
        self._store.remove(readable_id)
        logger.info("Baja de %s", readable_id)

    # ------------------------------------------------------------------
    # Mutaciones
    # ------------------------------------------------------------------

    def update(self, record: ReadableRecord) -> ReadableRecord:
        """
        Edición completa desde un formulario.
        Las fechas que trae el registro son autoritativas (None borra);
        created_at se recalcula pero nunca se mueve hacia adelante.
        """
        existing = self._require(record.id)
        merged   = replace(record, created_at=existing.created_at)
        merged   = self._reconciler.on_explicit_edit(merged, LifecycleEdit(
            started_at   = record.started_at,
            finished_at  = record.finished_at,
            abandoned_at = record.abandoned_at,
        ))
        return self._write(replace(merged, updated_at=self._clock()))

    def change_status(self, readable_id: str, status: Status) -> ReadableRecord:
        existing = self._require(readable_id)
        updated  = self._reconciler.on_status_change(existing, status, self._clock())
        logger.info("%s: %s → %s", readable_id, existing.status.value, status.value)
        return self._write(updated)

    def update_progress(self, readable_id: str, update: ProgressUpdate) -> ReadableRecord:
        """Aplica una edición de progreso. Un update que no aplica no escribe nada."""
        existing = self._require(readable_id)
        updated  = self._projector.apply_update(existing, update)
        if updated is existing:
            logger.debug("Update %r sin efecto sobre %s", update, readable_id)
            return existing
        return self._write(replace(updated, updated_at=self._clock()))

    def edit_dates(self, readable_id: str, edit: LifecycleEdit) -> ReadableRecord:
        """Edición manual de la línea de tiempo (fechas retroactivas)."""
        existing = self._require(readable_id)
        updated  = self._reconciler.on_explicit_edit(existing, edit)
        return self._write(replace(updated, updated_at=self._clock()))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require(self, readable_id: str) -> ReadableRecord:
        record = self.get(readable_id)
        if record is None:
            raise ReadableNotFoundError(f"Readable con id {readable_id} no encontrado")
        return record

    def _write(self, record: ReadableRecord) -> ReadableRecord:
        row = self._store.update(self._mapper.to_storage(record))
        return self._mapper.from_storage(row)
