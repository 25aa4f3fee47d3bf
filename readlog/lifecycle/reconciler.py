# lifecycle/reconciler.py
import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from readlog.instants import as_utc, earliest
from readlog.lifecycle.models import LifecycleDates, LifecycleEdit, LifecycleTimestamps
from readlog.records.models import LIFECYCLE_FIELDS, ReadableRecord, Status

logger = logging.getLogger(__name__)


class LifecycleTimestampReconciler:
    """
    Mantiene created_at / started_at / finished_at / abandoned_at.

    Invariantes:
    - created_at nunca es posterior a ninguna fecha del ciclo de vida
    - created_at solo se mueve hacia atrás
    - cada timestamp de estado se pone automáticamente una sola vez

    No lee el reloj: "now" siempre lo inyecta el llamador.
    Asume instantes ya validados (el rechazo de fechas futuras o
    malformadas vive en la capa de validación del llamador).
    """

    def on_create(
        self,
        initial_status: Status,
        explicit_dates: Optional[LifecycleDates],
        now:            datetime,
    ) -> LifecycleTimestamps:
        now   = as_utc(now)
        dates = explicit_dates or LifecycleDates()
        slots = {
            "started_at":   dates.started_at,
            "finished_at":  dates.finished_at,
            "abandoned_at": dates.abandoned_at,
        }

        slot = LIFECYCLE_FIELDS.get(initial_status)
        if slot is not None and slots[slot] is None:
            slots[slot] = now

        created_at = earliest([now, *slots.values()])
        return LifecycleTimestamps(
            created_at   = created_at,
            started_at   = _utc_or_none(slots["started_at"]),
            finished_at  = _utc_or_none(slots["finished_at"]),
            abandoned_at = _utc_or_none(slots["abandoned_at"]),
        )

    def on_status_change(
        self,
        record:     ReadableRecord,
        new_status: Status,
        now:        datetime,
    ) -> ReadableRecord:
        """
        Cambia el estado y registra su timestamp si todavía no existe.
        - done fuerza progress_percent = 100
        - volver a queued no borra fechas ni resetea el porcentaje
        """
        now     = as_utc(now)
        changes = {"status": new_status, "updated_at": now}

        slot = LIFECYCLE_FIELDS.get(new_status)
        if slot is not None:
            if getattr(record, slot) is None:
                changes[slot] = now
            else:
                logger.debug("%s ya registrado en %s — se conserva", slot, record.id)

        if new_status is Status.DONE:
            changes["progress_percent"] = 100

        updated = replace(record, **changes)
        return replace(updated, created_at=_reconciled_created_at(updated))

    def on_explicit_edit(self, record: ReadableRecord, new_dates: LifecycleEdit) -> ReadableRecord:
        """
        Aplica fechas retroactivas elegidas por el usuario.
        created_at puede adelantarse a la fecha más temprana, nunca atrasarse.
        """
        changes = {
            name: _utc_or_none(value)
            for name, value in new_dates.changes().items()
        }
        updated = replace(record, **changes)
        return replace(updated, created_at=_reconciled_created_at(updated))


def _utc_or_none(value: Optional[datetime]) -> Optional[datetime]:
    return as_utc(value) if value is not None else None


def _reconciled_created_at(record: ReadableRecord) -> Optional[datetime]:
    return earliest([
        record.created_at,
        record.started_at,
        record.finished_at,
        record.abandoned_at,
    ])


_default = LifecycleTimestampReconciler()


def on_create(
    initial_status: Status,
    explicit_dates: Optional[LifecycleDates],
    now:            datetime,
) -> LifecycleTimestamps:
    return _default.on_create(initial_status, explicit_dates, now)


def on_status_change(record: ReadableRecord, new_status: Status, now: datetime) -> ReadableRecord:
    return _default.on_status_change(record, new_status, now)


def on_explicit_edit(record: ReadableRecord, new_dates: LifecycleEdit) -> ReadableRecord:
    return _default.on_explicit_edit(record, new_dates)
