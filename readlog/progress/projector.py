# progress/projector.py
import logging
from dataclasses import dataclass, replace
from typing import Optional

from readlog.numeric import (
    clamp_percent, clean_count, known_denominator, percent_from_ratio, round_half_away,
)
from readlog.progress.models import (
    PercentTracker, PercentUpdate, ProgressSnapshot, ProgressUpdate,
    TimeTracker, TimeUpdate, Tracker, TrackerKind, UnitTracker, UnitUpdate,
)
from readlog.records.models import BookRecord, ProgressMode, ReadableRecord, SerialRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _UnitAxis:
    """El eje de unidades de un registro: qué campo, qué valor, contra qué total."""
    kind:        TrackerKind
    field:       str
    current:     Optional[int]
    total:       Optional[int]

    @property
    def denominator(self) -> Optional[int]:
        return known_denominator(self.total)


def _unit_axis(record: ReadableRecord) -> Optional[_UnitAxis]:
    if isinstance(record, BookRecord):
        return _UnitAxis(
            kind    = TrackerKind.PAGES,
            field   = "current_page",
            current = clean_count(record.current_page),
            total   = clean_count(record.page_count),
        )
    if isinstance(record, SerialRecord):
        # Preferencia de denominador: total > available > legacy
        total = next(
            (
                value
                for value in (
                    clean_count(record.total_units),
                    clean_count(record.available_units),
                    clean_count(record.legacy_unit_count),
                )
                if value is not None
            ),
            None,
        )
        return _UnitAxis(
            kind    = TrackerKind.CHAPTERS,
            field   = "current_unit",
            current = clean_count(record.current_unit),
            total   = total,
        )
    return None


def _scale(percent: int, denominator: int) -> int:
    return max(0, round_half_away(percent * denominator / 100))


class ProgressAxisProjector:
    """
    Convierte entre los tres ejes de progreso (porcentaje, unidades, tiempo).

    progress_percent es la única fuente de verdad; los demás ejes se
    derivan de él o lo derivan, según cuál haya editado el usuario.
    Todas las operaciones son puras: devuelven un registro nuevo
    (o el mismo objeto si el update no aplica).
    """

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def compute_snapshot(self, record: ReadableRecord) -> ProgressSnapshot:
        trackers: list[Tracker] = []

        axis = _unit_axis(record)
        if axis is not None:
            trackers.append(UnitTracker(
                kind    = axis.kind,
                current = axis.current,
                total   = axis.total,
                enabled = axis.denominator is not None or axis.current is not None,
            ))

        current_seconds = clean_count(record.time_current_seconds)
        total_seconds   = clean_count(record.time_total_seconds)
        trackers.append(TimeTracker(
            current_seconds = current_seconds,
            total_seconds   = total_seconds,
            enabled         = (
                current_seconds is not None
                and known_denominator(total_seconds) is not None
            ),
        ))

        return ProgressSnapshot(
            percent  = PercentTracker(percent=clamp_percent(record.progress_percent)),
            trackers = trackers,
        )

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def apply_update(self, record: ReadableRecord, update: ProgressUpdate) -> ReadableRecord:
        """
        Aplica una edición de progreso en un eje y sincroniza los otros.
        Un update que no aplica al tipo de registro devuelve el registro intacto.
        """
        if isinstance(update, PercentUpdate):
            return self._apply_percent(record, update)
        if isinstance(update, UnitUpdate):
            return self._apply_unit(record, update)
        if isinstance(update, TimeUpdate):
            return self._apply_time(record, update)

        logger.debug("Update de progreso desconocido ignorado: %r", update)
        return record

    def _apply_percent(self, record: ReadableRecord, update: PercentUpdate) -> ReadableRecord:
        percent = clamp_percent(update.percent)
        changes = {"progress_percent": percent, "progress_mode": ProgressMode.PERCENT}
        changes.update(self._sync_units(record, percent))
        changes.update(self._sync_time(record, percent))
        return replace(record, **changes)

    def _apply_unit(self, record: ReadableRecord, update: UnitUpdate) -> ReadableRecord:
        axis = _unit_axis(record)
        if axis is None or (update.unit is not None and update.unit != axis.kind):
            logger.debug(
                "Update de unidades %s no aplica a %s — ignorado",
                update.unit, type(record).__name__,
            )
            return record

        current     = clean_count(update.value) or 0
        denominator = axis.denominator
        if denominator is not None:
            current = min(current, denominator)

        derived = percent_from_ratio(current, denominator)
        percent = derived if derived is not None else clamp_percent(record.progress_percent)

        changes = {
            axis.field:         current,
            "progress_percent": percent,
            "progress_mode":    ProgressMode.UNITS,
        }
        if derived is not None:
            changes.update(self._sync_time(record, percent))
        return replace(record, **changes)

    def _apply_time(self, record: ReadableRecord, update: TimeUpdate) -> ReadableRecord:
        total = (
            clean_count(update.total)
            if update.total is not None
            else clean_count(record.time_total_seconds)
        )
        denominator = known_denominator(total)
        if denominator is None:
            logger.debug("Update de tiempo sin total utilizable — ignorado")
            return record

        current = min(clean_count(update.current) or 0, denominator)
        percent = percent_from_ratio(current, denominator)

        changes = {
            "time_current_seconds": current,
            "time_total_seconds":   denominator,
            "progress_percent":     percent,
            "progress_mode":        ProgressMode.TIME,
        }
        changes.update(self._sync_units(record, percent))
        return replace(record, **changes)

    # ------------------------------------------------------------------
    # Sincronización entre ejes
    # ------------------------------------------------------------------

    @staticmethod
    def _sync_units(record: ReadableRecord, percent: int) -> dict:
        axis = _unit_axis(record)
        if axis is None or axis.denominator is None:
            return {}
        return {axis.field: _scale(percent, axis.denominator)}

    @staticmethod
    def _sync_time(record: ReadableRecord, percent: int) -> dict:
        total = known_denominator(clean_count(record.time_total_seconds))
        if total is None:
            return {}
        return {"time_current_seconds": _scale(percent, total)}


_default = ProgressAxisProjector()


def compute_snapshot(record: ReadableRecord) -> ProgressSnapshot:
    return _default.compute_snapshot(record)


def apply_update(record: ReadableRecord, update: ProgressUpdate) -> ReadableRecord:
    return _default.apply_update(record, update)
