# tests/lifecycle/test_reconciler.py
from datetime import datetime, timedelta, timezone

import pytest

from readlog.lifecycle.models import LifecycleDates, LifecycleEdit, LifecycleTimestamps
from readlog.lifecycle.reconciler import (
    LifecycleTimestampReconciler, on_create, on_explicit_edit, on_status_change,
)
from readlog.records.models import BookRecord, SerialRecord, Status

T0 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def reconciler():
    return LifecycleTimestampReconciler()


def make_book(**kwargs) -> BookRecord:
    defaults = dict(id="b1", title="Piranesi", author="Susanna Clarke", created_at=T0, updated_at=T0)
    defaults.update(kwargs)
    return BookRecord(**defaults)


# ------------------------------------------------------------------
# on_create
# ------------------------------------------------------------------

class TestOnCreate:

    def test_activo_registra_started_at(self, reconciler):
        """Escenario: alta como active en T sin fechas explícitas."""
        result = reconciler.on_create(Status.ACTIVE, None, T0)
        assert result == LifecycleTimestamps(created_at=T0, started_at=T0)

    def test_queued_solo_created_at(self, reconciler):
        result = reconciler.on_create(Status.QUEUED, None, T0)
        assert result == LifecycleTimestamps(created_at=T0)

    def test_done_registra_finished_at(self, reconciler):
        result = reconciler.on_create(Status.DONE, None, T0)
        assert result.finished_at == T0
        assert result.started_at is None

    def test_fecha_explicita_tiene_precedencia(self, reconciler):
        past   = T0 - timedelta(days=30)
        result = reconciler.on_create(Status.ACTIVE, LifecycleDates(started_at=past), T0)
        assert result.started_at == past
        assert result.created_at == past

    def test_created_at_es_la_fecha_mas_temprana(self, reconciler):
        started  = T0 - timedelta(days=400)
        finished = T0 - timedelta(days=300)
        result   = reconciler.on_create(
            Status.DONE, LifecycleDates(started_at=started, finished_at=finished), T0,
        )
        assert result.created_at == started
        assert result.finished_at == finished

    def test_instante_sin_zona_se_lee_como_utc(self, reconciler):
        naive  = datetime(2024, 3, 1, 12, 0)
        result = reconciler.on_create(Status.QUEUED, None, naive)
        assert result.created_at == T0
        assert result.created_at.tzinfo is not None


# ------------------------------------------------------------------
# on_status_change
# ------------------------------------------------------------------

class TestOnStatusChange:

    def test_registra_slot_y_updated_at(self, reconciler):
        later  = T0 + timedelta(days=2)
        result = reconciler.on_status_change(make_book(), Status.ACTIVE, later)
        assert result.status is Status.ACTIVE
        assert result.started_at == later
        assert result.updated_at == later

    def test_slot_se_escribe_una_sola_vez(self, reconciler):
        first  = T0 + timedelta(days=1)
        record = reconciler.on_status_change(make_book(), Status.ACTIVE, first)
        record = reconciler.on_status_change(record, Status.QUEUED, first + timedelta(days=1))
        record = reconciler.on_status_change(record, Status.ACTIVE, first + timedelta(days=5))
        assert record.started_at == first

    def test_done_fuerza_cien(self, reconciler):
        record = make_book(progress_percent=40)
        result = reconciler.on_status_change(record, Status.DONE, T0 + timedelta(hours=1))
        assert result.progress_percent == 100
        assert result.finished_at == T0 + timedelta(hours=1)

    def test_queued_no_borra_nada(self, reconciler):
        started = T0 + timedelta(days=1)
        record  = make_book(status=Status.ACTIVE, started_at=started, progress_percent=55)
        result  = reconciler.on_status_change(record, Status.QUEUED, T0 + timedelta(days=3))
        assert result.status is Status.QUEUED
        assert result.started_at == started
        assert result.progress_percent == 55

    def test_abandonar_registra_abandoned_at(self, reconciler):
        when   = T0 + timedelta(days=9)
        result = reconciler.on_status_change(make_book(), Status.ABANDONED, when)
        assert result.abandoned_at == when

    def test_created_at_nunca_avanza(self, reconciler):
        result = reconciler.on_status_change(make_book(), Status.ACTIVE, T0 + timedelta(days=1))
        assert result.created_at == T0

    def test_created_at_sin_valor_toma_el_slot(self, reconciler):
        record = make_book(created_at=None)
        result = reconciler.on_status_change(record, Status.ACTIVE, T0)
        assert result.created_at == T0

    def test_funciona_con_seriales(self, reconciler):
        serial = SerialRecord(id="s1", title="t", author="a", created_at=T0, total_units=10)
        result = reconciler.on_status_change(serial, Status.DONE, T0 + timedelta(days=1))
        assert isinstance(result, SerialRecord)
        assert result.total_units == 10
        assert result.progress_percent == 100

    def test_no_muta_el_original(self, reconciler):
        record = make_book()
        reconciler.on_status_change(record, Status.DONE, T0 + timedelta(days=1))
        assert record.status is Status.QUEUED
        assert record.finished_at is None


# ------------------------------------------------------------------
# on_explicit_edit
# ------------------------------------------------------------------

class TestOnExplicitEdit:

    def test_fechas_retroactivas_adelantan_created_at(self, reconciler):
        """Escenario: el usuario fija started T1 y finished T2, ambos antes de created_at."""
        t1     = T0 - timedelta(days=60)
        t2     = T0 - timedelta(days=20)
        result = reconciler.on_explicit_edit(make_book(), LifecycleEdit(started_at=t1, finished_at=t2))
        assert result.started_at == t1
        assert result.finished_at == t2
        assert result.created_at == t1

    def test_fecha_posterior_no_atrasa_created_at(self, reconciler):
        later  = T0 + timedelta(days=10)
        result = reconciler.on_explicit_edit(make_book(), LifecycleEdit(started_at=later))
        assert result.created_at == T0

    def test_sobrescribe_slot_ya_registrado(self, reconciler):
        record = make_book(started_at=T0 + timedelta(days=1))
        fixed  = T0 + timedelta(days=3)
        assert reconciler.on_explicit_edit(record, LifecycleEdit(started_at=fixed)).started_at == fixed

    def test_none_borra_y_unchanged_conserva(self, reconciler):
        started  = T0 + timedelta(days=1)
        finished = T0 + timedelta(days=2)
        record   = make_book(started_at=started, finished_at=finished)
        result   = reconciler.on_explicit_edit(record, LifecycleEdit(finished_at=None))
        assert result.finished_at is None
        assert result.started_at == started

    def test_borrar_fecha_no_mueve_created_at(self, reconciler):
        early  = T0 - timedelta(days=5)
        record = make_book(created_at=early, started_at=early)
        result = reconciler.on_explicit_edit(record, LifecycleEdit(started_at=None))
        assert result.created_at == early


# ------------------------------------------------------------------
# Propiedades
# ------------------------------------------------------------------

_STATUS_SEQUENCES = [
    [Status.ACTIVE, Status.DONE],
    [Status.ACTIVE, Status.QUEUED, Status.ACTIVE, Status.ABANDONED],
    [Status.DONE, Status.ACTIVE, Status.DONE],
    [Status.ABANDONED, Status.QUEUED, Status.ABANDONED, Status.DONE],
]


@pytest.mark.parametrize("sequence", _STATUS_SEQUENCES)
def test_created_at_monotono_y_slots_una_vez(sequence):
    record = make_book(created_at=T0 + timedelta(days=1))
    first_seen: dict[str, datetime] = {}
    previous_created = record.created_at

    for step, new_status in enumerate(sequence, start=1):
        record = on_status_change(record, new_status, T0 + timedelta(days=step))
        assert record.created_at <= previous_created
        previous_created = record.created_at

        for slot in ("started_at", "finished_at", "abandoned_at"):
            value = getattr(record, slot)
            if value is not None:
                assert first_seen.setdefault(slot, value) == value

        present = [d for d in (record.started_at, record.finished_at, record.abandoned_at) if d]
        assert all(record.created_at <= d for d in present)


_MIXED_SEQUENCES = [
    [
        Status.ACTIVE,
        LifecycleEdit(started_at=T0 - timedelta(days=40)),
        Status.DONE,
        LifecycleEdit(started_at=None),
    ],
    [
        LifecycleEdit(finished_at=T0 + timedelta(days=30)),
        Status.ACTIVE,
        LifecycleEdit(started_at=T0 + timedelta(days=60), finished_at=None),
        Status.ABANDONED,
    ],
    [
        Status.ABANDONED,
        LifecycleEdit(abandoned_at=None, started_at=T0 - timedelta(days=2)),
        Status.QUEUED,
        LifecycleEdit(started_at=T0 - timedelta(days=90), finished_at=T0 - timedelta(days=80)),
        LifecycleEdit(started_at=None, finished_at=None),
        Status.DONE,
    ],
]


@pytest.mark.parametrize("sequence", _MIXED_SEQUENCES)
def test_created_at_monotono_con_ediciones_intercaladas(sequence):
    record = make_book(created_at=T0 + timedelta(days=1))
    previous_created = record.created_at

    for step, action in enumerate(sequence, start=1):
        if isinstance(action, Status):
            record = on_status_change(record, action, T0 + timedelta(days=step))
        else:
            record = on_explicit_edit(record, action)

        assert record.created_at <= previous_created
        previous_created = record.created_at

        present = [d for d in (record.started_at, record.finished_at, record.abandoned_at) if d]
        assert all(record.created_at <= d for d in present)


def test_funciones_de_modulo_delegan():
    created = on_create(Status.ACTIVE, None, T0)
    assert created.started_at == T0
    edited = on_explicit_edit(make_book(), LifecycleEdit(started_at=T0 - timedelta(days=1)))
    assert edited.created_at == T0 - timedelta(days=1)
