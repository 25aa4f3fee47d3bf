# tests/test_service.py
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from readlog.chapters.models import ChapterMetadata
from readlog.config_loader import EngineConfig
from readlog.factory import build_mapper, build_service
from readlog.lifecycle.models import LifecycleEdit
from readlog.progress.models import PercentUpdate, TimeUpdate, TrackerKind, UnitUpdate
from readlog.records.models import BookRecord, SerialRecord, Status
from readlog.service import ReadableNotFoundError, ReadableService
from readlog.storage.row import StorageRow

T0 = datetime(2024, 4, 1, 9, 0, tzinfo=timezone.utc)


# ------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------

class InMemoryStore:
    """Almacén de prueba: guarda copias de las filas por id."""

    def __init__(self):
        self.rows:   dict[str, StorageRow] = {}
        self.writes: int                   = 0

    def get_by_id(self, readable_id):
        row = self.rows.get(readable_id)
        return replace(row) if row else None

    def insert(self, row):
        self.rows[row.id] = replace(row)
        self.writes += 1
        return replace(row)

    def update(self, row):
        self.rows[row.id] = replace(row)
        self.writes += 1
        return replace(row)

    def remove(self, readable_id):
        self.rows.pop(readable_id, None)


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def clock():
    return FakeClock(T0)


@pytest.fixture
def service(store, clock):
    ids = iter(f"id-{n}" for n in range(1, 100))
    return ReadableService(store=store, clock=clock, id_factory=lambda: next(ids))


def book_draft(**kwargs) -> BookRecord:
    defaults = dict(title="Piranesi", author="Susanna Clarke", page_count=272)
    defaults.update(kwargs)
    return BookRecord(**defaults)


# ------------------------------------------------------------------
# Alta
# ------------------------------------------------------------------

class TestInsert:

    def test_asigna_id_y_timestamps(self, service, store):
        record = service.insert(book_draft())
        assert record.id == "id-1"
        assert record.created_at == T0
        assert record.updated_at == T0
        assert "id-1" in store.rows

    def test_conserva_id_del_borrador(self, service):
        assert service.insert(book_draft(id="mine")).id == "mine"

    def test_alta_activa_registra_started_at(self, service):
        record = service.insert(book_draft(status=Status.ACTIVE))
        assert record.started_at == T0

    def test_alta_done_fuerza_cien(self, service):
        record = service.insert(book_draft(status=Status.DONE, progress_percent=10))
        assert record.progress_percent == 100
        assert record.finished_at == T0

    def test_fechas_del_borrador_adelantan_created_at(self, service):
        last_year = T0 - timedelta(days=365)
        record    = service.insert(book_draft(status=Status.DONE, finished_at=last_year))
        assert record.finished_at == last_year
        assert record.created_at == last_year

    def test_serial_completo_queda_x_de_x(self, service, store):
        record = service.insert(SerialRecord(title="Fic", author="a", available_units=9, complete=True))
        assert (record.available_units, record.total_units) == (9, 9)
        assert store.rows[record.id].total_chapters == 9


# ------------------------------------------------------------------
# Lectura / baja
# ------------------------------------------------------------------

class TestGetAndRemove:

    def test_get_inexistente_es_none(self, service):
        assert service.get("nope") is None

    def test_get_devuelve_el_registro_canonico(self, service):
        inserted = service.insert(book_draft())
        assert service.get(inserted.id) == inserted

    def test_remove(self, service, store):
        record = service.insert(book_draft())
        service.remove(record.id)
        assert record.id not in store.rows

    def test_remove_inexistente_lanza(self, service):
        with pytest.raises(ReadableNotFoundError):
            service.remove("nope")


# ------------------------------------------------------------------
# Mutaciones
# ------------------------------------------------------------------

class TestChangeStatus:

    def test_registra_fecha_y_updated_at(self, service, clock):
        record  = service.insert(book_draft())
        later   = clock.advance(days=1)
        updated = service.change_status(record.id, Status.ACTIVE)
        assert updated.status is Status.ACTIVE
        assert updated.started_at == later
        assert updated.updated_at == later
        assert updated.created_at == T0

    def test_reactivar_no_reescribe_started_at(self, service, clock):
        record = service.insert(book_draft(status=Status.ACTIVE))
        clock.advance(days=1)
        service.change_status(record.id, Status.QUEUED)
        clock.advance(days=1)
        assert service.change_status(record.id, Status.ACTIVE).started_at == T0

    def test_id_inexistente_lanza(self, service):
        with pytest.raises(ReadableNotFoundError):
            service.change_status("nope", Status.DONE)


class TestUpdateProgress:

    def test_unidades_sobre_libro(self, service, clock):
        record  = service.insert(book_draft(page_count=350))
        later   = clock.advance(hours=3)
        updated = service.update_progress(record.id, UnitUpdate(500))
        assert updated.current_page == 350
        assert updated.progress_percent == 100
        assert updated.updated_at == later

    def test_porcentaje_persiste(self, service, store):
        record = service.insert(book_draft(page_count=200))
        service.update_progress(record.id, PercentUpdate(50))
        assert store.rows[record.id].current_page == 100
        assert store.rows[record.id].progress_percent == 50

    def test_update_que_no_aplica_no_escribe(self, service, store):
        record = service.insert(book_draft())
        writes = store.writes
        result = service.update_progress(record.id, TimeUpdate(current=60))
        assert result == record
        assert store.writes == writes

    def test_id_inexistente_lanza(self, service):
        with pytest.raises(ReadableNotFoundError):
            service.update_progress("nope", PercentUpdate(10))


class TestEditDates:

    def test_fechas_retroactivas(self, service, clock):
        record  = service.insert(book_draft())
        t1      = T0 - timedelta(days=30)
        t2      = T0 - timedelta(days=10)
        clock.advance(minutes=5)
        updated = service.edit_dates(record.id, LifecycleEdit(started_at=t1, finished_at=t2))
        assert updated.created_at == t1
        assert updated.started_at == t1
        assert updated.finished_at == t2


class TestUpdate:

    def test_edicion_completa(self, service, clock):
        record  = service.insert(book_draft())
        later   = clock.advance(days=1)
        edited  = replace(record, title="Piranesi (ed. bolsillo)", tags=["fantasy"])
        updated = service.update(edited)
        assert updated.title == "Piranesi (ed. bolsillo)"
        assert updated.tags == ["fantasy"]
        assert updated.updated_at == later

    def test_created_at_no_se_puede_atrasar(self, service):
        record  = service.insert(book_draft())
        edited  = replace(record, created_at=T0 + timedelta(days=50))
        assert service.update(edited).created_at == T0

    def test_fecha_explicita_anterior_adelanta_created_at(self, service):
        record  = service.insert(book_draft())
        early   = T0 - timedelta(days=3)
        updated = service.update(replace(record, started_at=early))
        assert updated.created_at == early

    def test_id_inexistente_lanza(self, service):
        with pytest.raises(ReadableNotFoundError):
            service.update(book_draft(id="ghost"))


# ------------------------------------------------------------------
# Colaboradores
# ------------------------------------------------------------------

def test_usa_el_store_inyectado():
    mock_store = MagicMock()
    mock_store.get_by_id.return_value = None
    svc = ReadableService(store=mock_store)
    assert svc.get("x") is None
    mock_store.get_by_id.assert_called_once_with("x")


def test_prioridad_por_defecto_de_config(store, clock):
    svc    = ReadableService(store=store, clock=clock, config=EngineConfig(default_priority=5))
    record = svc.insert(book_draft())
    store.rows[record.id].priority = None
    assert svc.get(record.id).priority == 5


def test_build_service_con_config(tmp_path, store):
    config = tmp_path / "config.yaml"
    config.write_text("engine:\n  default_priority: 1\n", encoding="utf-8")
    svc = build_service(store, config_path=str(config))
    record = svc.insert(book_draft())
    store.rows[record.id].priority = None
    assert svc.get(record.id).priority == 1


def test_build_service_con_config_ya_cargado(store):
    svc = build_service(store, config=EngineConfig(default_priority=2))
    assert svc.config.default_priority == 2
    record = svc.insert(book_draft())
    store.rows[record.id].priority = None
    assert svc.get(record.id).priority == 2


def test_build_mapper_usa_la_prioridad_de_config():
    mapper = build_mapper(EngineConfig(default_priority=4))
    row    = StorageRow(
        id="x", type="book", title="t", author="a", status="queued",
        priority=None, created_at=None, updated_at=None,
    )
    assert mapper.from_storage(row).priority == 4


# ------------------------------------------------------------------
# Vistas derivadas
# ------------------------------------------------------------------

class TestDerivedViews:

    def test_snapshot_de_progreso(self, service):
        record   = service.insert(book_draft(page_count=300, current_page=150, progress_percent=50))
        snapshot = service.progress_snapshot(record.id)
        assert snapshot.percent.percent == 50
        assert snapshot.tracker(TrackerKind.PAGES).total == 300

    def test_metadata_de_capitulos_de_serial(self, service):
        record = service.insert(SerialRecord(title="Fic", author="a", total_units=20, complete=True))
        assert service.chapter_metadata(record.id) == ChapterMetadata(20, 20, True)

    def test_libro_no_tiene_capitulos(self, service):
        record = service.insert(book_draft())
        assert service.chapter_metadata(record.id) is None

    def test_id_inexistente_lanza(self, service):
        with pytest.raises(ReadableNotFoundError):
            service.progress_snapshot("nope")
