# tests/storage/test_single_row.py
from readlog.storage.row import StorageRow
from readlog.storage.single_row import SingleRowStore


def make_row(row_id: str = "r1", title: str = "Dune") -> StorageRow:
    return StorageRow(
        id=row_id, type="book", title=title, author="Frank Herbert",
        status="queued", priority=3, created_at=None, updated_at=None,
    )


class TestSingleRowStore:

    def test_vacio(self):
        store = SingleRowStore()
        assert store.row is None
        assert store.get_by_id("r1") is None

    def test_get_por_id(self):
        store = SingleRowStore(make_row())
        assert store.get_by_id("r1").title == "Dune"
        assert store.get_by_id("otro") is None

    def test_devuelve_copias(self):
        store = SingleRowStore(make_row())
        store.get_by_id("r1").title = "mutado"
        assert store.row.title == "Dune"

    def test_update_reemplaza_y_cuenta_escrituras(self):
        store = SingleRowStore(make_row())
        store.update(make_row(title="Dune Messiah"))
        assert store.row.title == "Dune Messiah"
        assert store.writes == 1

    def test_insert_en_almacen_vacio(self):
        store = SingleRowStore()
        store.insert(make_row("nuevo"))
        assert store.get_by_id("nuevo") is not None

    def test_remove(self):
        store = SingleRowStore(make_row())
        store.remove("otro")
        assert store.row is not None
        store.remove("r1")
        assert store.row is None
