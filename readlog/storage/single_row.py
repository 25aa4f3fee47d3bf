# storage/single_row.py
from dataclasses import replace
from typing import Optional

from readlog.storage.row import StorageRow


class SingleRowStore:
    """
    ReadableStore en memoria que guarda una sola fila.
    Lo usa el CLI para pasar un volcado JSON por ReadableService
    sin tocar el almacén real. Devuelve copias para que nadie mute
    la fila guardada por accidente.
    """

    def __init__(self, row: Optional[StorageRow] = None):
        self._row   = replace(row) if row else None
        self.writes = 0

    @property
    def row(self) -> Optional[StorageRow]:
        return replace(self._row) if self._row else None

    def get_by_id(self, readable_id: str) -> Optional[StorageRow]:
        if self._row is None or self._row.id != readable_id:
            return None
        return replace(self._row)

    def insert(self, row: StorageRow) -> StorageRow:
        return self._save(row)

    def update(self, row: StorageRow) -> StorageRow:
        return self._save(row)

    def remove(self, readable_id: str) -> None:
        if self._row is not None and self._row.id == readable_id:
            self._row = None

    def _save(self, row: StorageRow) -> StorageRow:
        self._row    = replace(row)
        self.writes += 1
        return replace(row)
