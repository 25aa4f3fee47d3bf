# storage/store.py
from typing import Optional, Protocol

from readlog.storage.row import StorageRow


class ReadableStore(Protocol):
    """
    Colaborador de almacenamiento: durabilidad por identificador.
    El motor nunca lo llama directamente; lo usa ReadableService.
    Serializar escrituras concurrentes sobre el mismo id es cosa del almacén.
    """

    def get_by_id(self, readable_id: str) -> Optional[StorageRow]: ...

    def insert(self, row: StorageRow) -> StorageRow: ...

    def update(self, row: StorageRow) -> StorageRow: ...

    def remove(self, readable_id: str) -> None: ...
