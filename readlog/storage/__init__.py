# storage/__init__.py
from readlog.storage.mapper import RecordMapper, from_storage, to_storage
from readlog.storage.row import StorageRow
from readlog.storage.single_row import SingleRowStore
from readlog.storage.store import ReadableStore

__all__ = [
    "RecordMapper", "from_storage", "to_storage",
    "StorageRow", "ReadableStore", "SingleRowStore",
]
