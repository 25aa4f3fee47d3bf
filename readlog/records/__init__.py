# records/__init__.py
from readlog.records.models import (
    AnyRecord, BookRecord, BookSource, ProgressMode, Rating,
    ReadableRecord, RecordKind, SerialRecord, Status,
)

__all__ = [
    "AnyRecord", "BookRecord", "ReadableRecord", "SerialRecord",
    "BookSource", "ProgressMode", "Rating", "RecordKind", "Status",
]
