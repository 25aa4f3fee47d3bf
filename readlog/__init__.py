# readlog/__init__.py
from readlog.chapters.normalizer import normalize_on_read, normalize_on_write
from readlog.factory import build_service
from readlog.ingest import book_draft_from_candidate, serial_draft_from_metadata
from readlog.lifecycle.reconciler import on_create, on_explicit_edit, on_status_change
from readlog.progress.projector import apply_update, compute_snapshot
from readlog.service import ReadableNotFoundError, ReadableService
from readlog.storage.mapper import from_storage, to_storage

__all__ = [
    "normalize_on_read", "normalize_on_write",
    "compute_snapshot", "apply_update",
    "on_create", "on_status_change", "on_explicit_edit",
    "from_storage", "to_storage",
    "ReadableService", "ReadableNotFoundError", "build_service",
    "serial_draft_from_metadata", "book_draft_from_candidate",
]
