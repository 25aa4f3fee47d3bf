# lifecycle/__init__.py
from readlog.lifecycle.models import UNCHANGED, LifecycleDates, LifecycleEdit, LifecycleTimestamps
from readlog.lifecycle.reconciler import (
    LifecycleTimestampReconciler, on_create, on_explicit_edit, on_status_change,
)

__all__ = [
    "LifecycleTimestampReconciler", "on_create", "on_status_change", "on_explicit_edit",
    "LifecycleDates", "LifecycleEdit", "LifecycleTimestamps", "UNCHANGED",
]
