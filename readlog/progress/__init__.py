# progress/__init__.py
from readlog.progress.models import (
    PercentTracker, PercentUpdate, ProgressSnapshot, ProgressUpdate,
    TimeTracker, TimeUpdate, Tracker, TrackerKind, UnitTracker, UnitUpdate,
)
from readlog.progress.projector import ProgressAxisProjector, apply_update, compute_snapshot

__all__ = [
    "ProgressAxisProjector", "apply_update", "compute_snapshot",
    "ProgressSnapshot", "Tracker", "TrackerKind",
    "PercentTracker", "UnitTracker", "TimeTracker",
    "ProgressUpdate", "PercentUpdate", "UnitUpdate", "TimeUpdate",
]
