"""
Domain snapshot model and persistent store.

The live table always mirrors the latest poll; the history table only grows
when a monitored record actually changes.
"""

from .models import DomainSnapshot, SnapshotField, join_nameservers
from .store import SnapshotStore, StoreError

__all__ = [
    "DomainSnapshot",
    "SnapshotField",
    "SnapshotStore",
    "StoreError",
    "join_nameservers",
]
