"""
Shared fixtures and fakes for Domain Watch tests.
"""

from datetime import datetime
from typing import Dict, List, Optional

import pytest

from domain_watch.change_monitor.models import ChangeEvent
from domain_watch.lookups.fetcher import LookupFailed
from domain_watch.notifications.subscribers import NotificationSubscriber
from domain_watch.snapshots.models import DomainSnapshot
from domain_watch.snapshots.store import SnapshotStore


class FakeFetcher:
    """In-memory stand-in for FactFetcher; missing entries raise LookupFailed."""

    def __init__(
        self,
        spf: Optional[Dict[str, str]] = None,
        dmarc: Optional[Dict[str, str]] = None,
        nameservers: Optional[Dict[str, List[str]]] = None,
        whois: Optional[Dict[str, Dict[str, str]]] = None,
    ):
        self.spf = spf or {}
        self.dmarc = dmarc or {}
        self.nameservers = nameservers or {}
        self.whois = whois or {}
        self.calls: List[str] = []

    def fetch_spf(self, name: str) -> str:
        self.calls.append(f"spf:{name}")
        if name not in self.spf:
            raise LookupFailed(f"No SPF record found for {name}")
        return self.spf[name]

    def fetch_dmarc(self, name: str) -> str:
        self.calls.append(f"dmarc:{name}")
        if name not in self.dmarc:
            raise LookupFailed(f"No DMARC record found for {name}")
        return self.dmarc[name]

    def fetch_nameservers(self, name: str) -> List[str]:
        self.calls.append(f"ns:{name}")
        if name not in self.nameservers:
            raise LookupFailed(f"NS lookup failed for {name}")
        return list(self.nameservers[name])

    def fetch_whois_summary(self, name: str) -> Dict[str, str]:
        self.calls.append(f"whois:{name}")
        return dict(self.whois.get(name, {}))


class RecordingSubscriber(NotificationSubscriber):
    """Subscriber that remembers every event it was given."""

    def __init__(self):
        self.events: List[ChangeEvent] = []

    def notify(self, event: ChangeEvent) -> None:
        self.events.append(event)


class FailingSubscriber(NotificationSubscriber):
    """Subscriber whose channel is always down."""

    def __init__(self):
        self.attempts = 0

    def notify(self, event: ChangeEvent) -> None:
        self.attempts += 1
        raise ConnectionError("SMTP server unreachable")


@pytest.fixture
def store(tmp_path) -> SnapshotStore:
    return SnapshotStore(str(tmp_path / "domain_watch.db"))


@pytest.fixture
def snapshot_factory():
    def make(name: str = "example.com", **fields) -> DomainSnapshot:
        fields.setdefault("last_check", datetime(2025, 1, 15, 10, 30, 0))
        return DomainSnapshot(name=name, **fields)

    return make
