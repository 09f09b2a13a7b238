"""
Change monitoring data models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from domain_watch.lookups.whois_parser import summarize_whois
from domain_watch.snapshots.models import DomainSnapshot, SnapshotField


class ChangeKind(str, Enum):
    """Monitored records that can change."""

    SPF = "UPDATE_SPF"
    DMARC = "UPDATE_DMARC"
    NAMESERVERS = "UPDATE_NAMESERVERS"

    @property
    def snapshot_field(self) -> SnapshotField:
        return _KIND_FIELDS[self]

    @property
    def label(self) -> str:
        return _KIND_LABELS[self]


_KIND_FIELDS = {
    ChangeKind.SPF: SnapshotField.SPF,
    ChangeKind.DMARC: SnapshotField.DMARC,
    ChangeKind.NAMESERVERS: SnapshotField.NAMESERVERS,
}

_KIND_LABELS = {
    ChangeKind.SPF: "SPF",
    ChangeKind.DMARC: "DMARC",
    ChangeKind.NAMESERVERS: "Nameservers",
}

# Evaluation and emission order
MONITORED_KINDS = (ChangeKind.SPF, ChangeKind.DMARC, ChangeKind.NAMESERVERS)


class ChangeAction(str, Enum):
    """How a snapshot relates to the stored history."""

    CHANGE = "ACTION_CHANGE"
    INSERT = "ACTION_INSERT"


class ChangeEvent(BaseModel):
    """
    One detected field-level change of a domain.

    Carries both snapshots by value; it is never persisted.
    """

    kind: ChangeKind
    action: ChangeAction = ChangeAction.CHANGE
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    snapshot: DomainSnapshot
    previous: Optional[DomainSnapshot] = None

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "kind": "UPDATE_SPF",
                "action": "ACTION_CHANGE",
                "timestamp": "2025-01-15T10:30:00Z",
                "snapshot": {"name": "example.com", "spf": "v=spf1 include:_spf.example.com ~all"},
                "previous": {"name": "example.com", "spf": "v=spf1 ~all"},
            }
        }

    @property
    def domain(self) -> str:
        return self.snapshot.name

    @property
    def new_value(self) -> str:
        return self.snapshot.value_of(self.kind.snapshot_field)

    @property
    def old_value(self) -> Optional[str]:
        if self.previous is None:
            return None
        return self.previous.value_of(self.kind.snapshot_field)


class DetectionResult(BaseModel):
    """Outcome of comparing a fresh snapshot with the stored history."""

    events: List[ChangeEvent] = Field(default_factory=list)
    first_observation: bool = False

    @property
    def requires_history(self) -> bool:
        """True when a history row must be appended."""
        return self.first_observation or bool(self.events)

    @property
    def history_action(self) -> Optional[ChangeAction]:
        if self.first_observation:
            return ChangeAction.INSERT
        if self.events:
            return ChangeAction.CHANGE
        return None


class DomainFacts(BaseModel):
    """Facts fetched for one domain in one poll."""

    spf: str = ""
    dmarc: str = ""
    nameservers: List[str] = Field(default_factory=list)
    whois: Dict[str, str] = Field(default_factory=dict)

    # field name -> error message
    errors: Dict[str, str] = Field(default_factory=dict)

    @property
    def whois_summary(self) -> str:
        return summarize_whois(self.whois)


@dataclass
class DomainRunResult:
    """Result of processing a single domain."""

    name: str
    events: int = 0
    history_appended: bool = False
    first_observation: bool = False
    fetch_errors: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RunSummary:
    """Aggregate result of one batch run."""

    started_at: datetime = field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None
    results: List[DomainRunResult] = field(default_factory=list)

    @property
    def domains(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    @property
    def events(self) -> int:
        return sum(r.events for r in self.results)

    @property
    def history_rows(self) -> int:
        return sum(1 for r in self.results if r.history_appended)

    def to_dict(self) -> Dict[str, object]:
        """Convert to dictionary."""
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "domains": self.domains,
            "failed": self.failed,
            "events": self.events,
            "history_rows": self.history_rows,
        }
