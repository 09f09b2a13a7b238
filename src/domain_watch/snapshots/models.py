"""
Domain snapshot data models.
"""

from datetime import datetime
from enum import Enum
from typing import List, TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from domain_watch.change_monitor.models import DomainFacts


class SnapshotField(str, Enum):
    """Live-table columns refreshed on every poll."""

    SPF = "spf"
    DMARC = "dmarc"
    NAMESERVERS = "nameservers"
    WHOIS = "whois"


def join_nameservers(nameservers: List[str]) -> str:
    """Serialize a nameserver list the way it is stored and compared."""
    return ", ".join(nameservers)


class DomainSnapshot(BaseModel):
    """
    Known security posture of one domain at one point in time.

    ``state``, ``tier`` and ``transfer_to`` belong to the registrar
    management process and are copied through untouched.
    """

    name: str
    registrar: str = ""
    state: str = ""
    tier: str = ""
    transfer_to: str = ""
    last_check: datetime = Field(default_factory=datetime.utcnow)

    # Monitored records
    spf: str = ""
    dmarc: str = ""
    nameservers: str = ""

    active: bool = True
    whois: str = ""

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "name": "example.com",
                "registrar": "Example Registrar, Inc.",
                "state": "registered",
                "tier": "gold",
                "transfer_to": "",
                "last_check": "2025-01-15T10:30:00Z",
                "spf": "v=spf1 include:_spf.example.com ~all",
                "dmarc": "v=DMARC1; p=reject",
                "nameservers": "ns1.example.com, ns2.example.com",
                "active": True,
                "whois": "creationDate:1995-08-14T04:00:00Z, expirationDate:2026-08-13T04:00:00Z",
            }
        }

    def value_of(self, field: SnapshotField) -> str:
        return getattr(self, field.value)

    def with_facts(self, facts: "DomainFacts", checked_at: datetime) -> "DomainSnapshot":
        """Return a copy carrying freshly fetched facts."""
        return self.model_copy(
            update={
                "last_check": checked_at,
                "spf": facts.spf,
                "dmarc": facts.dmarc,
                "nameservers": join_nameservers(facts.nameservers),
                "whois": facts.whois_summary,
                "active": True,
            }
        )
