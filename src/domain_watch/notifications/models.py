"""
Notification data models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class NotificationSeverity(str, Enum):
    """How urgently a change needs a human."""
    INFO = "INFO"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"

    @property
    def color(self) -> str:
        return _SEVERITY_COLORS[self]


_SEVERITY_COLORS = {
    NotificationSeverity.INFO: "#0066cc",
    NotificationSeverity.WARNING: "#ff9900",
    NotificationSeverity.CRITICAL: "#cc0000",
}


@dataclass
class Notification:
    """
    Alert about one domain, rendered from a change event.

    Attributes:
        domain: Domain the alert is about
        subject: One-line summary
        body: Plain-text description of the change
        severity: Severity level
        tags: Event kind and action values, for routing on the receiving side
        details: Machine-readable old/new values
        detected_at: When the change was detected
    """
    domain: str
    subject: str
    body: str
    severity: NotificationSeverity = NotificationSeverity.INFO
    tags: List[str] = field(default_factory=list)
    details: Dict[str, Optional[str]] = field(default_factory=dict)
    detected_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def email_subject(self) -> str:
        return f"[{self.severity.value}] {self.subject}"

    def to_payload(self) -> Dict[str, Any]:
        """JSON body posted by the webhook subscriber."""
        return {
            "domain": self.domain,
            "subject": self.subject,
            "severity": self.severity.value,
            "tags": list(self.tags),
            "details": dict(self.details),
            "detected_at": self.detected_at.isoformat(),
            "body": self.body,
        }
