"""
Notification formatters - convert change events to human-readable notifications.
"""

from typing import Optional

from domain_watch.change_monitor.models import ChangeAction, ChangeEvent, ChangeKind
from .models import Notification, NotificationSeverity

# One entry per ChangeKind; a missing kind fails loudly with KeyError
_KIND_SEVERITY = {
    ChangeKind.SPF: NotificationSeverity.WARNING,
    ChangeKind.DMARC: NotificationSeverity.WARNING,
    ChangeKind.NAMESERVERS: NotificationSeverity.CRITICAL,
}

_KIND_SUBJECT = {
    ChangeKind.SPF: "SPF record changed",
    ChangeKind.DMARC: "DMARC record changed",
    ChangeKind.NAMESERVERS: "Nameservers changed",
}


def _display(value: Optional[str]) -> str:
    return value if value else "(none)"


def change_to_notification(event: ChangeEvent) -> Notification:
    """
    Convert a change event to a notification.

    Args:
        event: Event to convert

    Returns:
        Notification instance
    """
    if event.action is ChangeAction.INSERT:
        severity = NotificationSeverity.INFO
        subject = f"{event.domain}: {event.kind.label} recorded"
    else:
        severity = _KIND_SEVERITY[event.kind]
        subject = f"{event.domain}: {_KIND_SUBJECT[event.kind]}"

    message_parts = [
        f"Domain: {event.domain}",
        f"Record: {event.kind.label}",
        f"Old Value: {_display(event.old_value)}",
        f"New Value: {_display(event.new_value)}",
        f"Checked At: {event.snapshot.last_check.strftime('%Y-%m-%d %H:%M:%S')}",
    ]

    if event.snapshot.registrar:
        message_parts.append(f"Registrar: {event.snapshot.registrar}")
    if event.snapshot.whois:
        message_parts.append(f"WHOIS: {event.snapshot.whois}")

    return Notification(
        domain=event.domain,
        subject=subject,
        body="\n".join(message_parts),
        severity=severity,
        tags=[event.kind.value, event.action.value],
        details={
            "record": event.kind.label,
            "old_value": event.old_value,
            "new_value": event.new_value,
        },
        detected_at=event.timestamp,
    )
