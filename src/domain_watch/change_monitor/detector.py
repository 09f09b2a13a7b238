"""
Change detection between a fresh snapshot and the stored history.
"""

import logging
from datetime import datetime
from typing import List, Optional

from domain_watch.snapshots.models import DomainSnapshot
from .models import (
    MONITORED_KINDS,
    ChangeAction,
    ChangeEvent,
    DetectionResult,
)

logger = logging.getLogger(__name__)


class ChangeDetector:
    """
    Compares SPF, DMARC and nameservers of two snapshots.

    Comparison is exact string equality; values must be normalized before
    they reach the detector if semantic equality is wanted.
    """

    def detect(
        self,
        current: DomainSnapshot,
        previous: Optional[DomainSnapshot] = None,
        now: Optional[datetime] = None,
    ) -> DetectionResult:
        """
        Compare a fresh snapshot with the last history snapshot.

        Args:
            current: Freshly fetched snapshot
            previous: Latest history snapshot, None on first observation
            now: Event timestamp (default: utcnow)

        Returns:
            DetectionResult with one CHANGE event per differing field, in
            SPF, DMARC, NAMESERVERS order
        """
        if previous is None:
            logger.debug(f"No history for {current.name}, first observation")
            return DetectionResult(first_observation=True)

        timestamp = now or datetime.utcnow()
        events: List[ChangeEvent] = []

        for kind in MONITORED_KINDS:
            old = previous.value_of(kind.snapshot_field)
            new = current.value_of(kind.snapshot_field)
            if new == old:
                continue

            events.append(
                ChangeEvent(
                    kind=kind,
                    action=ChangeAction.CHANGE,
                    timestamp=timestamp,
                    snapshot=current,
                    previous=previous,
                )
            )
            logger.info(
                f"{kind.label} change detected for domain {current.name}. "
                f"Old: {old}, New: {new}"
            )

        return DetectionResult(events=events)


def detect_changes(
    current: DomainSnapshot, previous: Optional[DomainSnapshot] = None
) -> List[ChangeEvent]:
    """Return the CHANGE events between two snapshots (empty on first observation)."""
    return ChangeDetector().detect(current, previous).events
