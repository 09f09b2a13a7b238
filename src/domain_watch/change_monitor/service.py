"""
Change monitoring service.
"""

import concurrent.futures
import logging
import sys
from datetime import datetime
from typing import Iterable, Optional

from domain_watch.config import AppConfig, get_config
from domain_watch.logging_setup import setup_logging
from domain_watch.lookups.fetcher import FactFetcher, LookupFailed
from domain_watch.notifications.dispatcher import NotificationDispatcher, build_dispatcher
from domain_watch.snapshots.models import DomainSnapshot, SnapshotField
from domain_watch.snapshots.store import SnapshotStore, StoreError
from .detector import ChangeDetector
from .models import DomainFacts, DomainRunResult, RunSummary

logger = logging.getLogger(__name__)


class ChangeMonitorService:
    """
    Runs one batch pass over every active domain.

    Per domain:
    1. Fetch current SPF, DMARC, NS and WHOIS facts
    2. Write them back to the live table
    3. Compare with the latest history snapshot
    4. Append history and dispatch events when something changed
    """

    def __init__(
        self,
        store: SnapshotStore,
        fetcher: FactFetcher,
        dispatcher: NotificationDispatcher,
        detector: Optional[ChangeDetector] = None,
        max_workers: int = 8,
        keep_last_known: bool = False,
    ):
        """
        Initialize change monitor service.

        Args:
            store: Snapshot store
            fetcher: DNS/WHOIS fact fetcher
            dispatcher: Notification dispatcher
            detector: Change detector (default: ChangeDetector())
            max_workers: Number of domains processed concurrently
            keep_last_known: Keep stored values for fields whose fetch failed
        """
        self.store = store
        self.fetcher = fetcher
        self.dispatcher = dispatcher
        self.detector = detector or ChangeDetector()
        self.max_workers = max(1, max_workers)
        self.keep_last_known = keep_last_known

    def _fetch_field(self, facts: DomainFacts, snapshot_field: SnapshotField, fetch, name: str):
        try:
            return fetch(name)
        except LookupFailed as e:
            logger.warning(f"Domain {snapshot_field.value} record not found for {name}: {e}")
            facts.errors[snapshot_field.value] = str(e)
        except Exception as e:
            logger.error(
                f"Unexpected error fetching {snapshot_field.value} for {name}: {e}",
                exc_info=True
            )
            facts.errors[snapshot_field.value] = str(e)
        return None

    def collect_facts(self, name: str) -> DomainFacts:
        """
        Fetch every fact of a domain, degrading failed fields to empty values.

        Args:
            name: Domain name

        Returns:
            DomainFacts with per-field errors recorded
        """
        facts = DomainFacts()

        nameservers = self._fetch_field(
            facts, SnapshotField.NAMESERVERS, self.fetcher.fetch_nameservers, name
        )
        facts.nameservers = nameservers or []
        facts.dmarc = self._fetch_field(
            facts, SnapshotField.DMARC, self.fetcher.fetch_dmarc, name
        ) or ""
        facts.spf = self._fetch_field(
            facts, SnapshotField.SPF, self.fetcher.fetch_spf, name
        ) or ""

        facts.whois = self._fetch_field(
            facts, SnapshotField.WHOIS, self.fetcher.fetch_whois_summary, name
        ) or {}
        if not facts.whois:
            facts.errors.setdefault(SnapshotField.WHOIS.value, "WHOIS data unavailable")

        return facts

    def _keep_stored_values(
        self, polled: DomainSnapshot, stored: DomainSnapshot, failed: Iterable[str]
    ) -> DomainSnapshot:
        """Replace fields whose fetch failed with the values already stored."""
        updates = {
            snapshot_field.value: stored.value_of(snapshot_field)
            for snapshot_field in SnapshotField
            if snapshot_field.value in failed
        }
        if not updates:
            return polled
        return polled.model_copy(update=updates)

    def _write_back(self, snapshot: DomainSnapshot) -> None:
        """Overwrite the live row with the freshly polled values."""
        for snapshot_field in SnapshotField:
            try:
                self.store.update_field(
                    snapshot.name, snapshot_field, snapshot.value_of(snapshot_field)
                )
            except StoreError as e:
                logger.error(f"Failed to update {snapshot_field.value} for {snapshot.name}: {e}")

    def process_domain(self, domain: DomainSnapshot) -> DomainRunResult:
        """
        Run the full fetch/compare/record/notify pipeline for one domain.

        Args:
            domain: Live snapshot from list_active()

        Returns:
            DomainRunResult for this domain
        """
        name = domain.name
        logger.info(f"Domain being checked: {name}")
        result = DomainRunResult(name=name)

        facts = self.collect_facts(name)
        result.fetch_errors = dict(facts.errors)

        checked_at = datetime.utcnow()
        polled = domain.with_facts(facts, checked_at)
        if self.keep_last_known:
            polled = self._keep_stored_values(polled, domain, facts.errors)

        self._write_back(polled)

        # Passthrough fields may have been changed by the registrar process
        try:
            stored = self.store.get_current(name)
        except StoreError as e:
            logger.error(f"Error getting info for domain {name}: {e}")
            stored = None
        current = (stored or domain).model_copy(
            update={
                "last_check": checked_at,
                "spf": polled.spf,
                "dmarc": polled.dmarc,
                "nameservers": polled.nameservers,
                "whois": polled.whois,
                "active": True,
            }
        )

        previous = self.store.get_latest_history(name)
        detection = self.detector.detect(current, previous, now=checked_at)
        result.first_observation = detection.first_observation
        result.events = len(detection.events)

        if not detection.requires_history:
            logger.debug(f"No changes for {name}")
            return result

        try:
            self.store.append_history(current)
        except StoreError as e:
            # Skipping dispatch lets the next run detect and notify again
            logger.error(f"Error trying to insert history for domain {name}: {e}")
            result.error = str(e)
            return result
        result.history_appended = True

        if detection.first_observation:
            logger.info(f"Recorded first history snapshot for {name}")

        for event in detection.events:
            self.dispatcher.dispatch(event)

        return result

    def _safe_process(self, domain: DomainSnapshot) -> DomainRunResult:
        try:
            return self.process_domain(domain)
        except Exception as e:
            logger.error(f"Error processing domain {domain.name}: {e}", exc_info=True)
            return DomainRunResult(name=domain.name, error=str(e))

    def run_once(self) -> RunSummary:
        """
        Run one iteration of change detection over every active domain.

        Raises:
            StoreError: The active domain list could not be loaded

        Returns:
            RunSummary of the batch
        """
        summary = RunSummary()
        domains = self.store.list_active()
        logger.info(
            f"Checking {len(domains)} active domains with {self.max_workers} workers"
        )

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_name = {
                executor.submit(self._safe_process, domain): domain.name
                for domain in domains
            }
            for future in concurrent.futures.as_completed(future_to_name):
                summary.results.append(future.result())

        summary.results.sort(key=lambda r: r.name)
        summary.finished_at = datetime.utcnow()

        logger.info(
            f"Change detection complete: {summary.domains} domains, "
            f"{summary.events} changes, {summary.history_rows} history rows, "
            f"{summary.failed} failed"
        )
        return summary


def create_service(config: AppConfig) -> ChangeMonitorService:
    """
    Wire a service from configuration.

    Raises:
        StoreError: The snapshot database cannot be opened
    """
    store = SnapshotStore(config.store.path)
    store.ping()

    fetcher = FactFetcher(
        nameservers=config.dns.nameserver_list,
        timeout=config.dns.timeout,
    )

    return ChangeMonitorService(
        store=store,
        fetcher=fetcher,
        dispatcher=build_dispatcher(config),
        max_workers=config.runner.max_workers,
        keep_last_known=config.runner.keep_last_known,
    )


def main(log_level: Optional[str] = None) -> int:
    """
    Main entry point for the batch run.

    Args:
        log_level: Overrides LOG_LEVEL (domainctl --log-level)

    Returns:
        Exit code (1 if the store could not be opened or listed)
    """
    config = get_config()
    setup_logging(log_level or config.log_level)

    logger.info("=" * 60)
    logger.info("Domain Watch - Change Monitor")
    logger.info("=" * 60)
    logger.info(f"Database: {config.store.path}")
    logger.info(f"DNS resolvers: {config.dns.nameservers or 'system'}")
    logger.info(f"Workers: {config.runner.max_workers}")
    logger.info("=" * 60)

    try:
        service = create_service(config)
        summary = service.run_once()
    except StoreError as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1

    logger.info(f"Run summary: {summary.to_dict()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
