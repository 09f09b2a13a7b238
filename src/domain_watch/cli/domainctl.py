#!/usr/bin/env python3
"""
domainctl - Domain Watch operational CLI

Operator commands for the domain watch database and notifiers:
- Health checks (domainctl doctor)
- Ad-hoc lookups (domainctl lookup example.com)
- Domain registration (domainctl add / disable)
- History inspection (domainctl history example.com)
- Test notification (domainctl send-test-notification)
- One batch run (domainctl run)
"""

import argparse
import sys
from datetime import datetime
from typing import Optional

from domain_watch import __version__
from domain_watch.change_monitor.models import ChangeAction, ChangeEvent, ChangeKind
from domain_watch.change_monitor.service import main as run_main
from domain_watch.config import AppConfig, get_config
from domain_watch.logging_setup import setup_logging
from domain_watch.lookups.fetcher import FactFetcher, LookupFailed
from domain_watch.lookups.whois_parser import summarize_whois
from domain_watch.notifications.dispatcher import build_dispatcher
from domain_watch.snapshots.models import DomainSnapshot
from domain_watch.snapshots.store import SnapshotStore, StoreError


class Colors:
    """ANSI escapes used by doctor and lookup output."""

    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BLUE = "\033[94m"
    RESET = "\033[0m"
    BOLD = "\033[1m"


def colorize(text: str, color: str) -> str:
    """Wrap text in a color escape, unless output is piped."""
    if sys.stdout.isatty():
        return f"{color}{text}{Colors.RESET}"
    return text


def format_check_result(name: str, status: str, message: str, width: int = 40) -> str:
    """Render `name: [STATUS] message` with the status column aligned."""
    padding = " " * max(1, width - len(name))

    if status == "OK":
        status_str = colorize("[OK]", Colors.GREEN)
    elif status == "WARN":
        status_str = colorize("[WARN]", Colors.YELLOW)
    else:  # ERROR
        status_str = colorize("[ERROR]", Colors.RED)

    return f"{name}:{padding}{status_str} {message}"


def _fetcher(config: AppConfig) -> FactFetcher:
    return FactFetcher(nameservers=config.dns.nameserver_list, timeout=config.dns.timeout)


def _store_failed(e: StoreError) -> int:
    print(colorize(f"✗ {e}", Colors.RED), file=sys.stderr)
    return 1


def _open_store(config: AppConfig) -> Optional[SnapshotStore]:
    try:
        return SnapshotStore(config.store.path)
    except StoreError as e:
        _store_failed(e)
        return None


def check_store(config: AppConfig) -> tuple[str, str]:
    """
    Check that the snapshot database opens and answers queries.

    Returns:
        (status, message); "ERROR" when the database cannot be opened or queried
    """
    try:
        store = SnapshotStore(config.store.path)
        store.ping()
        active = len(store.list_active())
    except StoreError as e:
        return "ERROR", str(e)
    return "OK", f"{active} active domain(s)"


def check_dns(config: AppConfig, probe_domain: str) -> tuple[str, str]:
    """
    Check that the configured resolvers answer an NS query.

    Returns:
        (status, message); "ERROR" when no resolver answered
    """
    try:
        nameservers = _fetcher(config).fetch_nameservers(probe_domain)
    except LookupFailed as e:
        return "ERROR", str(e)
    return "OK", f"{probe_domain} NS: {', '.join(nameservers)}"


def check_subscribers(config: AppConfig) -> tuple[str, str]:
    """
    Report which notification channels are configured.

    Returns:
        (status, message) where status is "OK" or "WARN"
    """
    enabled = []
    if config.smtp.is_enabled():
        enabled.append(f"email ({config.smtp.host}:{config.smtp.port})")
    if config.webhook.is_enabled():
        enabled.append(f"webhook ({config.webhook.url})")

    if not enabled:
        return "WARN", "No subscribers configured (set SMTP_* or WEBHOOK_URL)"
    return "OK", ", ".join(enabled)


def cmd_doctor(args) -> int:
    """
    Run health checks and print a summary.

    Returns:
        Exit code (1 if the database or DNS check failed)
    """
    config = get_config()

    print(colorize("\nDomain Watch Doctor", Colors.BOLD))
    print(colorize("=" * 60, Colors.BOLD))
    print()

    all_ok = True

    status, message = check_store(config)
    print(format_check_result(f"Database ({config.store.path})", status, message))
    if status == "ERROR":
        all_ok = False

    status, message = check_dns(config, args.probe_domain)
    print(format_check_result(f"DNS ({config.dns.nameservers or 'system'})", status, message))
    if status == "ERROR":
        all_ok = False

    status, message = check_subscribers(config)
    print(format_check_result("Notifications", status, message))

    print()

    if all_ok:
        print(colorize("✓ All critical checks passed", Colors.GREEN))
        return 0
    else:
        print(colorize("✗ One or more critical checks failed", Colors.RED))
        return 1


def cmd_lookup(args) -> int:
    """
    Print the current DNS and WHOIS facts of a domain without touching the store.

    Returns:
        Exit code (0 on success, 1 if no lookup succeeded)
    """
    fetcher = _fetcher(get_config())
    domain = args.domain
    found = 0

    print(colorize(f"\n{domain}", Colors.BOLD))
    print(colorize("=" * 60, Colors.BOLD))

    lookups = [
        ("SPF", fetcher.fetch_spf),
        ("DMARC", fetcher.fetch_dmarc),
        ("NS", lambda name: ", ".join(fetcher.fetch_nameservers(name))),
    ]
    for selector in args.dkim_selector or []:
        lookups.append(
            (f"DKIM ({selector})", lambda name, s=selector: fetcher.fetch_dkim(name, s))
        )

    for label, lookup in lookups:
        try:
            value = lookup(domain)
            found += 1
            print(format_check_result(label, "OK", value, width=16))
        except LookupFailed as e:
            print(format_check_result(label, "WARN", str(e), width=16))

    whois = fetcher.fetch_whois_summary(domain)
    summary = summarize_whois(whois)
    if summary:
        found += 1
        print(format_check_result("WHOIS", "OK", summary, width=16))
    else:
        print(format_check_result("WHOIS", "WARN", "WHOIS data unavailable", width=16))

    if args.expiry:
        try:
            expires = fetcher.fetch_expiration_date(domain)
        except LookupFailed as e:
            print(format_check_result("Expires", "WARN", str(e), width=16))
        else:
            if expires:
                found += 1
                print(format_check_result("Expires", "OK", expires, width=16))
            else:
                print(format_check_result("Expires", "WARN", "No expiration date in WHOIS", width=16))

    print()
    return 0 if found else 1


def cmd_add(args) -> int:
    """
    Register a domain for monitoring, or re-activate and update an existing one.

    Returns:
        Exit code
    """
    store = _open_store(get_config())
    if store is None:
        return 1

    updates = {"active": True}
    for attr in ("registrar", "state", "tier", "transfer_to"):
        value = getattr(args, attr)
        if value is not None:
            updates[attr] = value

    try:
        existing = store.get_current(args.domain)
        base = existing or DomainSnapshot(name=args.domain)
        store.upsert_domain(base.model_copy(update=updates))
    except StoreError as e:
        return _store_failed(e)

    action = "Updated" if existing else "Added"
    print(colorize(f"✓ {action} {args.domain}", Colors.GREEN))
    return 0


def cmd_disable(args) -> int:
    """Stop monitoring a domain without deleting its history."""
    store = _open_store(get_config())
    if store is None:
        return 1

    try:
        known = store.set_active(args.domain, False)
    except StoreError as e:
        return _store_failed(e)

    if not known:
        print(colorize(f"✗ Unknown domain: {args.domain}", Colors.RED), file=sys.stderr)
        return 1
    print(colorize(f"✓ Disabled {args.domain}", Colors.GREEN))
    return 0


def cmd_history(args) -> int:
    """Print recorded history snapshots, newest first."""
    store = _open_store(get_config())
    if store is None:
        return 1

    try:
        snapshots = store.list_history(args.domain, limit=args.limit)
    except StoreError as e:
        return _store_failed(e)

    if not snapshots:
        print(f"No history recorded for {args.domain}")
        return 0

    for snapshot in snapshots:
        print(colorize(snapshot.last_check.strftime("%Y-%m-%d %H:%M:%S"), Colors.BLUE))
        print(f"  SPF:         {snapshot.spf or '(none)'}")
        print(f"  DMARC:       {snapshot.dmarc or '(none)'}")
        print(f"  Nameservers: {snapshot.nameservers or '(none)'}")
        if snapshot.whois:
            print(f"  WHOIS:       {snapshot.whois}")
    return 0


def cmd_send_test_notification(args) -> int:
    """
    Send a synthetic SPF change through every configured subscriber.

    Returns:
        Exit code (0 if at least one subscriber accepted it)
    """
    dispatcher = build_dispatcher(get_config())
    if not dispatcher.subscribers:
        print(colorize("✗ No subscribers configured", Colors.RED), file=sys.stderr)
        return 1

    now = datetime.utcnow()
    previous = DomainSnapshot(name=args.domain, spf="v=spf1 ~all", last_check=now)
    event = ChangeEvent(
        kind=ChangeKind.SPF,
        action=ChangeAction.CHANGE,
        timestamp=now,
        snapshot=previous.model_copy(update={"spf": "v=spf1 -all"}),
        previous=previous,
    )

    delivered = dispatcher.dispatch(event)
    total = len(dispatcher.subscribers)
    if delivered:
        print(colorize(f"✓ Test notification delivered to {delivered}/{total} subscribers", Colors.GREEN))
        return 0
    print(colorize(f"✗ Test notification failed for all {total} subscribers", Colors.RED), file=sys.stderr)
    return 1


def cmd_run(args) -> int:
    """Run one batch pass (same as the domain-watch entrypoint); honors --log-level."""
    return run_main(log_level=args.log_level)


def cmd_version(args) -> int:
    """
    Print the installed version.

    Returns:
        Exit code (always 0)
    """
    print(f"domainctl version {__version__}")
    print("Domain Watch - DNS security posture change monitor")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for domainctl."""
    parser = argparse.ArgumentParser(
        description="Domain Watch operational CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  domainctl doctor                          # Run health checks
  domainctl lookup example.com              # Show current SPF/DMARC/NS/WHOIS
  domainctl add example.com --tier gold     # Start monitoring a domain
  domainctl history example.com --limit 5   # Show recorded changes
  domainctl run                             # Run one batch pass

Environment variables:
  DB_PATH                                   # SQLite database path
  DNS_NAMESERVERS, DNS_TIMEOUT              # Resolver settings
  SMTP_HOST, SMTP_PORT, SMTP_USER, ...      # Email subscriber
  WEBHOOK_URL, WEBHOOK_TOKEN                # Webhook subscriber
        """
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override LOG_LEVEL for this command"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    doctor_parser = subparsers.add_parser("doctor", help="Run health checks and diagnostics")
    doctor_parser.add_argument(
        "--probe-domain",
        default="example.com",
        help="Domain used for the DNS check (default: example.com)"
    )

    lookup_parser = subparsers.add_parser("lookup", help="Show current facts of a domain")
    lookup_parser.add_argument("domain")
    lookup_parser.add_argument(
        "--dkim-selector",
        action="append",
        help="DKIM selector to check (repeatable)"
    )
    lookup_parser.add_argument(
        "--expiry",
        action="store_true",
        help="Also run the expiry-only WHOIS query"
    )

    add_parser = subparsers.add_parser("add", help="Register a domain for monitoring")
    add_parser.add_argument("domain")
    add_parser.add_argument("--registrar")
    add_parser.add_argument("--state")
    add_parser.add_argument("--tier")
    add_parser.add_argument("--transfer-to", dest="transfer_to")

    disable_parser = subparsers.add_parser("disable", help="Stop monitoring a domain")
    disable_parser.add_argument("domain")

    history_parser = subparsers.add_parser("history", help="Show recorded history of a domain")
    history_parser.add_argument("domain")
    history_parser.add_argument("--limit", type=int, default=10)

    test_parser = subparsers.add_parser(
        "send-test-notification",
        help="Send a synthetic change through every configured subscriber"
    )
    test_parser.add_argument("--domain", default="example.com")

    subparsers.add_parser("run", help="Run one batch pass over all active domains")
    subparsers.add_parser("version", help="Show version information")

    return parser


COMMANDS = {
    "doctor": cmd_doctor,
    "lookup": cmd_lookup,
    "add": cmd_add,
    "disable": cmd_disable,
    "history": cmd_history,
    "send-test-notification": cmd_send_test_notification,
    "run": cmd_run,
    "version": cmd_version,
}


def main(argv=None):
    """Main entry point for domainctl CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    if args.command != "run":
        setup_logging(args.log_level or get_config().log_level)

    handler = COMMANDS.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
