"""
Domain Watch - DNS security posture change monitor

Periodically checks registered domains for changes in SPF, DMARC,
nameservers and WHOIS data, keeps an append-only history of real changes,
and fans out alerts to notification subscribers.

Main modules:
- snapshots: Domain snapshot model and SQLite snapshot store
- lookups: DNS and WHOIS fact fetching
- change_monitor: Change detection and per-domain run orchestration
- notifications: Subscriber registry and email/webhook subscribers
- cli: Operator CLI (domainctl)
"""

__version__ = "0.1.0"
__author__ = "Domain Watch Team"

__all__ = ["__version__", "__author__"]
