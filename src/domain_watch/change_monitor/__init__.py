"""
Change monitoring module for detecting DNS security posture changes.

Tracks SPF, DMARC and nameserver changes per domain and records a history
row only when something actually changed.
"""

__all__ = ["models", "detector", "service"]
