"""
DNS and WHOIS lookups feeding the change monitor.
"""

from .fetcher import FactFetcher, LookupFailed
from .whois_parser import parse_expiration_date, parse_whois_dates, summarize_whois

__all__ = [
    "FactFetcher",
    "LookupFailed",
    "parse_expiration_date",
    "parse_whois_dates",
    "summarize_whois",
]
