"""
DNS and WHOIS fact fetching.

Thin wrapper over dnspython and python-whois. Every DNS method raises
LookupFailed on any failure so the caller can degrade a single field
without aborting the domain.
"""

import logging
from typing import Callable, Dict, List, Optional

import dns.exception
import dns.resolver
import whois

from .whois_parser import parse_expiration_date, parse_whois_dates

logger = logging.getLogger(__name__)


class LookupFailed(Exception):
    """A DNS or WHOIS lookup produced no usable record."""


def _default_whois_lookup(name: str) -> str:
    """Return the raw WHOIS text for a domain."""
    result = whois.whois(name)
    text = getattr(result, "text", "")
    if isinstance(text, list):
        text = "\n".join(text)
    return text or ""


class FactFetcher:
    """
    Fetches the current SPF, DMARC, NS and WHOIS facts of a domain.

    Usage:
        fetcher = FactFetcher(nameservers=["1.1.1.1"], timeout=5.0)
        spf = fetcher.fetch_spf("example.com")
    """

    def __init__(
        self,
        resolver: Optional[dns.resolver.Resolver] = None,
        whois_lookup: Optional[Callable[[str], str]] = None,
        nameservers: Optional[List[str]] = None,
        timeout: float = 5.0,
    ):
        """
        Initialize fact fetcher.

        Args:
            resolver: Pre-configured resolver (optional)
            whois_lookup: Callable returning raw WHOIS text (default: python-whois)
            nameservers: Resolver IPs; system resolver when empty
            timeout: Per-query timeout in seconds
        """
        if resolver is None:
            if nameservers:
                resolver = dns.resolver.Resolver(configure=False)
                resolver.nameservers = list(nameservers)
            else:
                resolver = dns.resolver.Resolver()
            resolver.timeout = timeout
            resolver.lifetime = timeout
        self.resolver = resolver
        self.whois_lookup = whois_lookup or _default_whois_lookup

    def fetch_txt(self, name: str) -> List[str]:
        """
        Fetch TXT records for a name.

        Character-strings of one record are concatenated without a separator.
        """
        try:
            answers = self.resolver.resolve(name, "TXT")
        except dns.exception.DNSException as e:
            raise LookupFailed(f"TXT lookup failed for {name}: {e}") from e

        records = []
        for rdata in answers:
            records.append(
                b"".join(rdata.strings).decode("utf-8", errors="replace")
            )
        return records

    def _find_txt(self, name: str, prefix: str, label: str, domain: str) -> str:
        for record in self.fetch_txt(name):
            if record.startswith(prefix):
                return record
        raise LookupFailed(f"No {label} record found for {domain}")

    def fetch_spf(self, name: str) -> str:
        """Fetch the SPF record of a domain."""
        return self._find_txt(name, "v=spf1", "SPF", name)

    def fetch_dmarc(self, name: str) -> str:
        """Fetch the DMARC record published at _dmarc.<name>."""
        return self._find_txt(f"_dmarc.{name}", "v=DMARC1", "DMARC", name)

    def fetch_dkim(self, name: str, selector: str) -> str:
        """Fetch the DKIM key record for a selector."""
        return self._find_txt(
            f"{selector}._domainkey.{name}", "v=DKIM1", f"DKIM (selector {selector})", name
        )

    def fetch_nameservers(self, name: str) -> List[str]:
        """
        Fetch NS records for a domain.

        Returns:
            Sorted nameserver hostnames without the trailing dot
        """
        try:
            answers = self.resolver.resolve(name, "NS")
        except dns.exception.DNSException as e:
            raise LookupFailed(f"NS lookup failed for {name}: {e}") from e

        # resolvers rotate answer order; sort so the stored string is stable
        return sorted(rdata.target.to_text(omit_final_dot=True) for rdata in answers)

    def _whois_text(self, name: str) -> str:
        try:
            return self.whois_lookup(name)
        except Exception as e:
            raise LookupFailed(f"WHOIS lookup failed for {name}: {e}") from e

    def fetch_whois_summary(self, name: str) -> Dict[str, str]:
        """
        Fetch creation date, expiration date and registrar from WHOIS.

        Returns:
            Parsed mapping, or an empty dict when WHOIS is unavailable
        """
        try:
            text = self._whois_text(name)
        except LookupFailed as e:
            logger.warning(str(e))
            return {}
        if not text:
            return {}
        return parse_whois_dates(text)

    def fetch_expiration_date(self, name: str) -> str:
        """Fetch only the expiration date from WHOIS."""
        date = parse_expiration_date(self._whois_text(name))
        if not date:
            logger.info(f"Expiration date not found in WHOIS information for {name}")
        return date
