"""
Tests for DNS/WHOIS fact fetching with a fake resolver.
"""

import dns.exception
import dns.name
import pytest

from domain_watch.lookups.fetcher import FactFetcher, LookupFailed

WHOIS_TEXT = """
Domain Name: EXAMPLE.COM
Registrar: RESERVED-Internet Assigned Numbers Authority
Creation Date: 1995-08-14T04:00:00Z
Registry Expiry Date: 2026-08-13T04:00:00Z
"""


class FakeTXT:
    def __init__(self, *strings: bytes):
        self.strings = strings


class FakeNS:
    def __init__(self, target: str):
        self.target = dns.name.from_text(target)


class FakeResolver:
    """Answers from a dict keyed by (name, rdtype); anything else times out."""

    def __init__(self, answers):
        self.answers = answers
        self.queries = []

    def resolve(self, name, rdtype):
        self.queries.append((name, rdtype))
        if (name, rdtype) not in self.answers:
            raise dns.exception.Timeout()
        return self.answers[(name, rdtype)]


def _fetcher(answers=None, whois_lookup=None) -> FactFetcher:
    return FactFetcher(
        resolver=FakeResolver(answers or {}),
        whois_lookup=whois_lookup or (lambda name: WHOIS_TEXT),
    )


class TestTxtRecords:
    """SPF, DMARC and DKIM are TXT prefixes."""

    def test_spf_picks_spf_record(self):
        fetcher = _fetcher({
            ("example.com", "TXT"): [
                FakeTXT(b"google-site-verification=abc"),
                FakeTXT(b"v=spf1 include:_spf.example.com ~all"),
            ]
        })

        assert fetcher.fetch_spf("example.com") == "v=spf1 include:_spf.example.com ~all"

    def test_multi_string_record_is_concatenated(self):
        fetcher = _fetcher({
            ("example.com", "TXT"): [FakeTXT(b"v=spf1 include:a.example.com ", b"~all")]
        })

        assert fetcher.fetch_spf("example.com") == "v=spf1 include:a.example.com ~all"

    def test_dmarc_is_queried_under_dmarc_label(self):
        fetcher = _fetcher({
            ("_dmarc.example.com", "TXT"): [FakeTXT(b"v=DMARC1; p=reject")]
        })

        assert fetcher.fetch_dmarc("example.com") == "v=DMARC1; p=reject"

    def test_dkim_uses_selector(self):
        fetcher = _fetcher({
            ("google._domainkey.example.com", "TXT"): [FakeTXT(b"v=DKIM1; k=rsa; p=MIIB")]
        })

        assert fetcher.fetch_dkim("example.com", "google") == "v=DKIM1; k=rsa; p=MIIB"

    def test_missing_prefix_raises(self):
        fetcher = _fetcher({("example.com", "TXT"): [FakeTXT(b"some other record")]})

        with pytest.raises(LookupFailed, match="No SPF record"):
            fetcher.fetch_spf("example.com")

    def test_dns_error_raises_lookup_failed(self):
        with pytest.raises(LookupFailed):
            _fetcher().fetch_dmarc("example.com")


class TestNameservers:
    """NS lookup."""

    def test_sorted_without_trailing_dot(self):
        fetcher = _fetcher({
            ("example.com", "NS"): [FakeNS("b.iana-servers.net."), FakeNS("a.iana-servers.net.")]
        })

        assert fetcher.fetch_nameservers("example.com") == [
            "a.iana-servers.net",
            "b.iana-servers.net",
        ]

    def test_timeout_raises_lookup_failed(self):
        with pytest.raises(LookupFailed, match="NS lookup failed"):
            _fetcher().fetch_nameservers("example.com")


class TestWhois:
    """WHOIS summary never raises."""

    def test_summary_parsed(self):
        summary = _fetcher().fetch_whois_summary("example.com")

        assert summary == {
            "creationDate": "1995-08-14T04:00:00Z",
            "expirationDate": "2026-08-13T04:00:00Z",
            "registrar": "RESERVED-Internet Assigned Numbers Authority",
        }

    def test_lookup_error_returns_empty(self):
        def broken(name):
            raise ConnectionResetError("whois server closed connection")

        assert _fetcher(whois_lookup=broken).fetch_whois_summary("example.com") == {}

    def test_empty_text_returns_empty(self):
        assert _fetcher(whois_lookup=lambda name: "").fetch_whois_summary("example.com") == {}

    def test_expiration_date(self):
        assert _fetcher().fetch_expiration_date("example.com") == "2026-08-13T04:00:00Z"

    def test_expiration_date_propagates_lookup_errors(self):
        def broken(name):
            raise TimeoutError("whois timed out")

        with pytest.raises(LookupFailed):
            _fetcher(whois_lookup=broken).fetch_expiration_date("example.com")


class TestResolverSetup:
    """Resolver construction from settings."""

    def test_explicit_nameservers(self):
        fetcher = FactFetcher(nameservers=["1.1.1.1"], timeout=2.5)

        assert fetcher.resolver.timeout == 2.5
        assert fetcher.resolver.lifetime == 2.5
