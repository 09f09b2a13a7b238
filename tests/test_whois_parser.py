"""
Tests for WHOIS text normalization.
"""

from domain_watch.lookups.whois_parser import (
    parse_expiration_date,
    parse_whois_dates,
    summarize_whois,
)


class TestParseWhoisDates:
    """Regex extraction across registry formats."""

    def test_registrar_expiration_variant(self):
        text = (
            "Registrar: NameCheap, Inc.\n"
            "Creation Date: 2010-01-01T00:00:00Z\n"
            "Registrar Registration Expiration Date: 2027-01-01T00:00:00Z\n"
        )

        assert parse_whois_dates(text) == {
            "creationDate": "2010-01-01T00:00:00Z",
            "expirationDate": "2027-01-01T00:00:00Z",
            "registrar": "NameCheap, Inc.",
        }

    def test_registry_expiry_takes_precedence(self):
        text = (
            "Registrar Registration Expiration Date: 2027-01-01\n"
            "Registry Expiry Date: 2026-06-30\n"
        )

        assert parse_expiration_date(text) == "2026-06-30"

    def test_general_expiration_fallback(self):
        assert parse_expiration_date("Expiration Date: 31-dec-2026\n") == "31-dec-2026"

    def test_missing_values_are_empty(self):
        assert parse_whois_dates("No match for domain") == {
            "creationDate": "",
            "expirationDate": "",
            "registrar": "",
        }

    def test_empty_value_does_not_swallow_next_line(self):
        text = "Registrar:\nCreation Date: 2010-01-01\n"

        assert parse_whois_dates(text)["registrar"] == ""

    def test_crlf_is_stripped(self):
        assert parse_whois_dates("Creation Date: 2010-01-01\r\n")["creationDate"] == "2010-01-01"


class TestSummarizeWhois:
    """Stable key:value rendering."""

    def test_fixed_key_order(self):
        summary = summarize_whois({
            "registrar": "R",
            "expirationDate": "E",
            "creationDate": "C",
        })

        assert summary == "creationDate:C, expirationDate:E, registrar:R"

    def test_extra_keys_sorted_after_known_ones(self):
        summary = summarize_whois({"zeta": "z", "registrar": "R", "alpha": "a"})

        assert summary == "registrar:R, alpha:a, zeta:z"

    def test_all_empty_is_empty_string(self):
        assert summarize_whois({"creationDate": "", "registrar": ""}) == ""
        assert summarize_whois({}) == ""
