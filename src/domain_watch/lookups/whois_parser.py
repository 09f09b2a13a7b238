"""
WHOIS text normalization.

Registries format WHOIS output differently; only the date and registrar
lines shared by the common gTLD formats are extracted.
"""

import re
from typing import Dict, Optional

CREATION_PATTERN = re.compile(r"Creation Date:[ \t]*(.*)")
REGISTRAR_PATTERN = re.compile(r"Registrar:[ \t]*(.*)")

# Tried in order, first match wins
EXPIRATION_PATTERNS = [
    re.compile(r"Registry Expiry Date:[ \t]*(.*)"),
    re.compile(r"Registrar Registration Expiration Date:[ \t]*(.*)"),
    re.compile(r"Expiration Date:[ \t]*(.*)"),
]

SUMMARY_KEYS = ("creationDate", "expirationDate", "registrar")


def _first_match(pattern: "re.Pattern[str]", text: str) -> Optional[str]:
    match = pattern.search(text)
    if match:
        return match.group(1).strip()
    return None


def parse_expiration_date(text: str) -> str:
    """Return the expiry date line value, or an empty string."""
    for pattern in EXPIRATION_PATTERNS:
        value = _first_match(pattern, text)
        if value is not None:
            return value
    return ""


def parse_whois_dates(text: str) -> Dict[str, str]:
    """
    Extract creation date, expiration date and registrar from raw WHOIS text.

    Args:
        text: Raw WHOIS response

    Returns:
        Mapping with the keys creationDate, expirationDate and registrar
    """
    return {
        "creationDate": _first_match(CREATION_PATTERN, text) or "",
        "expirationDate": parse_expiration_date(text),
        "registrar": _first_match(REGISTRAR_PATTERN, text) or "",
    }


def summarize_whois(whois: Dict[str, str]) -> str:
    """
    Render a WHOIS mapping as ``key:value`` pairs in a fixed key order.

    Keys outside SUMMARY_KEYS are appended alphabetically. Returns an empty
    string when every value is empty.
    """
    if not any(whois.values()):
        return ""
    keys = [k for k in SUMMARY_KEYS if k in whois]
    keys += sorted(k for k in whois if k not in SUMMARY_KEYS)
    return ", ".join(f"{key}:{whois[key]}" for key in keys)
