"""SPARQL vocabulary, escaping and result-binding helpers.

Only the small subset of escaping the service needs for its own bookkeeping
statements is provided here: string literals, IRIs and xsd:dateTime values.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Dict, List
from uuid import uuid4

VALIDATION_NS = "http://mu.semte.ch/vocabularies/validation/"
MU_NS = "http://mu.semte.ch/vocabularies/core/"
DCT_NS = "http://purl.org/dc/terms/"
XSD_NS = "http://www.w3.org/2001/XMLSchema#"

PREFIXES = (
    f"PREFIX validation: <{VALIDATION_NS}>\n"
    f"PREFIX mu: <{MU_NS}>\n"
    f"PREFIX dct: <{DCT_NS}>\n"
)

_STRING_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def new_id() -> str:
    """Return a fresh resource identifier."""
    return uuid4().hex


def escape_string(value: str) -> str:
    """Escape a Python string as a double-quoted SPARQL literal."""
    escaped = "".join(_STRING_ESCAPES.get(ch, ch) for ch in str(value))
    return f'"{escaped}"'


def escape_uri(value: str) -> str:
    """Escape an IRI for use between angle brackets."""
    text = str(value)
    for ch in '<>"{}|^`\\ ':
        if ch in text:
            raise ValueError(f"Illegal character {ch!r} in IRI: {text}")
    return f"<{text}>"


def escape_datetime(value: datetime) -> str:
    """Format a datetime as a typed xsd:dateTime literal (UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    iso = value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
    return f'"{iso}"^^<{XSD_NS}dateTime>'


_FRACTION = re.compile(r"\.(\d+)")


def _microseconds(match: "re.Match[str]") -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def parse_datetime(value: str) -> datetime:
    """Parse an xsd:dateTime lexical value back into an aware datetime.

    Fractional seconds of any precision are accepted (``12:00:00.12Z``) and
    truncated to microseconds.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(_microseconds, text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def bindings(result: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Return the list of bindings from a SPARQL JSON SELECT result."""
    return list(result.get("results", {}).get("bindings", []))


def binding_values(binding: Dict[str, Any]) -> Dict[str, str]:
    """Flatten one SPARQL JSON binding into ``{variable: raw value}``.

    Examples:
        >>> binding_values({"s": {"type": "uri", "value": "http://x/1"}})
        {'s': 'http://x/1'}
    """
    return {key: term["value"] for key, term in binding.items()}


__all__ = [
    "PREFIXES",
    "VALIDATION_NS",
    "MU_NS",
    "DCT_NS",
    "new_id",
    "escape_string",
    "escape_uri",
    "escape_datetime",
    "parse_datetime",
    "bindings",
    "binding_values",
]
