"""Field extraction for the two supported message shapes.

``extract_assembled_fields`` reads an upstream-assembled thread message
(``from``/``to``/``subject``/``body`` plus a real ``datetime``);
``extract_raw_fields`` reads a Gmail API message record with headers and a
MIME part tree.  Both return the same ExtractedFields so the assembler never
needs to know which shape it was given.
"""

import html
import logging
import re
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from mailthread.normalizer.decoding import decode_base64url, decode_header_value
from mailthread.normalizer.errors import ErrorCode, NormalizationError

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_EPOCH_MILLIS = re.compile(r"^\s*-?\d+\s*$")
_CHARSET = re.compile(r"""charset\s*=\s*["']?([^"';\s]+)""", re.IGNORECASE)


@dataclass(frozen=True)
class ExtractedFields:
    """The canonical fields of one message, before HTML conversion and trimming.

    ``body_is_html`` marks a body taken from an HTML-only source; the assembler
    strips it regardless of the caller's convert option.
    """

    sender: str
    recipients: list[str] = field(default_factory=list)
    subject: str = ""
    date: str = ""
    body: str = ""
    body_is_html: bool = False


# ── Addresses ──────────────────────────────────────────────────────────────────


def parse_addresses(address_string: Any) -> list[str]:
    """Split a ``,``/``;`` delimited address header into individual addresses.

    Delimiters inside double quotes or angle brackets do not split, so
    ``"Doe, Jane" <jane@example.com>`` stays one entry.  Order is preserved and
    duplicates are kept.
    """
    if not address_string or not isinstance(address_string, str):
        return []

    addresses: list[str] = []
    current: list[str] = []
    in_quotes = False
    angle_depth = 0
    previous = ""
    for char in address_string:
        if char == '"' and previous != "\\":
            in_quotes = not in_quotes
        elif not in_quotes and char == "<":
            angle_depth += 1
        elif not in_quotes and char == ">" and angle_depth:
            angle_depth -= 1

        if char in ",;" and not in_quotes and not angle_depth:
            addresses.append("".join(current))
            current = []
        else:
            current.append(char)
        previous = char
    addresses.append("".join(current))

    return [addr.strip() for addr in addresses if addr.strip()]


# ── Dates ──────────────────────────────────────────────────────────────────────


def _to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _coerce_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        raise TypeError("Invalid date object")
    if isinstance(value, int):
        return _EPOCH + timedelta(milliseconds=value)
    if isinstance(value, str) and value.strip():
        if _EPOCH_MILLIS.match(value):
            return _EPOCH + timedelta(milliseconds=int(value))
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    raise TypeError("Invalid date object")


def format_timestamp(value: Any) -> str:
    """Return ``value`` as an ISO-8601 UTC string with millisecond precision.

    Accepts a ``datetime`` (naive values are taken as UTC), epoch milliseconds
    as an int or numeric string, or an ISO-8601 string.  Never raises: anything
    unusable is logged and replaced by the current time.
    """
    try:
        return _to_iso(_coerce_datetime(value))
    except (TypeError, ValueError, OverflowError) as exc:
        logger.warning("Failed to format date %r to ISO: %s; using current time", value, exc)
        return _to_iso(datetime.now(timezone.utc))


def parse_timestamp(value: str) -> datetime:
    """Parse a normalized ISO-8601 date back into an aware datetime (for sorting)."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_internal_date(internal_date: Any) -> int:
    """Return Gmail's ``internalDate`` (epoch millis as a string) as an int.

    Raises:
        NormalizationError: InvalidInternalDate if the value is not an integer.
    """
    if isinstance(internal_date, str) and _EPOCH_MILLIS.match(internal_date):
        return int(internal_date)
    raise NormalizationError(
        "Invalid internalDate format",
        ErrorCode.INVALID_INTERNAL_DATE,
        {"internalDate": internal_date},
    )


# ── Assembled thread messages ──────────────────────────────────────────────────


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def extract_assembled_fields(email: Mapping[str, Any]) -> ExtractedFields:
    """Read the canonical fields from an assembled thread message.

    ``body`` is used as-is; when it is empty and ``bodyHtml`` is present the
    HTML version stands in for it.
    """
    body = _text(email.get("body"))
    body_is_html = False
    if not body.strip() and _text(email.get("bodyHtml")):
        body = email["bodyHtml"]
        body_is_html = True

    return ExtractedFields(
        sender=_text(email.get("from")),
        recipients=parse_addresses(email.get("to")),
        subject=_text(email.get("subject")),
        date=format_timestamp(email.get("date")),
        body=body,
        body_is_html=body_is_html,
    )


# ── Raw Gmail messages ─────────────────────────────────────────────────────────


def get_header(headers: Any, name: str) -> str:
    """Return the first header value whose name matches ``name`` case-insensitively."""
    if not isinstance(headers, list):
        return ""
    wanted = name.lower()
    for header in headers:
        if not isinstance(header, Mapping):
            continue
        header_name = header.get("name")
        if isinstance(header_name, str) and header_name.lower() == wanted:
            return _text(header.get("value"))
    return ""


def _part_charset(part: Mapping[str, Any]) -> str:
    match = _CHARSET.search(get_header(part.get("headers"), "Content-Type"))
    return match.group(1) if match else "utf-8"


def _part_data(part: Mapping[str, Any]) -> str:
    body = part.get("body")
    if isinstance(body, Mapping):
        return _text(body.get("data"))
    return ""


def _mime_type(part: Mapping[str, Any]) -> str:
    return _text(part.get("mimeType")).lower()


def _is_attachment(part: Mapping[str, Any]) -> bool:
    return bool(_text(part.get("filename")))


def iter_parts(parts: Any) -> Iterator[Mapping[str, Any]]:
    """Walk a MIME part tree depth-first, yielding each part before its children."""
    if not isinstance(parts, list):
        return
    for part in parts:
        if not isinstance(part, Mapping):
            continue
        yield part
        yield from iter_parts(part.get("parts"))


def _find_part(parts: Any, matches: Callable[[str], bool]) -> Mapping[str, Any] | None:
    for part in iter_parts(parts):
        if _is_attachment(part) or not _part_data(part):
            continue
        if matches(_mime_type(part)):
            return part
    return None


def extract_raw_body(payload: Any) -> tuple[str, bool]:
    """Find the readable body of a Gmail payload.

    Returns ``(body, is_html)``.  Preference order: inline ``payload.body``
    data, then the first ``text/plain`` part, then ``text/html``, then any
    other ``text/*`` part.  Attachment parts are never used.
    """
    if not isinstance(payload, Mapping):
        return "", False

    inline = _part_data(payload)
    if inline and not _is_attachment(payload):
        return decode_base64url(inline, _part_charset(payload)), _mime_type(payload) == "text/html"

    parts = payload.get("parts")
    for matches, is_html in (
        (lambda mime: mime == "text/plain", False),
        (lambda mime: mime == "text/html", True),
        (lambda mime: mime.startswith("text/"), False),
    ):
        part = _find_part(parts, matches)
        if part is not None:
            return decode_base64url(_part_data(part), _part_charset(part)), is_html

    return "", False


def extract_raw_fields(message: Mapping[str, Any]) -> ExtractedFields:
    """Read the canonical fields from a Gmail API message record.

    Raises:
        NormalizationError: InvalidInternalDate for a non-numeric ``internalDate``.
    """
    date = format_timestamp(parse_internal_date(message.get("internalDate")))

    payload = message.get("payload")
    headers = payload.get("headers") if isinstance(payload, Mapping) else None

    body, body_is_html = extract_raw_body(payload)
    if not body.strip() and _text(message.get("snippet")):
        # Gmail snippets arrive HTML-escaped (e.g. ``&#39;``).
        body = html.unescape(message["snippet"])
        body_is_html = False

    return ExtractedFields(
        sender=decode_header_value(get_header(headers, "From")),
        recipients=parse_addresses(decode_header_value(get_header(headers, "To"))),
        subject=decode_header_value(get_header(headers, "Subject")),
        date=date,
        body=body,
        body_is_html=body_is_html,
    )

