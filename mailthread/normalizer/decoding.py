"""Transport decoding for message bodies and headers.

None of these helpers raise.  Base64 failures degrade to an empty string,
HTML stripping failures to the input markup and header decoding failures to
the undecoded header value. Each is logged as a warning.
"""

import base64
import binascii
import logging
import re
from email.errors import HeaderParseError
from email.header import decode_header, make_header
from html.parser import HTMLParser

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")

# Elements whose text content is never visible.
_INVISIBLE_TAGS = frozenset({"script", "style", "head", "title"})


# ── Base64 (URL-safe) ──────────────────────────────────────────────────────────


def decode_base64url(data: str | None, charset: str = "utf-8") -> str:
    """Decode Gmail's URL-safe base64 body data into text.

    Restores the standard alphabet, pads to a multiple of four and decodes the
    bytes with ``charset`` (unknown charsets fall back to UTF-8; undecodable
    bytes are replaced).  Returns "" on any failure.
    """
    if not data or not isinstance(data, str):
        return ""

    standard = data.replace("-", "+").replace("_", "/")
    padded = standard + "=" * ((4 - len(standard) % 4) % 4)
    try:
        raw = base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as exc:
        logger.warning("Failed to decode base64 data (%d chars): %s", len(data), exc)
        return ""

    try:
        return raw.decode(charset or "utf-8", errors="replace")
    except LookupError:
        logger.warning("Unknown charset %r; decoding body as UTF-8", charset)
        return raw.decode("utf-8", errors="replace")


# ── HTML → plain text ──────────────────────────────────────────────────────────


class _HTMLStripper(HTMLParser):
    """HTMLParser subclass that collects visible text nodes."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._parts: list[str] = []
        self._skip_depth = 0

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag in _INVISIBLE_TAGS:
            self._skip_depth += 1

    def handle_endtag(self, tag: str) -> None:
        if tag in _INVISIBLE_TAGS and self._skip_depth:
            self._skip_depth -= 1

    def handle_data(self, data: str) -> None:
        if self._skip_depth:
            return
        text = data.strip()
        if text:
            self._parts.append(text)

    def get_text(self) -> str:
        return " ".join(self._parts)


def html_to_text(html: str | None) -> str:
    """Return plain text from an HTML string.

    Tags are removed, runs of whitespace collapse to a single space and the
    result is trimmed.  If parsing fails the original input is returned so the
    message content is never lost.
    """
    if not html or not isinstance(html, str):
        return ""

    stripper = _HTMLStripper()
    try:
        stripper.feed(html)
        stripper.close()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Failed to convert HTML to plain text: %s", exc)
        return html
    return _WHITESPACE.sub(" ", stripper.get_text()).strip()


# ── RFC 2047 headers ───────────────────────────────────────────────────────────


def decode_header_value(value: str | None) -> str:
    """Decode MIME encoded-words (``=?UTF-8?B?...?=`` / ``=?UTF-8?Q?...?=``).

    Plain ASCII headers pass through unchanged.
    """
    if not value:
        return ""
    if "=?" not in value:
        return value

    try:
        return str(make_header(decode_header(value)))
    except (HeaderParseError, LookupError, UnicodeDecodeError, ValueError) as exc:
        logger.warning("Failed to decode header value %r: %s", value, exc)
        return value
