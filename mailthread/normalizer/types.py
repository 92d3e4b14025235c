"""Types for the thread normalization pipeline."""

from dataclasses import dataclass, field
from typing import Any


# ── Options ────────────────────────────────────────────────────────────────────

#: JSON option name → NormalizationOptions field name.
#: The JSON names are what the HTTP layer and the CLI receive from callers.
OPTION_FIELDS: dict[str, str] = {
    "convertHtmlToText": "convert_html_to_text",
    "sortMessages": "sort_messages",
    "excludeEmptyMessages": "exclude_empty_messages",
}


@dataclass(frozen=True)
class NormalizationOptions:
    """Per-call switches for the normalizer. All default to on."""

    convert_html_to_text: bool = True
    sort_messages: bool = True
    exclude_empty_messages: bool = True

    def merged(self, overrides: dict[str, bool]) -> "NormalizationOptions":
        """Return a copy with JSON-named overrides applied on top."""
        values = {
            "convert_html_to_text": self.convert_html_to_text,
            "sort_messages": self.sort_messages,
            "exclude_empty_messages": self.exclude_empty_messages,
        }
        for key, value in overrides.items():
            values[OPTION_FIELDS[key]] = value
        return NormalizationOptions(**values)


DEFAULT_OPTIONS = NormalizationOptions()


# ── Output ─────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class NormalizedMessage:
    """One message in canonical, LLM-ready form.

    ``date`` is always a valid ISO-8601 UTC string (``2024-01-15T10:00:00.000Z``)
    and ``recipients`` is never None; an unparsable ``To`` yields ``[]``.
    """

    message_id: str
    date: str
    sender: str
    recipients: list[str] = field(default_factory=list)
    subject: str = ""
    body: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "messageId": self.message_id,
            "date": self.date,
            "from": self.sender,
            "to": list(self.recipients),
            "subject": self.subject,
            "body": self.body,
        }


@dataclass(frozen=True)
class NormalizedThread:
    """A thread identifier plus its normalized messages, oldest first when sorted."""

    thread_id: str
    messages: list[NormalizedMessage] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "threadId": self.thread_id,
            "messages": [m.to_dict() for m in self.messages],
        }


@dataclass(frozen=True)
class NormalizationResult:
    """Outcome of a normalization call.

    ``errors`` is None when nothing went wrong and a non-empty list otherwise.
    A populated ``errors`` with messages present means partial success: the
    thread is still structurally valid and usable.
    """

    normalized_thread: NormalizedThread
    processed_message_count: int
    errors: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "normalizedThread": self.normalized_thread.to_dict(),
            "processedMessageCount": self.processed_message_count,
        }
        if self.errors:
            data["errors"] = list(self.errors)
        return data
