"""Prompt builder for drafting a reply to a normalized thread."""

from mailthread.normalizer.types import NormalizedMessage, NormalizedThread

# Maximum characters of each message body included in the prompt.  Bodies are
# already plain text by the time they get here, so this counts real content.
BODY_CHAR_LIMIT = 4_000

#: Tone instructions, keyed by reply type.
REPLY_TONES: dict[str, str] = {
    "business": "Write a clear, professional business reply.",
    "casual": "Write a friendly, casual reply.",
    "polite": "Write a very polite, courteous reply.",
}

#: Output language instructions.
REPLY_LANGUAGES: dict[str, str] = {
    "en": "Write the reply in English.",
    "ja": "Write the reply in Japanese.",
}


def _format_message(message: NormalizedMessage) -> str:
    lines = [f"From: {message.sender}"]
    if message.recipients:
        lines.append(f"To: {', '.join(message.recipients)}")
    lines.append(f"Date: {message.date}")
    lines.append(f"Subject: {message.subject}")

    lines.append("")  # blank line before body
    lines.append(message.body[:BODY_CHAR_LIMIT])
    if len(message.body) > BODY_CHAR_LIMIT:
        lines.append("\n[… message truncated …]")
    return "\n".join(lines)


def build_thread_messages(
    thread: NormalizedThread,
    reply_type: str = "business",
    custom_instructions: str | None = None,
    language: str = "en",
) -> list[dict[str, str]]:
    """Build the Anthropic messages list for drafting a reply to ``thread``.

    Messages are rendered in thread order (oldest first when the normalizer
    sorted them) and the reply is addressed to the latest one.

    Raises:
        ValueError: empty thread, or unknown reply type / language.
    """
    if not thread.messages:
        raise ValueError(f"Thread {thread.thread_id!r} has no messages to reply to")
    if reply_type not in REPLY_TONES:
        raise ValueError(f"Unknown reply type {reply_type!r}; expected one of {sorted(REPLY_TONES)}")
    if language not in REPLY_LANGUAGES:
        raise ValueError(f"Unknown language {language!r}; expected one of {sorted(REPLY_LANGUAGES)}")

    conversation = "\n\n---\n\n".join(_format_message(m) for m in thread.messages)
    latest = thread.messages[-1]

    instructions = [
        REPLY_TONES[reply_type],
        REPLY_LANGUAGES[language],
        f"Reply to the most recent message from {latest.sender or 'the sender'}.",
        "Return only the reply body — no subject line, no commentary.",
    ]
    if custom_instructions:
        instructions.append(f"Additional instructions: {custom_instructions}")

    return [
        {
            "role": "user",
            "content": (
                f"Here is an email thread with {len(thread.messages)} message(s), "
                "oldest first:\n\n"
                + conversation
                + "\n\n"
                + "\n".join(instructions)
            ),
        }
    ]
