"""Reply drafting — sends a normalized thread to Claude and returns a draft."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from anthropic import AsyncAnthropic
from anthropic.types import TextBlock

from mailthread.drafting.prompts import build_thread_messages
from mailthread.normalizer.types import NormalizedThread

logger = logging.getLogger(__name__)

_DEFAULT_MODEL = "claude-sonnet-4-6"
_MAX_TOKENS = 1024


class DraftError(Exception):
    """Raised when the model does not return any reply text."""


@dataclass(frozen=True)
class DraftReply:
    """A drafted reply body plus how it was produced."""

    text: str
    reply_type: str
    model: str


class ReplyDrafter:
    """Drafts a reply to the latest message of a normalized thread.

    The thread is expected to come straight out of the normalizer: plain-text
    bodies, oldest message first.

    Usage::

        drafter = ReplyDrafter()
        draft = await drafter.draft(result.normalized_thread, reply_type="polite")
    """

    def __init__(self, api_key: str | None = None, model: str | None = None) -> None:
        self._client = AsyncAnthropic(
            api_key=api_key or os.environ.get("ANTHROPIC_API_KEY", "")
        )
        self._model = model or os.environ.get("MAILTHREAD_DRAFT_MODEL", _DEFAULT_MODEL)

    @property
    def model(self) -> str:
        return self._model

    async def draft(
        self,
        thread: NormalizedThread,
        reply_type: str = "business",
        custom_instructions: str | None = None,
        language: str = "en",
    ) -> DraftReply:
        """Draft a reply for ``thread``.

        Raises:
            ValueError: if the thread is empty or the tone/language is unknown.
            DraftError: if the response contains no text block.
        """
        messages = build_thread_messages(
            thread,
            reply_type=reply_type,
            custom_instructions=custom_instructions,
            language=language,
        )
        logger.debug(
            "Drafting %s reply for thread %s (%d message(s)) with %s",
            reply_type,
            thread.thread_id,
            len(thread.messages),
            self._model,
        )
        response = await self._client.messages.create(
            model=self._model,
            max_tokens=_MAX_TOKENS,
            messages=messages,  # type: ignore[arg-type]
        )

        text = "".join(
            block.text for block in response.content if isinstance(block, TextBlock)
        ).strip()
        if not text:
            raise DraftError(
                f"Model returned no reply text for thread {thread.thread_id!r} "
                f"(stop_reason={response.stop_reason!r})"
            )
        return DraftReply(text=text, reply_type=reply_type, model=self._model)
