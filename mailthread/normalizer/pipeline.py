"""Thread normalization pipeline — the two public entry points.

    result = normalize_from_thread(thread)
    result = normalize_from_raw_messages(gmail_messages, thread_id)

Both calls are total: they never raise.  Batch-level validation failures
return an empty thread with a ``Validation error: ...`` entry; failures of a
single message are recorded in ``errors`` and the rest of the batch carries on.
"""

import functools
import logging
from collections.abc import Callable, Mapping
from typing import Any

from mailthread.normalizer.assembler import (
    is_empty_message,
    normalize_assembled_message,
    normalize_raw_message,
)
from mailthread.normalizer.errors import NormalizationError
from mailthread.normalizer.fields import parse_timestamp
from mailthread.normalizer.types import (
    DEFAULT_OPTIONS,
    NormalizationOptions,
    NormalizationResult,
    NormalizedMessage,
    NormalizedThread,
)
from mailthread.normalizer.validators import (
    validate_options,
    validate_raw_messages,
    validate_thread_data,
    validate_thread_id,
)

logger = logging.getLogger(__name__)

#: Normalizes one input item or raises.
MessageNormalizer = Callable[[Any, NormalizationOptions], NormalizedMessage]


# ── Public API ─────────────────────────────────────────────────────────────────


def normalize_from_thread(
    thread_data: Any,
    options: NormalizationOptions | Mapping[str, bool] | None = None,
) -> NormalizationResult:
    """Normalize an assembled thread (``{"id": ..., "emails": [...]}``)."""
    try:
        validate_thread_data(thread_data)
        validate_options(options)
    except Exception as exc:  # noqa: BLE001
        fallback_id = thread_data.get("id") if isinstance(thread_data, Mapping) else None
        return _failed(
            fallback_id if isinstance(fallback_id, str) and fallback_id else "unknown",
            exc,
            "Failed to normalize thread",
        )

    return _run(
        thread_data["id"],
        thread_data["emails"],
        normalize_assembled_message,
        _resolve_options(options),
    )


def normalize_from_raw_messages(
    raw_messages: Any,
    thread_id: Any,
    options: NormalizationOptions | Mapping[str, bool] | None = None,
) -> NormalizationResult:
    """Normalize a list of Gmail API message records belonging to ``thread_id``."""
    try:
        validate_thread_id(thread_id)
        validate_raw_messages(raw_messages)
        validate_options(options)
    except Exception as exc:  # noqa: BLE001
        return _failed(
            thread_id if isinstance(thread_id, str) else "unknown",
            exc,
            "Failed to normalize messages",
        )

    return _run(thread_id, raw_messages, normalize_raw_message, _resolve_options(options))


# ── Internal helpers ───────────────────────────────────────────────────────────


def _resolve_options(
    options: NormalizationOptions | Mapping[str, bool] | None,
) -> NormalizationOptions:
    if options is None:
        return DEFAULT_OPTIONS
    if isinstance(options, NormalizationOptions):
        return options
    return DEFAULT_OPTIONS.merged(dict(options))


def _failed(thread_id: str, exc: Exception, prefix: str) -> NormalizationResult:
    """Build the early-return result for a batch-level failure."""
    if isinstance(exc, NormalizationError):
        error = f"Validation error: {exc.message} ({exc.code.value})"
    else:
        error = f"{prefix}: {exc}"
    logger.warning("Thread %s rejected: %s", thread_id, error)
    return NormalizationResult(
        normalized_thread=NormalizedThread(thread_id=thread_id, messages=[]),
        processed_message_count=0,
        errors=[error],
    )


def _item_id(item: Any) -> str:
    item_id = item.get("id") if isinstance(item, Mapping) else None
    return item_id if isinstance(item_id, str) and item_id else "unknown"


def _run(
    thread_id: str,
    items: list[Any],
    normalize_one: MessageNormalizer,
    options: NormalizationOptions,
) -> NormalizationResult:
    errors: list[str] = []
    messages: list[NormalizedMessage] = []
    processed = 0

    for item in items:
        try:
            message = normalize_one(item, options)
        except Exception as exc:  # noqa: BLE001
            item_id = _item_id(item)
            logger.warning("Skipping message %s in thread %s: %s", item_id, thread_id, exc)
            errors.append(f"Failed to process message {item_id}: {exc}")
            continue

        # Counted as processed even if the empty filter drops it below.
        processed += 1
        if options.exclude_empty_messages and is_empty_message(message):
            logger.debug("Dropping empty message %s", message.message_id)
            continue
        messages.append(message)

    if options.sort_messages:
        messages = _sort_by_date(messages, errors)

    logger.debug(
        "Normalized thread %s: %d processed, %d kept, %d error(s)",
        thread_id,
        processed,
        len(messages),
        len(errors),
    )
    return NormalizationResult(
        normalized_thread=NormalizedThread(thread_id=thread_id, messages=messages),
        processed_message_count=processed,
        errors=errors or None,
    )


def _sort_by_date(
    messages: list[NormalizedMessage], errors: list[str]
) -> list[NormalizedMessage]:
    """Stable ascending sort by date; an unparsable pair compares equal."""

    def compare(a: NormalizedMessage, b: NormalizedMessage) -> int:
        try:
            left, right = parse_timestamp(a.date), parse_timestamp(b.date)
        except (TypeError, ValueError) as exc:
            errors.append(f"Failed to sort messages: {exc}")
            return 0
        return (left > right) - (left < right)

    return sorted(messages, key=functools.cmp_to_key(compare))
