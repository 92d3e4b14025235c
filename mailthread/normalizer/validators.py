"""Structural checks run before any normalization work starts.

Every validator returns True on success and raises NormalizationError on the
first violation it finds.  The raw message check is all-or-nothing: one bad
element rejects the whole list.
"""

from collections.abc import Mapping
from typing import Any

from mailthread.normalizer.errors import ErrorCode, NormalizationError
from mailthread.normalizer.types import OPTION_FIELDS, NormalizationOptions


def _is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def validate_thread_data(thread_data: Any) -> bool:
    """Check an assembled thread: a mapping with a string ``id`` and an ``emails`` list."""
    if thread_data is None:
        raise NormalizationError("Thread data is required", ErrorCode.MISSING_THREAD_DATA)

    if not isinstance(thread_data, Mapping):
        raise NormalizationError(
            "Thread data must be an object", ErrorCode.INVALID_THREAD_DATA_TYPE
        )

    if not _is_non_empty_str(thread_data.get("id")):
        raise NormalizationError(
            "Thread ID is required and must be a string", ErrorCode.INVALID_THREAD_ID
        )

    if not isinstance(thread_data.get("emails"), list):
        raise NormalizationError(
            "Thread emails must be an array", ErrorCode.INVALID_EMAILS_ARRAY
        )

    return True


def validate_thread_id(thread_id: Any) -> bool:
    """Check the explicit thread ID passed alongside raw provider messages."""
    if not _is_non_empty_str(thread_id):
        raise NormalizationError(
            "Thread ID is required and must be a string", ErrorCode.INVALID_THREAD_ID
        )
    return True


def validate_raw_messages(raw_messages: Any) -> bool:
    """Check a list of raw Gmail API message records."""
    if not isinstance(raw_messages, list):
        raise NormalizationError(
            "Gmail messages must be an array", ErrorCode.INVALID_MESSAGES_ARRAY
        )

    for index, message in enumerate(raw_messages):
        if not isinstance(message, Mapping):
            raise NormalizationError(
                "Each message must be an object",
                ErrorCode.INVALID_MESSAGE_OBJECT,
                {"index": index},
            )

        if not _is_non_empty_str(message.get("id")):
            raise NormalizationError(
                "Message ID is required and must be a string",
                ErrorCode.INVALID_MESSAGE_ID,
                {"index": index},
            )

        if not _is_non_empty_str(message.get("threadId")):
            raise NormalizationError(
                "Message threadId is required and must be a string",
                ErrorCode.INVALID_MESSAGE_THREAD_ID,
                {"index": index, "messageId": message["id"]},
            )

        if not _is_non_empty_str(message.get("internalDate")):
            raise NormalizationError(
                "Message internalDate is required and must be a string",
                ErrorCode.INVALID_INTERNAL_DATE,
                {"index": index, "messageId": message["id"]},
            )

    return True


def validate_options(options: Any) -> bool:
    """Check caller options.

    None means "use defaults".  A NormalizationOptions instance is accepted as
    long as its fields are booleans; otherwise options must be a mapping keyed
    by the JSON option names with boolean values.
    """
    if options is None:
        return True

    if isinstance(options, NormalizationOptions):
        items = {
            json_key: getattr(options, attr) for json_key, attr in OPTION_FIELDS.items()
        }
    elif isinstance(options, Mapping):
        items = dict(options)
    else:
        raise NormalizationError("Options must be an object", ErrorCode.INVALID_OPTIONS_TYPE)

    valid_keys = list(OPTION_FIELDS)
    for key, value in items.items():
        if key not in OPTION_FIELDS:
            raise NormalizationError(
                f"Invalid option key: {key}",
                ErrorCode.INVALID_OPTION_KEY,
                {"key": key, "validKeys": valid_keys},
            )
        if not isinstance(value, bool):
            raise NormalizationError(
                f"Option {key} must be a boolean",
                ErrorCode.INVALID_OPTION_VALUE,
                {"key": key, "value": value},
            )

    return True
