"""Per-message assembly: extracted fields → NormalizedMessage."""

from collections.abc import Mapping
from typing import Any

from mailthread.normalizer.decoding import html_to_text
from mailthread.normalizer.errors import ErrorCode, NormalizationError
from mailthread.normalizer.fields import (
    ExtractedFields,
    extract_assembled_fields,
    extract_raw_fields,
)
from mailthread.normalizer.types import NormalizationOptions, NormalizedMessage


def build_message(
    message_id: str, fields: ExtractedFields, options: NormalizationOptions
) -> NormalizedMessage:
    """Shared constructor for both input shapes: strip HTML if needed, then trim."""
    body = fields.body
    if body and (fields.body_is_html or options.convert_html_to_text):
        body = html_to_text(body)

    return NormalizedMessage(
        message_id=message_id,
        date=fields.date,
        sender=fields.sender,
        recipients=fields.recipients,
        subject=fields.subject,
        body=body.strip(),
    )


def normalize_assembled_message(
    email: Any, options: NormalizationOptions
) -> NormalizedMessage:
    """Normalize one message from an assembled thread.

    Raises:
        NormalizationError: MessageNormalizationError wrapping the cause.
    """
    message_id = email.get("id") if isinstance(email, Mapping) else None
    try:
        if not isinstance(email, Mapping):
            raise NormalizationError(
                "Each email must be an object", ErrorCode.INVALID_MESSAGE_OBJECT
            )
        if not isinstance(message_id, str) or not message_id:
            raise NormalizationError(
                "Message ID is required and must be a string", ErrorCode.INVALID_MESSAGE_ID
            )
        return build_message(message_id, extract_assembled_fields(email), options)
    except Exception as exc:
        raise NormalizationError(
            f"Failed to normalize message: {exc}",
            ErrorCode.MESSAGE_NORMALIZATION_ERROR,
            {"messageId": message_id},
        ) from exc


def normalize_raw_message(
    message: Mapping[str, Any], options: NormalizationOptions
) -> NormalizedMessage:
    """Normalize one Gmail API message record.

    Raises:
        NormalizationError: GmailMessageNormalizationError wrapping the cause.
    """
    message_id = message.get("id")
    try:
        return build_message(message_id, extract_raw_fields(message), options)
    except Exception as exc:
        raise NormalizationError(
            f"Failed to normalize Gmail message: {exc}",
            ErrorCode.GMAIL_MESSAGE_NORMALIZATION_ERROR,
            {"messageId": message_id},
        ) from exc


def is_empty_message(message: NormalizedMessage) -> bool:
    """True when the body is empty or whitespace-only."""
    return not message.body or not message.body.strip()
