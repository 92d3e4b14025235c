"""Error type shared by the normalizer validators and message assemblers."""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable, machine-readable codes carried by NormalizationError."""

    # Thread-level structure
    MISSING_THREAD_DATA = "MissingThreadData"
    INVALID_THREAD_DATA_TYPE = "InvalidThreadDataType"
    INVALID_THREAD_ID = "InvalidThreadId"
    INVALID_EMAILS_ARRAY = "InvalidEmailsArray"

    # Raw message list structure
    INVALID_MESSAGES_ARRAY = "InvalidMessagesArray"
    INVALID_MESSAGE_OBJECT = "InvalidMessageObject"
    INVALID_MESSAGE_ID = "InvalidMessageId"
    INVALID_MESSAGE_THREAD_ID = "InvalidMessageThreadId"
    INVALID_INTERNAL_DATE = "InvalidInternalDate"

    # Options structure
    INVALID_OPTIONS_TYPE = "InvalidOptionsType"
    INVALID_OPTION_KEY = "InvalidOptionKey"
    INVALID_OPTION_VALUE = "InvalidOptionValue"

    # Per-message assembly failures
    MESSAGE_NORMALIZATION_ERROR = "MessageNormalizationError"
    GMAIL_MESSAGE_NORMALIZATION_ERROR = "GmailMessageNormalizationError"


class NormalizationError(Exception):
    """Raised when thread, message or option data is structurally invalid.

    Attributes:
        message: human-readable description (also ``str(err)``).
        code:    one of ErrorCode.
        details: optional structured context, e.g. the offending option key.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details

    def __repr__(self) -> str:
        return f"NormalizationError({self.message!r}, code={self.code.value!r})"
