"""Shared pytest fixtures."""

from datetime import datetime, timezone
from typing import Any

import pytest


@pytest.fixture
def email_thread() -> dict[str, Any]:
    """An assembled two-message thread; the first body is HTML."""
    return {
        "id": "thread_123",
        "subject": "Test Thread",
        "emails": [
            {
                "id": "message_1",
                "threadId": "thread_123",
                "subject": "Test Message 1",
                "from": "sender1@example.com",
                "to": "recipient@example.com",
                "body": "<p>This is <strong>HTML</strong> content</p>",
                "bodyHtml": "<p>This is <strong>HTML</strong> content</p>",
                "date": datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc),
                "isRead": False,
                "labels": ["INBOX", "UNREAD"],
                "attachments": [],
            },
            {
                "id": "message_2",
                "threadId": "thread_123",
                "subject": "Re: Test Message 1",
                "from": "recipient@example.com",
                "to": "sender1@example.com",
                "body": "This is plain text content",
                "date": datetime(2024, 1, 15, 11, 0, tzinfo=timezone.utc),
                "isRead": True,
                "labels": ["INBOX"],
                "attachments": [],
            },
        ],
        "lastMessageDate": datetime(2024, 1, 15, 11, 0, tzinfo=timezone.utc),
        "messageCount": 2,
        "participants": ["sender1@example.com", "recipient@example.com"],
    }


@pytest.fixture
def gmail_messages() -> list[dict[str, Any]]:
    """Two raw Gmail API message records with inline base64 bodies."""
    return [
        {
            "id": "gmail_message_1",
            "threadId": "thread_456",
            "labelIds": ["INBOX", "UNREAD"],
            "snippet": "Test message snippet",
            "internalDate": "1705312800000",  # 2024-01-15T10:00:00Z
            "payload": {
                "headers": [
                    {"name": "From", "value": "sender2@example.com"},
                    {"name": "To", "value": "recipient2@example.com"},
                    {"name": "Subject", "value": "Gmail Test Message"},
                ],
                "body": {"data": "VGhpcyBpcyBhIHRlc3QgbWVzc2FnZQ=="},  # "This is a test message"
            },
        },
        {
            "id": "gmail_message_2",
            "threadId": "thread_456",
            "labelIds": ["INBOX"],
            "snippet": "Another test message",
            "internalDate": "1705316400000",  # 2024-01-15T11:00:00Z
            "payload": {
                "headers": [
                    {"name": "From", "value": "recipient2@example.com"},
                    {"name": "To", "value": "sender2@example.com, cc@example.com"},
                    {"name": "Subject", "value": "Re: Gmail Test Message"},
                ],
                "body": {"data": "UmVwbHkgdG8gdGVzdCBtZXNzYWdl"},  # "Reply to test message"
            },
        },
    ]
