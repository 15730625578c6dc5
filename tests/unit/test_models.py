"""
Tests for API models
"""
from datetime import datetime, timedelta, timezone

from contact_relay.api.models import ContactMessage, isoformat_utc


class TestIsoformatUtc:
    """isoformat_utc tests"""

    def test_naive_is_treated_as_utc(self):
        assert isoformat_utc(datetime(2026, 10, 19, 9, 30, 0)) == "2026-10-19T09:30:00.000Z"

    def test_milliseconds(self):
        value = datetime(2026, 10, 19, 9, 30, 0, 123456, tzinfo=timezone.utc)
        assert isoformat_utc(value) == "2026-10-19T09:30:00.123Z"

    def test_converts_offset_to_utc(self):
        plus_two = timezone(timedelta(hours=2))
        value = datetime(2026, 10, 19, 11, 30, 0, tzinfo=plus_two)
        assert isoformat_utc(value) == "2026-10-19T09:30:00.000Z"


class TestContactMessage:
    """ContactMessage tests"""

    def test_wire_format_uses_created_at_alias(self):
        record = ContactMessage(
            id=1,
            name="Ada Lovelace",
            email="ada@example.com",
            message="Hello from the contact form.",
            created_at="2026-10-19T09:30:00.000Z",
        )

        assert record.to_dict() == {
            "id": 1,
            "name": "Ada Lovelace",
            "email": "ada@example.com",
            "message": "Hello from the contact form.",
            "createdAt": "2026-10-19T09:30:00.000Z",
        }

    def test_accepts_alias_on_input(self):
        record = ContactMessage.model_validate(
            {
                "id": 2,
                "name": "Bob",
                "email": "bob@example.com",
                "message": "Hi there",
                "createdAt": "2026-10-19T09:30:00.000Z",
            }
        )
        assert record.created_at == "2026-10-19T09:30:00.000Z"
