"""Global configuration and fixtures for all pytest-based tests"""

from datetime import datetime, timezone

import pytest

from hecship.util.message import Message


@pytest.fixture(name="make_message")
def fixture_make_message():
    def make_message(number: int = 0, **fields) -> Message:
        fields = {"number": number, **fields}
        return Message(
            timestamp=datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc),
            source="h1",
            message=f"message {number}",
            fields=fields,
        )

    return make_message
