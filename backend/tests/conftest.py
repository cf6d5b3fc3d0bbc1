"""Pytest configuration and shared fixtures."""

import json
from unittest.mock import Mock

import pytest

from models.feedback import Feedback
from utils.slot_store import SlotStore


def make_feedback(
    feedback_id="1768896000000",
    category="general",
    subject="Dashboard loads slowly",
    message="The dashboard takes several seconds to load every morning.",
    rating=4,
    user_name="Jane Doe",
    user_email="jane@example.com",
    status="pending",
    created_at="2026-01-20T08:00:00+00:00",
    updated_at=None,
) -> Feedback:
    """Helper to build a Feedback record with sensible defaults."""
    return Feedback(
        feedback_id=feedback_id,
        category=category,
        subject=subject,
        message=message,
        rating=rating,
        user_name=user_name,
        user_email=user_email,
        status=status,
        created_at=created_at,
        updated_at=updated_at or created_at,
    )


@pytest.fixture
def mock_slot_table():
    """Create a mock DynamoDB table that remembers what was put into it."""
    items: dict[str, dict] = {}

    def put_item(Item, **kwargs):
        items[Item["slot_key"]] = Item
        return {}

    def get_item(Key, **kwargs):
        item = items.get(Key["slot_key"])
        return {"Item": item} if item else {}

    table = Mock()
    table.items = items
    table.put_item.side_effect = put_item
    table.get_item.side_effect = get_item
    return table


@pytest.fixture
def slot_store(mock_slot_table):
    """SlotStore backed by the in-memory mock table."""
    return SlotStore(mock_slot_table)


@pytest.fixture
def sample_feedback():
    """A small mixed collection of feedback records."""
    return [
        make_feedback(
            feedback_id="1768896000000",
            category="bug",
            subject="Login button broken",
            message="Clicking login on Safari does nothing at all.",
            rating=2,
            user_name="Alice",
            user_email="alice@example.com",
            status="pending",
            created_at="2026-01-20T08:00:00+00:00",
        ),
        make_feedback(
            feedback_id="1768982400000",
            category="feature",
            subject="Dark mode please",
            message="Would love a dark theme for late night task planning.",
            rating=5,
            user_name="Bob",
            user_email="bob@example.com",
            status="reviewed",
            created_at="2026-01-21T08:00:00+00:00",
        ),
        make_feedback(
            feedback_id="1769068800000",
            category="ui",
            subject="Sidebar overlaps content",
            message="On tablets the sidebar covers the task list.",
            rating=3,
            user_name="Carol",
            user_email="carol@example.com",
            status="resolved",
            created_at="2026-01-22T08:00:00+00:00",
        ),
        make_feedback(
            feedback_id="1769155200000",
            category="performance",
            subject="Slow task search",
            message="Searching tasks takes over five seconds with 500 tasks.",
            rating=3,
            user_name="alice",
            user_email="alice.w@example.com",
            status="pending",
            created_at="2026-01-23T08:00:00+00:00",
        ),
    ]


@pytest.fixture
def feedback_factory():
    """Expose make_feedback to tests."""
    return make_feedback


@pytest.fixture
def seed_slot(mock_slot_table):
    """Write a raw value, or a list of records as JSON, into a slot."""

    def _seed(value, key: str = "userFeedback") -> None:
        if isinstance(value, list):
            value = json.dumps([r.to_storage() for r in value])
        mock_slot_table.put_item(Item={"slot_key": key, "value": value})

    return _seed
