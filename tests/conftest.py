"""Shared fixtures for contact_merge tests."""

from datetime import datetime, timezone
from typing import Any, Dict

import pytest

CREATED = datetime(2024, 1, 15, tzinfo=timezone.utc)
MERGE_TIME = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def build_contact(**overrides: Any) -> Dict[str, Any]:
    """Build a full canonical contact, overriding any field."""
    contact_info = {
        'emails': [],
        'phones': [],
        'linkedin_urls': [],
        'other_urls': [],
    }
    contact_info.update(overrides.pop('contact_info', {}))
    contact = {
        'id': 'test-1',
        'name': 'John Doe',
        'company': None,
        'role': None,
        'location': None,
        'contact_info': contact_info,
        'notes': '',
        'source': 'manual',
        'created_at': CREATED,
        'updated_at': CREATED,
    }
    contact.update(overrides)
    return contact


@pytest.fixture
def make_contact():
    """Factory fixture for full contacts."""
    return build_contact


@pytest.fixture
def fixed_clock():
    """Clock returning a constant merge time."""
    return lambda: MERGE_TIME
