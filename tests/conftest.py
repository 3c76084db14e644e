import json
import os
import sys
from datetime import date

import pytest
from unittest.mock import MagicMock

# Project root, so TripInfo, store and agents import without installing
_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _root not in sys.path:
    sys.path.insert(0, _root)

# Keep importing main.py cheap and offline: no LLM key, no database file.
os.environ["LLM_PROVIDER"] = "mock"
os.environ["STORE_BACKEND"] = "memory"
os.environ["DATABASE_URL"] = "sqlite://"

from store import InMemoryTripStore
from TripInfo import TripInfo


def make_day(day, theme=None, **activity_overrides):
    activity = {
        "time": "10:00",
        "title": f"Museum visit {day}",
        "description": "See the highlights of the collection",
        "location": "Rue de Rivoli, 1st arrondissement",
        "duration": "2 hours",
        "cost": 22,
        "category": "culture",
        "tips": "Book online",
    }
    activity.update(activity_overrides)
    data = {"day": day, "activities": [activity]}
    if theme is not None:
        data["theme"] = theme
    return data


@pytest.fixture
def make_itinerary():
    """Return a builder for a JSON itinerary reply covering days 1..n."""
    def _build(num_days=3, prose=True):
        days = [make_day(i, theme=f"Theme {i}") for i in range(1, num_days + 1)]
        body = json.dumps(days, indent=2)
        if prose:
            return f"Here is your plan!\n```json\n{body}\n```\nEnjoy your trip."
        return body
    return _build


@pytest.fixture
def paris_trip():
    return TripInfo(
        title="Paris getaway",
        destination="Paris",
        start_date=date(2025, 6, 1),
        end_date=date(2025, 6, 3),
        budget=900,
        travelers=2,
        preferences=["Art", "Food"],
        owner_id="user-1",
    )


@pytest.fixture
def store():
    return InMemoryTripStore()


@pytest.fixture
def trip_id(store, paris_trip):
    return store.create_trip(paris_trip)


@pytest.fixture
def llm():
    """Provider client stub; set ``llm.complete.return_value`` per test."""
    return MagicMock()
