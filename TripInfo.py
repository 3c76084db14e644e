from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from dataclasses_json import config, dataclass_json

TRIP_STATUSES = ("planning", "confirmed", "completed")

ACTIVITY_CATEGORIES = (
    "sightseeing", "food", "transport", "accommodation", "shopping",
    "entertainment", "nature", "culture", "adventure", "relaxation",
)

CATEGORY_ICONS = {
    "sightseeing": "🏛️",
    "food": "🍽️",
    "transport": "🚗",
    "accommodation": "🏨",
    "shopping": "🛍️",
    "entertainment": "🎭",
    "nature": "🌿",
    "culture": "🎨",
    "adventure": "🏔️",
    "relaxation": "🧘",
}
DEFAULT_CATEGORY_ICON = "📍"


def _iso_date():
    return field(metadata=config(encoder=date.isoformat, decoder=date.fromisoformat))


def _iso_datetime(default=None):
    return field(default=default, metadata=config(
        encoder=lambda d: d.isoformat() if d else None,
        decoder=lambda s: datetime.fromisoformat(s) if s else None,
    ))


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def category_icon(category: str) -> str:
    """Icon for a category; unknown categories get the generic pin."""
    return CATEGORY_ICONS.get((category or "").strip().lower(), DEFAULT_CATEGORY_ICON)


@dataclass_json
@dataclass
class TripInfo:
    title: str
    destination: str
    start_date: date = _iso_date()
    end_date: date = _iso_date()
    travelers: int = 1
    owner_id: str = ""
    description: Optional[str] = None
    budget: Optional[int] = None
    preferences: List[str] = field(default_factory=list)
    status: str = "planning"
    id: Optional[str] = None
    created_at: Optional[datetime] = _iso_datetime()

    def duration_days(self) -> int:
        """Inclusive number of calendar days between start and end."""
        return (self.end_date - self.start_date).days + 1

    def budget_per_day(self) -> Optional[int]:
        """Total budget spread over the trip, rounded half-up."""
        if not self.budget:
            return None
        days = max(self.duration_days(), 1)
        return round_half_up(Decimal(self.budget) / Decimal(days))


@dataclass_json
@dataclass
class Activity:
    time: str
    title: str
    description: str
    category: str
    location: Optional[str] = None
    duration: Optional[str] = None
    cost: Optional[float] = None
    tips: Optional[str] = None

    @property
    def icon(self) -> str:
        return category_icon(self.category)


@dataclass_json
@dataclass
class DayPlan:
    day: int
    activities: List[Activity] = field(default_factory=list)
    theme: Optional[str] = None
    notes: Optional[str] = None
    trip_id: Optional[str] = None
    id: Optional[str] = None


@dataclass_json
@dataclass
class GenerationAttempt:
    id: int
    trip_id: str
    status: str = "pending"  # pending, succeeded, failed
    error_kind: Optional[str] = None
    error_message: Optional[str] = None
    raw_response: Optional[str] = None
    days_saved: int = 0
    started_at: Optional[datetime] = _iso_datetime()
    finished_at: Optional[datetime] = _iso_datetime()

    def summary(self) -> dict:
        """Public view of the attempt, without the raw model output."""
        data = self.to_dict()
        data.pop("raw_response", None)
        return data
