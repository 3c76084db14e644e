"""
Trip / itinerary persistence.

``TripStore`` is the surface the itinerary generator depends on. Two
implementations ship:

  • ``SqlTripStore``: SQLAlchemy sessions, one commit per call.
  • ``InMemoryTripStore``: lock-guarded dicts for tests and local runs.

Each call is atomic on its own; nothing here spans several documents in one
transaction, so "delete every day then insert new days" is two separate
steps that callers must serialise themselves.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Optional

from errors import AccessDenied, NotFound
from TripInfo import TRIP_STATUSES, Activity, DayPlan, GenerationAttempt, TripInfo
import database

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TripStore:
    """Persistence contract for trips, itinerary days and generation attempts."""

    # trips
    def create_trip(self, trip: TripInfo) -> str:
        raise NotImplementedError

    def get_trip(self, trip_id: str) -> Optional[TripInfo]:
        raise NotImplementedError

    def list_trips_by_owner(self, owner_id: str) -> list[TripInfo]:
        raise NotImplementedError

    def update_trip_status(self, trip_id: str, status: str) -> None:
        raise NotImplementedError

    def delete_trip(self, trip_id: str) -> None:
        raise NotImplementedError

    # itinerary days
    def insert_itinerary_day(self, day: DayPlan) -> str:
        raise NotImplementedError

    def delete_itinerary_day(self, day_id: str) -> None:
        raise NotImplementedError

    def query_itinerary_days_by_trip(self, trip_id: str) -> list[DayPlan]:
        raise NotImplementedError

    # generation attempts
    def start_attempt(self, trip_id: str) -> int:
        raise NotImplementedError

    def finish_attempt(
        self,
        attempt_id: int,
        status: str,
        *,
        error: Optional[BaseException] = None,
        raw_response: Optional[str] = None,
        days_saved: int = 0,
    ) -> None:
        raise NotImplementedError

    def latest_attempt(self, trip_id: str) -> Optional[GenerationAttempt]:
        raise NotImplementedError

    def get_owned_trip(self, trip_id: str, user_id: str) -> TripInfo:
        """Return the trip if ``user_id`` owns it.

        Raises NotFound when the trip is missing and AccessDenied when it
        belongs to someone else.
        """
        trip = self.get_trip(trip_id)
        if trip is None:
            raise NotFound(f"Trip {trip_id} not found")
        if trip.owner_id != user_id:
            logger.warning("User %s denied access to trip %s", user_id, trip_id)
            raise AccessDenied(f"Access to trip {trip_id} denied")
        return trip


def _check_status(status: str) -> None:
    if status not in TRIP_STATUSES:
        raise ValueError(f"Unknown trip status: {status!r}")


def _error_fields(error: Optional[BaseException]) -> tuple[Optional[str], Optional[str]]:
    if error is None:
        return None, None
    return type(error).__name__, str(error)


# ---------------------------------------------------------------------------
# SQLAlchemy
# ---------------------------------------------------------------------------

def _trip_from_row(row: database.Trip) -> TripInfo:
    return TripInfo(
        id=row.id,
        title=row.title,
        description=row.description,
        destination=row.destination,
        start_date=date.fromisoformat(row.start_date),
        end_date=date.fromisoformat(row.end_date),
        budget=row.budget,
        travelers=row.travelers,
        preferences=list(row.preferences or []),
        owner_id=row.user_id,
        status=row.status,
        created_at=row.created_at,
    )


def _day_from_row(row: database.ItineraryDay) -> DayPlan:
    return DayPlan(
        id=row.id,
        trip_id=row.trip_id,
        day=row.day,
        theme=row.theme,
        activities=[Activity.from_dict(a) for a in row.activities or []],
        notes=row.notes,
    )


def _attempt_from_row(row: database.GenerationAttempt) -> GenerationAttempt:
    return GenerationAttempt(
        id=row.id,
        trip_id=row.trip_id,
        status=row.status,
        error_kind=row.error_kind,
        error_message=row.error_message,
        raw_response=row.raw_response,
        days_saved=row.days_saved or 0,
        started_at=row.started_at,
        finished_at=row.finished_at,
    )


class SqlTripStore(TripStore):
    def __init__(self, session_factory):
        self._session_factory = session_factory

    def create_trip(self, trip: TripInfo) -> str:
        _check_status(trip.status)
        with self._session_factory() as db:
            row = database.Trip(
                user_id=trip.owner_id,
                title=trip.title,
                description=trip.description,
                destination=trip.destination,
                start_date=trip.start_date.isoformat(),
                end_date=trip.end_date.isoformat(),
                budget=trip.budget,
                travelers=trip.travelers,
                preferences=list(trip.preferences),
                status=trip.status,
            )
            db.add(row)
            db.commit()
            return row.id

    def get_trip(self, trip_id: str) -> Optional[TripInfo]:
        with self._session_factory() as db:
            row = db.query(database.Trip).filter(database.Trip.id == trip_id).first()
            return _trip_from_row(row) if row else None

    def list_trips_by_owner(self, owner_id: str) -> list[TripInfo]:
        with self._session_factory() as db:
            rows = (
                db.query(database.Trip)
                .filter(database.Trip.user_id == owner_id)
                .order_by(database.Trip.created_at.desc())
                .all()
            )
            return [_trip_from_row(r) for r in rows]

    def update_trip_status(self, trip_id: str, status: str) -> None:
        _check_status(status)
        with self._session_factory() as db:
            row = db.query(database.Trip).filter(database.Trip.id == trip_id).first()
            if not row:
                raise NotFound(f"Trip {trip_id} not found")
            row.status = status
            db.commit()

    def delete_trip(self, trip_id: str) -> None:
        with self._session_factory() as db:
            row = db.query(database.Trip).filter(database.Trip.id == trip_id).first()
            if not row:
                raise NotFound(f"Trip {trip_id} not found")
            db.delete(row)
            db.commit()

    def insert_itinerary_day(self, day: DayPlan) -> str:
        with self._session_factory() as db:
            row = database.ItineraryDay(
                trip_id=day.trip_id,
                day=day.day,
                theme=day.theme,
                activities=[a.to_dict() for a in day.activities],
                notes=day.notes,
            )
            db.add(row)
            db.commit()
            return row.id

    def delete_itinerary_day(self, day_id: str) -> None:
        with self._session_factory() as db:
            db.query(database.ItineraryDay).filter(database.ItineraryDay.id == day_id).delete()
            db.commit()

    def query_itinerary_days_by_trip(self, trip_id: str) -> list[DayPlan]:
        with self._session_factory() as db:
            rows = (
                db.query(database.ItineraryDay)
                .filter(database.ItineraryDay.trip_id == trip_id)
                .order_by(database.ItineraryDay.day)
                .all()
            )
            return [_day_from_row(r) for r in rows]

    def start_attempt(self, trip_id: str) -> int:
        with self._session_factory() as db:
            row = database.GenerationAttempt(trip_id=trip_id, status="pending")
            db.add(row)
            db.commit()
            return row.id

    def finish_attempt(self, attempt_id, status, *, error=None, raw_response=None, days_saved=0):
        error_kind, error_message = _error_fields(error)
        with self._session_factory() as db:
            row = db.query(database.GenerationAttempt).filter(
                database.GenerationAttempt.id == attempt_id
            ).first()
            if not row:
                # Trip (and its attempts) deleted while generation was running
                logger.warning("Generation attempt %s vanished before it finished", attempt_id)
                return
            row.status = status
            row.error_kind = error_kind
            row.error_message = error_message
            row.raw_response = raw_response
            row.days_saved = days_saved
            row.finished_at = _utcnow()
            db.commit()

    def latest_attempt(self, trip_id: str) -> Optional[GenerationAttempt]:
        with self._session_factory() as db:
            row = (
                db.query(database.GenerationAttempt)
                .filter(database.GenerationAttempt.trip_id == trip_id)
                .order_by(database.GenerationAttempt.id.desc())
                .first()
            )
            return _attempt_from_row(row) if row else None


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------

class InMemoryTripStore(TripStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._trips: dict[str, TripInfo] = {}
        self._days: dict[str, DayPlan] = {}
        self._attempts: dict[int, GenerationAttempt] = {}
        self._attempt_ids = itertools.count(1)

    def create_trip(self, trip: TripInfo) -> str:
        _check_status(trip.status)
        with self._lock:
            trip_id = database.generate_id()
            self._trips[trip_id] = replace(
                trip, id=trip_id, created_at=_utcnow(), preferences=list(trip.preferences)
            )
            return trip_id

    def get_trip(self, trip_id: str) -> Optional[TripInfo]:
        with self._lock:
            trip = self._trips.get(trip_id)
            return replace(trip) if trip else None

    def list_trips_by_owner(self, owner_id: str) -> list[TripInfo]:
        with self._lock:
            owned = [replace(t) for t in self._trips.values() if t.owner_id == owner_id]
        # dicts keep insertion order, so reversing gives newest first on ties
        return sorted(reversed(owned), key=lambda t: t.created_at, reverse=True)

    def update_trip_status(self, trip_id: str, status: str) -> None:
        _check_status(status)
        with self._lock:
            trip = self._trips.get(trip_id)
            if trip is None:
                raise NotFound(f"Trip {trip_id} not found")
            trip.status = status

    def delete_trip(self, trip_id: str) -> None:
        with self._lock:
            if self._trips.pop(trip_id, None) is None:
                raise NotFound(f"Trip {trip_id} not found")
            self._days = {k: d for k, d in self._days.items() if d.trip_id != trip_id}
            self._attempts = {k: a for k, a in self._attempts.items() if a.trip_id != trip_id}

    def insert_itinerary_day(self, day: DayPlan) -> str:
        with self._lock:
            if any(d.trip_id == day.trip_id and d.day == day.day for d in self._days.values()):
                raise ValueError(f"Day {day.day} already exists for trip {day.trip_id}")
            day_id = database.generate_id()
            self._days[day_id] = DayPlan(
                id=day_id,
                trip_id=day.trip_id,
                day=day.day,
                theme=day.theme,
                activities=list(day.activities),
                notes=day.notes,
            )
            return day_id

    def delete_itinerary_day(self, day_id: str) -> None:
        with self._lock:
            self._days.pop(day_id, None)

    def query_itinerary_days_by_trip(self, trip_id: str) -> list[DayPlan]:
        with self._lock:
            days = [d for d in self._days.values() if d.trip_id == trip_id]
        return sorted(days, key=lambda d: d.day)

    def start_attempt(self, trip_id: str) -> int:
        with self._lock:
            attempt_id = next(self._attempt_ids)
            self._attempts[attempt_id] = GenerationAttempt(
                id=attempt_id, trip_id=trip_id, started_at=_utcnow()
            )
            return attempt_id

    def finish_attempt(self, attempt_id, status, *, error=None, raw_response=None, days_saved=0):
        error_kind, error_message = _error_fields(error)
        with self._lock:
            attempt = self._attempts.get(attempt_id)
            if attempt is None:
                logger.warning("Generation attempt %s vanished before it finished", attempt_id)
                return
            attempt.status = status
            attempt.error_kind = error_kind
            attempt.error_message = error_message
            attempt.raw_response = raw_response
            attempt.days_saved = days_saved
            attempt.finished_at = _utcnow()

    def latest_attempt(self, trip_id: str) -> Optional[GenerationAttempt]:
        with self._lock:
            attempts = [a for a in self._attempts.values() if a.trip_id == trip_id]
        return replace(max(attempts, key=lambda a: a.id)) if attempts else None


def build_store(backend: str, database_url: str) -> TripStore:
    """Create the store selected by configuration."""
    if backend == "memory":
        return InMemoryTripStore()
    if backend == "sql":
        return SqlTripStore(database.init_db(database_url))
    raise ValueError(f"Unknown STORE_BACKEND: {backend!r}")
