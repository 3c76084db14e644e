"""
SQLAlchemy tables for trips, generated itineraries and destinations
"""
from datetime import datetime, timezone
import uuid

from sqlalchemy import (
    create_engine, Column, String, Integer, DateTime, Text, ForeignKey, JSON,
    UniqueConstraint, func,
)
from sqlalchemy.orm import declarative_base, sessionmaker, relationship
from sqlalchemy.pool import StaticPool

from mock_data import SEED_DESTINATIONS

Base = declarative_base()

def generate_id():
    return str(uuid.uuid4())[:8]

def _utcnow():
    return datetime.now(timezone.utc)

class Trip(Base):
    __tablename__ = "trips"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, index=True)
    title = Column(String)
    description = Column(Text, nullable=True)
    destination = Column(String)
    start_date = Column(String)  # YYYY-MM-DD
    end_date = Column(String)  # YYYY-MM-DD
    budget = Column(Integer, nullable=True)  # total trip budget
    travelers = Column(Integer, default=1)
    preferences = Column(JSON, default=list)  # ['Art', 'Food']
    status = Column(String, default='planning', index=True)  # planning, confirmed, completed
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    itinerary_days = relationship("ItineraryDay", back_populates="trip", cascade="all, delete-orphan")
    generation_attempts = relationship("GenerationAttempt", back_populates="trip", cascade="all, delete-orphan")

class ItineraryDay(Base):
    __tablename__ = "itinerary_days"
    __table_args__ = (UniqueConstraint("trip_id", "day", name="uq_itinerary_trip_day"),)

    id = Column(String, primary_key=True, default=generate_id)
    trip_id = Column(String, ForeignKey("trips.id"), index=True)
    day = Column(Integer)  # 1-based
    theme = Column(String, nullable=True)
    activities = Column(JSON, default=list)  # list of activity dicts
    notes = Column(Text, nullable=True)

    trip = relationship("Trip", back_populates="itinerary_days")

class GenerationAttempt(Base):
    __tablename__ = "generation_attempts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trip_id = Column(String, ForeignKey("trips.id"), index=True)
    status = Column(String, default='pending')  # pending, succeeded, failed
    error_kind = Column(String, nullable=True)
    error_message = Column(Text, nullable=True)
    raw_response = Column(Text, nullable=True)  # diagnostics only
    days_saved = Column(Integer, default=0)
    started_at = Column(DateTime(timezone=True), default=_utcnow)
    finished_at = Column(DateTime(timezone=True), nullable=True)

    trip = relationship("Trip", back_populates="generation_attempts")

class Destination(Base):
    __tablename__ = "destinations"

    id = Column(String, primary_key=True, default=generate_id)
    name = Column(String, index=True)
    country = Column(String, index=True)
    description = Column(Text)
    popular_attractions = Column(JSON, default=list)
    best_time_to_visit = Column(String)
    average_budget = Column(JSON, default=dict)  # {budget, mid_range, luxury} per day
    tags = Column(JSON, default=list)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "country": self.country,
            "description": self.description,
            "popular_attractions": self.popular_attractions,
            "best_time_to_visit": self.best_time_to_visit,
            "average_budget": self.average_budget,
            "tags": self.tags,
        }


def make_engine(url):
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # In-memory databases live in one connection shared by all threads
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)

def init_db(url):
    """Create the tables and return a session factory bound to ``url``."""
    engine = make_engine(url)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, expire_on_commit=False)

def seed_destinations(db):
    """Insert the sample destinations once. Returns a status message."""
    if db.query(Destination).first():
        return "Destinations already seeded"

    for dest in SEED_DESTINATIONS:
        db.add(Destination(**dest))
    db.commit()
    return "Destinations seeded successfully"

def search_destinations(db, query, limit=10):
    """Case-insensitive name match; queries shorter than two characters match nothing."""
    query = (query or "").strip()
    if len(query) < 2:
        return []

    return (
        db.query(Destination)
        .filter(func.lower(Destination.name).contains(query.lower()))
        .order_by(Destination.name)
        .limit(limit)
        .all()
    )
