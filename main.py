"""FastAPI Backend - trips with AI-generated day-by-day itineraries"""
import logging
import threading
from contextlib import asynccontextmanager
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, model_validator

import config
import database
from agents.itinerary_agent import ItineraryGenerator
from agents.llm_client import build_llm_client
from errors import AccessDenied, NotFound
from store import SqlTripStore, TripStore, build_store
from TripInfo import TRIP_STATUSES, DayPlan, TripInfo
from worker import GenerationWorker

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

router = APIRouter()


# Pydantic models
class TripCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    destination: str = Field(min_length=1)
    start_date: date
    end_date: date
    budget: Optional[int] = Field(default=None, ge=1)  # total, currency-agnostic
    travelers: int = Field(default=1, ge=1)
    preferences: List[str] = []

    @model_validator(mode="after")
    def _end_not_before_start(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

class StatusUpdate(BaseModel):
    status: str

    @model_validator(mode="after")
    def _known_status(self):
        if self.status not in TRIP_STATUSES:
            raise ValueError(f"status must be one of {', '.join(TRIP_STATUSES)}")
        return self


# Dependencies
def get_store(request: Request) -> TripStore:
    return request.app.state.store

def get_generator(request: Request) -> ItineraryGenerator:
    return request.app.state.generator

def get_worker(request: Request) -> GenerationWorker:
    return request.app.state.worker

_session_factory_lock = threading.Lock()

def _session_factory(app: FastAPI):
    """The app's SQLAlchemy session factory, created on first use."""
    with _session_factory_lock:
        if app.state.session_factory is None:
            app.state.session_factory = database.init_db(app.state.database_url)
        return app.state.session_factory

def get_db_session(request: Request):
    db = _session_factory(request.app)()
    try:
        yield db
    finally:
        db.close()


# Helper functions
def _owned_trip(generator: ItineraryGenerator, trip_id: str, user_id: str) -> TripInfo:
    try:
        return generator.authorize(trip_id, user_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Trip not found")
    except AccessDenied:
        raise HTTPException(status_code=403, detail="Access denied")

def _trip_payload(trip: TripInfo) -> dict:
    data = trip.to_dict()
    data["duration_days"] = trip.duration_days()
    data["budget_per_day"] = trip.budget_per_day()
    return data

def _day_payload(day: DayPlan) -> dict:
    activities = []
    for activity in day.activities:
        item = activity.to_dict()
        item["icon"] = activity.icon
        activities.append(item)
    return {
        "id": day.id,
        "day": day.day,
        "theme": day.theme,
        "notes": day.notes,
        "activities": activities,
        "estimated_cost": sum(a.cost or 0 for a in day.activities),
    }


@router.get("/health")
def health_check(request: Request):
    return {
        "status": "healthy",
        "llm_model": getattr(request.app.state.generator.llm_client, "model", None),
        "store": type(request.app.state.store).__name__,
    }


# Trip endpoints
@router.get("/trips")
def get_trips(user_id: str, store: TripStore = Depends(get_store)):
    return [_trip_payload(t) for t in store.list_trips_by_owner(user_id)]

@router.post("/trips", status_code=status.HTTP_201_CREATED)
def create_trip(
    trip: TripCreate,
    user_id: str,
    store: TripStore = Depends(get_store),
    worker: GenerationWorker = Depends(get_worker),
):
    trip_id = store.create_trip(TripInfo(
        title=trip.title,
        description=trip.description,
        destination=trip.destination,
        start_date=trip.start_date,
        end_date=trip.end_date,
        budget=trip.budget,
        travelers=trip.travelers,
        preferences=[p for p in trip.preferences if p.strip()],
        owner_id=user_id,
        status="planning",
    ))
    task = worker.submit_generation(trip_id)

    return {
        **_trip_payload(store.get_trip(trip_id)),
        "task_id": task.id,
        "message": "Trip created! Your itinerary is being generated.",
    }

@router.get("/trips/{trip_id}")
def get_trip(
    trip_id: str,
    user_id: str,
    generator: ItineraryGenerator = Depends(get_generator),
):
    trip = _owned_trip(generator, trip_id, user_id)
    attempt = generator.store.latest_attempt(trip_id)
    return {
        **_trip_payload(trip),
        "generation": attempt.summary() if attempt else None,
    }

@router.put("/trips/{trip_id}/status")
def update_trip_status(
    trip_id: str,
    body: StatusUpdate,
    user_id: str,
    generator: ItineraryGenerator = Depends(get_generator),
):
    _owned_trip(generator, trip_id, user_id)
    generator.store.update_trip_status(trip_id, body.status)
    return {"id": trip_id, "status": body.status}

@router.delete("/trips/{trip_id}")
def delete_trip(
    trip_id: str,
    user_id: str,
    generator: ItineraryGenerator = Depends(get_generator),
):
    _owned_trip(generator, trip_id, user_id)
    generator.store.delete_trip(trip_id)
    return {"message": "Trip deleted successfully"}


# Itinerary endpoints
@router.get("/trips/{trip_id}/itinerary")
def get_itinerary(
    trip_id: str,
    user_id: str,
    generator: ItineraryGenerator = Depends(get_generator),
):
    trip = _owned_trip(generator, trip_id, user_id)
    days = generator.store.query_itinerary_days_by_trip(trip_id)
    return {
        "trip_id": trip_id,
        "destination": trip.destination,
        "days": [_day_payload(d) for d in days],
    }

@router.post("/trips/{trip_id}/regenerate-itinerary", status_code=status.HTTP_202_ACCEPTED)
def regenerate_itinerary(
    trip_id: str,
    user_id: str,
    generator: ItineraryGenerator = Depends(get_generator),
    worker: GenerationWorker = Depends(get_worker),
):
    """Discard the current itinerary and queue a fresh generation."""
    _owned_trip(generator, trip_id, user_id)
    task = worker.submit_regeneration(trip_id)
    return {"task_id": task.id, "status": task.status, "message": "Regenerating itinerary..."}

@router.get("/trips/{trip_id}/generation")
def get_generation_status(
    trip_id: str,
    user_id: str,
    generator: ItineraryGenerator = Depends(get_generator),
):
    _owned_trip(generator, trip_id, user_id)
    attempt = generator.store.latest_attempt(trip_id)
    if attempt is None:
        return {"trip_id": trip_id, "status": "not_started"}
    return attempt.summary()


# Task endpoints
def _owned_task(task_id: str, user_id: str, generator: ItineraryGenerator, worker: GenerationWorker):
    task = worker.get(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    _owned_trip(generator, task.trip_id, user_id)
    return task

@router.get("/tasks/{task_id}")
def get_task(
    task_id: str,
    user_id: str,
    generator: ItineraryGenerator = Depends(get_generator),
    worker: GenerationWorker = Depends(get_worker),
):
    return _owned_task(task_id, user_id, generator, worker).to_dict()

@router.delete("/tasks/{task_id}")
def cancel_task(
    task_id: str,
    user_id: str,
    generator: ItineraryGenerator = Depends(get_generator),
    worker: GenerationWorker = Depends(get_worker),
):
    task = _owned_task(task_id, user_id, generator, worker)
    if not worker.cancel(task_id):
        raise HTTPException(status_code=409, detail=f"Task is {task.status} and can no longer be cancelled")
    return task.to_dict()


# Destination endpoints
@router.post("/destinations/seed")
def seed_destinations(db=Depends(get_db_session)):
    return {"message": database.seed_destinations(db)}

@router.get("/destinations/search")
def search_destinations(q: str = Query("", description="Destination name fragment"), db=Depends(get_db_session)):
    return [d.to_dict() for d in database.search_destinations(db, q)]


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    app.state.worker.shutdown(wait=False)

def create_app(store: Optional[TripStore] = None, llm_client=None, database_url: Optional[str] = None) -> FastAPI:
    """Wire store, LLM client, generator and worker into a FastAPI app."""
    database_url = database_url or config.DATABASE_URL
    # Only the SQL store needs the database up front; destinations open it lazily
    session_factory = None
    if store is None:
        if config.STORE_BACKEND == "sql":
            session_factory = database.init_db(database_url)
            store = SqlTripStore(session_factory)
        else:
            store = build_store(config.STORE_BACKEND, database_url)
    if llm_client is None:
        llm_client = build_llm_client(config.LLM_PROVIDER, config.LLM_MODEL)

    generator = ItineraryGenerator(
        store, llm_client,
        temperature=config.LLM_TEMPERATURE,
        max_tokens=config.LLM_MAX_TOKENS,
    )

    app = FastAPI(
        title="AI Trip Planner API",
        description="Trips with AI-generated day-by-day itineraries",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.database_url = database_url
    app.state.session_factory = session_factory
    app.state.store = store
    app.state.generator = generator
    app.state.worker = GenerationWorker(generator, max_workers=config.GENERATION_WORKERS)
    app.include_router(router)

    logger.info("Trip planner ready (store=%s, model=%s)",
                type(store).__name__, getattr(llm_client, "model", None))
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
