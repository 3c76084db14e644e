"""
Itinerary generator: one model call per trip, parsed and stored day by day.

  1. Load the trip                      → NotFound if it vanished
  2. Build the prompt                   → prompt_builder.build_prompt
  3. One LLM round-trip                 → EmptyResponse / ProviderError
  4. Parse + check days 1..D            → MalformedResponse
  5. Insert each day on its own         → store errors propagate as-is

Nothing is retried here. A failed generation leaves the trip with whatever
days were written before the failure; the user recovers by regenerating,
which clears every day first. Each invocation is recorded as a
GenerationAttempt so callers can tell "still running" from "failed".
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from errors import EmptyResponse, MalformedResponse, NotFound
from store import TripStore
from TripInfo import DayPlan, TripInfo

from .itinerary_parser import parse_itinerary
from .prompt_builder import build_prompt

logger = logging.getLogger(__name__)


class ItineraryGenerator:
    def __init__(
        self,
        store: TripStore,
        llm_client,
        temperature: float = 0.7,
        max_tokens: int = 4000,
    ):
        self.store = store
        self.llm_client = llm_client
        self.temperature = temperature
        self.max_tokens = max_tokens

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    def authorize(self, trip_id: str, user_id: str) -> TripInfo:
        """Ownership check for user-facing entry points."""
        return self.store.get_owned_trip(trip_id, user_id)

    def generate(self, trip_id: str) -> list[DayPlan]:
        """Generate and store the itinerary for ``trip_id``. Returns the stored days."""
        trip = self.store.get_trip(trip_id)
        if trip is None:
            logger.error("Itinerary generation aborted: trip %s not found", trip_id)
            raise NotFound(f"Trip {trip_id} not found")

        attempt_id = self.store.start_attempt(trip_id)
        saved: list[DayPlan] = []
        try:
            days = self._request_days(trip)
            for day in sorted(days, key=lambda d: d.day):
                stored = replace(day, trip_id=trip_id)
                stored.id = self.store.insert_itinerary_day(stored)
                saved.append(stored)
        except MalformedResponse as exc:
            self.store.finish_attempt(attempt_id, "failed", error=exc,
                                      raw_response=exc.raw_response, days_saved=len(saved))
            raise
        except Exception as exc:
            if saved:
                logger.error("Itinerary for trip %s left partial: %d day(s) saved before %s",
                             trip_id, len(saved), exc)
            self.store.finish_attempt(attempt_id, "failed", error=exc, days_saved=len(saved))
            raise

        self.store.finish_attempt(attempt_id, "succeeded", days_saved=len(saved))
        logger.info("Generated %d-day itinerary for trip %s", len(saved), trip_id)
        return saved

    def clear_itinerary(self, trip_id: str) -> int:
        """Delete every itinerary day of ``trip_id``. Returns how many were removed."""
        existing = self.store.query_itinerary_days_by_trip(trip_id)
        for day in existing:
            self.store.delete_itinerary_day(day.id)
        return len(existing)

    def regenerate(self, trip_id: str) -> list[DayPlan]:
        """Discard the current itinerary, then generate a new one.

        The trip is observably itinerary-less between the two steps, and stays
        that way if generation fails.
        """
        removed = self.clear_itinerary(trip_id)
        logger.info("Cleared %d itinerary day(s) of trip %s before regenerating", removed, trip_id)
        return self.generate(trip_id)

    # -----------------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------------

    def _request_days(self, trip: TripInfo) -> list[DayPlan]:
        prompt = build_prompt(trip)
        content: Optional[str] = self.llm_client.complete(
            prompt, temperature=self.temperature, max_tokens=self.max_tokens,
        )
        if not content or not content.strip():
            logger.error("Empty LLM response for trip %s", trip.id)
            raise EmptyResponse("No response from AI")

        try:
            days = parse_itinerary(content)
            _check_day_range(days, trip.duration_days(), content)
        except MalformedResponse as exc:
            logger.error("Failed to parse AI response for trip %s: %s", trip.id, exc)
            logger.error("AI response:\n%s", content)
            raise
        return days


def _check_day_range(days: list[DayPlan], expected: int, raw: str) -> None:
    indices = sorted(d.day for d in days)
    if indices != list(range(1, expected + 1)):
        raise MalformedResponse(
            f"Expected days 1..{expected}, got {indices}", raw_response=raw,
        )
