"""Error taxonomy for itinerary generation.

Every error here is terminal for the invocation that raised it. The only
retry path is a fresh, user-initiated regeneration.
"""
from __future__ import annotations

from typing import Optional


class TripPlannerError(Exception):
    """Base class for all trip planner errors."""


class NotFound(TripPlannerError):
    """The trip does not exist (or vanished before generation ran)."""


class AccessDenied(TripPlannerError):
    """The requesting identity does not own the trip."""


class GenerationError(TripPlannerError):
    """Itinerary generation failed."""


class EmptyResponse(GenerationError):
    """The language model returned nothing usable."""


class ProviderError(GenerationError):
    """The language-model provider could not be reached or rejected the request."""


class MalformedResponse(GenerationError):
    """The model output failed structural parsing.

    ``raw_response`` keeps the unparsed model output for diagnostics; it is never
    shown to end users.
    """

    def __init__(self, message: str, raw_response: Optional[str] = None):
        super().__init__(message)
        self.raw_response = raw_response
