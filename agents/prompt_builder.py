"""
Itinerary prompt builder.

Renders one deterministic instruction string from a trip. The text fully
describes the JSON shape the parser in ``itinerary_parser`` expects back.
"""

from __future__ import annotations

from TripInfo import ACTIVITY_CATEGORIES, TripInfo


def budget_clause(trip: TripInfo) -> str:
    per_day = trip.budget_per_day()
    if per_day is None:
        return "Budget: Flexible (provide options for different price ranges)"
    return f"Budget: ${trip.budget} total (approximately ${per_day} per day)"


def preferences_clause(trip: TripInfo) -> str:
    prefs = [p.strip() for p in trip.preferences or [] if p and p.strip()]
    if not prefs:
        return "No specific preferences mentioned - provide a well-rounded experience."
    return (
        f"Travel preferences: {', '.join(prefs)}. "
        "Please prioritize activities that align with these interests."
    )


def build_prompt(trip: TripInfo) -> str:
    """Return the full itinerary-generation prompt for ``trip``."""
    days = trip.duration_days()
    categories = ", ".join(ACTIVITY_CATEGORIES)

    return f"""You are an expert travel planner. Create a detailed, realistic {days}-day travel itinerary for {trip.destination}.

TRIP DETAILS:
- Destination: {trip.destination}
- Duration: {days} days ({trip.start_date.isoformat()} to {trip.end_date.isoformat()})
- Number of travelers: {trip.travelers}
- {budget_clause(trip)}
- {preferences_clause(trip)}
- Additional notes: {trip.description or "None"}

REQUIREMENTS:
1. Create a practical day-by-day schedule with realistic timing
2. Include a mix of must-see attractions, local experiences, and downtime
3. Consider travel time between locations
4. Provide specific locations with addresses when possible
5. Include meal recommendations that fit the budget and preferences
6. Add cultural insights and local tips
7. Balance popular attractions with hidden gems
8. Consider the group size for activity recommendations

For each day, provide 4-8 activities with:
- Realistic time slots (consider opening hours, travel time, meal times)
- Detailed descriptions that explain WHY this activity is recommended
- Specific locations with neighborhood/district information
- Estimated duration and costs
- Practical tips (booking requirements, best times to visit, etc.)

RESPONSE FORMAT:
Return a JSON array with exactly {days} elements, one per day, numbered from 1:

[
  {{
    "day": 1,
    "theme": "Arrival & City Center Exploration",
    "activities": [
      {{
        "time": "10:00",
        "title": "Activity Name",
        "description": "Detailed description explaining what to expect, why it's special, and practical tips",
        "location": "Specific address or landmark, District/Neighborhood",
        "duration": "2 hours",
        "cost": 25,
        "category": "sightseeing",
        "tips": "Practical advice like 'book in advance' or 'best photo spots'"
      }}
    ]
  }}
]

Categories to use: {categories}

Make this itinerary memorable, practical, and perfectly tailored to the traveler's needs!"""
