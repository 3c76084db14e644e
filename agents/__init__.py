"""Itinerary generation: prompt building, model calls and response parsing."""
