"""
Unit tests for agents/prompt_builder.py
"""
from dataclasses import replace
from datetime import date

import pytest

from agents import prompt_builder as pb
from TripInfo import ACTIVITY_CATEGORIES


class TestBudgetClause:
    def test_total_and_per_day_average(self, paris_trip):
        assert pb.budget_clause(paris_trip) == "Budget: $900 total (approximately $300 per day)"

    def test_flexible_without_budget(self, paris_trip):
        clause = pb.budget_clause(replace(paris_trip, budget=None))
        assert clause == "Budget: Flexible (provide options for different price ranges)"

    @pytest.mark.parametrize("budget, end_day, expected", [
        (7, 2, 4),       # 3.5 rounds up, not to even
        (5, 2, 3),       # 2.5 rounds up
        (1000, 3, 333),
        (1001, 2, 501),  # 500.5
        (100, 1, 100),
    ])
    def test_per_day_rounds_half_up(self, paris_trip, budget, end_day, expected):
        trip = replace(paris_trip, budget=budget, start_date=date(2025, 6, 1), end_date=date(2025, 6, end_day))
        assert trip.budget_per_day() == expected
        assert f"approximately ${expected} per day" in pb.budget_clause(trip)


class TestPreferencesClause:
    def test_lists_preferences_and_asks_to_prioritise(self, paris_trip):
        clause = pb.preferences_clause(paris_trip)
        assert clause.startswith("Travel preferences: Art, Food.")
        assert "prioritize" in clause

    def test_well_rounded_default_without_preferences(self, paris_trip):
        clause = pb.preferences_clause(replace(paris_trip, preferences=[]))
        assert "well-rounded" in clause
        assert "Travel preferences" not in clause

    def test_blank_tags_count_as_no_preferences(self, paris_trip):
        clause = pb.preferences_clause(replace(paris_trip, preferences=["", "  "]))
        assert "well-rounded" in clause


class TestBuildPrompt:
    def test_paris_scenario(self, paris_trip):
        prompt = pb.build_prompt(paris_trip)
        assert "realistic 3-day travel itinerary for Paris" in prompt
        assert "- Duration: 3 days (2025-06-01 to 2025-06-03)" in prompt
        assert "- Number of travelers: 2" in prompt
        assert "$300 per day" in prompt
        assert "Travel preferences: Art, Food" in prompt

    def test_is_deterministic(self, paris_trip):
        assert pb.build_prompt(paris_trip) == pb.build_prompt(paris_trip)

    def test_describes_output_format(self, paris_trip):
        prompt = pb.build_prompt(paris_trip)
        assert "4-8 activities" in prompt
        for key in ('"day"', '"theme"', '"activities"', '"time"', '"title"',
                    '"description"', '"location"', '"duration"', '"cost"',
                    '"category"', '"tips"'):
            assert key in prompt
        assert "Categories to use: " + ", ".join(ACTIVITY_CATEGORIES) in prompt

    def test_no_preferences_never_renders_empty_list(self, paris_trip):
        prompt = pb.build_prompt(replace(paris_trip, preferences=[]))
        assert "well-rounded experience" in prompt
        assert "Travel preferences: ." not in prompt

    def test_description_and_missing_description(self, paris_trip):
        assert "Additional notes: None" in pb.build_prompt(paris_trip)
        prompt = pb.build_prompt(replace(paris_trip, description="Anniversary trip"))
        assert "Additional notes: Anniversary trip" in prompt

    def test_same_day_trip_is_one_day(self, paris_trip):
        trip = replace(paris_trip, end_date=paris_trip.start_date)
        assert "realistic 1-day travel itinerary" in pb.build_prompt(trip)
        assert "$900 per day" in pb.build_prompt(trip)
