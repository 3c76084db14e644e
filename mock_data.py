"""
Mock data - sample destinations and a canned itinerary for offline development
"""

SEED_DESTINATIONS = [
    {
        "name": "Paris",
        "country": "France",
        "description": "The City of Light, famous for its art, fashion, gastronomy, and culture.",
        "popular_attractions": ["Eiffel Tower", "Louvre Museum", "Notre-Dame Cathedral", "Arc de Triomphe", "Champs-Élysées"],
        "best_time_to_visit": "April to June, September to October",
        "average_budget": {"budget": 100, "mid_range": 180, "luxury": 300},
        "tags": ["romantic", "culture", "art", "fashion", "cuisine"],
    },
    {
        "name": "Tokyo",
        "country": "Japan",
        "description": "A bustling metropolis blending traditional culture with cutting-edge technology.",
        "popular_attractions": ["Senso-ji Temple", "Tokyo Skytree", "Shibuya Crossing", "Meiji Shrine", "Tsukiji Fish Market"],
        "best_time_to_visit": "March to May, September to November",
        "average_budget": {"budget": 120, "mid_range": 220, "luxury": 400},
        "tags": ["technology", "culture", "food", "temples", "modern"],
    },
    {
        "name": "New York City",
        "country": "United States",
        "description": "The Big Apple, a global hub for finance, arts, fashion, and culture.",
        "popular_attractions": ["Statue of Liberty", "Central Park", "Times Square", "Empire State Building", "Brooklyn Bridge"],
        "best_time_to_visit": "April to June, September to November",
        "average_budget": {"budget": 150, "mid_range": 280, "luxury": 500},
        "tags": ["urban", "culture", "shopping", "broadway", "museums"],
    },
    {
        "name": "Bali",
        "country": "Indonesia",
        "description": "Tropical paradise known for its beaches, temples, and vibrant culture.",
        "popular_attractions": ["Tanah Lot Temple", "Ubud Rice Terraces", "Mount Batur", "Seminyak Beach", "Sacred Monkey Forest"],
        "best_time_to_visit": "April to October",
        "average_budget": {"budget": 50, "mid_range": 100, "luxury": 200},
        "tags": ["beach", "temples", "nature", "relaxation", "tropical"],
    },
    {
        "name": "Rome",
        "country": "Italy",
        "description": "The Eternal City, rich in history, art, and culinary traditions.",
        "popular_attractions": ["Colosseum", "Vatican City", "Trevi Fountain", "Roman Forum", "Pantheon"],
        "best_time_to_visit": "April to June, September to October",
        "average_budget": {"budget": 80, "mid_range": 150, "luxury": 250},
        "tags": ["history", "art", "cuisine", "ancient", "culture"],
    },
    {
        "name": "London",
        "country": "United Kingdom",
        "description": "A historic city blending royal heritage with modern innovation.",
        "popular_attractions": ["Big Ben", "Tower of London", "British Museum", "London Eye", "Buckingham Palace"],
        "best_time_to_visit": "May to September",
        "average_budget": {"budget": 120, "mid_range": 200, "luxury": 350},
        "tags": ["history", "royal", "museums", "culture", "parks"],
    },
]


def mock_day_activities(city: str) -> list[dict]:
    return [
        {"time": "08:30", "title": "Breakfast", "description": "Start the day at a local cafe",
         "location": f"{city} Cafe", "duration": "1 hour", "cost": 15, "category": "food",
         "tips": "Arrive early to get a table"},
        {"time": "10:00", "title": f"Explore {city}", "description": "Walk around the city center",
         "location": f"{city} City Center", "duration": "2.5 hours", "cost": 0, "category": "sightseeing"},
        {"time": "12:30", "title": "Lunch", "description": "Local restaurant",
         "location": f"{city} Restaurant District", "duration": "1 hour", "cost": 25, "category": "food"},
        {"time": "14:00", "title": f"{city} Main Attraction", "description": "Visit the top attraction",
         "location": f"{city} Main Attraction", "duration": "3 hours", "cost": 20, "category": "culture",
         "tips": "Book tickets online to skip the queue"},
        {"time": "18:00", "title": "Dinner", "description": "Evening meal",
         "location": f"{city} Dining Area", "duration": "1.5 hours", "cost": 35, "category": "food"},
    ]


def mock_itinerary(city: str, num_days: int) -> list[dict]:
    """A well-formed itinerary in the exact shape the model is asked to return."""
    themes = ["Arrival & City Center Exploration", "Culture & Cuisine", "Hidden Gems", "Day Trip & Nature"]
    return [
        {
            "day": day_number,
            "theme": themes[(day_number - 1) % len(themes)],
            "activities": mock_day_activities(city),
        }
        for day_number in range(1, num_days + 1)
    ]
