"""
Central configuration for the trip planner.
All values come from environment variables (a local .env is loaded first).
"""
import os

from dotenv import load_dotenv

# Won't override vars already set in the shell
load_dotenv()

# ── LLM ──────────────────────────────────────────────────────────────────────
# "openai" | "anthropic" | "gemini" | "mock" (offline canned itinerary)
LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "openai").lower().strip()
LLM_MODEL: str = os.getenv("LLM_MODEL", "")
LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.7"))
LLM_MAX_TOKENS: int = int(os.getenv("LLM_MAX_TOKENS", "4000"))

# ── Storage ──────────────────────────────────────────────────────────────────
# "sql" | "memory"
STORE_BACKEND: str = os.getenv("STORE_BACKEND", "sql").lower().strip()
DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./trip_planner.db")

# ── Background generation ────────────────────────────────────────────────────
GENERATION_WORKERS: int = int(os.getenv("GENERATION_WORKERS", "4"))

# ── HTTP / logging ───────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS: list[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
