"""
Settings read from the environment (.env at the project root is loaded on import).

Values are looked up at call time so a changed env (or a test's monkeypatch) takes effect
without re-importing anything.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root (parent of complaint_ai/) so it works when run as python -m complaint_ai.run
_project_root = Path(__file__).resolve().parent.parent
load_dotenv(_project_root / ".env")

PROMPT_VERSION = os.getenv("PROMPT_VERSION", "complaint-analysis-001")

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_EMBEDDING_MODEL = "models/text-embedding-004"


def env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def env_float(name: str, default: float) -> float:
    try:
        return float(env(name) or default)
    except ValueError:
        return default


def env_int(name: str, default: int) -> int:
    try:
        return int(env(name) or default)
    except ValueError:
        return default


def gemini_api_key() -> str | None:
    """Gemini key, or None when unset or still the .env.example placeholder."""
    key = env("GEMINI_API_KEY")
    if not key or key.startswith("REPLACE"):
        return None
    return key


def gemini_model() -> str:
    return env("GEMINI_MODEL", DEFAULT_GEMINI_MODEL)


def embedding_model() -> str:
    return env("GEMINI_EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL)


def llm_provider() -> str:
    """Chat provider for the assistant: groq (default), openai, or ollama."""
    return env("LLM_PROVIDER", "groq").lower()


def timeout_seconds() -> float:
    return env_float("LLM_TIMEOUT_SECONDS", 20.0)


def max_retries() -> int:
    return env_int("LLM_MAX_RETRIES", 1)


def supabase_db_url() -> str | None:
    return env("SUPABASE_DB_URL") or None


def rag_match_count() -> int:
    return env_int("RAG_MATCH_COUNT", 4)


def rag_match_threshold() -> float:
    return env_float("RAG_MATCH_THRESHOLD", 0.75)
