import pytest

PROVIDER_ENV = (
    "GEMINI_API_KEY",
    "GROQ_API_KEY",
    "OPENAI_API_KEY",
    "LLM_PROVIDER",
    "SUPABASE_DB_URL",
    "RAG_MATCH_COUNT",
    "RAG_MATCH_THRESHOLD",
)


@pytest.fixture(autouse=True)
def no_provider_credentials(monkeypatch):
    """Tests never talk to a real provider; each test opts in to the fakes it needs."""
    for name in PROVIDER_ENV:
        monkeypatch.delenv(name, raising=False)
