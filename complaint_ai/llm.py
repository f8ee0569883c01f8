"""
LLM client wrappers.

- Gemini (langchain-google-genai): structured analysis, direct answers, embeddings. Safety settings
  let harassment topics through, since every complaint discusses them.
- OpenAI-compatible chat: Groq (default, free tier), OpenAI, or Ollama (local). Used for the
  streaming assistant and the quick live-typing sentiment check.

request_json() is the shared call -> parse step for every structured operation; it never raises.
"""
import json
import logging
from typing import Any, Callable, Iterator, TypeVar
from pydantic import BaseModel, ValidationError
from openai import OpenAI
from langchain_google_genai import (
    ChatGoogleGenerativeAI,
    GoogleGenerativeAIEmbeddings,
    HarmBlockThreshold,
    HarmCategory,
)

from complaint_ai import config
from complaint_ai.outcome import Failed, FailureReason, Ok, Result

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

GROQ_BASE = "https://api.groq.com/openai/v1"
OLLAMA_BASE = "http://localhost:11434/v1"

SAFETY_SETTINGS = {
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
}


class NotConfiguredError(RuntimeError):
    """Raised when a provider is used without its credential."""


# --- OpenAI-compatible chat (Groq / OpenAI / Ollama) ---

def get_client() -> OpenAI:
    """Return OpenAI-compatible client based on LLM_PROVIDER in .env."""
    provider = config.llm_provider()
    opts = {"timeout": config.timeout_seconds(), "max_retries": config.max_retries()}

    if provider == "ollama":
        # Ollama has no auth; use a placeholder key. Ensure Ollama is running: ollama run llama3.2
        return OpenAI(api_key="ollama", base_url=OLLAMA_BASE, **opts)

    if provider == "openai":
        key = config.env("OPENAI_API_KEY")
        if not key or key.startswith("sk-REPLACE"):
            raise NotConfiguredError("OpenAI API key not set. Set OPENAI_API_KEY in .env.")
        return OpenAI(api_key=key, **opts)

    # default: groq
    key = config.env("GROQ_API_KEY")
    if not key or key.startswith("gsk_REPLACE"):
        raise NotConfiguredError(
            "Groq API key not set. Set GROQ_API_KEY in .env (free key at https://console.groq.com/), "
            "or use LLM_PROVIDER=openai / LLM_PROVIDER=ollama."
        )
    return OpenAI(api_key=key, base_url=GROQ_BASE, **opts)


def get_model(fast: bool = False) -> str:
    """Return chat model name from env or default for current provider."""
    provider = config.llm_provider()
    if provider == "ollama":
        return config.env("OLLAMA_MODEL", "llama3.2")
    if provider == "openai":
        return config.env("OPENAI_MODEL", "gpt-4o-mini")
    if fast:
        return config.env("GROQ_FAST_MODEL", "llama-3.1-8b-instant")
    return config.env("GROQ_MODEL", "llama-3.3-70b-versatile")


def complete(
    system: str | None,
    user: str,
    model: str | None = None,
    temperature: float = 0.7,
    max_tokens: int = 1024,
) -> str:
    """
    Single non-streaming chat completion. Returns the assistant message content.
    """
    client = get_client()
    messages = [{"role": "system", "content": system}] if system else []
    messages.append({"role": "user", "content": user})
    resp = client.chat.completions.create(
        model=model or get_model(),
        messages=messages,
        temperature=temperature,
        max_tokens=max_tokens,
    )
    return resp.choices[0].message.content or ""


def chat_stream(messages: list[dict[str, str]], model: str | None = None) -> Iterator[str]:
    """Stream a chat completion; yields non-empty content deltas."""
    client = get_client()
    stream = client.chat.completions.create(
        model=model or get_model(),
        messages=messages,
        temperature=0.7,
        max_tokens=1024,
        stream=True,
    )
    for chunk in stream:
        if not chunk.choices:
            continue
        token = chunk.choices[0].delta.content or ""
        if token:
            yield token


# --- Gemini ---

def get_gemini(temperature: float = 0.2) -> ChatGoogleGenerativeAI:
    key = config.gemini_api_key()
    if not key:
        raise NotConfiguredError("GEMINI_API_KEY not set")
    return ChatGoogleGenerativeAI(
        model=config.gemini_model(),
        google_api_key=key,
        temperature=temperature,
        safety_settings=SAFETY_SETTINGS,
        timeout=config.timeout_seconds(),
        max_retries=config.max_retries(),
    )


def _text_of(content: Any) -> str:
    """AIMessage.content is a str, or a list of parts for some models."""
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


def generate(prompt: str, temperature: float = 0.2) -> str:
    """One Gemini text generation. Raises on any failure (callers map it to a Failed)."""
    response = get_gemini(temperature).invoke(prompt)
    return _text_of(response.content)


def embed_text(text: str) -> list[float]:
    """Gemini embedding for retrieval. Returns [] when unconfigured or on error."""
    key = config.gemini_api_key()
    if not key:
        return []
    try:
        embedder = GoogleGenerativeAIEmbeddings(
            model=config.embedding_model(),
            google_api_key=key,
            request_options={"timeout": config.timeout_seconds()},
        )
        return list(embedder.embed_query(text))
    except Exception as e:
        logger.warning("Embedding failed: %s", e)
        return []


# --- Parsing ---

def extract_json_from_response(text: str) -> dict:
    """
    Try to find a JSON object in the response (between ```json ... ``` or raw).
    Returns the parsed dict or raises ValueError.
    """
    text = (text or "").strip()
    if "```json" in text:
        start = text.index("```json") + 7
        end = text.find("```", start)
        text = text[start:end if end != -1 else None].strip()
    elif "```" in text:
        start = text.index("```") + 3
        end = text.find("```", start)
        text = text[start:end if end != -1 else None].strip()
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def failure_for(exc: Exception) -> Failed:
    """Classify a provider exception."""
    if isinstance(exc, NotConfiguredError):
        return Failed(FailureReason.NOT_CONFIGURED, str(exc))
    name = type(exc).__name__.lower()
    if isinstance(exc, TimeoutError) or "timeout" in name or "deadline" in name:
        return Failed(FailureReason.TIMEOUT, str(exc))
    return Failed(FailureReason.PROVIDER_ERROR, f"{type(exc).__name__}: {exc}")


def request_json(prompt: str) -> Result[dict]:
    """Gemini call -> fenced/raw JSON object. Never raises."""
    if not config.gemini_api_key():
        return Failed(FailureReason.NOT_CONFIGURED, "GEMINI_API_KEY not set")
    try:
        raw = generate(prompt)
    except Exception as e:
        return failure_for(e)
    try:
        return Ok(extract_json_from_response(raw))
    except ValueError as e:  # json.JSONDecodeError is a ValueError
        return Failed(FailureReason.MALFORMED, str(e))


def request_model(
    prompt: str,
    model_cls: type[M],
    prepare: Callable[[dict], dict] | None = None,
) -> Result[M]:
    """request_json, then strict pydantic validation. prepare may rewrite fields before validating."""
    res = request_json(prompt)
    if isinstance(res, Failed):
        return res
    try:
        data = prepare(res.value) if prepare else res.value
        return Ok(model_cls.model_validate(data))
    except (ValidationError, ValueError, TypeError) as e:
        return Failed(FailureReason.INVALID, str(e))
