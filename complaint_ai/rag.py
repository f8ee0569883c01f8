"""
Policy assistant: retrieval-augmented answers about the POSH Act and the complaint process.

    RETRIEVE -> (hit | miss -> FALLBACK_CONTEXT) -> GENERATE -> (success | FINAL_FALLBACK)

Retrieval embeds the question and searches the org's vector store (top 4 above 0.75 similarity).
A miss of any kind (no store, no embedding, store error, nothing close enough) uses the fixed
corpus instead. Generation streams from the chat model; if that fails, one direct Gemini call is
made with the first two corpus blocks, and if that fails too the user gets a fixed apology.
No retries beyond that chain; answer() and stream_answer() never raise.
"""
import logging
from pathlib import Path
from typing import Any, Iterator

from pydantic import ValidationError

from complaint_ai import config, llm
from complaint_ai.audit import log_event, log_outcome
from complaint_ai.knowledge import FALLBACK_CORPUS, PgVectorStore, VectorStore, select_fallback_context
from complaint_ai.outcome import Failed, FailureReason, Ok, Result
from complaint_ai.schemas import ChatMessage

logger = logging.getLogger(__name__)

APOLOGY = "I'm sorry, I couldn't process your question. Please try again or contact your HR directly."
HISTORY_LIMIT = 10
DIRECT_CONTEXT_BLOCKS = 2
CONTEXT_SEPARATOR = "\n\n---\n\n"

SYSTEM_PROMPT = """You are a compassionate, knowledgeable POSH Act 2013 (India) assistant helping employees understand their rights, the complaints process, and workplace safety.

Relevant POSH Act context:
{context}

Guidelines:
- Be empathetic, warm, and non-judgmental. The person talking to you may be distressed.
- Answer ONLY based on the context provided. Don't make up laws or procedures.
- Keep answers concise (2-4 sentences unless more detail is clearly needed).
- If asked about filing a complaint, guide them to the complaint wizard in this app.
- If someone seems in distress or danger, remind them of the panic button.
- Never reveal case details or other users' information.
- If the context does not contain the answer, honestly say "I'm not sure, please contact your HR or ICC directly."
- Use simple, clear language. Avoid legal jargon."""

DIRECT_PROMPT = """You are a POSH Act 2013 (India) expert assistant helping an employee understand their rights and the complaints process. Answer based ONLY on the provided context. If the answer isn't in the context, say so honestly. Be empathetic, clear, and concise.

Context from POSH Act 2013:
{context}

Employee question: "{question}"

Answer in 2-4 sentences. Use simple language."""


def retrieve_context(
    question: str,
    org_id: str | None,
    store: VectorStore | None = None,
    top_k: int | None = None,
    threshold: float | None = None,
) -> list[str]:
    """Org-scoped vector search. [] on any miss; never raises."""
    store = store if store is not None else PgVectorStore.from_env()
    if store is None:
        return []
    top_k = top_k or config.rag_match_count()
    threshold = config.rag_match_threshold() if threshold is None else threshold

    embedding = llm.embed_text(question)
    if not embedding:
        return []
    try:
        chunks = store.search(embedding, org_id, top_k, threshold)
    except Exception as e:
        logger.warning("Vector search failed, using fallback corpus: %s", e)
        return []

    chunks = [c for c in chunks if c.content.strip() and (c.similarity is None or c.similarity > threshold)]
    chunks.sort(key=lambda c: c.similarity or 0.0, reverse=True)
    return [c.content for c in chunks[:top_k]]


def build_system_prompt(chunks: list[str]) -> str:
    return SYSTEM_PROMPT.format(context=CONTEXT_SEPARATOR.join(chunks))


def _history(history: list[Any] | None) -> list[ChatMessage]:
    """Last HISTORY_LIMIT user/assistant turns; malformed entries are dropped."""
    kept = []
    for item in history or []:
        try:
            msg = item if isinstance(item, ChatMessage) else ChatMessage.model_validate(item)
        except ValidationError:
            continue
        if msg.role != "system":
            kept.append(msg)
    return kept[-HISTORY_LIMIT:]


def build_messages(question: str, chunks: list[str], history: list[Any] | None = None) -> list[dict[str, str]]:
    messages = [{"role": "system", "content": build_system_prompt(chunks)}]
    messages.extend(m.model_dump() for m in _history(history))
    messages.append({"role": "user", "content": question})
    return messages


def _context_for(question: str, org_id: str | None, store: VectorStore | None,
                 audit_path: Path | None, run_id: str) -> list[str]:
    chunks = retrieve_context(question, org_id, store)
    if chunks:
        log_event(audit_path, run_id, "answer_context", {"source": "retrieval", "chunks": len(chunks)})
        return chunks
    chunks = select_fallback_context(question)
    log_event(audit_path, run_id, "answer_context", {"source": "fallback_corpus", "chunks": len(chunks)})
    return chunks


def direct_answer(question: str, chunks: list[str]) -> Result[str]:
    """One non-streaming Gemini answer over the given context."""
    prompt = DIRECT_PROMPT.format(context=CONTEXT_SEPARATOR.join(chunks), question=question)
    try:
        text = llm.generate(prompt, temperature=0.5).strip()
    except Exception as e:
        return llm.failure_for(e)
    return Ok(text) if text else Failed(FailureReason.MALFORMED, "empty answer")


def _final_fallback(question: str, audit_path: Path | None, run_id: str) -> str:
    result = direct_answer(question, list(FALLBACK_CORPUS[:DIRECT_CONTEXT_BLOCKS]))
    if isinstance(result, Ok):
        log_event(audit_path, run_id, "answer_direct", {}, model_name=config.gemini_model())
        return result.value
    if result.reason is not FailureReason.NOT_CONFIGURED:
        logger.error("Direct answer failed (%s): %s", result.reason.value, result.detail)
    log_outcome(audit_path, run_id, "answer", result, {"stage": "direct"})
    return APOLOGY


def _log_generation_failure(failure: Failed, audit_path: Path | None, run_id: str) -> None:
    if failure.reason is not FailureReason.NOT_CONFIGURED:
        logger.warning("Chat generation failed (%s), trying direct answer: %s", failure.reason.value, failure.detail)
    log_outcome(audit_path, run_id, "answer", failure, {"stage": "stream"})


def answer(
    question: str,
    org_id: str | None,
    history: list[Any] | None = None,
    store: VectorStore | None = None,
    audit_path: Path | None = None,
    run_id: str = "",
) -> str:
    """Full answer text. Never raises; worst case is APOLOGY."""
    chunks = _context_for(question, org_id, store, audit_path, run_id)
    try:
        text = "".join(llm.chat_stream(build_messages(question, chunks, history))).strip()
    except Exception as e:
        _log_generation_failure(llm.failure_for(e), audit_path, run_id)
    else:
        if text:
            log_outcome(audit_path, run_id, "answer", None, {"stage": "stream"}, model_name=llm.get_model())
            return text
        _log_generation_failure(Failed(FailureReason.MALFORMED, "empty answer"), audit_path, run_id)
    return _final_fallback(question, audit_path, run_id)


def stream_answer(
    question: str,
    org_id: str | None,
    history: list[Any] | None = None,
    store: VectorStore | None = None,
    audit_path: Path | None = None,
    run_id: str = "",
) -> Iterator[str]:
    """
    Yield the answer as it is generated. If the stream fails before producing anything, the
    fallback answer is yielded as a single chunk; if it fails part-way, what was sent stands.
    """
    chunks = _context_for(question, org_id, store, audit_path, run_id)
    emitted = False
    try:
        for token in llm.chat_stream(build_messages(question, chunks, history)):
            emitted = True
            yield token
    except Exception as e:
        failure = llm.failure_for(e)
        if emitted:
            logger.warning("Chat stream broke off (%s): %s", failure.reason.value, failure.detail)
            log_outcome(audit_path, run_id, "answer", failure, {"stage": "stream", "partial": True})
            return
        _log_generation_failure(failure, audit_path, run_id)
    else:
        if emitted:
            log_outcome(audit_path, run_id, "answer", None, {"stage": "stream"}, model_name=llm.get_model())
            return
        _log_generation_failure(Failed(FailureReason.MALFORMED, "empty answer"), audit_path, run_id)
    yield _final_fallback(question, audit_path, run_id)
