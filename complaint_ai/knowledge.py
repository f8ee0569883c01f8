"""
Knowledge base for the policy assistant.

- FALLBACK_CORPUS: fixed POSH Act 2013 summaries used when vector retrieval returns nothing.
- VectorStore: search/add protocol; PgVectorStore (Supabase Postgres + pgvector) and
  InMemoryVectorStore (cosine similarity, for local runs and tests).
- split_into_paragraphs / ingest_document: chunk a policy document and store its embeddings.
"""
import logging
import math
import re
from contextlib import closing
from typing import Protocol

import psycopg2

from complaint_ai import config, llm
from complaint_ai.schemas import KnowledgeChunk

logger = logging.getLogger(__name__)

FALLBACK_CORPUS: tuple[str, ...] = (
    "Under Section 2(n) of the POSH Act 2013, sexual harassment includes: unwelcome physically, verbally or non-verbally conduct of a sexual nature. This includes physical contact and advances, a demand or request for sexual favours, making sexually coloured remarks, showing pornography, and any other unwelcome physical, verbal or non-verbal conduct of sexual nature.",
    "Under Section 4 of POSH Act 2013, every employer shall constitute an Internal Complaints Committee (ICC). The ICC shall consist of: a Presiding Officer (woman employed at senior level), not less than two Members from amongst employees (preferably committed to women's welfare), and one external member from an NGO or association committed to causes of women.",
    "Under Section 9 of POSH Act 2013, an aggrieved woman has to make a written complaint to the ICC within 3 months of the incident, or 3 months from the last incident in case of a series of incidents. The ICC may extend this time limit up to an additional 3 months if satisfied with the circumstances.",
    "Section 11 of POSH Act 2013: The ICC shall complete the inquiry within 90 days. Section 13: On completion of inquiry, the ICC shall provide a report to the employer within 10 days. The employer must act on the recommendations within 60 days.",
    "Section 16 of the POSH Act 2013 mandates strict confidentiality. The ICC, employer, and district officer shall not publish the contents of any complaint made under the Act. Breach of confidentiality is punishable under Section 17.",
    "Anonymous complaints: While the POSH Act doesn't explicitly provide for anonymous complaints, an aggrieved woman may choose not to disclose her identity under Section 6 (Local Complaints Committee). Organizations may create policies to accept anonymous complaints as an additional safeguard.",
    "Under Section 19 of POSH Act 2013, employers are required to: Provide a safe working environment, display penal consequences of sexual harassment, organize workshops and awareness programs, provide necessary facilities to the ICC, and include in the annual report the number of cases filed and resolved.",
)

MIN_OVERLAP_WORD_CHARS = 5  # words must be longer than 4 characters to count
MIN_FALLBACK_BLOCKS = 2
MAX_FALLBACK_BLOCKS = 3

_WORD = re.compile(r"[a-z0-9']+")


def select_fallback_context(question: str, corpus: tuple[str, ...] = FALLBACK_CORPUS) -> list[str]:
    """
    Blocks sharing at least one word (longer than 4 chars) with the question, in corpus order, at
    most 3. Fewer than 2 hits -> the first 3 blocks.
    """
    words = {w for w in _WORD.findall((question or "").lower()) if len(w) >= MIN_OVERLAP_WORD_CHARS}
    hits = [block for block in corpus if any(w in block.lower() for w in words)]
    if len(hits) < MIN_FALLBACK_BLOCKS:
        return list(corpus[:MAX_FALLBACK_BLOCKS])
    return hits[:MAX_FALLBACK_BLOCKS]


class VectorStore(Protocol):
    def search(self, embedding: list[float], org_id: str | None, top_k: int, threshold: float) -> list[KnowledgeChunk]:
        ...

    def add(self, chunk: KnowledgeChunk, org_id: str | None) -> None:
        ...


def _vector_literal(values: list[float]) -> str:
    return "[" + ",".join(f"{v:.8f}" for v in values) + "]"


class PgVectorStore:
    """
    pgvector search on Supabase Postgres.

    Table: policy_embeddings(org_id text null, content text, embedding vector). Rows with a null
    org_id (the statute itself) are visible to every organization.
    """

    SEARCH_SQL = """
        SELECT content, 1 - (embedding <=> %(q)s::vector) AS similarity
        FROM policy_embeddings
        WHERE (org_id = %(org)s OR org_id IS NULL)
          AND 1 - (embedding <=> %(q)s::vector) > %(threshold)s
        ORDER BY embedding <=> %(q)s::vector
        LIMIT %(k)s
    """
    INSERT_SQL = "INSERT INTO policy_embeddings (org_id, content, embedding) VALUES (%s, %s, %s::vector)"

    def __init__(self, db_url: str, connect_timeout: int = 5, statement_timeout_ms: int | None = None):
        self.db_url = db_url
        self.connect_timeout = connect_timeout
        self.statement_timeout_ms = statement_timeout_ms or int(config.timeout_seconds() * 1000)

    @classmethod
    def from_env(cls) -> "PgVectorStore | None":
        url = config.supabase_db_url()
        return cls(url) if url else None

    def _connect(self):
        return psycopg2.connect(
            self.db_url,
            connect_timeout=self.connect_timeout,
            options=f"-c statement_timeout={self.statement_timeout_ms}",
        )

    def search(self, embedding: list[float], org_id: str | None, top_k: int, threshold: float) -> list[KnowledgeChunk]:
        params = {"q": _vector_literal(embedding), "org": org_id, "threshold": threshold, "k": top_k}
        with closing(self._connect()) as conn, conn.cursor() as cur:
            cur.execute(self.SEARCH_SQL, params)
            rows = cur.fetchall()
        return [KnowledgeChunk(content=content, similarity=float(sim)) for content, sim in rows]

    def add(self, chunk: KnowledgeChunk, org_id: str | None) -> None:
        if not chunk.embedding:
            raise ValueError("chunk has no embedding")
        with closing(self._connect()) as conn:
            with conn, conn.cursor() as cur:
                cur.execute(self.INSERT_SQL, (org_id, chunk.content, _vector_literal(chunk.embedding)))
        logger.info("Stored policy chunk (%d chars) for org %s", len(chunk.content), org_id)


def cosine_similarity(a: list[float], b: list[float]) -> float:
    if len(a) != len(b) or not a:
        return 0.0
    dot = math.fsum(x * y for x, y in zip(a, b))
    norm = math.sqrt(math.fsum(x * x for x in a)) * math.sqrt(math.fsum(y * y for y in b))
    return dot / norm if norm else 0.0


class InMemoryVectorStore:
    """Process-local store with the same org scoping as PgVectorStore."""

    def __init__(self) -> None:
        self._rows: list[tuple[str | None, KnowledgeChunk]] = []

    def __len__(self) -> int:
        return len(self._rows)

    def add(self, chunk: KnowledgeChunk, org_id: str | None) -> None:
        if not chunk.embedding:
            raise ValueError("chunk has no embedding")
        self._rows.append((org_id, chunk))

    def search(self, embedding: list[float], org_id: str | None, top_k: int, threshold: float) -> list[KnowledgeChunk]:
        scored = []
        for row_org, chunk in self._rows:
            if row_org is not None and row_org != org_id:
                continue
            sim = cosine_similarity(embedding, chunk.embedding or [])
            if sim > threshold:
                scored.append(KnowledgeChunk(content=chunk.content, similarity=sim))
        scored.sort(key=lambda c: c.similarity, reverse=True)
        return scored[:top_k]


def split_into_paragraphs(text: str, max_chars: int = 500) -> list[str]:
    """Pack blank-line-separated paragraphs into chunks of up to max_chars (a longer paragraph stays whole)."""
    paragraphs = [p.strip() for p in re.split(r"\n\s*\n", text or "") if p.strip()]
    chunks: list[str] = []
    current = ""
    for paragraph in paragraphs:
        candidate = f"{current}\n\n{paragraph}" if current else paragraph
        if len(candidate) > max_chars and current:
            chunks.append(current)
            current = paragraph
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks


def ingest_document(text: str, org_id: str | None, store: VectorStore, max_chars: int = 500) -> int:
    """Chunk, embed and store a policy document. Returns how many chunks were stored."""
    stored = 0
    for piece in split_into_paragraphs(text, max_chars):
        embedding = llm.embed_text(piece)
        if not embedding:
            logger.warning("Skipping chunk without embedding (%d chars)", len(piece))
            continue
        store.add(KnowledgeChunk(content=piece, embedding=embedding), org_id)
        stored += 1
    return stored
