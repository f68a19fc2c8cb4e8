"""
Retrieval: semantic search over the policy/FAQ knowledge base.

Responsibility: Query Milvus, drop duplicate chunks, and return a context string plus
citations (source#chunk=N) for the agent.
"""

import logging
import time
from dataclasses import dataclass, field

from agentdesk.core.config import COLLECTION_NAME, RETRIEVAL_TOP_K
from agentdesk.services.vector_store import embed_texts, get_milvus_client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetrievalResult:
    """Context for the answer prompt and citations in selection order. Empty context means nothing relevant."""

    context: str = ""
    citations: tuple[str, ...] = field(default_factory=tuple)


def build_result(hits: list[dict]) -> RetrievalResult:
    """
    Turn search hits ({text, source, chunk_id}) into a RetrievalResult.
    Chunks with identical text are kept once, at their first position.
    """
    seen: set[str] = set()
    blocks: list[str] = []
    citations: list[str] = []
    for h in hits:
        text = (h.get("text") or "").strip()
        if not text or text in seen:
            continue
        seen.add(text)
        source = h.get("source") or "unknown"
        chunk_id = h.get("chunk_id", "?")
        blocks.append(f"[DOC] {source} (chunk_id={chunk_id})\n{text}")
        citations.append(f"{source}#chunk={chunk_id}")
    return RetrievalResult(context="\n\n".join(blocks), citations=tuple(citations))


def search_milvus(query: str, top_k: int = RETRIEVAL_TOP_K) -> list[dict]:
    """Embed query, search Milvus, return hits as {text, source, chunk_id, score}."""
    logger.info("[retrieval:search_milvus] IN  query=%r top_k=%d", query, top_k)
    query_vec = embed_texts([query])
    if not query_vec:
        logger.warning("[retrieval:search_milvus] embed_texts returned empty")
        return []

    client = get_milvus_client()
    if not client.has_collection(COLLECTION_NAME):
        logger.info("[retrieval:search_milvus] collection %s missing, returning []", COLLECTION_NAME)
        return []
    results = client.search(
        collection_name=COLLECTION_NAME,
        data=query_vec,
        limit=top_k,
        output_fields=["text", "source", "chunk_id"],
    )

    # results: list of list of hits (one list per query vector)
    hits = results[0] if results else []
    candidates = []
    for h in hits:
        e = h.get("entity") or h
        candidates.append({
            "text": e.get("text", ""),
            "source": e.get("source", ""),
            "chunk_id": e.get("chunk_id", 0),
            "score": float(h.get("distance", h.get("score", 0.0))),
        })
    logger.info("[retrieval:search_milvus] OUT hits=%d first_sources=%s",
                len(candidates), [c["source"] for c in candidates[:5]])
    return candidates


class MilvusRetriever:
    """Retriever collaborator: question -> RetrievalResult."""

    def __init__(self, top_k: int = RETRIEVAL_TOP_K) -> None:
        self.top_k = top_k

    def retrieve(self, question: str) -> RetrievalResult:
        query = (question or "").strip()
        if not query:
            logger.info("[retrieval:retrieve] OUT empty query, returning empty result")
            return RetrievalResult()
        started = time.perf_counter()
        result = build_result(search_milvus(query, top_k=self.top_k))
        logger.info("[retrieval:retrieve] OUT citations=%d context_len=%d elapsed_ms=%.1f",
                    len(result.citations), len(result.context), (time.perf_counter() - started) * 1000)
        return result
