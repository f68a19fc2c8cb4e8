"""
Vector store client: Milvus Cloud connection and query embeddings (HF Inference API).

Responsibility: Embed search queries with all-MiniLM-L6-v2 and hand out a Milvus client.
The knowledge base itself is populated by a separate ingestion job.
"""

import logging
from typing import Any

import httpx

from agentdesk.core.config import (
    EMBED_API_TIMEOUT,
    HF_API_KEY,
    HF_EMBED_MODEL,
    MILVUS_TOKEN,
    MILVUS_URI,
)
from agentdesk.core.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)

HF_EMBED_URL = (
    "https://router.huggingface.co/hf-inference/models/"
    f"{HF_EMBED_MODEL}/pipeline/feature-extraction"
)


def _normalize(vec: list[float]) -> list[float]:
    # Milvus collection uses COSINE; unit vectors keep scores comparable
    norm = sum(x * x for x in vec) ** 0.5 or 1.0
    return [x / norm for x in vec]


def embed_texts(texts: list[str]) -> list[list[float]]:
    """
    Embed texts using the Hugging Face Inference API (all-MiniLM-L6-v2).
    Returns one normalized 384-dim vector per text.
    """
    if not texts:
        return []
    if not HF_API_KEY:
        raise ServiceUnavailableError(
            "HF_API_KEY must be set in .env. Get a token from https://huggingface.co/settings/tokens"
        )
    headers = {
        "Authorization": f"Bearer {HF_API_KEY}",
        "Content-Type": "application/json",
    }
    payload = {"inputs": texts, "options": {"wait_for_model": True}}
    try:
        with httpx.Client(timeout=EMBED_API_TIMEOUT) as client:
            response = client.post(HF_EMBED_URL, json=payload, headers=headers)
    except httpx.HTTPError as e:
        raise ServiceUnavailableError(f"Embedding request failed: {e}") from e
    if response.status_code == 503:
        raise ServiceUnavailableError("HF embedding model is loading. Retry later.")
    if response.status_code != 200:
        raise ServiceUnavailableError(f"HF embedding API error {response.status_code}: {response.text[:200]}")

    result = response.json()
    if isinstance(result, list) and result and isinstance(result[0], list):
        vectors = result
    else:
        vectors = [result] if isinstance(result, list) else []
    return [_normalize(v) for v in vectors]


def get_milvus_client() -> Any:
    """Connect to Milvus Cloud and return a client."""
    if not MILVUS_URI or not MILVUS_TOKEN:
        raise ServiceUnavailableError("MILVUS_URI and MILVUS_TOKEN must be set in .env")

    from pymilvus import MilvusClient

    client = MilvusClient(uri=MILVUS_URI, token=MILVUS_TOKEN)
    logger.info("Milvus connection established")
    return client
