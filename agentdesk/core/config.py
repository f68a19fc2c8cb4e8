"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

# Conversation id used when the client does not send one
DEFAULT_CONVERSATION_ID: str = "default"

# Milvus Cloud (from env)
MILVUS_URI: str = os.getenv("MILVUS_URI", "").strip()
MILVUS_TOKEN: str = os.getenv("MILVUS_TOKEN", "").strip()

# Hugging Face (embeddings / inference)
HF_API_KEY: str = os.getenv("HF_API_KEY", "").strip()

# Milvus collection and embedding model (all-MiniLM-L6-v2 = 384 dims)
COLLECTION_NAME: str = os.getenv("COLLECTION_NAME", "documents").strip() or "documents"
HF_EMBED_MODEL: str = "sentence-transformers/all-MiniLM-L6-v2"
RETRIEVAL_TOP_K: int = int(os.getenv("RETRIEVAL_TOP_K", "6"))

# API timeouts (seconds)
EMBED_API_TIMEOUT: float = 30.0
LLM_API_TIMEOUT: float = 60.0

# Hugging Face chat (used when OPENAI_API_KEY is not set)
HF_CHAT_URL: str = "https://router.huggingface.co/v1/chat/completions"

# Max tokens for the two model calls of a turn
PLANNER_MAX_TOKENS: int = 200
ANSWER_MAX_TOKENS: int = 512

# OpenAI (planner + answer LLM). When set, the agent uses OpenAI instead of Hugging Face.
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_LLM_MODEL: str = (
    os.getenv("OPENAI_LLM_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini"
)

# HF LLM for agent (when OPENAI_API_KEY is not set). Router chat completions require a chat model.
HF_LLM_MODEL: str = (
    os.getenv("HF_LLM_MODEL", "meta-llama/Llama-3.2-3B-Instruct").strip()
    or "meta-llama/Llama-3.2-3B-Instruct"
)

# Conversation memory: "memory" (process-local) or "redis"
MEMORY_STORE: str = os.getenv("MEMORY_STORE", "memory").strip().lower() or "memory"
REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0").strip()
MEMORY_TTL_SECONDS: int = int(os.getenv("MEMORY_TTL_SECONDS", "1800"))
MEMORY_KEY_PREFIX: str = os.getenv("MEMORY_KEY_PREFIX", "memory:")
