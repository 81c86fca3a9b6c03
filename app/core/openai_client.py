"""OpenAI-compatible chat client for the synthesis step (base_url and key from config)."""
from typing import Any

from app.core.config import settings
from openai import OpenAI

_openai_client: Any = None


def get_openai_client() -> OpenAI:
    """Return a singleton OpenAI client pointed at the configured LLM endpoint (Hugging Face router by default).
    Why available: Minutes and caption synthesis share one client and one set of credentials."""
    global _openai_client
    if _openai_client is None:
        _openai_client = OpenAI(api_key=settings.hf_api_key, base_url=settings.llm_base_url)
    return _openai_client
