"""Thin wrapper over the chat completions call shared by minutes and caption synthesis."""
import logging
from typing import Dict, List

from app.core.config import settings
from app.core.openai_client import get_openai_client

logger = logging.getLogger(__name__)


def complete(messages: List[Dict[str, str]], max_tokens: int, temperature: float) -> str:
    """Run one chat completion and return the stripped reply. Raises ValueError on an empty response.
    Why available: The synthesis step is a single opaque LLM call per stage; errors propagate to the job record."""
    oc = get_openai_client()
    resp = oc.chat.completions.create(
        model=settings.chat_model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
    )
    if not resp or not resp.choices:
        raise ValueError("Invalid response from LLM")

    u = getattr(resp, "usage", None)
    if u is not None:
        logger.debug(
            "LLM usage: prompt=%s completion=%s",
            getattr(u, "prompt_tokens", 0), getattr(u, "completion_tokens", 0),
        )
    content = (resp.choices[0].message.content or "").strip()
    if not content:
        raise ValueError("Invalid response from LLM")
    return content
