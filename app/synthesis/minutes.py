"""Minutes-of-meeting synthesis: extract key points from the transcript, then lay them out in the caller's template."""
import logging
from typing import Optional

from app.prompts.loader import build_messages

from .chat import complete

logger = logging.getLogger(__name__)

EXTRACT_TRANSCRIPT_CHARS = 15000
EXPAND_TRANSCRIPT_CHARS = 10000

DEFAULT_STRUCTURE = "Standard Meeting Minutes"
DEFAULT_TEMPLATE = """# <Meeting Title>
## Agenda
## Discussion
## Decisions
## Action Items (Owner - Task)
## Next Steps"""

LENGTH_NORMAL = "normal"
LENGTH_LONGER = "longer"


def generate_minutes(
    transcript: str,
    template: Optional[str] = None,
    structure: Optional[str] = None,
    title: Optional[str] = None,
    length: str = LENGTH_NORMAL,
    current_content: Optional[str] = None,
) -> str:
    """Generate meeting minutes from a transcript.

    Normally two calls: bullet-point extraction, then synthesis into the template. With
    length="longer" and current_content given, a single call expands the existing minutes.
    """
    title = title or "Untitled Meeting"
    longer = length == LENGTH_LONGER
    logger.info("Generating minutes for %s (length=%s, expand=%s)", title, length, bool(current_content))

    if longer and current_content:
        messages = build_messages(
            "minutes_expand",
            current=current_content,
            transcript=transcript[:EXPAND_TRANSCRIPT_CHARS],
        )
        return complete(messages, max_tokens=4000, temperature=0.5)

    extraction = build_messages(
        "minutes_extract",
        transcript=transcript[:EXTRACT_TRANSCRIPT_CHARS],
        detail="[Special Instruction: Extract as much detail as possible for each point.]" if longer else "",
    )
    intelligence = complete(extraction, max_tokens=2000 if longer else 1200, temperature=0.3)

    length_instruction = (
        "Provide extensive detail, capturing nuances, background context for decisions, and comprehensive action item descriptions. Aim for a thorough and lengthy document."
        if longer
        else "Keep it extremely brief, high-level, and very concise. Focus only on the most critical points. Do NOT provide unnecessary detail."
    )
    synthesis = build_messages(
        "minutes_synthesize",
        structure=structure or DEFAULT_STRUCTURE,
        title=title,
        intelligence=intelligence,
        template=template or DEFAULT_TEMPLATE,
        length_instruction=length_instruction,
    )
    minutes = complete(synthesis, max_tokens=3500 if longer else 2000, temperature=0.6)
    logger.info("Minutes generated (%d chars)", len(minutes))
    return minutes
