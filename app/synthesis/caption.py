"""Caption / short-form content synthesis from a transcript plus user instructions."""
from typing import Optional

from app.prompts.loader import build_messages

from .chat import complete
from .minutes import LENGTH_LONGER

CAPTION_TRANSCRIPT_CHARS = 12000


def generate_caption(
    transcript: str,
    instructions: str,
    length: str = "normal",
    current_content: Optional[str] = None,
) -> str:
    """Generate a caption following instructions; with length="longer" and current_content, expand that content instead."""
    longer = length == LENGTH_LONGER
    text = transcript[:CAPTION_TRANSCRIPT_CHARS]

    if longer and current_content:
        messages = build_messages("caption_expand", current=current_content, instructions=instructions, transcript=text)
    else:
        length_instruction = (
            "Provide more detail, elaborate on the points, and increase the word count significantly. Be descriptive and thorough."
            if longer
            else "Be extremely brief, direct, and concise. Provide a high-level summary only. Minimal word count."
        )
        messages = build_messages("caption", length_instruction=length_instruction, instructions=instructions, transcript=text)

    return complete(messages, max_tokens=2000 if longer else 500, temperature=0.7)
