"""Resolution of the optional context reference into prompt text."""

import asyncio
import logging
import os
from pathlib import Path

logger = logging.getLogger("transcript_agent.generator.context")


def looks_like_path(reference: str) -> bool:
    """Multi-line text or text without a path separator is literal content."""
    if "\n" in reference:
        return False
    return "/" in reference or os.sep in reference


async def resolve_context(reference: str) -> str:
    """Return the system-prompt line for a context reference.

    Best effort: an unreadable file never raises, the raw reference is
    embedded instead.
    """
    if not reference:
        return ""

    if not looks_like_path(reference):
        return f"Additional context: {reference}"

    try:
        content = await asyncio.to_thread(Path(reference).read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read context file %s: %s", reference, e)
        return f"Context reference: {reference}"

    return f"Additional context: {content}"
