"""Extraction of the JSON verdict object from raw model replies."""

from __future__ import annotations

import json
import re
from typing import Iterator, Optional

FENCED_BLOCK = re.compile(r"```[a-zA-Z]*\s*\n?(.*?)```", re.DOTALL)

_decoder = json.JSONDecoder()


def _candidates(raw: str) -> Iterator[str]:
    # Fenced blocks first, then the whole reply
    for match in FENCED_BLOCK.finditer(raw):
        yield match.group(1)
    yield raw


def _first_object(text: str) -> Optional[dict]:
    start = text.find("{")
    while start >= 0:
        try:
            value, _ = _decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            value = None
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)
    return None


def parse_llm_json(raw: str) -> dict:
    """Return the first JSON object found in a model reply, or {}.

    Models asked for a verdict object sometimes wrap it in a ```json fence
    or surround it with prose. Fenced blocks are searched before the rest of
    the reply; within a block the first decodable object wins. Replies
    holding only arrays, strings or numbers yield {}, which callers treat as
    a rejected verdict.
    """
    if not raw or not raw.strip():
        return {}

    for candidate in _candidates(raw):
        found = _first_object(candidate)
        if found is not None:
            return found
    return {}
