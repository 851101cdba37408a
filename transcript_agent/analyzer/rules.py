"""
Rule-based transcript signals and the deterministic fallback verdict.

Scoring (fallback path only, boosts are additive):
- name addressed directly      +0.3
- question mark                +0.5
- leading greeting             +0.4
- role configured              +0.1  (never qualifies a response on its own)
- complete after long silence  +0.2  (terminal punctuation or >10 words, >2s)

The final confidence is clamped to [0.1, 0.95].
"""

import re

from ..common.schemas import AnalysisContext, AnalysisResult, clamp
from ..common.utils import count_words

NAME_BOOST = 0.3
QUESTION_BOOST = 0.5
GREETING_BOOST = 0.4
ROLE_BOOST = 0.1
COMPLETION_BOOST = 0.2

COMPLETION_SILENCE_MS = 2000
COMPLETION_MIN_WORDS = 10

MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 0.95

GREETING_PATTERN = re.compile(
    r"^\s*(hi|hello|hey|hiya|howdy|greetings|good\s+(morning|afternoon|evening))\b",
    re.IGNORECASE,
)
TERMINAL_PATTERN = re.compile(r"[.!?]$")


def has_question(transcript: str) -> bool:
    return "?" in transcript


def has_greeting(transcript: str) -> bool:
    return GREETING_PATTERN.match(transcript) is not None


def addresses_name(transcript: str, name: str) -> bool:
    """Whole-word, case-insensitive match; "Al" is not found in "also"."""
    name = (name or "").strip()
    if not name:
        return False
    pattern = r"(?<!\w)" + re.escape(name) + r"(?!\w)"
    return re.search(pattern, transcript, re.IGNORECASE) is not None


def seems_complete(transcript: str) -> bool:
    text = transcript.strip()
    return TERMINAL_PATTERN.search(text) is not None or count_words(text) > COMPLETION_MIN_WORDS


def rule_based_analysis(transcript: str, context: AnalysisContext) -> AnalysisResult:
    """Deterministic verdict used when no model verdict is available."""
    score = 0.0
    reasons = []

    if addresses_name(transcript, context.name):
        score += NAME_BOOST
        reasons.append(f"Directly addressed as {context.name.strip()}")
    if has_question(transcript):
        score += QUESTION_BOOST
        reasons.append("Question detected")
    if has_greeting(transcript):
        score += GREETING_BOOST
        reasons.append("Greeting detected")
    if seems_complete(transcript) and context.silence_ms > COMPLETION_SILENCE_MS:
        score += COMPLETION_BOOST
        reasons.append("Complete statement")

    should_respond = bool(reasons)

    # Context richness, not content
    if context.role:
        score += ROLE_BOOST

    confidence = clamp(score, MIN_CONFIDENCE, MAX_CONFIDENCE)
    if not should_respond:
        return AnalysisResult(should_respond=False, confidence=confidence, reason="Incomplete or unclear")

    return AnalysisResult(should_respond=True, confidence=confidence, reason="; ".join(reasons))
