"""
Analyzer - Response Timing Decisions

Decides, from a transcript snapshot plus silence and identity, whether the
speaker is done and a response should be generated.

Key Components:
- TranscriptAnalyzer: shared word-count, trigger and silence gates
- ModelAnalyzer: model-assisted verdict with rule-based fallback
- CustomAnalyzer: caller-supplied decision function
- rule_based_analysis: deterministic scoring
"""

from .analyzer import (
    SCORING_POLICY,
    CustomAnalyzer,
    ModelAnalyzer,
    TranscriptAnalyzer,
    build_analyzer,
    build_scoring_prompt,
)
from .rules import rule_based_analysis

__all__ = [
    "SCORING_POLICY",
    "CustomAnalyzer",
    "ModelAnalyzer",
    "TranscriptAnalyzer",
    "build_analyzer",
    "build_scoring_prompt",
    "rule_based_analysis",
]
