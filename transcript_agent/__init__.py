"""
Transcript Agent

Watches a live transcript, decides when the speaker has finished a thought,
and answers through a pluggable language model.

Philosophy:
- Cheap deterministic checks run first and can veto expensive ones
- The model-assisted verdict never wins with malformed output
- One processing cycle at a time per monitor; history is appended in pairs

Usage:
    from transcript_agent import TranscriptMonitor, MonitorConfig, MemoryStore
    from transcript_agent.common import AnalyzerConfig, GeneratorConfig, load_config
    from transcript_agent.analyzer import build_analyzer
    from transcript_agent.generator import build_generator
"""

from .common import (
    AnalysisResult,
    AnalyzerConfig,
    GeneratorConfig,
    MemoryStore,
    Message,
    MonitorConfig,
    load_config,
)
from .monitor import MonitorState, TranscriptMonitor

__version__ = "0.1.0"

__all__ = [
    "AnalysisResult",
    "AnalyzerConfig",
    "GeneratorConfig",
    "MemoryStore",
    "Message",
    "MonitorConfig",
    "MonitorState",
    "TranscriptMonitor",
    "load_config",
]
