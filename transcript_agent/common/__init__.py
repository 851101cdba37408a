"""
Transcript Agent Common Module

Shared infrastructure for the analyzer, generator and monitor.
"""

from .config import AnalyzerConfig, GeneratorConfig, MonitorConfig, load_config, save_config
from .errors import (
    ConfigurationError,
    ProviderError,
    StoreError,
    TranscriptAgentError,
    ValidationError,
)
from .llm_client import LLMClient
from .schemas import AnalysisContext, AnalysisResult, Identity, Message, Role
from .storage import JsonFileStore, MemoryStore, TranscriptStore

__all__ = [
    "AnalyzerConfig",
    "GeneratorConfig",
    "MonitorConfig",
    "load_config",
    "save_config",
    "ConfigurationError",
    "ProviderError",
    "StoreError",
    "TranscriptAgentError",
    "ValidationError",
    "LLMClient",
    "AnalysisContext",
    "AnalysisResult",
    "Identity",
    "Message",
    "Role",
    "JsonFileStore",
    "MemoryStore",
    "TranscriptStore",
]
