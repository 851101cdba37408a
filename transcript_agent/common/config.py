"""
Configuration Management for Transcript Agent

Settings live in frozen dataclasses. load_config() reads
~/.transcript-agent/config.json and environment variables (a .env file is
honoured); callables such as custom analyzers are only ever passed in code.
"""

import json
import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, Optional

from dotenv import load_dotenv

logger = logging.getLogger("transcript_agent.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".transcript-agent"
CONFIG_PATH = CONFIG_DIR / "config.json"

SUPPORTED_PROVIDERS = ("openai", "anthropic", "custom")

# Default models per provider: (analyzer, generator)
DEFAULT_MODELS = {
    "openai": ("gpt-4o-mini", "gpt-4o"),
    "anthropic": ("claude-haiku-4-5-20251001", "claude-sonnet-4-20250514"),
}

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant. Keep answers short and conversational."


@dataclass(frozen=True)
class AnalyzerConfig:
    """Decision engine configuration"""
    provider: str = "openai"
    api_key: str = ""
    model: str = ""
    min_words: int = 5
    max_silence_ms: float = 1500
    custom_analyzer: Optional[Callable] = field(default=None, repr=False)

    @property
    def resolved_model(self) -> str:
        return self.model or DEFAULT_MODELS.get(self.provider, ("", ""))[0]


@dataclass(frozen=True)
class GeneratorConfig:
    """Response composer configuration"""
    provider: str = "openai"
    api_key: str = ""
    model: str = ""
    system_prompt: str = ""
    temperature: float = 0.7
    max_tokens: int = 150
    custom_generator: Optional[Callable] = field(default=None, repr=False)
    completion_fn: Optional[Callable] = field(default=None, repr=False)  # provider="custom"

    @property
    def resolved_model(self) -> str:
        return self.model or DEFAULT_MODELS.get(self.provider, ("", ""))[1]


@dataclass(frozen=True)
class MonitorConfig:
    """Main monitor configuration (frozen at construction)"""
    storage: Any = field(default=None, repr=False)
    analyzer: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    generator: GeneratorConfig = field(default_factory=GeneratorConfig)
    debounce_ms: float = 1000
    polling_interval_ms: float = 500
    max_polling_interval_ms: float = 5000
    max_history: int = 20
    retry_attempts: int = 3
    retry_delay_ms: float = 1000
    name: str = ""
    role: str = ""
    context_file: str = ""
    env_sourced_keys: FrozenSet[str] = field(default_factory=frozenset, repr=False, compare=False)


def _parse_analyzer_config(data: dict) -> AnalyzerConfig:
    """Parse analyzer section from config dict"""
    analyzer_data = data.get("analyzer", {})
    return AnalyzerConfig(
        provider=analyzer_data.get("provider", "openai"),
        api_key=analyzer_data.get("api_key", ""),
        model=analyzer_data.get("model", ""),
        min_words=analyzer_data.get("min_words", 5),
        max_silence_ms=analyzer_data.get("max_silence_ms", 1500),
    )


def _parse_generator_config(data: dict) -> GeneratorConfig:
    """Parse generator section from config dict"""
    generator_data = data.get("generator", {})
    return GeneratorConfig(
        provider=generator_data.get("provider", "openai"),
        api_key=generator_data.get("api_key", ""),
        model=generator_data.get("model", ""),
        system_prompt=generator_data.get("system_prompt", DEFAULT_SYSTEM_PROMPT),
        temperature=generator_data.get("temperature", 0.7),
        max_tokens=generator_data.get("max_tokens", 150),
    )


def _parse_monitor_fields(data: dict) -> Dict[str, Any]:
    """Parse monitor section (timing, history, identity) from config dict"""
    monitor_data = data.get("monitor", {})
    return {
        "debounce_ms": monitor_data.get("debounce_ms", 1000),
        "polling_interval_ms": monitor_data.get("polling_interval_ms", 500),
        "max_polling_interval_ms": monitor_data.get("max_polling_interval_ms", 5000),
        "max_history": monitor_data.get("max_history", 20),
        "retry_attempts": monitor_data.get("retry_attempts", 3),
        "retry_delay_ms": monitor_data.get("retry_delay_ms", 1000),
        "name": monitor_data.get("name", ""),
        "role": monitor_data.get("role", ""),
        "context_file": monitor_data.get("context_file", ""),
    }


def _api_key_env_var(provider: str) -> Optional[str]:
    return {"openai": "OPENAI_API_KEY", "anthropic": "ANTHROPIC_API_KEY"}.get(provider)


def load_config(path: Optional[Path] = None) -> MonitorConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (including a .env file)
    2. Config file (~/.transcript-agent/config.json)
    3. Default values
    """
    load_dotenv()
    config_path = path or CONFIG_PATH

    analyzer = AnalyzerConfig()
    generator = GeneratorConfig(system_prompt=DEFAULT_SYSTEM_PROMPT)
    monitor_fields: Dict[str, Any] = {}

    # Load from config file if exists
    if config_path.exists():
        try:
            with open(config_path) as f:
                data = json.load(f)

            analyzer = _parse_analyzer_config(data)
            generator = _parse_generator_config(data)
            monitor_fields = _parse_monitor_fields(data)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Failed to load config file %s: %s", config_path, e)

    env_sourced = set()

    provider = os.getenv("TRANSCRIPT_AGENT_PROVIDER")
    if provider:
        analyzer = replace(analyzer, provider=provider)
        generator = replace(generator, provider=provider)

    # API keys follow whichever provider each component ends up with
    analyzer_key_var = _api_key_env_var(analyzer.provider)
    if analyzer_key_var and os.getenv(analyzer_key_var):
        analyzer = replace(analyzer, api_key=os.getenv(analyzer_key_var))
        env_sourced.add("analyzer.api_key")
    generator_key_var = _api_key_env_var(generator.provider)
    if generator_key_var and os.getenv(generator_key_var):
        generator = replace(generator, api_key=os.getenv(generator_key_var))
        env_sourced.add("generator.api_key")

    if os.getenv("TRANSCRIPT_AGENT_ANALYZER_MODEL"):
        analyzer = replace(analyzer, model=os.getenv("TRANSCRIPT_AGENT_ANALYZER_MODEL"))
    if os.getenv("TRANSCRIPT_AGENT_GENERATOR_MODEL"):
        generator = replace(generator, model=os.getenv("TRANSCRIPT_AGENT_GENERATOR_MODEL"))

    _env_monitor_map = {
        "TRANSCRIPT_AGENT_NAME": "name",
        "TRANSCRIPT_AGENT_ROLE": "role",
        "TRANSCRIPT_AGENT_CONTEXT_FILE": "context_file",
    }
    for env_var, attr in _env_monitor_map.items():
        val = os.getenv(env_var)
        if val:
            monitor_fields[attr] = val

    if os.getenv("TRANSCRIPT_AGENT_DEBOUNCE_MS"):
        monitor_fields["debounce_ms"] = float(os.getenv("TRANSCRIPT_AGENT_DEBOUNCE_MS"))

    return MonitorConfig(
        analyzer=analyzer,
        generator=generator,
        env_sourced_keys=frozenset(env_sourced),
        **monitor_fields,
    )


def save_config(config: MonitorConfig, path: Optional[Path] = None) -> None:
    """Save configuration to file.

    API keys that were sourced from environment variables are written as
    empty strings so that secrets are not persisted to disk. Storage and
    custom callables are not serializable and are skipped.
    """
    config_path = path or CONFIG_PATH
    config_path.parent.mkdir(parents=True, exist_ok=True)

    env_sourced = config.env_sourced_keys

    data = {
        "analyzer": {
            "provider": config.analyzer.provider,
            "api_key": "" if "analyzer.api_key" in env_sourced else config.analyzer.api_key,
            "model": config.analyzer.model,
            "min_words": config.analyzer.min_words,
            "max_silence_ms": config.analyzer.max_silence_ms,
        },
        "generator": {
            "provider": config.generator.provider,
            "api_key": "" if "generator.api_key" in env_sourced else config.generator.api_key,
            "model": config.generator.model,
            "system_prompt": config.generator.system_prompt,
            "temperature": config.generator.temperature,
            "max_tokens": config.generator.max_tokens,
        },
        "monitor": {
            "debounce_ms": config.debounce_ms,
            "polling_interval_ms": config.polling_interval_ms,
            "max_polling_interval_ms": config.max_polling_interval_ms,
            "max_history": config.max_history,
            "retry_attempts": config.retry_attempts,
            "retry_delay_ms": config.retry_delay_ms,
            "name": config.name,
            "role": config.role,
            "context_file": config.context_file,
        },
    }

    with open(config_path, "w") as f:
        json.dump(data, f, indent=2)

    # Set secure permissions
    config_path.chmod(0o600)
