"""Error taxonomy shared by the analyzer, generator and monitor."""

from typing import Optional


class TranscriptAgentError(Exception):
    """Base class for every error raised by transcript_agent."""
    pass


class ConfigurationError(TranscriptAgentError):
    """Missing API key, unknown provider, or an SDK that is not installed.

    Never retried: repeating the call cannot fix the configuration.
    """
    pass


class ProviderError(TranscriptAgentError):
    """A completion provider call failed (non-success status or network error)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ValidationError(TranscriptAgentError):
    """A model-assisted verdict did not match the expected schema."""
    pass


class StoreError(TranscriptAgentError):
    """Reading or writing the transcript store failed."""
    pass
