"""
Provider-agnostic completion client for Transcript Agent.

Supports OpenAI and Anthropic behind one async chat-completion interface,
plus a "custom" binding that wraps a caller-supplied function and never
touches the network.
"""

from __future__ import annotations

import inspect
import logging
from typing import Callable, Dict, List, Optional

from .errors import ConfigurationError, ProviderError

logger = logging.getLogger("transcript_agent.common.llm_client")


def _describe_failure(label: str, error: Exception) -> ProviderError:
    """Wrap an SDK exception, keeping the status code and a searchable hint."""
    status_code = getattr(error, "status_code", None)
    name = type(error).__name__
    if status_code == 429 or name == "RateLimitError":
        hint = " (rate limit exceeded)"
    elif status_code == 401 or name == "AuthenticationError":
        hint = " (invalid API key)"
    else:
        hint = ""
    return ProviderError(f"{label} API error{hint}: {error}", status_code=status_code)


class LLMClient:
    """Unified async chat-completion client across LLM providers."""

    def __init__(
        self,
        provider: str = "openai",
        api_key: Optional[str] = None,
        complete_fn: Optional[Callable] = None,
    ) -> None:
        self.provider = (provider or "openai").lower()
        self._client = None
        self._complete_fn = complete_fn

        if self.provider == "custom":
            if complete_fn is None:
                logger.info("custom provider has no completion function, LLM client unavailable")
            return

        if self.provider == "anthropic":
            if not api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                import anthropic

                self._client = anthropic.AsyncAnthropic(api_key=api_key)
            except ImportError:
                logger.warning("anthropic package not installed")
            except Exception as e:
                logger.warning("Failed to initialize Anthropic client: %s", e)
            return

        if self.provider == "openai":
            if not api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                from openai import AsyncOpenAI

                self._client = AsyncOpenAI(api_key=api_key)
            except ImportError:
                logger.warning("openai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize OpenAI client: %s", e)
            return

        logger.warning("Unsupported LLM provider: %s", self.provider)

    @property
    def is_available(self) -> bool:
        if self.provider == "custom":
            return self._complete_fn is not None
        return self._client is not None

    async def complete(
        self,
        messages: List[Dict[str, str]],
        *,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 150,
        json_mode: bool = False,
        timeout: float = 30.0,
    ) -> str:
        """Return the text of the first completion for ``messages``.

        ``messages`` are ``{"role", "content"}`` dicts; a leading system
        message is moved to the provider's system slot where needed.
        """
        if self.provider not in ("openai", "anthropic", "custom"):
            raise ConfigurationError(f"Unknown provider: {self.provider}")
        if not self.is_available:
            raise ConfigurationError(f"{self.provider} LLM client is not available (missing API key or SDK)")

        if self.provider == "custom":
            result = self._complete_fn(
                messages,
                model=model,
                temperature=temperature,
                max_tokens=max_tokens,
            )
            if inspect.isawaitable(result):
                result = await result
            return str(result)

        if self.provider == "anthropic":
            import anthropic

            system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
            kwargs = {}
            if system:
                kwargs["system"] = system
            try:
                response = await self._client.messages.create(
                    model=model,
                    max_tokens=max_tokens,
                    temperature=temperature,
                    messages=[m for m in messages if m["role"] != "system"],
                    timeout=timeout,
                    **kwargs,
                )
            except anthropic.APIError as e:
                raise _describe_failure("Anthropic", e) from e
            if not response.content:
                raise ProviderError("Anthropic API error: empty completion")
            return response.content[0].text.strip()

        import openai

        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            response = await self._client.chat.completions.create(
                model=model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=messages,
                timeout=timeout,
                **kwargs,
            )
        except openai.APIError as e:
            raise _describe_failure("OpenAI", e) from e
        if not response.choices:
            raise ProviderError("OpenAI API error: empty completion")
        return (response.choices[0].message.content or "").strip()
