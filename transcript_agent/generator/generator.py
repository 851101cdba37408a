"""
Response Generator

Turns a finished utterance plus conversation history into a reply.

Two variants, chosen by build_generator():
- CustomGenerator: the caller's function gets transcript + history only
- ModelGenerator: builds a system prompt (base prompt, role, name, context)
  and dispatches to the configured completion provider

Provider and configuration errors propagate to the caller; the monitor
retries provider errors and reports both through its error event.
"""

import inspect
import logging
from typing import Callable, Dict, List, Optional, Sequence

from ..common.config import GeneratorConfig
from ..common.errors import ConfigurationError
from ..common.llm_client import LLMClient
from ..common.schemas import Identity, Message, history_to_messages
from .context import resolve_context

logger = logging.getLogger("transcript_agent.generator")


class ResponseGenerator:
    """Base class: ``generate(transcript, history, identity) -> str``."""

    def __init__(self, config: Optional[GeneratorConfig] = None):
        self._config = config or GeneratorConfig()

    @property
    def config(self) -> GeneratorConfig:
        return self._config

    async def generate(
        self,
        transcript: str,
        history: Sequence[Message],
        identity: Optional[Identity] = None,
    ) -> str:
        raise NotImplementedError


class CustomGenerator(ResponseGenerator):
    """Delegates to a caller-supplied ``(transcript, history) -> str`` function.

    Identity is not forwarded; the caller already controls that logic.
    """

    def __init__(self, config: GeneratorConfig, generator_fn: Optional[Callable] = None):
        super().__init__(config)
        self._generator_fn = generator_fn or config.custom_generator
        if self._generator_fn is None:
            raise ValueError("CustomGenerator requires a custom_generator function")

    async def generate(self, transcript, history, identity=None) -> str:
        result = self._generator_fn(transcript, list(history))
        if inspect.isawaitable(result):
            result = await result
        return str(result)


class ModelGenerator(ResponseGenerator):
    """Generates replies through the configured completion provider."""

    def __init__(self, config: Optional[GeneratorConfig] = None, llm_client: Optional[LLMClient] = None):
        super().__init__(config)
        self._llm = llm_client or LLMClient(
            provider=self._config.provider,
            api_key=self._config.api_key,
            complete_fn=self._config.completion_fn,
        )

    @property
    def has_credentials(self) -> bool:
        if self._config.provider == "custom":
            return self._config.completion_fn is not None
        return bool(self._config.api_key)

    async def build_system_prompt(self, identity: Optional[Identity] = None) -> str:
        """
        Assemble the system instruction.

        Parts, in order and separated by blank lines: base system prompt,
        role, direct-address instruction, resolved context.
        """
        identity = identity or Identity()
        parts = []
        if self._config.system_prompt:
            parts.append(self._config.system_prompt)
        if identity.role:
            parts.append(f"You are acting as: {identity.role}")
        if identity.name and identity.name.strip():
            parts.append(f'You should respond when directly addressed as "{identity.name.strip()}".')
        if identity.context_file:
            parts.append(await resolve_context(identity.context_file))
        return "\n\n".join(parts)

    async def build_messages(
        self,
        transcript: str,
        history: Sequence[Message],
        identity: Optional[Identity] = None,
    ) -> List[Dict[str, str]]:
        messages = []
        system_prompt = await self.build_system_prompt(identity)
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.extend(history_to_messages(history))
        messages.append({"role": "user", "content": transcript})
        return messages

    async def generate(self, transcript, history, identity=None) -> str:
        """
        Generate a reply to ``transcript``.

        Args:
            transcript: The utterance to answer
            history: Prior turns, oldest first
            identity: Optional name/role/context

        Returns:
            Text of the first completion

        Raises:
            ConfigurationError: no API key, unknown provider
            ProviderError: the completion call failed
        """
        if not self.has_credentials:
            raise ConfigurationError("API key required for response generation")

        messages = await self.build_messages(transcript, history, identity)
        logger.debug(
            "Generating reply with %s/%s (%d messages)",
            self._config.provider,
            self._config.resolved_model,
            len(messages),
        )
        return await self._llm.complete(
            messages,
            model=self._config.resolved_model,
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
        )


def build_generator(config: Optional[GeneratorConfig] = None, llm_client: Optional[LLMClient] = None) -> ResponseGenerator:
    """Choose the generator variant for ``config``."""
    config = config or GeneratorConfig()
    if config.custom_generator is not None:
        return CustomGenerator(config)
    return ModelGenerator(config, llm_client=llm_client)
