"""Tests for response generation and context resolution."""

import pytest
from unittest.mock import AsyncMock, Mock

from transcript_agent.common.config import GeneratorConfig
from transcript_agent.common.errors import ConfigurationError, ProviderError
from transcript_agent.common.schemas import Identity, Message, Role


@pytest.fixture
def mock_llm():
    llm = Mock()
    llm.complete = AsyncMock(return_value="Sure, happy to help.")
    return llm


HISTORY = [
    Message(Role.USER, "What is Python?", 1000),
    Message(Role.ASSISTANT, "A programming language.", 1000),
]


class TestCustomGenerator:
    @pytest.mark.asyncio
    async def test_receives_transcript_and_history_only(self):
        from transcript_agent.generator import CustomGenerator
        calls = []

        def custom(transcript, history):
            calls.append((transcript, history))
            return f"Test response to: {transcript}"

        generator = CustomGenerator(GeneratorConfig(custom_generator=custom))
        reply = await generator.generate("Tell me more", HISTORY, Identity(name="Nova"))

        assert reply == "Test response to: Tell me more"
        assert calls == [("Tell me more", HISTORY)]

    @pytest.mark.asyncio
    async def test_async_custom_function(self):
        from transcript_agent.generator import CustomGenerator

        async def custom(transcript, history):
            return "async reply"

        generator = CustomGenerator(GeneratorConfig(custom_generator=custom))
        assert await generator.generate("x", []) == "async reply"

    def test_build_generator_prefers_custom(self):
        from transcript_agent.generator import CustomGenerator, ModelGenerator, build_generator
        assert isinstance(build_generator(GeneratorConfig(custom_generator=lambda t, h: "")), CustomGenerator)
        assert isinstance(build_generator(GeneratorConfig()), ModelGenerator)


class TestSystemPrompt:
    @pytest.mark.asyncio
    async def test_parts_in_order(self):
        from transcript_agent.generator import ModelGenerator
        generator = ModelGenerator(GeneratorConfig(system_prompt="Be helpful.", api_key="sk"), llm_client=Mock())

        prompt = await generator.build_system_prompt(
            Identity(name="Nova", role="science tutor", context_file="Class of 12 students")
        )

        assert prompt.split("\n\n") == [
            "Be helpful.",
            "You are acting as: science tutor",
            'You should respond when directly addressed as "Nova".',
            "Additional context: Class of 12 students",
        ]

    @pytest.mark.asyncio
    async def test_blank_name_omitted(self):
        from transcript_agent.generator import ModelGenerator
        generator = ModelGenerator(GeneratorConfig(system_prompt="Base"), llm_client=Mock())
        assert await generator.build_system_prompt(Identity(name="   ")) == "Base"

    @pytest.mark.asyncio
    async def test_empty_prompt_has_no_system_message(self):
        from transcript_agent.generator import ModelGenerator
        generator = ModelGenerator(GeneratorConfig(), llm_client=Mock())

        messages = await generator.build_messages("Hello", HISTORY)

        assert messages == [
            {"role": "user", "content": "What is Python?"},
            {"role": "assistant", "content": "A programming language."},
            {"role": "user", "content": "Hello"},
        ]


class TestResolveContext:
    @pytest.mark.asyncio
    async def test_empty_reference(self):
        from transcript_agent.generator import resolve_context
        assert await resolve_context("") == ""

    @pytest.mark.asyncio
    async def test_literal_text(self):
        from transcript_agent.generator import resolve_context
        assert await resolve_context("Meeting about Q3 goals") == "Additional context: Meeting about Q3 goals"

    @pytest.mark.asyncio
    async def test_multiline_text_is_literal(self):
        from transcript_agent.generator import resolve_context
        text = "Notes: see a/b\nSecond line"
        assert await resolve_context(text) == f"Additional context: {text}"

    @pytest.mark.asyncio
    async def test_readable_file(self, tmp_path):
        from transcript_agent.generator import resolve_context
        path = tmp_path / "context.txt"
        path.write_text("Agenda: budget review", encoding="utf-8")
        assert await resolve_context(str(path)) == "Additional context: Agenda: budget review"

    @pytest.mark.asyncio
    async def test_missing_file_embeds_reference(self, tmp_path, caplog):
        import logging
        from transcript_agent.generator import resolve_context
        missing = str(tmp_path / "nope.txt")

        with caplog.at_level(logging.WARNING, logger="transcript_agent.generator.context"):
            result = await resolve_context(missing)

        assert result == f"Context reference: {missing}"
        assert "Could not read context file" in caplog.text


class TestModelGenerator:
    @pytest.mark.asyncio
    async def test_missing_key_raises(self, mock_llm):
        from transcript_agent.generator import ModelGenerator
        generator = ModelGenerator(GeneratorConfig(api_key=""), llm_client=mock_llm)

        with pytest.raises(ConfigurationError, match="API key required"):
            await generator.generate("Hello", [])
        mock_llm.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dispatches_with_config(self, mock_llm):
        from transcript_agent.generator import ModelGenerator
        config = GeneratorConfig(
            provider="anthropic", api_key="sk-ant", system_prompt="Base",
            temperature=0.4, max_tokens=80,
        )
        generator = ModelGenerator(config, llm_client=mock_llm)

        reply = await generator.generate("Can you help?", HISTORY, Identity(role="tutor"))

        assert reply == "Sure, happy to help."
        args, kwargs = mock_llm.complete.call_args
        messages = args[0]
        assert messages[0] == {"role": "system", "content": "Base\n\nYou are acting as: tutor"}
        assert messages[-1] == {"role": "user", "content": "Can you help?"}
        assert len(messages) == 4
        assert kwargs == {"model": config.resolved_model, "temperature": 0.4, "max_tokens": 80}

    @pytest.mark.asyncio
    async def test_custom_provider_uses_completion_fn(self):
        from transcript_agent.generator import ModelGenerator
        seen = []

        def completion(messages, **kwargs):
            seen.append(messages)
            return "from custom provider"

        generator = ModelGenerator(GeneratorConfig(provider="custom", completion_fn=completion))

        assert generator.has_credentials
        assert await generator.generate("Hi", []) == "from custom provider"
        assert seen[0][-1] == {"role": "user", "content": "Hi"}

    @pytest.mark.asyncio
    async def test_custom_provider_without_function_raises(self):
        from transcript_agent.generator import ModelGenerator
        generator = ModelGenerator(GeneratorConfig(provider="custom", api_key="ignored"))
        with pytest.raises(ConfigurationError):
            await generator.generate("Hi", [])

    @pytest.mark.asyncio
    async def test_unknown_provider_raises(self):
        from transcript_agent.generator import ModelGenerator
        generator = ModelGenerator(GeneratorConfig(provider="mystery", api_key="key"))
        with pytest.raises(ConfigurationError, match="Unknown provider"):
            await generator.generate("Hi", [])

    @pytest.mark.asyncio
    async def test_provider_error_propagates(self, mock_llm):
        from transcript_agent.generator import ModelGenerator
        mock_llm.complete.side_effect = ProviderError("OpenAI API error: boom")
        generator = ModelGenerator(GeneratorConfig(api_key="sk"), llm_client=mock_llm)

        with pytest.raises(ProviderError, match="boom"):
            await generator.generate("Hi", [])
