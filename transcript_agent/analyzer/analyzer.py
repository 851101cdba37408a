"""
Transcript Analyzer

Decides whether a transcript snapshot deserves a response right now.

Cascade (first decisive step wins):
1. Word-count gate          - too short, never respond
2. Immediate triggers       - question or greeting, respond without waiting
3. Silence gate             - speaker may still be mid-thought
4. Custom analyzer          - caller-supplied decision (CustomAnalyzer)
5. Model-assisted verdict   - JSON verdict from the completion provider
6. Rule-based fallback      - deterministic scoring, always available

Steps 1-3 are shared by both variants; build_analyzer() picks the variant
that handles steps 4-6 once, at construction time.
"""

import inspect
import logging
from collections.abc import Mapping
from typing import Callable, Optional

from pydantic import ValidationError as SchemaError

from ..common.config import AnalyzerConfig
from ..common.errors import ValidationError
from ..common.llm_client import LLMClient
from ..common.llm_utils import parse_llm_json
from ..common.schemas import AnalysisContext, AnalysisResult, ModelVerdict
from ..common.utils import count_words
from .rules import has_greeting, has_question, rule_based_analysis

logger = logging.getLogger("transcript_agent.analyzer")


SCORING_POLICY = """You decide whether a live conversation transcript is a finished utterance that an assistant should answer now.

RESPOND if the speaker:
- Asked a question or made a request
- Finished a complete statement and paused long enough to expect a reply
- Addressed the assistant directly

WAIT if the speaker:
- Stopped mid-sentence or trails off
- Is thinking aloud and has only paused briefly
- Said filler or fragments with no clear intent

Respond with JSON only: {"shouldRespond": true/false, "confidence": 0.0-1.0, "reason": "brief explanation"}"""


def build_scoring_prompt(transcript: str, context: AnalysisContext) -> str:
    """User message for the model-assisted verdict, with identity hints."""
    lines = [
        "Analyze if this transcript needs a response:",
        f'"{transcript}"',
        "",
        f"Context: {context.silence_ms:.0f}ms of silence, "
        f"{len(context.history)} previous messages",
    ]
    if context.name:
        lines.append(
            f'The assistant is called "{context.name}". '
            "If the user directly addresses it by name, increase confidence."
        )
    if context.role:
        lines.append(f"Consider acting in the role of: {context.role}")
    if context.context_file:
        lines.append(f"Background context is available: {context.context_file[:300]}")
    return "\n".join(lines)


class TranscriptAnalyzer:
    """Shared gates (word count, immediate triggers, silence)."""

    def __init__(self, config: Optional[AnalyzerConfig] = None):
        self._config = config or AnalyzerConfig()

    @property
    def config(self) -> AnalyzerConfig:
        return self._config

    async def analyze(self, transcript: str, context: AnalysisContext) -> AnalysisResult:
        """
        Evaluate a transcript snapshot.

        Args:
            transcript: Current transcript text
            context: Silence, history and identity for this cycle

        Returns:
            AnalysisResult; ordinary content never raises
        """
        if count_words(transcript) < self._config.min_words:
            return AnalysisResult(should_respond=False, confidence=0.2, reason="Too few words")

        # A clear question should not wait out the silence timer
        question = has_question(transcript)
        if question or has_greeting(transcript):
            return AnalysisResult(
                should_respond=True,
                confidence=0.9,
                reason="Question detected" if question else "Greeting detected",
            )

        if context.silence_ms < self._config.max_silence_ms:
            return AnalysisResult(should_respond=False, confidence=0.5, reason="User may still be speaking")

        return await self._decide(transcript, context)

    async def _decide(self, transcript: str, context: AnalysisContext) -> AnalysisResult:
        raise NotImplementedError


class CustomAnalyzer(TranscriptAnalyzer):
    """Delegates the post-gate decision to a caller-supplied function."""

    def __init__(self, config: AnalyzerConfig, analyzer_fn: Optional[Callable] = None):
        super().__init__(config)
        self._analyzer_fn = analyzer_fn or config.custom_analyzer
        if self._analyzer_fn is None:
            raise ValueError("CustomAnalyzer requires a custom_analyzer function")

    async def _decide(self, transcript: str, context: AnalysisContext) -> AnalysisResult:
        result = self._analyzer_fn(transcript, context)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, AnalysisResult):
            return result
        if isinstance(result, Mapping):
            return AnalysisResult.from_dict(result)
        raise TypeError(
            f"custom_analyzer must return AnalysisResult or a mapping, got {type(result).__name__}"
        )


class ModelAnalyzer(TranscriptAnalyzer):
    """
    Model-assisted decision with a strict-schema, rule-based fallback.

    The model is only consulted when an API key is configured and the
    provider is not "custom". Any provider failure or malformed verdict
    resolves to the rule-based result.
    """

    def __init__(self, config: Optional[AnalyzerConfig] = None, llm_client: Optional[LLMClient] = None):
        super().__init__(config)
        self._llm = None
        if self.uses_model:
            self._llm = llm_client or LLMClient(provider=self._config.provider, api_key=self._config.api_key)

    @property
    def uses_model(self) -> bool:
        return bool(self._config.api_key) and self._config.provider != "custom"

    async def _decide(self, transcript: str, context: AnalysisContext) -> AnalysisResult:
        if not self.uses_model:
            return rule_based_analysis(transcript, context)

        try:
            raw = await self._llm.complete(
                [
                    {"role": "system", "content": SCORING_POLICY},
                    {"role": "user", "content": build_scoring_prompt(transcript, context)},
                ],
                model=self._config.resolved_model,
                temperature=0.3,
                max_tokens=200,
                json_mode=True,
            )
        except Exception as e:
            logger.warning("Model analysis failed, using rule-based fallback: %s", e)
            return rule_based_analysis(transcript, context)

        try:
            return self._parse_response(raw)
        except ValidationError as e:
            logger.warning("Model verdict rejected, using rule-based fallback: %s", e)
            return rule_based_analysis(transcript, context)

    def _parse_response(self, raw: str) -> AnalysisResult:
        """Parse and strictly validate a model verdict."""
        data = parse_llm_json(raw)
        if not data:
            raise ValidationError("No JSON object in model response")
        try:
            verdict = ModelVerdict.model_validate(data)
        except SchemaError as e:
            raise ValidationError(f"Invalid verdict: {e.error_count()} field error(s)") from e
        return verdict.to_result()


def build_analyzer(config: Optional[AnalyzerConfig] = None, llm_client: Optional[LLMClient] = None) -> TranscriptAnalyzer:
    """Choose the analyzer variant for ``config``."""
    config = config or AnalyzerConfig()
    if config.custom_analyzer is not None:
        return CustomAnalyzer(config)
    return ModelAnalyzer(config, llm_client=llm_client)
