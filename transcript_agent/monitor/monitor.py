"""
Transcript Monitor

The stateful loop around the analyzer and generator:

1. Observe the transcript store (push subscription, else adaptive polling)
2. Emit transcript_changed for every observed change
3. Debounce bursts into one cycle that uses the latest transcript
4. Analyze, then generate when the verdict is positive
5. Append the user/assistant pair to bounded history

At most one cycle runs at a time; a cycle that fires while another is in
flight is dropped, not queued. Errors never escape a cycle: they are
reported through the error event and history is left untouched.

Events:
- started()
- transcript_changed(text)
- analysis_complete(AnalysisResult)
- response_generated(text)
- error(exception)
- stopped()

Usage:
    monitor = TranscriptMonitor(MonitorConfig(
        analyzer=AnalyzerConfig(provider="openai", api_key=key),
        generator=GeneratorConfig(provider="openai", api_key=key),
    ))
    monitor.on("response_generated", print)
    await monitor.start()
    await monitor.update_transcript("Hello, how can you help me?")
"""

import asyncio
import logging
from dataclasses import replace
from enum import Enum
from typing import List, Optional, Set

from ..analyzer import TranscriptAnalyzer, build_analyzer
from ..common.config import MonitorConfig
from ..common.errors import ConfigurationError, StoreError
from ..common.schemas import AnalysisContext, Identity, Message, Role
from ..common.storage import MemoryStore, SubscribableStore
from ..common.utils import Debouncer, monotonic_ms, now_ms, retry
from ..generator import ResponseGenerator, build_generator
from .events import EventEmitter

logger = logging.getLogger("transcript_agent.monitor")

DEFAULT_TRANSCRIPT_KEY = "transcript"
POLL_BACKOFF = 1.5


def next_poll_interval(current_ms: float, changed: bool, base_ms: float, max_ms: float) -> float:
    """Reset to the base interval on change, otherwise back off by 1.5x up to the cap."""
    if changed:
        return base_ms
    return min(current_ms * POLL_BACKOFF, max_ms)


class MonitorState(str, Enum):
    """Monitor lifecycle states"""
    IDLE = "idle"
    LISTENING = "listening"
    PROCESSING = "processing"
    STOPPED = "stopped"


class TranscriptMonitor(EventEmitter):
    """
    Watches a transcript and answers when the speaker is done.

    Owns the conversation history, the debounce timer and the in-flight
    flag; none of them are shared with other monitors.
    """

    def __init__(
        self,
        config: Optional[MonitorConfig] = None,
        *,
        analyzer: Optional[TranscriptAnalyzer] = None,
        generator: Optional[ResponseGenerator] = None,
        **options,
    ):
        """
        Initialize the monitor.

        Args:
            config: Frozen monitor configuration (defaults if omitted)
            analyzer: Analyzer instance overriding config.analyzer
            generator: Generator instance overriding config.generator
            **options: MonitorConfig fields overriding ``config``
        """
        super().__init__()
        config = config or MonitorConfig()
        if options:
            config = replace(config, **options)
        self._config = config

        self._storage = config.storage if config.storage is not None else MemoryStore()
        self._analyzer = analyzer or build_analyzer(config.analyzer)
        self._generator = generator or build_generator(config.generator)

        self._key = DEFAULT_TRANSCRIPT_KEY
        self._state = MonitorState.IDLE
        self._last_transcript = ""
        self._last_processed = ""
        self._last_change_ms = monotonic_ms()
        self._history: List[Message] = []
        self._processing = False

        self._debouncer = Debouncer(self._on_debounce_elapsed, config.debounce_ms)
        self._cycles: Set[asyncio.Task] = set()
        self._unsubscribe = None
        self._poll_task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def config(self) -> MonitorConfig:
        return self._config

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def identity(self) -> Identity:
        return Identity(
            name=self._config.name,
            role=self._config.role,
            context_file=self._config.context_file,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self, transcript_key: str = DEFAULT_TRANSCRIPT_KEY) -> None:
        """
        Begin observing ``transcript_key`` in the store.

        Uses the store's subscription when it has one, adaptive polling
        otherwise.
        """
        if self._state == MonitorState.STOPPED:
            raise RuntimeError("TranscriptMonitor cannot be restarted after stop()")
        if self._unsubscribe is not None or self._poll_task is not None:
            logger.warning("TranscriptMonitor already started, ignoring start(%r)", transcript_key)
            return

        self._key = transcript_key
        self._loop = asyncio.get_running_loop()
        if isinstance(self._storage, SubscribableStore):
            self._unsubscribe = self._storage.subscribe(transcript_key, self._on_store_notification)
            logger.info("Monitoring %r via subscription", transcript_key)
        else:
            self._poll_task = self._loop.create_task(self._poll(transcript_key))
            logger.info(
                "Monitoring %r via polling (%sms, max %sms)",
                transcript_key,
                self._config.polling_interval_ms,
                self._config.max_polling_interval_ms,
            )

        self._state = MonitorState.LISTENING
        self.emit("started")

    def stop(self) -> None:
        """
        Stop observing and release every listener.

        A pending debounce is cancelled; a cycle already in flight runs to
        completion. Calling stop() again is a no-op; there is no restart.
        """
        if self._state == MonitorState.STOPPED:
            return

        self._debouncer.cancel()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None

        self._state = MonitorState.STOPPED
        logger.info("Monitor stopped")
        self.emit("stopped")
        self.remove_all_listeners()

    async def wait_idle(self) -> None:
        """Wait until no debounce, cycle or coroutine listener is outstanding."""
        while True:
            # Let notifications handed over from other threads run first
            await asyncio.sleep(0)
            pending = list(self._cycles) + self.pending_listeners
            if self._debouncer.pending is not None:
                pending.append(self._debouncer.pending)
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    # =========================================================================
    # Transcript input
    # =========================================================================

    async def update_transcript(self, transcript: str) -> None:
        """
        Write ``transcript`` to the store and route it as an observed change.

        With push observation active the store's notification already
        delivers the change, so it is not routed a second time. While
        polling, a poll that already saw the new text wins.
        """
        await self._storage.set(self._key, transcript)
        if self._unsubscribe is None and (
            self._poll_task is None or transcript != self._last_transcript
        ):
            self._handle_transcript_change(transcript)

    def _on_store_notification(self, transcript: str) -> None:
        """Subscription callback; the store may call it from any thread."""
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._handle_transcript_change(transcript)
        else:
            self._loop.call_soon_threadsafe(self._handle_transcript_change, transcript)

    def _handle_transcript_change(self, transcript: str) -> None:
        if self._state == MonitorState.STOPPED:
            return

        self._last_change_ms = monotonic_ms()
        self._last_transcript = transcript
        self.emit("transcript_changed", transcript)

        # Silence is measured when the cycle runs, not here
        self._debouncer.schedule()

    async def _poll(self, key: str) -> None:
        interval = self._config.polling_interval_ms
        while True:
            try:
                transcript = await self._storage.get(key)
            except Exception as e:
                error = e
                if not isinstance(e, StoreError):
                    error = StoreError(f"Failed to read transcript {key!r}: {e}")
                    error.__cause__ = e
                logger.warning("Poll failed: %s", error)
                self._emit_error(error)
            else:
                changed = transcript != self._last_transcript
                if changed:
                    self._handle_transcript_change(transcript)
                interval = next_poll_interval(
                    interval,
                    changed,
                    self._config.polling_interval_ms,
                    self._config.max_polling_interval_ms,
                )

            await asyncio.sleep(interval / 1000)

    # =========================================================================
    # Processing cycle
    # =========================================================================

    def _on_debounce_elapsed(self) -> None:
        if self._state == MonitorState.STOPPED:
            return
        task = asyncio.get_running_loop().create_task(self._process_transcript(self._last_transcript))
        self._cycles.add(task)
        task.add_done_callback(self._cycles.discard)

    async def _process_transcript(self, transcript: str) -> None:
        if not transcript.strip():
            return

        # Check-and-set happens before the first await
        if self._processing:
            logger.debug("Cycle already in flight, dropping transcript update")
            return
        self._processing = True
        resume_state = self._state
        self._state = MonitorState.PROCESSING

        attempts = self._config.retry_attempts
        delay = self._config.retry_delay_ms / 1000

        try:
            context = AnalysisContext(
                transcript=transcript,
                previous_transcript=self._last_processed,
                silence_ms=monotonic_ms() - self._last_change_ms,
                history=tuple(self._history),
                name=self._config.name,
                role=self._config.role,
                context_file=self._config.context_file,
            )

            analysis = await retry(
                lambda: self._analyzer.analyze(transcript, context),
                max_attempts=attempts,
                delay=delay,
                no_retry=(ConfigurationError, TypeError),
            )
            logger.debug(
                "Analysis: respond=%s confidence=%.2f reason=%s",
                analysis.should_respond,
                analysis.confidence,
                analysis.reason,
            )
            self.emit("analysis_complete", analysis)

            if analysis.should_respond:
                response = await retry(
                    lambda: self._generator.generate(transcript, context.history, self.identity),
                    max_attempts=attempts,
                    delay=delay,
                )
                self._record_turn(transcript, response)
                self.emit("response_generated", response)

            self._last_processed = transcript
        except Exception as e:
            logger.warning("Processing cycle failed: %s", e)
            self._emit_error(e)
        finally:
            self._processing = False
            if self._state == MonitorState.PROCESSING:
                self._state = resume_state

    def _record_turn(self, transcript: str, response: str) -> None:
        timestamp = now_ms()
        self._history.extend([
            Message(role=Role.USER, content=transcript, timestamp=timestamp),
            Message(role=Role.ASSISTANT, content=response, timestamp=timestamp),
        ])
        overflow = len(self._history) - self._config.max_history
        if overflow > 0:
            del self._history[:overflow]

    def _emit_error(self, error: Exception) -> None:
        if not self.emit("error", error):
            logger.warning("Unhandled monitor error (no error listeners): %s", error)

    # =========================================================================
    # History
    # =========================================================================

    def get_history(self) -> List[Message]:
        """Return a copy of the conversation history, oldest first."""
        return list(self._history)

    def clear_history(self) -> None:
        self._history = []
