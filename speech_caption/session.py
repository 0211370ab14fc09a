from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import Callable, Optional

from speech_caption.completion import CompletionSignal
from speech_caption.event_sink import ResultEventSink
from speech_caption.session_config import SessionConfig
from speech_caption.speech_event import Canceled, SpeechSessionProvider


logger = getLogger(__name__)

ProviderFactory = Callable[[SessionConfig], SpeechSessionProvider]


@dataclass(frozen=True)
class SessionOutcome:
    """How a session ended."""
    reason: str  # "session-stopped", "canceled", "stream-ended" or "timeout"
    canceled: Optional[Canceled]
    final_results: int


# ---------------------------------------------------------------------------
# Event consumer
# ---------------------------------------------------------------------------

async def _consume_events(
        provider: SpeechSessionProvider,
        sink: ResultEventSink,
        completion: CompletionSignal,
) -> None:
    """Dispatch provider events to the sink until the stream ends."""
    try:
        async for ev in provider.events():
            sink.handle(ev)
    finally:
        # A closed stream cannot deliver a terminal event anymore.
        if completion.set("stream-ended"):
            logger.warning("[SESSION] event stream ended before a terminal event.")


# ---------------------------------------------------------------------------
# Session driver
# ---------------------------------------------------------------------------

async def run_session(
        provider: SpeechSessionProvider,
        sink: ResultEventSink,
        completion: CompletionSignal,
        *,
        timeout_s: Optional[float] = None,
) -> str:
    """
    Drive one recognition session:
      - enter the provider (binds audio input, builds and wires the recognizer)
      - start the event consumer, then start continuous recognition
      - wait for the completion signal
      - stop recognition once, then leave the provider (releases audio input)

    Returns the completion reason. Errors from the provider (construction,
    start, stop) and from the consumer propagate to the caller.
    """
    async with provider:
        consumer = asyncio.create_task(_consume_events(provider, sink, completion))
        try:
            logger.info("[SESSION] Starting continuous recognition.")
            await provider.start()

            try:
                reason = await completion.wait(timeout=timeout_s)
            except asyncio.TimeoutError:
                completion.set("timeout")
                reason = completion.reason
                logger.warning("[SESSION] no terminal event within %.1fs.", timeout_s)

            logger.info("[SESSION] Completed (%s), stopping recognition.", reason)
            await provider.stop()
        finally:
            if not consumer.done():
                consumer.cancel()
            try:
                await consumer
            except asyncio.CancelledError:
                pass

    logger.info("[SESSION] Session closed.")
    return reason


async def run(
        cfg: SessionConfig,
        provider_factory: ProviderFactory,
        *,
        timeout_s: Optional[float] = None,
) -> SessionOutcome:
    """Run one session for a validated configuration."""
    completion = CompletionSignal()
    sink = ResultEventSink(completion, cfg.target_languages, show_partials=cfg.show_partials)
    provider = provider_factory(cfg)

    reason = await run_session(provider, sink, completion, timeout_s=timeout_s)
    return SessionOutcome(reason=reason, canceled=sink.canceled, final_results=sink.final_count)
