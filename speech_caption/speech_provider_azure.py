from __future__ import annotations

import asyncio
from logging import getLogger
from typing import AsyncIterator, Optional, Union

import azure.cognitiveservices.speech as speechsdk

from speech_caption.session_config import SessionConfig
from speech_caption.speech_event import (
    Canceled,
    FinalReason,
    FinalResult,
    PartialResult,
    SessionStarted,
    SessionStopped,
    SpeechEvent,
    SpeechSessionProvider,
)

logger = getLogger(__name__)

Recognizer = Union[speechsdk.SpeechRecognizer, speechsdk.translation.TranslationRecognizer]

_FINAL_REASONS = {
    speechsdk.ResultReason.RecognizedSpeech: FinalReason.RECOGNIZED_SPEECH,
    speechsdk.ResultReason.TranslatedSpeech: FinalReason.TRANSLATED_SPEECH,
    speechsdk.ResultReason.NoMatch: FinalReason.NO_MATCH,
}


# ---------------------------------------------------------------------------
# SDK -> event mapping
# ---------------------------------------------------------------------------

def _enum_name(value) -> str:
    return getattr(value, "name", None) or str(value)


def to_final_result(result, translation_mode: bool) -> FinalResult:
    reason = _FINAL_REASONS.get(result.reason, FinalReason.OTHER)
    translations = {}
    if translation_mode and reason is FinalReason.TRANSLATED_SPEECH:
        translations = dict(result.translations)
    return FinalResult(
        reason=reason,
        text=result.text or "",
        translations=translations,
        raw_reason=_enum_name(result.reason),
    )


def to_canceled(evt) -> Canceled:
    details = evt.cancellation_details
    reason = _enum_name(details.reason)
    if details.reason == speechsdk.CancellationReason.Error:
        return Canceled(reason=reason, error_code=_enum_name(details.code), error_details=details.error_details)
    return Canceled(reason=reason)


def build_speech_config(cfg: SessionConfig) -> speechsdk.SpeechConfig:
    """
    Build the SDK config for recognition, or translation when target
    languages are configured.
    """
    if cfg.translation_mode:
        speech_config = speechsdk.translation.SpeechTranslationConfig(
            subscription=cfg.speech_key, region=cfg.speech_region,
        )
        for lang in cfg.target_languages:
            speech_config.add_target_language(lang)
    else:
        speech_config = speechsdk.SpeechConfig(subscription=cfg.speech_key, region=cfg.speech_region)

    speech_config.set_property(speechsdk.PropertyId.SpeechServiceResponse_ProfanityOption, cfg.profanity_option)
    speech_config.output_format = speechsdk.OutputFormat.Detailed
    # For speech to text, the source language is also the text language.
    speech_config.speech_recognition_language = cfg.source_language

    if cfg.sdk_log_path is not None:
        print(f"=== SDK Log File Path: {cfg.sdk_log_path}", flush=True)
        speech_config.set_property(speechsdk.PropertyId.Speech_LogFilename, str(cfg.sdk_log_path))

    return speech_config


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------

class AzureSpeechProvider(SpeechSessionProvider):
    """
    Azure Speech continuous recognition (or translation) over a WAV file.

    Library: azure-cognitiveservices-speech
    Uses: SpeechRecognizer / TranslationRecognizer with AudioConfig(filename=...)

    The SDK fires its callbacks on its own threads. Each callback maps the
    SDK args to a SpeechEvent and hands it to the event loop; events() drains
    that queue in arrival order.
    """

    def __init__(self, cfg: SessionConfig) -> None:
        self._cfg = cfg
        self._events_q: asyncio.Queue[Optional[SpeechEvent]] = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._audio_config: Optional[speechsdk.audio.AudioConfig] = None
        self._recognizer: Optional[Recognizer] = None

    async def __aenter__(self) -> "AzureSpeechProvider":
        self._loop = asyncio.get_running_loop()
        logger.info("[STT] Azure: binding audio input %s", self._cfg.audio_path)
        self._audio_config = speechsdk.audio.AudioConfig(filename=str(self._cfg.audio_path))
        try:
            speech_config = build_speech_config(self._cfg)
            if self._cfg.translation_mode:
                logger.info("[STT] Azure: translation %s -> %s",
                            self._cfg.source_language, ",".join(self._cfg.target_languages))
                self._recognizer = speechsdk.translation.TranslationRecognizer(
                    translation_config=speech_config, audio_config=self._audio_config,
                )
            else:
                logger.info("[STT] Azure: recognition %s", self._cfg.source_language)
                self._recognizer = speechsdk.SpeechRecognizer(
                    speech_config=speech_config, audio_config=self._audio_config,
                )
            self._connect(self._recognizer)
        except Exception:
            # __aexit__ does not run when __aenter__ raises.
            self._release()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if self._recognizer is not None:
                self._recognizer.recognizing.disconnect_all()
                self._recognizer.recognized.disconnect_all()
                self._recognizer.canceled.disconnect_all()
                self._recognizer.session_started.disconnect_all()
                self._recognizer.session_stopped.disconnect_all()
        finally:
            self._release()
            # Always terminate iterator
            self._events_q.put_nowait(None)

    async def start(self) -> None:
        if self._recognizer is None:
            raise RuntimeError("AzureSpeechProvider: start() outside of session context")
        logger.debug("[STT] Azure: starting continuous recognition")
        await asyncio.to_thread(lambda: self._recognizer.start_continuous_recognition_async().get())

    async def stop(self) -> None:
        if self._recognizer is None:
            return
        logger.debug("[STT] Azure: stopping continuous recognition")
        recognizer = self._recognizer
        await asyncio.to_thread(lambda: recognizer.stop_continuous_recognition_async().get())

    def events(self) -> AsyncIterator[SpeechEvent]:
        """Async iterator yielding speech events."""
        async def _aiter() -> AsyncIterator[SpeechEvent]:
            while True:
                ev = await self._events_q.get()
                if ev is None:
                    break
                yield ev
        return _aiter()

    # -----------------------------------------------------------------------
    # SDK callbacks (SDK threads)
    # -----------------------------------------------------------------------

    def _connect(self, recognizer: Recognizer) -> None:
        translation_mode = self._cfg.translation_mode
        recognizer.recognizing.connect(
            lambda evt: self._deliver(lambda: PartialResult(text=evt.result.text or "")))
        recognizer.recognized.connect(
            lambda evt: self._deliver(lambda: to_final_result(evt.result, translation_mode)))
        recognizer.canceled.connect(
            lambda evt: self._deliver(lambda: to_canceled(evt)))
        recognizer.session_started.connect(
            lambda evt: self._deliver(lambda: SessionStarted(session_id=evt.session_id)))
        recognizer.session_stopped.connect(
            lambda evt: self._deliver(lambda: SessionStopped(session_id=evt.session_id)))

    def _deliver(self, make_event) -> None:
        # Nothing may propagate back into the SDK thread.
        try:
            ev = make_event()
        except Exception as e:
            logger.exception("[STT] Azure: failed to map SDK event: %r", e)
            return
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.warning("[STT] Azure: event after close dropped: %r", ev)
            return
        try:
            loop.call_soon_threadsafe(self._events_q.put_nowait, ev)
        except RuntimeError as e:
            # loop closed after the check above
            logger.warning("[STT] Azure: event after close dropped (%s): %r", e, ev)

    def _release(self) -> None:
        logger.debug("[STT] Azure: releasing audio input")
        self._recognizer = None
        self._audio_config = None
