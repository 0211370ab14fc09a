from __future__ import annotations

from logging import getLogger
from typing import Callable, List, Sequence

from speech_caption.completion import CompletionSignal
from speech_caption.speech_event import (
    Canceled,
    FinalReason,
    FinalResult,
    PartialResult,
    SessionStarted,
    SessionStopped,
    SpeechEvent,
)

logger = getLogger(__name__)

_BANNER = "=========================="


def _print_line(line: str) -> None:
    print(line, flush=True)


def _primary_subtag(lang: str) -> str:
    return lang.split("-", 1)[0].lower()


class ResultEventSink:
    """
    Formats speech events for the console and completes the session on
    terminal events (Canceled, SessionStopped).

    Recognition and translation sessions share this sink; the target language
    list decides which final-result layout is used.
    """

    def __init__(
            self,
            completion: CompletionSignal,
            target_languages: Sequence[str] = (),
            *,
            show_partials: bool = True,
            write: Callable[[str], None] = _print_line,
    ) -> None:
        self._completion = completion
        self._targets = tuple(target_languages)
        self._target_primaries = {_primary_subtag(lang) for lang in self._targets}
        self._show_partials = show_partials
        self._write = write
        self.final_count = 0
        self.canceled: Canceled | None = None

    @property
    def translation_mode(self) -> bool:
        return bool(self._targets)

    def handle(self, event: SpeechEvent) -> None:
        if isinstance(event, PartialResult):
            if self._show_partials:
                self._emit([f"      RECOGNIZING: Text= {event.text}"])
        elif isinstance(event, FinalResult):
            self.final_count += 1
            if self.translation_mode:
                self._emit(self._format_translation(event))
            else:
                self._emit(self._format_recognition(event))
        elif isinstance(event, Canceled):
            self._on_canceled(event)
        elif isinstance(event, SessionStarted):
            logger.info("[SINK] session started: %s", event.session_id)
            self._emit([_BANNER, "    Session started event.", _BANNER, "\n\n"])
        elif isinstance(event, SessionStopped):
            logger.info("[SINK] session stopped: %s", event.session_id)
            self._emit(["\n\n", _BANNER, "    Session stopped event.", "Stop recognition."])
            self._completion.set("session-stopped")
        else:
            logger.warning("[SINK] unknown event ignored: %r", event)

    # -----------------------------------------------------------------------
    # Formatting
    # -----------------------------------------------------------------------

    def _format_recognition(self, event: FinalResult) -> List[str]:
        if event.reason is FinalReason.RECOGNIZED_SPEECH:
            return [f"RECOGNIZED: Text= {event.text}", ""]
        if event.reason is FinalReason.NO_MATCH:
            logger.info("[SINK] no match for audio segment")
            return ["RECOGNIZED NOMATCH: Speech could not be recognized.", ""]
        logger.info("[SINK] unlisted result reason: %s", event.raw_reason or event.reason.value)
        return [f"RECOGNIZED UNLISTED REASON: Text={event.raw_reason or event.reason.value}.", ""]

    def _format_translation(self, event: FinalResult) -> List[str]:
        if event.reason is FinalReason.TRANSLATED_SPEECH:
            lines = [f"--- RECOGNIZED: Text={event.text}"]
            for lang, text in event.translations.items():
                if lang not in self._targets:
                    # The service normalizes tags (es-JP -> es, zh-TW -> zh-Hant).
                    if _primary_subtag(lang) not in self._target_primaries:
                        logger.warning("[SINK] translation into unrequested language %r skipped", lang)
                        continue
                    logger.warning("[SINK] translation returned as %r, requested as one of %s", lang, self._targets)
                lines.append(f"------ TRANSLATED into '{lang}': {text}")
            lines.append("")
            return lines
        if event.reason is FinalReason.RECOGNIZED_SPEECH:
            # Usually an invalid target language tag; the source transcript still came through.
            logger.info("[SINK] recognized but not translated: %s", event.text)
            return ["--- RECOGNIZED: Recognized but not translated."]
        if event.reason is FinalReason.NO_MATCH:
            # Noise, music or speech in a different language than the source.
            logger.info("[SINK] no match for audio segment")
            return [f"--- RECOGNIZED NOMATCH: Speech could not be recognized and Text={event.text}."]
        logger.info("[SINK] unlisted result reason: %s", event.raw_reason or event.reason.value)
        return [f"--- RECOGNIZED UNLISTED REASON: Text={event.text}."]

    def _on_canceled(self, event: Canceled) -> None:
        lines = [f"CANCELED: Reason={event.reason}"]
        if event.is_error:
            # ConnectionFailure: bad region; AuthenticationFailure: bad key;
            # BadRequest: invalid language tag or quota exceeded.
            logger.warning("[SINK] canceled with error %s: %s", event.error_code, event.error_details)
            lines.append(f"CANCELED: ErrorCode={event.error_code}")
            lines.append(f"CANCELED: ErrorDetails={event.error_details}")
        else:
            logger.info("[SINK] canceled: %s", event.reason)
        self._emit(lines)

        if self.canceled is None:
            self.canceled = event
        self._completion.set("canceled")

    def _emit(self, lines: List[str]) -> None:
        for line in lines:
            self._write(line)
