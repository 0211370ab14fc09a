"""
Speech session events and the provider protocol every speech backend implements.

Providers conform to ``SpeechSessionProvider`` structurally (typing.Protocol),
so they do not need to inherit from it.

Lifecycle
---------
1. **Construction**: instantiate with a ``SessionConfig``. No network calls,
   no file handles.

2. **Session** (async context manager): entering the context binds the audio
   input to the file and builds the recognizer, with every event handler
   connected. Exiting the context releases the audio input. Exit runs exactly
   once, also when something failed in between.

3. **Recognition**: ``start()`` arms continuous recognition and returns
   immediately; results then arrive on ``events()`` as they are produced.
   ``stop()`` ends recognition. ``events()`` ends when the provider is closed.

Events
------
One tagged variant per SDK callback class:

- ``PartialResult``: in-progress hypothesis, fires repeatedly.
- ``FinalResult``: committed utterance, with translations in translation mode.
- ``Canceled``: service ended the session (auth, connection, bad request,
  quota, or plain end of stream). Terminal.
- ``SessionStarted`` / ``SessionStopped``: session bookends. Stopped is terminal.

Within one class, events keep the service's order; across classes no ordering
is guaranteed.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import AsyncIterator, Mapping, Optional, Protocol, Union


class FinalReason(enum.Enum):
    RECOGNIZED_SPEECH = "RecognizedSpeech"
    TRANSLATED_SPEECH = "TranslatedSpeech"
    NO_MATCH = "NoMatch"
    OTHER = "Other"


@dataclass(frozen=True)
class PartialResult:
    text: str


@dataclass(frozen=True)
class FinalResult:
    """
    A committed result.

    Attributes:
        reason: Classified result reason.
        text: Source-language transcript (may be empty for no-match).
        translations: Language tag -> translated text. Empty outside
            translation mode.
        raw_reason: The vendor's reason name, shown for unlisted reasons.
    """
    reason: FinalReason
    text: str = ""
    translations: Mapping[str, str] = field(default_factory=dict)
    raw_reason: str = ""


@dataclass(frozen=True)
class Canceled:
    reason: str
    error_code: Optional[str] = None
    error_details: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.reason == "Error"


@dataclass(frozen=True)
class SessionStarted:
    session_id: str = ""


@dataclass(frozen=True)
class SessionStopped:
    session_id: str = ""


SpeechEvent = Union[PartialResult, FinalResult, Canceled, SessionStarted, SessionStopped]


class SpeechSessionProvider(Protocol):
    """
    Structural protocol for speech session providers.

    See the module docstring for lifecycle details.
    """
    async def __aenter__(self) -> "SpeechSessionProvider": ...
    async def __aexit__(self, exc_type, exc, tb) -> None: ...

    async def start(self) -> None: ...
    async def stop(self) -> None: ...

    def events(self) -> AsyncIterator[SpeechEvent]: ...
