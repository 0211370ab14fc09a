"""
Session driver tests against a scripted provider: lifecycle order, single
stop/release, and termination paths.

    pytest tests/test_session.py -v
"""
from __future__ import annotations

import unittest
from pathlib import Path
from typing import List

from fakes import ScriptedProvider
from speech_caption.completion import CompletionSignal
from speech_caption.event_sink import ResultEventSink
from speech_caption.session import run, run_session
from speech_caption.session_config import SessionConfig
from speech_caption.speech_event import (
    Canceled,
    FinalReason,
    FinalResult,
    PartialResult,
    SessionStarted,
    SessionStopped,
)


def _config(targets: tuple = ()) -> SessionConfig:
    return SessionConfig(
        audio_path=Path("speech.wav"),
        source_language="en-US",
        target_languages=targets,
        speech_key="key",
        speech_region="westeurope",
    )


class TestRunSession(unittest.IsolatedAsyncioTestCase):

    def setUp(self) -> None:
        self.lines: List[str] = []
        self.completion = CompletionSignal()

    def _sink(self, targets: tuple = ()) -> ResultEventSink:
        return ResultEventSink(self.completion, targets, write=self.lines.append)

    async def test_session_stopped_ends_session(self) -> None:
        provider = ScriptedProvider([
            SessionStarted("s1"),
            PartialResult("hello"),
            FinalResult(FinalReason.RECOGNIZED_SPEECH, "hello world"),
            SessionStopped("s1"),
        ])
        reason = await run_session(provider, self._sink(), self.completion)

        self.assertEqual("session-stopped", reason)
        self.assertEqual(["enter", "start", "stop", "release"], provider.calls)
        self.assertTrue(any("RECOGNIZED" in line and "hello world" in line for line in self.lines))

    async def test_cancel_and_stop_both_delivered(self) -> None:
        provider = ScriptedProvider([
            Canceled("Error", "AuthenticationFailure", "Authentication error (401)."),
            SessionStopped("s1"),
        ])
        reason = await run_session(provider, self._sink(), self.completion)

        self.assertEqual("canceled", reason)
        self.assertEqual(1, provider.stop_calls)
        self.assertEqual(1, provider.release_calls)

    async def test_stream_end_without_terminal_event(self) -> None:
        provider = ScriptedProvider([PartialResult("hel")], close_after_script=True)
        reason = await run_session(provider, self._sink(), self.completion)

        self.assertEqual("stream-ended", reason)
        self.assertEqual(1, provider.stop_calls)
        self.assertEqual(1, provider.release_calls)

    async def test_timeout(self) -> None:
        provider = ScriptedProvider([SessionStarted("s1")])
        reason = await run_session(provider, self._sink(), self.completion, timeout_s=0.05)

        self.assertEqual("timeout", reason)
        self.assertEqual(["enter", "start", "stop", "release"], provider.calls)

    async def test_construction_failure_propagates(self) -> None:
        provider = ScriptedProvider(fail_on_enter=RuntimeError("bad config"))
        with self.assertRaises(RuntimeError):
            await run_session(provider, self._sink(), self.completion)
        self.assertEqual(0, provider.start_calls)
        self.assertEqual(0, provider.stop_calls)


class TestRun(unittest.IsolatedAsyncioTestCase):

    async def test_translation_outcome(self) -> None:
        provider = ScriptedProvider([
            FinalResult(FinalReason.TRANSLATED_SPEECH, "hello world", {"es": "hola mundo", "fr": "bonjour le monde"}),
            FinalResult(FinalReason.NO_MATCH),
            SessionStopped("s1"),
        ])
        outcome = await run(_config(("es", "fr")), lambda cfg: provider)

        self.assertEqual("session-stopped", outcome.reason)
        self.assertIsNone(outcome.canceled)
        self.assertEqual(2, outcome.final_results)

    async def test_cancel_outcome(self) -> None:
        provider = ScriptedProvider([Canceled("Error", "ConnectionFailure", "Connection failed.")])
        outcome = await run(_config(), lambda cfg: provider)

        self.assertEqual("canceled", outcome.reason)
        self.assertEqual("ConnectionFailure", outcome.canceled.error_code)
        self.assertEqual(1, provider.stop_calls)
        self.assertEqual(1, provider.release_calls)
