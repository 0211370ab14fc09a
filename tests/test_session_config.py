from __future__ import annotations

import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from fakes import write_extensible_wav, write_wav
from speech_caption.session_config import (
    EXIT_BAD_INPUT,
    EXIT_MISSING_CREDENTIALS,
    ConfigError,
    build_session_config,
    parse_target_languages,
)

ENV = {"SPEECH_KEY": "key", "SPEECH_REGION": "westeurope"}


class TestSessionConfig(unittest.TestCase):

    def setUp(self) -> None:
        self._tmpdir = TemporaryDirectory()
        self.tmp = Path(self._tmpdir.name)
        self.wav = write_wav(self.tmp / "speech.wav")

    def tearDown(self) -> None:
        self._tmpdir.cleanup()

    def _error(self, argv, environ=ENV) -> ConfigError:
        with self.assertRaises(ConfigError) as ctx:
            build_session_config(argv, environ)
        return ctx.exception

    def test_recognition_config(self) -> None:
        cfg = build_session_config([str(self.wav), "en-US"], ENV)
        self.assertEqual(self.wav, cfg.audio_path)
        self.assertEqual("en-US", cfg.source_language)
        self.assertEqual((), cfg.target_languages)
        self.assertFalse(cfg.translation_mode)
        self.assertIsNone(cfg.sdk_log_path)
        self.assertEqual("key", cfg.speech_key)
        self.assertEqual("westeurope", cfg.speech_region)

    def test_translation_config(self) -> None:
        cfg = build_session_config([str(self.wav), "en-US", "es,fr"], ENV)
        self.assertEqual(("es", "fr"), cfg.target_languages)
        self.assertTrue(cfg.translation_mode)
        self.assertIsNotNone(cfg.sdk_log_path)

    def test_parse_target_languages(self) -> None:
        self.assertEqual(("en", "zh-Hant"), parse_target_languages("en, zh-Hant,,en"))
        self.assertEqual((), parse_target_languages(" , "))

    def test_too_few_arguments(self) -> None:
        self.assertEqual(EXIT_BAD_INPUT, self._error([]).exit_code)
        self.assertEqual(EXIT_BAD_INPUT, self._error([str(self.wav)]).exit_code)

    def test_too_few_arguments_checked_before_credentials(self) -> None:
        self.assertEqual(EXIT_BAD_INPUT, self._error([str(self.wav)], {}).exit_code)

    def test_missing_file(self) -> None:
        err = self._error([str(self.tmp / "nope.wav"), "en-US"])
        self.assertEqual(EXIT_BAD_INPUT, err.exit_code)
        self.assertIn("does not exist", str(err))

    def test_wrong_extension(self) -> None:
        mp3 = self.tmp / "speech.mp3"
        mp3.write_bytes(b"ID3")
        err = self._error([str(mp3), "en-US"])
        self.assertEqual(EXIT_BAD_INPUT, err.exit_code)
        self.assertIn("*.wav", str(err))

    def test_extension_is_case_insensitive(self) -> None:
        upper = write_wav(self.tmp / "SPEECH.WAV")
        cfg = build_session_config([str(upper), "en-US"], ENV)
        self.assertEqual(upper, cfg.audio_path)

    def test_unreadable_header_left_to_the_sdk(self) -> None:
        bogus = self.tmp / "bogus.wav"
        bogus.write_bytes(b"not a riff header at all")
        cfg = build_session_config([str(bogus), "en-US"], ENV)
        self.assertEqual(bogus, cfg.audio_path)

    def test_extensible_wav_accepted(self) -> None:
        ext = write_extensible_wav(self.tmp / "extensible.wav")
        cfg = build_session_config([str(ext), "en-US"], ENV)
        self.assertEqual(ext, cfg.audio_path)

    def test_empty_target_list(self) -> None:
        self.assertEqual(EXIT_BAD_INPUT, self._error([str(self.wav), "en-US", ","]).exit_code)

    def test_missing_credentials(self) -> None:
        for env in ({}, {"SPEECH_KEY": "key"}, {"SPEECH_REGION": "westeurope"}, {"SPEECH_KEY": "", "SPEECH_REGION": "x"}):
            with self.subTest(env=env):
                err = self._error([str(self.wav), "en-US"], env)
                self.assertEqual(EXIT_MISSING_CREDENTIALS, err.exit_code)
