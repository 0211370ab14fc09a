"""
Session configuration: command-line arguments plus credentials from the
environment, validated before any speech client is created.

    <audio_file.wav> <source_language> [target_language_list]

``target_language_list`` is comma separated (``en,zh-Hant``) and switches the
session into translation mode.
"""
from __future__ import annotations

import wave
from dataclasses import dataclass
from logging import getLogger
from pathlib import Path
from typing import Mapping, Optional, Sequence, Tuple

from config import (
    PROFANITY_OPTION,
    SDK_LOG_FILE,
    SHOW_PARTIALS,
    SPEECH_KEY_ENV,
    SPEECH_REGION_ENV,
    SUPPORTED_AUDIO_EXTENSIONS,
)
from speech_caption.wav_stream import inspect_wav

logger = getLogger(__name__)

EXIT_OK = 0
EXIT_BAD_INPUT = 1
EXIT_MISSING_CREDENTIALS = 2

USAGE = (
    "Please provide the *.wav filename and the language/locality for the expected language,\n"
    "    For instance on speech-to-text services, speech-caption sample.wav en-US\n"
    "    or on translation services, speech-caption sample.wav en-US en,zh-Hant"
)


class ConfigError(Exception):
    """Invalid arguments or environment. Carries the process exit code."""

    def __init__(self, message: str, exit_code: int = EXIT_BAD_INPUT) -> None:
        super().__init__(message)
        self.exit_code = exit_code


@dataclass(frozen=True)
class SessionConfig:
    audio_path: Path
    source_language: str
    target_languages: Tuple[str, ...]
    speech_key: str
    speech_region: str
    profanity_option: str = PROFANITY_OPTION
    show_partials: bool = SHOW_PARTIALS
    # Speech SDK trace file, None disables it.
    sdk_log_path: Optional[Path] = None

    @property
    def translation_mode(self) -> bool:
        return bool(self.target_languages)


def parse_target_languages(raw: str) -> Tuple[str, ...]:
    """Split ``es,fr`` into ``("es", "fr")``, dropping blanks and duplicates."""
    tags = []
    for tag in raw.split(","):
        tag = tag.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tuple(tags)


def validate_audio_file(raw_path: str) -> Path:
    path = Path(raw_path)
    if not path.is_file():
        raise ConfigError(f"The provided speechSourceFile {raw_path} does not exist!")
    if path.suffix.lower() not in SUPPORTED_AUDIO_EXTENSIONS:
        raise ConfigError(f"The provided speechSourceFile {raw_path} is not an expected audio *.wav file!")

    # The header is only inspected for logging; the speech SDK reads formats
    # the stdlib wave module rejects (WAVE_FORMAT_EXTENSIBLE before 3.12).
    try:
        fmt = inspect_wav(path)
    except (wave.Error, EOFError) as e:
        logger.debug("[CONFIG] %s: WAV header not inspected: %s", path.name, e)
        return path

    logger.debug("[CONFIG] %s: %d Hz, %d ch, %d bytes/sample, %.1f s",
                 path.name, fmt.sample_rate, fmt.channels, fmt.sample_width_bytes, fmt.duration_s)
    return path


def build_session_config(argv: Sequence[str], environ: Mapping[str, str]) -> SessionConfig:
    """
    Validate positional arguments (program name excluded) and credentials.

    Raises ConfigError with exit code 1 for bad arguments or input file, and
    exit code 2 for missing credentials. Arguments are checked first so a bad
    invocation never looks at the environment.
    """
    if len(argv) < 2:
        raise ConfigError(USAGE)
    if len(argv) > 3:
        raise ConfigError(f"Too many arguments ({len(argv)}).\n{USAGE}")

    audio_path = validate_audio_file(argv[0])

    source_language = argv[1].strip()
    if not source_language:
        raise ConfigError(f"Source language must not be empty.\n{USAGE}")

    target_languages: Tuple[str, ...] = ()
    if len(argv) == 3:
        target_languages = parse_target_languages(argv[2])
        if not target_languages:
            raise ConfigError(f"Target language list {argv[2]!r} has no language tags.\n{USAGE}")

    speech_key = environ.get(SPEECH_KEY_ENV)
    speech_region = environ.get(SPEECH_REGION_ENV)
    if not speech_key or not speech_region:
        raise ConfigError(
            f"Please set the environmental variables {SPEECH_KEY_ENV} and {SPEECH_REGION_ENV} for proper billing.",
            exit_code=EXIT_MISSING_CREDENTIALS,
        )

    return SessionConfig(
        audio_path=audio_path,
        source_language=source_language,
        target_languages=target_languages,
        speech_key=speech_key,
        speech_region=speech_region,
        sdk_log_path=SDK_LOG_FILE if target_languages else None,
    )
