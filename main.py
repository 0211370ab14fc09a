"""
Speech Caption
==============

Streams a local WAV file to Azure Speech and prints live transcription, or
translation when target languages are given, until the service ends the
session.

Usage
-----
    export SPEECH_KEY=... SPEECH_REGION=...
    python main.py sample.wav en-US
    python main.py sample.wav en-US en,zh-Hant

Exit codes: 0 done, 1 bad arguments or input file, 2 missing credentials.
A session canceled by the service (bad key, bad region, quota) still exits 0
after printing the cancellation details.
"""
from __future__ import annotations

import asyncio
import os
import sys
from logging import getLogger
from typing import Mapping, Optional, Sequence

from speech_caption.session import ProviderFactory, run
from speech_caption.session_config import EXIT_OK, ConfigError, build_session_config
from speech_caption.utils import setup_logging

logger = getLogger(__name__)

_RULE = "=" * 86


def _azure_provider_factory(cfg):
    # Imported lazily so argument errors never load the SDK.
    from speech_caption.speech_provider_azure import AzureSpeechProvider
    return AzureSpeechProvider(cfg)


def run_cli(
        argv: Sequence[str],
        environ: Mapping[str, str],
        provider_factory: Optional[ProviderFactory] = None,
) -> int:
    """Validate arguments, run one session and return the process exit code."""
    try:
        cfg = build_session_config(argv, environ)
    except ConfigError as e:
        print(_RULE)
        print(str(e))
        logger.info("Configuration rejected (exit %d): %s", e.exit_code, e)
        return e.exit_code

    outcome = asyncio.run(run(cfg, provider_factory or _azure_provider_factory))
    logger.info("Session finished: %s, %d final result(s).", outcome.reason, outcome.final_results)
    if outcome.canceled is not None and outcome.canceled.is_error:
        logger.warning("Session canceled by the service: %s", outcome.canceled.error_code)
    return EXIT_OK


def main() -> int:
    # Non-Latin scripts (Japanese, Chinese) must print on any console.
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8")
    setup_logging()
    try:
        return run_cli(sys.argv[1:], os.environ)
    except Exception as e:
        logger.exception("Speech session failed: %r", e)
        raise


if __name__ == "__main__":
    sys.exit(main())
