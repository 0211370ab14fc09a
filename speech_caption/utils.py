from datetime import datetime
from logging import getLogger, basicConfig, DEBUG, INFO, WARNING, FileHandler, Formatter, Filter
from pathlib import Path
from typing import Optional

from config import LOG_LEVEL, LOG_PATH


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

# Prefixes for project modules (DEBUG level in file)
PROJECT_PREFIXES = ("speech_caption.", "__main__", "main")


class _ThirdPartyLogFilter(Filter):
    """Filter that only passes records from 3rd party modules at INFO+."""
    def filter(self, record):
        is_project = record.name.startswith(PROJECT_PREFIXES)
        if is_project:
            return True  # project code: pass all levels
        return record.levelno >= INFO  # 3rd party: INFO and above only


_LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(funcName)s(): %(message)s"


def setup_logging(level: Optional[int] = None) -> Path:
    """
    Configure logging for the application.

    Console: DEV mode = DEBUG, PROD mode = WARNING (the console is shared with
    the transcript output, so keep it quiet unless asked).
    File: Always DEBUG for project code, INFO for 3rd party.

    Returns the path to the log file.
    """
    if level is None:
        level = DEBUG if LOG_LEVEL == "DEV" else WARNING

    basicConfig(level=level, format=_LOG_FORMAT)
    getLogger("azure").setLevel(INFO)
    getLogger("asyncio").setLevel(INFO)

    # File handler: DEBUG for project code, INFO for 3rd party
    log_filename = LOG_PATH / f"app_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
    file_handler = FileHandler(log_filename, encoding="utf-8")
    file_handler.setLevel(DEBUG)
    file_handler.setFormatter(Formatter(_LOG_FORMAT))
    file_handler.addFilter(_ThirdPartyLogFilter())
    root = getLogger()
    root.addHandler(file_handler)
    # basicConfig sets the console level on the root logger; the file wants everything.
    root.setLevel(DEBUG)
    for handler in root.handlers:
        if handler is not file_handler:
            handler.setLevel(level)

    getLogger(__name__).info("Logging to file: %s", log_filename)
    return log_filename
