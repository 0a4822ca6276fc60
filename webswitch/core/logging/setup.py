# webswitch/core/logging/setup.py
from __future__ import annotations
import logging
import logging.handlers
from pathlib import Path

from webswitch.app.settings import settings, settingsBool
from .formatters import DevFormatter, JsonFormatter
from .filters import RecurringSuppressFilter

__all__ = [
    "NO_PROPAGATE",
    "LOG_FILE_NAME",
    "configureLogging",
]



# Library loggers that should not bubble into our handlers
NO_PROPAGATE = [
    "uvicorn.access",
    "httpx",
    "httpcore.connection",
    "httpcore.http11",
]

LOG_FILE_NAME = "webswitch.log"



def configureLogging(*, logsDir: Path | None = None) -> None:
    """
    Initiate the global logging configuration.

    Dev:
      - Console pretty logs (DEBUG)
      - JSON file log (DEBUG), if debug.logToFile
    
    Prod:
      - Console INFO
      - JSON file log INFO with rotation, if debug.logToFile
      - Optional recurring suppression (toggle)
    """
    devMode = settingsBool("debug.devModeEnabled", False)
    rootLevel = logging.DEBUG if devMode else logging.INFO

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(rootLevel)

    for name in NO_PROPAGATE:
        logging.getLogger(name).propagate = False

    handlers: list[logging.Handler] = []

    consoleHandler = logging.StreamHandler()
    consoleHandler.setLevel(rootLevel)
    consoleHandler.setFormatter(DevFormatter())
    handlers.append(consoleHandler)

    if logsDir is not None and settingsBool("debug.logToFile", True):
        logsDir.mkdir(parents=True, exist_ok=True)
        fileHandler = logging.handlers.RotatingFileHandler(
            logsDir / LOG_FILE_NAME,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8"
        )
        fileHandler.setLevel(rootLevel)
        fileHandler.setFormatter(JsonFormatter())
        handlers.append(fileHandler)

    # Optional recurring suppression (disabled by default)
    if settingsBool("debug.suppressRecurringMessages.enabled", False):
        levelName = str(settings("debug.suppressRecurringMessages.summaryLevel", "INFO")).upper()
        summaryLevel = getattr(logging, levelName, logging.INFO)

        suppressFilter = RecurringSuppressFilter(
            windowSeconds=int(settings("debug.suppressRecurringMessages.windowSeconds", 60)),
            maxPerWindow=int(settings("debug.suppressRecurringMessages.maxPerWindow", 5)),
            summaryLevel=summaryLevel,
        )
        for handler in handlers:
            handler.addFilter(suppressFilter)

    for handler in handlers:
        root.addHandler(handler)

    # Per-logger tweaks (reduce noise)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
