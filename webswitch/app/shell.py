# webswitch/app/shell.py
from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path

from webswitch.app.paths import isWindows

logger = logging.getLogger(__name__)

__all__ = ["openFolder"]



def _openerCommand(folder: Path) -> list[str]:
    if sys.platform == "darwin":
        return ["open", str(folder)]
    return ["xdg-open", str(folder)]



def openFolder(path: Path | str) -> bool:
    """
    Opens `path` in the platform file browser (Explorer, Finder, xdg-open).
    Returns False without launching anything when the folder does not exist.
    The browser process is not waited for.
    """
    folder = Path(path)
    if not folder.is_dir():
        logger.warning("Cannot open '%s': folder does not exist", folder)
        return False

    if isWindows():
        os.startfile(str(folder))  # type: ignore[attr-defined]
    else:
        subprocess.Popen(
            _openerCommand(folder),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    logger.info("Opened folder '%s'", folder)
    return True
