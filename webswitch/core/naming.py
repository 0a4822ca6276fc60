# webswitch/core/naming.py
from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path

__all__ = ["safeName", "suggestPackageName"]

# Characters that are invalid in a file name on at least one supported platform
_INVALID_CHARS_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')



def safeName(name: str) -> str:
    """
    Directory-safe form of `name`: invalid file name characters become '_',
    surrounding whitespace is trimmed.
    """
    return _INVALID_CHARS_RE.sub("_", str(name)).strip()



def suggestPackageName(archivePath: Path | str, when: datetime | None = None) -> str:
    """
    Default package name for an operator-supplied archive: "<stem> (YYYY-MM-DD)".
    The date suffix tells apart re-uploads of archives that share a file name.
    """
    stamp = (when or datetime.now()).strftime("%Y-%m-%d")
    return f"{Path(archivePath).stem} ({stamp})"
