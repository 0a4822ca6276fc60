# webswitch/app/paths.py
from __future__ import annotations
import os
import platform
from dataclasses import dataclass
from pathlib import Path

from webswitch.app.settings import settings

__all__ = [
    "PACKAGE_DIR",
    "BUILTIN_ARCHIVES_DIR",
    "DataPaths",
    "defaultDataRoot",
    "defaultScanRoot",
    "isWindows",
    "resolveDataPaths",
]

# ------------------------------------------------------------------ #
# Static paths (package layout)
# ------------------------------------------------------------------ #

PACKAGE_DIR = Path(__file__).resolve().parent.parent # webswitch/
BUILTIN_ARCHIVES_DIR = PACKAGE_DIR / "builtin"        # archives shipped with the application

_APP_DIR_NAME_WINDOWS = "WebSwitch"
_APP_DIR_NAME_POSIX = "webswitch"

# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #

def _resolve(path: Path | str) -> Path:
    return Path(path).expanduser().resolve()

def isWindows() -> bool:
    return platform.system().lower().startswith("win")

def _underRoot(root: Path, value: str | None, fallback: str) -> Path:
    """Relative settings values live under `root`, absolute ones are taken as-is."""
    sub = Path(value or fallback).expanduser()
    return sub if sub.is_absolute() else root / sub

def defaultDataRoot() -> Path:
    """
    Machine-wide data root when settings leave paths.dataRoot empty:
      - Windows: %ProgramData%\\WebSwitch
      - elsewhere: $XDG_DATA_HOME/webswitch or ~/.local/share/webswitch
    """
    if isWindows():
        programData = os.getenv("ProgramData") or os.getenv("ALLUSERSPROFILE") or "C:\\ProgramData"
        return _resolve(Path(programData) / _APP_DIR_NAME_WINDOWS)
    xdgDataHome = os.getenv("XDG_DATA_HOME")
    base = Path(xdgDataHome).expanduser() if xdgDataHome else Path.home() / ".local" / "share"
    return _resolve(base / _APP_DIR_NAME_POSIX)

def defaultScanRoot() -> Path:
    if isWindows():
        return Path((os.getenv("SystemDrive") or "C:") + "\\")
    return Path("/")

# ------------------------------------------------------------------ #
# Model
# ------------------------------------------------------------------ #

@dataclass(frozen=True)
class DataPaths:
    """
    Directories WebSwitch owns. Existence is *not* guaranteed until ensure() runs.
    """
    dataRoot: Path
    packagesRoot: Path
    backupsRoot: Path
    logsDir: Path
    builtInArchivesDir: Path
    scanRoot: Path

    def ensure(self) -> DataPaths:
        """Creates the writable directories (not the scan root, not the shipped archives)."""
        for path in (self.dataRoot, self.packagesRoot, self.backupsRoot, self.logsDir):
            path.mkdir(parents=True, exist_ok=True)
        return self



def resolveDataPaths(*, dataRoot: Path | str | None = None, scanRoot: Path | str | None = None) -> DataPaths:
    """
    Builds DataPaths from merged settings. Explicit arguments beat settings.
    """
    rootValue = dataRoot or settings("paths.dataRoot")
    root = _resolve(rootValue) if rootValue else defaultDataRoot()

    archivesValue = settings("paths.builtInArchivesDir")
    archivesDir = _resolve(archivesValue) if archivesValue else BUILTIN_ARCHIVES_DIR

    scanValue = scanRoot or settings("discovery.scanRoot")
    scan = Path(scanValue).expanduser() if scanValue else defaultScanRoot()

    return DataPaths(
        dataRoot=root,
        packagesRoot=_underRoot(root, settings("paths.packagesDir"), "Packages"),
        backupsRoot=_underRoot(root, settings("paths.backupsDir"), "Backups"),
        logsDir=_underRoot(root, settings("paths.logsDir"), "logs"),
        builtInArchivesDir=archivesDir,
        scanRoot=scan,
    )
