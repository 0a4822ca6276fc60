# webswitch/content/builtin.py
from __future__ import annotations

import logging
import zipfile
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from webswitch.content.packages import Package, PackageRegistry
from webswitch.core.errors import WebSwitchError

logger = logging.getLogger(__name__)

__all__ = ["BuiltInEntry", "parseBuiltInEntries", "ensureBuiltInPackages"]



@dataclass(frozen=True)
class BuiltInEntry:
    """An archive shipped with the application and the package name it is registered under."""
    archive: str
    name: str



def parseBuiltInEntries(raw: Iterable[Any]) -> list[BuiltInEntry]:
    """Settings `packages.builtIn` → entries. Malformed items are logged and dropped."""
    out: list[BuiltInEntry] = []
    for item in raw:
        if not isinstance(item, Mapping):
            logger.warning("Ignoring built-in package entry %r: not an object", item)
            continue
        archive = str(item.get("archive") or "").strip()
        name = str(item.get("name") or "").strip() or Path(archive).stem
        if not archive:
            logger.warning("Ignoring built-in package entry %r: no archive", item)
            continue
        out.append(BuiltInEntry(archive=archive, name=name))
    return out



def ensureBuiltInPackages(
    registry: PackageRegistry,
    entries: Iterable[BuiltInEntry],
    archivesDir: Path | str,
    *,
    force: bool = False,
) -> list[Package]:
    """
    Ingests every built-in archive once (isBuiltIn=True).

    A package directory that already has a manifest is left alone unless `force`.
    Missing archives and archives that cannot be ingested are logged and skipped;
    the remaining entries still run. Returns the packages ingested by this call.
    """
    baseDir = Path(archivesDir)
    ingested: list[Package] = []

    for entry in entries:
        if not force and registry.isNameTaken(entry.name):
            continue

        archivePath = baseDir / entry.archive
        if not archivePath.is_file():
            logger.warning("Built-in archive not found: %s", archivePath)
            continue

        try:
            package = registry.ingest(entry.name, archivePath, isBuiltIn=True)
        except (WebSwitchError, zipfile.BadZipFile) as err:
            logger.error("Could not register built-in package '%s': %s", entry.name, err)
            continue

        logger.info("Extracted built-in: %s (fingerprint %s...)", package.name, package.fingerprint[:12])
        ingested.append(package)

    return ingested
