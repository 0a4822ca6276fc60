# webswitch/content/packages.py
from __future__ import annotations

import json5
import logging
import os
import re
import shutil
import tempfile
import zipfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path, PurePosixPath

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from webswitch.content.content_root import ContentRootLocator
from webswitch.core.errors import ContentRootNotFoundError, UnsafeArchiveError
from webswitch.core.hashing import fingerprintTree
from webswitch.core.naming import safeName
from webswitch.core.time import utcNow

logger = logging.getLogger(__name__)

__all__ = [
    "DEPLOYED_MARKER_NAME",
    "MANIFEST_NAME",
    "SOURCE_ARCHIVE_NAME",
    "EXTRACTED_DIR_NAME",
    "PackageManifest",
    "Package",
    "PackageVerification",
    "PackageRegistry",
    "contentFingerprint",
    "extractArchive",
]



# Name under which the original archive is stamped into an activated content path
DEPLOYED_MARKER_NAME = "loadweb.zip"

MANIFEST_NAME = "package.json"
_MANIFEST_NAMES: tuple[str, ...] = (MANIFEST_NAME, "package.json5")
SOURCE_ARCHIVE_NAME = "source.zip"
EXTRACTED_DIR_NAME = "extracted"
# Per-ingest scratch directory inside the package directory
STAGING_PREFIX = ".staging-"

_EXCESS_FRACTION_RE = re.compile(r"(\.\d{6})\d+")



def contentFingerprint(path: Path | str, *, markerName: str = DEPLOYED_MARKER_NAME) -> str:
    """
    Fingerprint of deployable content. The deployed-content marker at the root is an
    activation artifact and never part of the content identity.
    """
    return fingerprintTree(path, exclude=(markerName,))



# ------------------------------------------------------------------ #
# Manifest
# ------------------------------------------------------------------ #

class PackageManifest(BaseModel):
    """
    Persisted form of a Package (one `package.json` per package directory).

    Also reads legacy manifests (enRootPath, checksum, isEmbedded, savedUtc).
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str | None = None
    contentRootPath: str | None = Field(default=None, validation_alias=AliasChoices("contentRootPath", "enRootPath"))
    fingerprint: str = Field(validation_alias=AliasChoices("fingerprint", "checksum"), min_length=1)
    isBuiltIn: bool = Field(default=False, validation_alias=AliasChoices("isBuiltIn", "isEmbedded"))
    savedAt: datetime | None = Field(default=None, validation_alias=AliasChoices("savedAt", "savedUtc"))

    @field_validator("savedAt", mode="before")
    @classmethod
    def _trimFraction(cls, value: object) -> object:
        # Legacy timestamps carry 7 fractional digits; datetime keeps at most 6
        if isinstance(value, str):
            return _EXCESS_FRACTION_RE.sub(r"\1", value)
        return value



# ------------------------------------------------------------------ #
# Package
# ------------------------------------------------------------------ #

@dataclass(frozen=True)
class Package:
    """
    A named, fingerprinted, deployable content tree owned by the registry.
    """
    name: str
    # Registry-owned directory: manifest, source archive, extraction
    packageDir: Path
    # Deployable subtree (often somewhere inside packageDir/extracted)
    contentRootPath: Path
    # Lowercase hex content hash taken at ingestion; trusted afterwards
    fingerprint: str
    isBuiltIn: bool = False
    savedAt: datetime | None = None

    @property
    def manifestPath(self) -> Path:
        return self.packageDir / MANIFEST_NAME

    @property
    def sourceArchivePath(self) -> Path | None:
        """The retained original archive, if it is still on disk."""
        candidate = self.packageDir / SOURCE_ARCHIVE_NAME
        return candidate if candidate.is_file() else None

    def toManifest(self) -> PackageManifest:
        return PackageManifest(
            name=self.name,
            contentRootPath=str(self.contentRootPath),
            fingerprint=self.fingerprint,
            isBuiltIn=self.isBuiltIn,
            savedAt=self.savedAt,
        )

    def saveManifest(self) -> Path:
        manifest = self.toManifest()
        if manifest.savedAt is None:
            manifest.savedAt = utcNow()
        self.manifestPath.write_text(manifest.model_dump_json(indent=2), encoding="utf-8")
        return self.manifestPath



@dataclass(frozen=True)
class PackageVerification:
    package: Package
    expected: str
    actual: str

    @property
    def ok(self) -> bool:
        return self.expected.lower() == self.actual.lower()



# ------------------------------------------------------------------ #
# Archive extraction
# ------------------------------------------------------------------ #

def _memberIsUnsafe(memberName: str) -> bool:
    normalized = memberName.replace("\\", "/")
    if normalized.startswith("/") or (len(normalized) > 1 and normalized[1] == ":"):
        return True
    return ".." in PurePosixPath(normalized).parts



def extractArchive(archivePath: Path | str, destination: Path | str) -> Path:
    """
    Extracts a zip archive into `destination` (created if missing).
    Refuses archives whose members would land outside `destination`.
    """
    archive = Path(archivePath)
    target = Path(destination)
    target.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(archive) as zipFile:
        for member in zipFile.namelist():
            if _memberIsUnsafe(member):
                raise UnsafeArchiveError(archive, member)
        zipFile.extractall(target)
    return target



def _findManifestPath(dirPath: Path) -> Path | None:
    for name in _MANIFEST_NAMES:
        candidate = dirPath / name
        if candidate.is_file():
            return candidate
    return None



# ------------------------------------------------------------------ #
# Registry
# ------------------------------------------------------------------ #

class PackageRegistry:
    """
    Durable catalog of packages, one subdirectory of `root` per package.

    Manifests are a trusted cache: loading never re-hashes content. Callers that
    need to detect tampering use verify().

    Package names are not checked for global uniqueness. Two names with the same
    directory-safe form share a directory, and the later ingest replaces the
    earlier one; callers pick distinct names (see suggestPackageName).
    """
    def __init__(
        self,
        root: Path | str,
        *,
        locator: ContentRootLocator | None = None,
        markerName: str = DEPLOYED_MARKER_NAME,
    ) -> None:
        self.root = Path(root)
        self.locator = locator or ContentRootLocator()
        self.markerName = markerName

    # ----- Paths -----

    def packageDirFor(self, name: str) -> Path:
        dirName = safeName(name)
        if not dirName:
            raise ValueError(f"Package name {name!r} has no directory-safe form")
        return self.root / dirName

    def isNameTaken(self, name: str) -> bool:
        try:
            packageDir = self.packageDirFor(name)
        except ValueError:
            return False
        return _findManifestPath(packageDir) is not None

    def fingerprintOf(self, path: Path | str) -> str:
        return contentFingerprint(path, markerName=self.markerName)

    # ----- Ingestion -----

    def ingest(self, name: str, archivePath: Path | str, *, isBuiltIn: bool = False) -> Package:
        """
        Stores `archivePath` as a new package named `name` and returns it.

        Steps: copy and extract the archive into a staging directory, locate the
        content root, fingerprint it, then move the extraction to
        <packageDir>/extracted and the archive to <packageDir>/source.zip and write
        the manifest. A failed re-ingest leaves the existing package untouched.

        Raises ContentRootNotFoundError (with layout guidance) when the archive has
        no recognizable content root, UnsafeArchiveError for traversal members, and
        any OSError/zipfile.BadZipFile from the filesystem or the archive itself.
        """
        source = Path(archivePath)
        if not source.is_file():
            raise FileNotFoundError(f"Archive '{source}' not found")

        packageDir = self.packageDirFor(name)
        createdDir = not packageDir.exists()
        packageDir.mkdir(parents=True, exist_ok=True)
        # Everything is prepared here first; an existing package is only replaced once this succeeds
        stagingDir = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX, dir=packageDir))

        try:
            stagedArchive = stagingDir / SOURCE_ARCHIVE_NAME
            shutil.copyfile(source, stagedArchive)

            stagedExtract = stagingDir / EXTRACTED_DIR_NAME
            extractArchive(stagedArchive, stagedExtract)

            stagedRoot = self.locator.locate(stagedExtract)
            if stagedRoot is None:
                raise ContentRootNotFoundError(source)
            fingerprint = self.fingerprintOf(stagedRoot)

            extractDir = packageDir / EXTRACTED_DIR_NAME
            if extractDir.exists():
                shutil.rmtree(extractDir)
            stagedExtract.rename(extractDir)
            os.replace(stagedArchive, packageDir / SOURCE_ARCHIVE_NAME)

            package = Package(
                name=name,
                packageDir=packageDir,
                contentRootPath=(extractDir / stagedRoot.relative_to(stagedExtract)).resolve(),
                fingerprint=fingerprint,
                isBuiltIn=isBuiltIn,
                savedAt=utcNow(),
            )
            package.saveManifest()
        except Exception:
            if createdDir:
                shutil.rmtree(packageDir, ignore_errors=True)
            raise
        finally:
            shutil.rmtree(stagingDir, ignore_errors=True)

        logger.info("Added package: %s (fingerprint %s...)", name, fingerprint[:12])
        return package

    # ----- Loading -----

    def load(self, packageDir: Path | str) -> Package | None:
        """
        Reads one package directory. Returns None (never raises) when the manifest
        is missing, unparsable, incomplete, or points at a content root that is gone.
        """
        dirPath = Path(packageDir)
        manifestPath = _findManifestPath(dirPath)
        if manifestPath is None:
            logger.debug("Skipping '%s': no manifest", dirPath)
            return None

        try:
            raw = json5.loads(manifestPath.read_text(encoding="utf-8"))
            manifest = PackageManifest.model_validate(raw)
        except (OSError, ValueError, ValidationError) as err:
            # json5 raises ValueError subclasses on malformed input
            logger.warning("Skipping broken package manifest '%s': %s", manifestPath, err)
            return None

        contentRoot = Path(manifest.contentRootPath) if manifest.contentRootPath else dirPath / EXTRACTED_DIR_NAME
        if not contentRoot.is_dir():
            logger.warning("Skipping package '%s': content root '%s' no longer exists", dirPath.name, contentRoot)
            return None

        return Package(
            name=(manifest.name or "").strip() or dirPath.name,
            packageDir=dirPath,
            contentRootPath=contentRoot,
            fingerprint=manifest.fingerprint.lower(),
            isBuiltIn=manifest.isBuiltIn,
            savedAt=manifest.savedAt,
        )

    def loadAll(self) -> list[Package]:
        """
        Every loadable package under the registry root, ordered by directory name.
        A missing root yields an empty list.
        """
        if not self.root.is_dir():
            return []
        packages: list[Package] = []
        for child in sorted(self.root.iterdir(), key=lambda path: path.name.upper()):
            if not child.is_dir():
                continue
            package = self.load(child)
            if package is not None:
                packages.append(package)
        logger.info("Loaded %d package(s).", len(packages))
        return packages

    # ----- Lookup / verification -----

    def findByName(self, name: str) -> Package | None:
        wanted = name.strip().casefold()
        return next((pkg for pkg in self.loadAll() if pkg.name.casefold() == wanted), None)

    @staticmethod
    def findByFingerprint(packages: list[Package], fingerprint: str) -> Package | None:
        wanted = fingerprint.lower()
        return next((pkg for pkg in packages if pkg.fingerprint.lower() == wanted), None)

    def verify(self, package: Package) -> PackageVerification:
        """Recomputes the content fingerprint and compares it with the stored one."""
        actual = self.fingerprintOf(package.contentRootPath)
        result = PackageVerification(package=package, expected=package.fingerprint, actual=actual)
        if not result.ok:
            logger.warning(
                "Package '%s' changed since ingestion (stored %s..., now %s...)",
                package.name,
                package.fingerprint[:12],
                actual[:12],
            )
        return result
