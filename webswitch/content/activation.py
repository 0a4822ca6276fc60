# webswitch/content/activation.py
from __future__ import annotations

import logging
import shutil
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TypeVar

from webswitch.content import fstree
from webswitch.content.activation_lifecycle import ActivationListener, ActivationStep
from webswitch.content.environments import Environment
from webswitch.content.packages import DEPLOYED_MARKER_NAME, Package
from webswitch.core.errors import ActivationError, ActivationPreconditionError
from webswitch.core.logging import clearLogContext, setLogContext
from webswitch.core.time import localStamp

logger = logging.getLogger(__name__)

__all__ = ["ActivationReport", "ActivationWorkflow", "DEFAULT_BACKUP_TIMESTAMP_FORMAT"]

T = TypeVar("T")

DEFAULT_BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"



@dataclass(frozen=True)
class ActivationReport:
    environment: Environment
    package: Package
    # None when the content path did not exist before activation
    backupDir: Path | None
    # None when the package has no retained archive
    stampPath: Path | None
    completedSteps: tuple[ActivationStep, ...]
    filesDeployed: int
    startedAt: datetime
    finishedAt: datetime



class ActivationWorkflow:
    """
    Moves one package's content into one environment's content path.

    Single pass, no persisted intermediate state:
        ensure target → backup → wipe → deploy → stamp

    Not atomic at the filesystem level. A failure after the wipe leaves the
    content path empty and the backup in place; restoring it is a manual step.
    Callers must not run two activations at the same time.
    """
    def __init__(
        self,
        backupsRoot: Path | str,
        *,
        markerName: str = DEPLOYED_MARKER_NAME,
        timestampFormat: str = DEFAULT_BACKUP_TIMESTAMP_FORMAT,
        listeners: Iterable[ActivationListener] = (),
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.backupsRoot = Path(backupsRoot)
        self.markerName = markerName
        self.timestampFormat = timestampFormat
        self.listeners: list[ActivationListener] = list(listeners)
        self.clock = clock

    def addListener(self, listener: ActivationListener) -> None:
        self.listeners.append(listener)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def activate(self, environment: Environment | None, package: Package | None) -> ActivationReport:
        """
        Runs every step in order and returns what was done.

        Raises ActivationPreconditionError before touching anything when an input
        is missing, and ActivationError (naming the failed step, with the original
        exception as __cause__) when a step fails.
        """
        environment, package = self._checkPreconditions(environment, package)

        setLogContext(operation="activate", environment=str(environment.basePath), package=package.name)
        try:
            return self._run(environment, package)
        finally:
            clearLogContext()

    def newBackupDir(self, environment: Environment) -> Path:
        """
        Creates and returns an empty, unique backup directory for `environment`:
        <backupsRoot>/<backupKey>/<timestamp>[_N]
        """
        baseDir = self.backupsRoot / environment.backupKey
        stamp = localStamp(self.timestampFormat, self.clock())
        candidate = baseDir / stamp
        suffix = 0
        while True:
            try:
                candidate.mkdir(parents=True, exist_ok=False)
                return candidate
            except FileExistsError:
                suffix += 1
                candidate = baseDir / f"{stamp}_{suffix}"

    # ------------------------------------------------------------------ #
    # Steps
    # ------------------------------------------------------------------ #

    def _checkPreconditions(
        self,
        environment: Environment | None,
        package: Package | None,
    ) -> tuple[Environment, Package]:
        if environment is None:
            raise ActivationPreconditionError(ActivationStep.PRECONDITION, "no environment selected")
        if package is None:
            raise ActivationPreconditionError(ActivationStep.PRECONDITION, "no package selected")
        if not package.contentRootPath.is_dir():
            raise ActivationPreconditionError(
                ActivationStep.PRECONDITION,
                f"content root of package '{package.name}' is missing: {package.contentRootPath}",
            )
        return environment, package

    def _run(self, environment: Environment, package: Package) -> ActivationReport:
        startedAt = self.clock()
        contentPath = environment.contentPath
        completed: list[ActivationStep] = []
        backupDir: Path | None = None

        def runStep(step: ActivationStep, action: Callable[[], T]) -> T:
            logger.info("Activation step '%s' started.", step.value)
            self._notify("onStepStarted", step, environment, package)
            try:
                result = action()
            except Exception as err:
                logger.error("Activation step '%s' failed: %s", step.value, err)
                self._notify("onStepFailed", step, environment, package, err)
                raise ActivationError(step, str(err), backupDir=backupDir) from err
            completed.append(step)
            self._notify("onStepCompleted", step, environment, package)
            return result

        hadContent = contentPath.is_dir()

        runStep(ActivationStep.ENSURE_TARGET, lambda: contentPath.mkdir(parents=True, exist_ok=True))

        if hadContent:
            def backup() -> Path:
                nonlocal backupDir
                backupDir = self.newBackupDir(environment)
                fstree.copyTree(contentPath, backupDir)
                return backupDir

            runStep(ActivationStep.BACKUP, backup)
            logger.info("Backup created at '%s'.", backupDir)
        else:
            logger.info("Nothing to back up: '%s' did not exist.", contentPath)

        runStep(ActivationStep.WIPE, lambda: fstree.clearDirectory(contentPath))
        filesDeployed = runStep(ActivationStep.DEPLOY, lambda: fstree.copyTree(package.contentRootPath, contentPath))
        stampPath = runStep(ActivationStep.STAMP, lambda: self._stamp(package, contentPath))

        report = ActivationReport(
            environment=environment,
            package=package,
            backupDir=backupDir,
            stampPath=stampPath,
            completedSteps=tuple(completed),
            filesDeployed=filesDeployed,
            startedAt=startedAt,
            finishedAt=self.clock(),
        )
        logger.info("Activated '%s' into '%s' (%d file(s)).", package.name, environment.displayName, filesDeployed)
        self._notify("onActivated", report)
        return report

    def _stamp(self, package: Package, contentPath: Path) -> Path | None:
        archive = package.sourceArchivePath
        if archive is None:
            logger.info("Package '%s' has no retained archive; skipping stamp.", package.name)
            return None
        target = contentPath / self.markerName
        shutil.copyfile(archive, target)
        logger.info("Stamped '%s'.", target)
        return target

    # ------------------------------------------------------------------ #
    # Listeners
    # ------------------------------------------------------------------ #

    def _notify(self, hook: str, *args: object) -> None:
        for listener in self.listeners:
            try:
                getattr(listener, hook)(*args)
            except Exception:
                logger.exception("Activation listener %r failed in %s", listener, hook)
