# webswitch/app/web.py
from __future__ import annotations

import asyncio
import logging
import time
import zipfile
from pathlib import Path
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from webswitch.app.globals import getActivationWorkflow, getDataPaths, getPackageRegistry
from webswitch.app.settings import loadSettings, settings, settingsList
from webswitch.app.shell import openFolder
from webswitch.app.status import environmentStatus, packageLabel, packageStatusText, sortPackagesForDisplay
from webswitch.content.environments import (
    DEFAULT_EXCLUDED_NAMES,
    DEFAULT_LAYOUTS,
    Environment,
    discoverEnvironments,
    excludeByNames,
)
from webswitch.content.packages import Package
from webswitch.core.errors import (
    ActivationError,
    ActivationPreconditionError,
    ContentRootNotFoundError,
    UnsafeArchiveError,
)
from webswitch.core.jsonutils import tryJSONify
from webswitch.core.logging import clearLogContext, setLogContext
from webswitch.core.naming import suggestPackageName

logger = logging.getLogger(__name__)
router = APIRouter()

# One activation at a time, process-wide
_activationLock = asyncio.Lock()
# Name check and ingest run as one unit; concurrent adds wait their turn
_ingestLock = asyncio.Lock()



# ------------------------------------------------------------------ #
# Request bodies
# ------------------------------------------------------------------ #

class OpenEnvironmentRequest(BaseModel):
    basePath: str = Field(min_length=1)



class AddPackageRequest(BaseModel):
    archivePath: str = Field(min_length=1)
    name: str | None = None



class VerifyPackageRequest(BaseModel):
    name: str = Field(min_length=1)



class ActivateRequest(BaseModel):
    basePath: str = Field(min_length=1)
    packageName: str = Field(min_length=1)



# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #

def _error(status: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse({"ok": False, "error": message, **tryJSONify(extra)}, status_code=status)



def _configuredLayouts() -> list[tuple[str, ...]]:
    layouts = [tuple(str(part) for part in layout) for layout in settingsList("discovery.layouts") if isinstance(layout, list) and layout]
    return layouts or list(DEFAULT_LAYOUTS)



def discoverConfiguredEnvironments() -> list[Environment]:
    """Discovery with the scan root, name pattern, denylist and layouts from settings."""
    excludeNames = settingsList("discovery.excludeNames") or sorted(DEFAULT_EXCLUDED_NAMES)
    return discoverEnvironments(
        getDataPaths().scanRoot,
        exclude=excludeByNames(str(name) for name in excludeNames),
        layouts=_configuredLayouts(),
        namePattern=settings("discovery.namePattern") or None,
    )



def _findEnvironment(basePath: str) -> Environment | None:
    wanted = str(Path(basePath)).casefold()
    return next((env for env in discoverConfiguredEnvironments() if str(env.basePath).casefold() == wanted), None)



def _environmentView(env: Environment) -> dict[str, Any]:
    return {
        "label": env.displayName,
        "basePath": str(env.basePath),
        "contentPath": str(env.contentPath),
        "contentExists": env.contentPath.is_dir(),
    }



def _packageView(pkg: Package) -> dict[str, Any]:
    return {
        "name": pkg.name,
        "label": packageLabel(pkg),
        "fingerprint": pkg.fingerprint,
        "isBuiltIn": pkg.isBuiltIn,
        "contentRootPath": str(pkg.contentRootPath),
        "savedAt": tryJSONify(pkg.savedAt),
        "status": packageStatusText(pkg),
    }



# ------------------------------------------------------------------ #
# Routes
# ------------------------------------------------------------------ #

@router.get("/health")
async def health():
    return {"ok": True, "ts": int(time.time() * 1000)}



@router.get("/settings")
async def getSettings():
    return JSONResponse(loadSettings(), status_code=200)



@router.get("/environments")
async def listEnvironments():
    envs = await run_in_threadpool(discoverConfiguredEnvironments)
    return {"scanRoot": str(getDataPaths().scanRoot), "environments": [_environmentView(env) for env in envs]}



@router.get("/environments/status")
async def getEnvironmentStatus(basePath: str):
    env = await run_in_threadpool(_findEnvironment, basePath)
    if env is None:
        return _error(404, f"Environment '{basePath}' not found")

    registry = getPackageRegistry()
    packages = await run_in_threadpool(registry.loadAll)
    status = await run_in_threadpool(environmentStatus, env, packages, markerName=registry.markerName)
    return {
        **_environmentView(env),
        "fingerprint": status.fingerprint,
        "present": status.present,
        "match": status.match.name if status.match is not None else None,
        "text": status.text,
    }



@router.post("/environments/open")
async def openEnvironment(body: OpenEnvironmentRequest):
    env = await run_in_threadpool(_findEnvironment, body.basePath)
    if env is None:
        return _error(404, f"Environment '{body.basePath}' not found")
    opened = await run_in_threadpool(openFolder, env.basePath)
    if not opened:
        return _error(404, f"Folder '{env.basePath}' does not exist")
    return {"ok": True}



@router.get("/packages")
async def listPackages():
    packages = await run_in_threadpool(getPackageRegistry().loadAll)
    return {"packages": [_packageView(pkg) for pkg in sortPackagesForDisplay(packages)]}



@router.post("/packages")
async def addPackage(body: AddPackageRequest):
    registry = getPackageRegistry()
    name = (body.name or "").strip() or suggestPackageName(body.archivePath)

    async with _ingestLock:
        if registry.isNameTaken(name):
            return _error(409, f"A package named '{name}' already exists")

        setLogContext(operation="ingest", package=name)
        try:
            package = await run_in_threadpool(registry.ingest, name, body.archivePath)
        except FileNotFoundError as err:
            return _error(404, str(err))
        except ContentRootNotFoundError as err:
            return _error(422, str(err), guidance=err.guidance)
        except (UnsafeArchiveError, zipfile.BadZipFile) as err:
            return _error(422, str(err))
        except ValueError as err:
            return _error(400, str(err))
        finally:
            clearLogContext()

    return {"ok": True, "package": _packageView(package)}



@router.post("/packages/verify")
async def verifyPackage(body: VerifyPackageRequest):
    registry = getPackageRegistry()
    package = await run_in_threadpool(registry.findByName, body.name)
    if package is None:
        return _error(404, f"Package '{body.name}' not found")
    result = await run_in_threadpool(registry.verify, package)
    return {"name": package.name, "expected": result.expected, "actual": result.actual, "ok": result.ok}



@router.post("/activate")
async def activate(body: ActivateRequest):
    if _activationLock.locked():
        return _error(409, "Another activation is in progress")

    async with _activationLock:
        env = await run_in_threadpool(_findEnvironment, body.basePath)
        if env is None:
            return _error(404, f"Environment '{body.basePath}' not found")
        package = await run_in_threadpool(getPackageRegistry().findByName, body.packageName)
        if package is None:
            return _error(404, f"Package '{body.packageName}' not found")

        try:
            report = await run_in_threadpool(getActivationWorkflow().activate, env, package)
        except ActivationPreconditionError as err:
            return _error(400, str(err), step=err.step)
        except ActivationError as err:
            logger.error("Activation of '%s' into '%s' failed: %s", package.name, env.displayName, err)
            return _error(500, str(err), step=err.step, backupDir=err.backupDir)

    return {
        "ok": True,
        "environment": _environmentView(env),
        "package": package.name,
        "backupDir": tryJSONify(report.backupDir),
        "stampPath": tryJSONify(report.stampPath),
        "completedSteps": [step.value for step in report.completedSteps],
        "filesDeployed": report.filesDeployed,
    }
