# webswitch/app/factory.py
from __future__ import annotations
import logging
from collections.abc import Sequence
from pathlib import Path

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from webswitch.app.context import PROCESS_REGISTRY
from webswitch.app.lifecycle import life
from webswitch.app.paths import DataPaths, resolveDataPaths
from webswitch.app.settings import settings
from webswitch.content.activation import DEFAULT_BACKUP_TIMESTAMP_FORMAT, ActivationWorkflow
from webswitch.content.activation_lifecycle import ActivationListener
from webswitch.content.packages import DEPLOYED_MARKER_NAME, PackageRegistry
from webswitch.core.logging import configureLogging



def registerServices(
    paths: DataPaths,
    *,
    listeners: Sequence[ActivationListener] = (),
) -> None:
    """Builds the registry and workflow from settings and publishes them in PROCESS_REGISTRY."""
    markerName = str(settings("activation.markerFileName", DEPLOYED_MARKER_NAME))
    registry = PackageRegistry(paths.packagesRoot, markerName=markerName)
    workflow = ActivationWorkflow(
        paths.backupsRoot,
        markerName=markerName,
        timestampFormat=str(settings("activation.backupTimestampFormat", DEFAULT_BACKUP_TIMESTAMP_FORMAT)),
        listeners=listeners,
    )
    PROCESS_REGISTRY.register("paths", paths, overwrite=True)
    PROCESS_REGISTRY.register("packages.registry", registry, overwrite=True)
    PROCESS_REGISTRY.register("activation.workflow", workflow, overwrite=True)



def createApp(
    *,
    dataRoot: Path | str | None = None,
    scanRoot: Path | str | None = None,
    listeners: Sequence[ActivationListener] = (),
    extraRouters: Sequence[APIRouter] = (),
) -> FastAPI:
    paths = resolveDataPaths(dataRoot=dataRoot, scanRoot=scanRoot)
    configureLogging(logsDir=paths.logsDir)
    logger = logging.getLogger(__name__)

    registerServices(paths, listeners=listeners)

    app = FastAPI(title="WebSwitch", lifespan=life)

    # ----- CORS -----
    corsOrigins = settings("http.cors.allowOrigins", [])
    if not isinstance(corsOrigins, list):
        corsOrigins = []

    app.add_middleware(
        CORSMiddleware,
        allow_origins=corsOrigins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ----- Routers -----
    from webswitch.app.web import router as webRouter
    app.include_router(webRouter)

    for router in extraRouters:
        app.include_router(router)

    logger.info("WebSwitch initialized (data root '%s', scan root '%s')", paths.dataRoot, paths.scanRoot)
    return app
