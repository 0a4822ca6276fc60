# webswitch/app/lifecycle.py
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.concurrency import run_in_threadpool

from webswitch.app.globals import getDataPaths, getPackageRegistry
from webswitch.app.settings import settingsList
from webswitch.content.builtin import ensureBuiltInPackages, parseBuiltInEntries

logger = logging.getLogger(__name__)



def seedBuiltInPackages() -> int:
    """Creates the data directories and ingests configured built-in archives not yet registered."""
    paths = getDataPaths().ensure()
    entries = parseBuiltInEntries(settingsList("packages.builtIn"))
    seeded = ensureBuiltInPackages(getPackageRegistry(), entries, paths.builtInArchivesDir)
    return len(seeded)



@asynccontextmanager
async def life(app: FastAPI) -> AsyncIterator[None]:
    # --------------- Startup ---------------
    try:
        seeded = await run_in_threadpool(seedBuiltInPackages)
        logger.info("Startup complete, %d built-in package(s) seeded", seeded)
    except OSError as err:
        # Without its data root the server can still list environments
        logger.exception("Could not prepare data directories: %s", err)
    yield
    # --------------- Shutdown ---------------
    logger.info("WebSwitch shutting down")
