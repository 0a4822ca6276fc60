# webswitch/server.py
from __future__ import annotations

from webswitch.app.factory import createApp

# ASGI entry point: `uvicorn webswitch.server:app`
app = createApp()
