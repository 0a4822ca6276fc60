# webswitch/__main__.py
from __future__ import annotations

import uvicorn

from webswitch.app.settings import settings



def main() -> None:
    host = str(settings("http.host", "127.0.0.1"))
    port = int(settings("http.port", 8765))
    uvicorn.run("webswitch.server:app", host=host, port=port, log_config=None)



if __name__ == "__main__":
    main()
