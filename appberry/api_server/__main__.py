from __future__ import annotations

import uvicorn

from .main import app


if __name__ == "__main__":
    settings = app.state.settings
    print(f"[desktop] serving on http://{settings.host}:{settings.port}/api (cors origin {settings.cors_origin})")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")
