#!/usr/bin/env python3
"""
Development runner for the Legal Time Tracking Service.

Usage:
    python -m timetrack.run
    HOST=127.0.0.1 PORT=9000 RELOAD=true python -m timetrack.run
"""

import os

import uvicorn

from .config import get_settings


def main() -> None:
    settings = get_settings()
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))

    print(f"Legal Time Tracking Service v{settings.service_version} ({settings.store_backend.value} store)")
    print(f"API docs: http://{host}:{port}/docs")

    uvicorn.run(
        "timetrack.api:app",
        host=host,
        port=port,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
