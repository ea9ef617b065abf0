#!/usr/bin/env python3
"""Serve the classifieds API locally."""

import sys

import uvicorn

from src.config import settings


def main() -> None:
    reload = "--reload" in sys.argv[1:]
    uvicorn.run(
        "src.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)
