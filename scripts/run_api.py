#!/usr/bin/env python3
"""
Entry point that starts the FastAPI server
"""
import argparse

import uvicorn

from infrastructure.config.settings import Settings
from infrastructure.logging.log_setup import setup_console_logging


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve flow sessions over HTTP")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="auto-reload on code changes (development)")
    args = parser.parse_args()

    settings = Settings.from_env()
    setup_console_logging(settings.log_level)
    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
