#!/usr/bin/env python3
"""Startup script for the Euchre backend"""

import logging
import os

import uvicorn

logger = logging.getLogger("euchre_engine.start")


def main():
    port = int(os.getenv("PORT", 8000))
    host = os.getenv("HOST", "0.0.0.0")
    log_level = os.getenv("LOG_LEVEL", "info")

    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(f"🚀 Euchre backend on {host}:{port}, tables at ws://{host}:{port}/ws/{{table_code}}")

    uvicorn.run(
        "euchre_engine.main:app",
        host=host,
        port=port,
        reload=os.getenv("RELOAD", "false").lower() == "true",
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    main()
