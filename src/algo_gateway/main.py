"""Application entry point for the Algorand gateway server."""

from __future__ import annotations

import logging
import os

import uvicorn

from algo_gateway.config.settings import AppConfig


def main() -> None:
    """Start the gateway server."""
    config = AppConfig()
    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    reload = os.getenv("ALGOGW_RELOAD", "false").lower() in ("1", "true", "yes")
    uvicorn.run(
        "algo_gateway.api.app:create_app",
        factory=True,
        host=config.server.host,
        port=config.server.port,
        reload=reload,
        log_level="debug" if config.debug else "info",
    )


if __name__ == "__main__":
    main()
