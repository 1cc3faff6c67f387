"""``liam-relay`` entry point — run the API under uvicorn."""

from __future__ import annotations

import logging

import uvicorn

from liam_relay.config import settings
from liam_relay.serving.activity import install_activity_log


def main() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    install_activity_log()
    logging.getLogger(__name__).info("Starting Liam relay on %s:%d", settings.host, settings.port)
    uvicorn.run(
        "liam_relay.serving.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
