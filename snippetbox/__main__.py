"""
Snippetbox - Server Entry Point
================================

Run with `python -m snippetbox` or the `snippetbox` console script.
Configuration comes from the environment (see snippetbox.config).
"""

import logging

import uvicorn

from snippetbox.config import Settings
from snippetbox.main import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = Settings()
    setup_logging(settings.log_level)

    options = {}
    if settings.tls_enabled:
        options["ssl_certfile"] = settings.tls_cert_file
        options["ssl_keyfile"] = settings.tls_key_file
    elif settings.cookie_secure:
        logger.warning("Serving plain HTTP with COOKIE_SECURE on; browsers will drop session cookies")

    logger.info("Starting server on %s:%d", settings.host, settings.port)
    uvicorn.run(
        "snippetbox.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        timeout_keep_alive=settings.keep_alive_timeout,
        log_config=None,
        access_log=False,
        **options,
    )


if __name__ == "__main__":
    main()
