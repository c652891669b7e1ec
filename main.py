"""
Main entrypoint: FastAPI server for the GovTwool governance API.

Env: CARDANO_NETWORK, KOIOS_API_KEY, BLOCKFROST_API_KEY, API_HOST, API_PORT, LOG_LEVEL, ENRICH_* etc.

Equivalent: uvicorn backend_govtwool.api_server.server:app --host 0.0.0.0 --port 8080
"""

import os

# Configure structured JSON logging before other imports that may log
from backend_govtwool.govtwool_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Resolve settings, then run the API server in the main thread."""
    from backend_govtwool.config import get_settings

    settings = get_settings()
    logger.info(
        "main_config_loaded",
        network=settings.providers.network,
        koios_base_url=settings.providers.koios_base_url,
        blockfrost_configured=bool(settings.providers.blockfrost_api_key),
        batch_size=settings.enrichment.batch_size,
    )

    from backend_govtwool.api_server.server import app
    import uvicorn

    logger.info("main_server_starting", host=settings.api_host, port=settings.api_port)
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
