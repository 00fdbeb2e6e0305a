"""Application entry point for the document scanner API server."""

import uvicorn

from docscan.api.app import app
from docscan.utils.config import load_config
from docscan.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def main() -> None:
    """Start the FastAPI application server on the configured address."""
    config = load_config()
    setup_logging(config.log_level)
    logger.info(
        "Starting scanner API on %s:%d (OCR provider: %s)",
        config.server.host,
        config.server.port,
        config.ocr.provider,
    )
    uvicorn.run(app, host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    main()
