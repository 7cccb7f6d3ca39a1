"""Launch the gateway under uvicorn."""
from __future__ import annotations
import logging

import uvicorn
from dotenv import load_dotenv

from completion_gateway.common.config import load_settings
from completion_gateway.common.logging_setup import setup_logging
from completion_gateway.serve.fastapi_app import create_app

LOGGER = logging.getLogger("completion_gateway.serve.server")

def main() -> None:
    found_env = load_dotenv()
    settings = load_settings()
    setup_logging(settings.log_level)
    if not found_env:
        LOGGER.info("No .env file found. Using environment variables.")

    app = create_app(settings)
    LOGGER.info("Server running on http://localhost:%s", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)

if __name__ == "__main__":
    main()
