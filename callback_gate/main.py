"""
Callback gate FastAPI application.

Run with the factory so configuration is validated at boot:

    uvicorn --factory callback_gate.main:create_app
"""
import logging
import sys
from typing import Optional

from fastapi import FastAPI

from callback_gate.api.routes import health as health_routes
from callback_gate.config.merchant_config import MerchantConfig, load_merchant_config
from callback_gate.middleware.error_handler import ErrorHandlerMiddleware
from callback_gate.middleware.signature import SignatureMiddleware

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Set up root logging for the service process."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def create_app(config: Optional[MerchantConfig] = None) -> FastAPI:
    """
    Build the application with callback verification installed.

    Raises:
        ConfigurationError: If merchant code or secret is missing or malformed
    """
    config = config or load_merchant_config()
    configure_logging(config.log_level)

    app = FastAPI(title="AG Callback Gate", version="1.0.0")

    # Middleware order (last added = outermost, executes first):
    # 1. SignatureMiddleware - verifies callbacks, replays the buffered body
    # 2. ErrorHandlerMiddleware - translates verification errors to JSON
    app.add_middleware(SignatureMiddleware, config=config)
    app.add_middleware(ErrorHandlerMiddleware)

    app.include_router(health_routes.router)

    logger.info(
        "Callback gate ready",
        extra={
            "merchant_code": config.merchant_code,
            "callback_path_prefix": config.callback_path_prefix,
        },
    )
    return app
