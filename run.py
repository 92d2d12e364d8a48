"""Entry point for serving the Legal Eye API.

Host and port are read from the ``HOST`` and ``PORT`` environment
variables (defaults ``0.0.0.0`` and ``5000``); every other setting is
read by :meth:`Settings.from_env` inside ``create_app``.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from legal_eye_api.app.core.config import Settings
from legal_eye_api.app.main import create_app


async def run_api(settings: Settings) -> None:
    """Start the API using Uvicorn."""
    config = Config(
        app=create_app(settings),
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    await server.serve()


def main() -> None:
    settings = Settings.from_env()
    try:
        asyncio.run(run_api(settings))
    except Exception:
        logging.exception("API server stopped with an error")
        raise


if __name__ == "__main__":
    try:
        main()
    except (KeyboardInterrupt, SystemExit):
        pass
