#!/usr/bin/env python
"""
Server Entry Point

Usage:
    Development:  python run_server.py --dev
    Production:   python run_server.py
    Gunicorn:     python run_server.py --gunicorn
                  (or: gunicorn cargocore.main:app -c gunicorn.conf.py)
"""

import argparse
import os
import subprocess

import structlog
import uvicorn

from cargocore.config import get_settings
from cargocore.config.logging import configure_logging

logger = structlog.get_logger("run_server")


def run_dev_server(port: int):
    """Run development server with auto-reload."""
    uvicorn.run(
        "cargocore.main:app",
        host="0.0.0.0",
        port=port,
        reload=True,
        reload_dirs=["cargocore"],
        log_level="debug",
    )


def run_prod_server(port: int, log_level: str):
    """Run production server with Uvicorn directly."""
    uvicorn.run(
        "cargocore.main:app",
        host="0.0.0.0",
        port=port,
        workers=int(os.getenv("WORKERS", 4)),
        log_level=log_level.lower(),
        proxy_headers=True,
        forwarded_allow_ips="*",
        server_header=False,
    )


def run_gunicorn(port: int):
    """Run with Gunicorn (recommended for production)."""
    env = {**os.environ, "BIND": f"0.0.0.0:{port}"}
    subprocess.run(["gunicorn", "cargocore.main:app", "-c", "gunicorn.conf.py"], env=env, check=True)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="CargoCore Dashboard API Server")
    parser.add_argument("--dev", action="store_true", help="Run in development mode with auto-reload")
    parser.add_argument("--gunicorn", action="store_true", help="Run with Gunicorn (production)")
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", 8000)), help="Port to run on")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.monitoring)

    if args.dev:
        logger.info("Starting development server", port=args.port)
        run_dev_server(args.port)
    elif args.gunicorn:
        logger.info("Starting production server with Gunicorn", port=args.port)
        run_gunicorn(args.port)
    else:
        logger.info("Starting production server with Uvicorn", port=args.port, environment=settings.app_env)
        run_prod_server(args.port, settings.monitoring.log_level)
