"""
Production Server Configuration

Run the dashboard API with Uvicorn workers under Gunicorn.
Upstream fetches and LLM calls can take up to their configured timeouts, so
the worker timeout stays well above UPSTREAM_TIMEOUT_SECONDS + LLM_TIMEOUT_SECONDS.
"""

import multiprocessing
import os

# Server socket
bind = os.getenv("BIND", "0.0.0.0:8000")
backlog = 1024

# Worker processes
workers = int(os.getenv("WORKERS", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"
max_requests = 5000
max_requests_jitter = 500
timeout = int(os.getenv("WORKER_TIMEOUT", 120))
keepalive = 5
graceful_timeout = 30

# Process naming
proc_name = "cargocore-dashboard-api"

# Logging
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
accesslog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)s %(D)s'


def post_fork(server, worker):
    """Each worker configures structured logging for itself."""
    from cargocore.config import get_settings
    from cargocore.config.logging import configure_logging

    configure_logging(get_settings().monitoring)
