"""
Gunicorn Configuration

Uvicorn workers under Gunicorn, one per core.
"""

import multiprocessing
import os

bind = os.getenv("BIND", "0.0.0.0:8000")
workers = int(os.getenv("WORKERS", multiprocessing.cpu_count()))
worker_class = "uvicorn.workers.UvicornWorker"

# Report batches over large snapshots can take a while
timeout = 300
graceful_timeout = 30
keepalive = 5
max_requests = 1000
max_requests_jitter = 100

proc_name = "ecommerce-reports-api"

# Logging goes through structlog on stderr
errorlog = "-"
accesslog = None
loglevel = os.getenv("LOG_LEVEL", "info").lower()
