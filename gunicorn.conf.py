"""
Gunicorn settings for the Storefront Order API (uvicorn workers).

Rate limits and the login lockout live in process memory, so each worker
enforces its own budget.
"""

import multiprocessing
import os

wsgi_app = "storefront.main:app"
proc_name = "storefront-orders-api"

bind = os.getenv("BIND", "0.0.0.0:8000")
workers = int(os.getenv("WORKERS", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"

# Recycle workers; this also resets their in-memory limiter state
max_requests = 10000
max_requests_jitter = 1000

# Above ORDERS_REQUEST_TIMEOUT_SECONDS so the app answers 504 first
timeout = 60
graceful_timeout = 30
keepalive = 5

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()


def worker_int(worker):
    worker.log.info("Worker %s interrupted, draining", worker.pid)
