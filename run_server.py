#!/usr/bin/env python
"""
Launch the Storefront Order API.

    python run_server.py --dev        # single process, auto-reload
    python run_server.py              # uvicorn with API_WORKERS processes
    python run_server.py --gunicorn   # gunicorn -c gunicorn.conf.py

Host, port and worker count default to API_HOST, API_PORT and API_WORKERS.
"""

import argparse
import os
import subprocess

import uvicorn

from storefront.config import get_settings

APP = "storefront.main:app"


def serve(host: str, port: int, dev: bool, workers: int) -> None:
    if dev:
        uvicorn.run(APP, host=host, port=port, reload=True, reload_dirs=["storefront"], log_level="debug")
        return

    uvicorn.run(
        APP,
        host=host,
        port=port,
        workers=workers,
        log_level=get_settings().monitoring.log_level.lower(),
        proxy_headers=True,
        forwarded_allow_ips="*",
        server_header=False,
    )


def main() -> None:
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Storefront Order API server")
    parser.add_argument("--dev", action="store_true", help="auto-reload, debug logging")
    parser.add_argument("--gunicorn", action="store_true", help="run under gunicorn.conf.py")
    parser.add_argument("--host", default=settings.api_host)
    parser.add_argument("--port", type=int, default=settings.api_port)
    parser.add_argument("--workers", type=int, default=settings.api_workers)
    args = parser.parse_args()

    if args.gunicorn:
        env = {**os.environ, "BIND": f"{args.host}:{args.port}", "WORKERS": str(args.workers)}
        subprocess.run(["gunicorn", "-c", "gunicorn.conf.py"], check=True, env=env)
    else:
        serve(args.host, args.port, args.dev, args.workers)


if __name__ == "__main__":
    main()
