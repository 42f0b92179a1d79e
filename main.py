#!/usr/bin/env python3
"""
bsvfx - Entry point for running the conversion API.

Usage:
    python main.py                       # Serve on [::]:8000 with data/bsvfx.db
    python main.py --port 9000 --db /var/lib/bsvfx/bsvfx.db
"""

import argparse
import logging
import os

import uvicorn

from bsvfx.app import DB_PATH_ENV


def main():
    parser = argparse.ArgumentParser(description="bsvfx currency conversion API")
    parser.add_argument("--host", default="::", help="Web server host")
    parser.add_argument("--port", type=int, default=8000, help="Web server port")
    parser.add_argument("--db", default=None, help="Settings database path (default: data/bsvfx.db)")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Log level",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger = logging.getLogger(__name__)

    if args.db:
        os.environ[DB_PATH_ENV] = args.db

    logger.info(f"Running web server on {args.host}:{args.port}")
    uvicorn.run("bsvfx.app:app", host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
