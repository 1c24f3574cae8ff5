#!/usr/bin/env python3
"""
Start the attendance kiosk API.

Validates configuration, builds the kiosk service and serves it with uvicorn.
"""

import argparse
import sys
from pathlib import Path

import uvicorn

# Add the parent directory to sys.path to import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from kiosk.core.config import validate_config
from kiosk.api.main import create_app
from util.logging import logger


def main():
    parser = argparse.ArgumentParser(description="Run the attendance kiosk API")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on (default: 8000)")
    parser.add_argument("--db-path", default=None, help="SQLite path for the directory and ledger")
    args = parser.parse_args()

    issues = validate_config()
    if issues:
        for issue in issues:
            logger.error(f"Configuration issue: {issue}")
        sys.exit(1)

    app = create_app(db_path=args.db_path)
    logger.info(f"Starting attendance kiosk on {args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
