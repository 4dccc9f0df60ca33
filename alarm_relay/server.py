#!/usr/bin/env python3
"""
Alarm Relay Server

Usage:
    alarm-relay --port 3000
    # or
    python -m alarm_relay.server
"""

import argparse

import uvicorn

from .common.config import get_settings
from .main import create_app


def main():
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Alarm Relay Server")
    parser.add_argument("--host", default=settings.host, help="Host to bind to")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to bind to")
    args = parser.parse_args()

    uvicorn.run(create_app(settings), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
