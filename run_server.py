#!/usr/bin/env python3
"""
Development server launcher for genai-relay.

This script starts the FastAPI server with appropriate settings for development.
For production, run an ASGI server against ``genai_relay.api.main:app``.
"""

import argparse
import logging
import os

import uvicorn


def main():
    parser = argparse.ArgumentParser(description="Run the genai-relay development server")
    parser.add_argument("--host", default=os.getenv("GENAI_RELAY_HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.getenv("GENAI_RELAY_PORT", "3000")))
    parser.add_argument("--reload", action="store_true", help="Auto-reload on code changes")
    parser.add_argument("--log-level", default="info")
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger(__name__).info(f"genai-relay available at http://localhost:{args.port} (docs at /docs)")

    uvicorn.run(
        "genai_relay.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
