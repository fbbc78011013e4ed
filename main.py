"""Main entry point for glyphindex.

Starts the FastAPI server on the configured host and port.
"""

from __future__ import annotations

import logging
import socket
import sys

import uvicorn

from core.config import config


def find_free_port() -> int:
    """Find an available TCP port on the loopback interface."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def main():
    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    port = config.port if config.port != 0 else find_free_port()
    config.port = port

    log = logging.getLogger("glyphindex")
    log.info(f"Starting on {config.host}:{port}")

    uvicorn.run(
        "api.server:app",
        host=config.host,
        port=port,
        log_level="info",
        reload=False,
    )


if __name__ == "__main__":
    main()
