"""Run the proxy under uvicorn."""

from __future__ import annotations

import argparse

import uvicorn
from loguru import logger

from cdnproxy.infrastructure import get_settings
from cdnproxy.infrastructure.logging import configure_logging


def main(argv: list[str] | None = None) -> int:
    """Entry point for the proxy server."""
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Discord CDN proxy server")
    parser.add_argument("--host", default=settings.api_host)
    parser.add_argument("--port", type=int, default=settings.api_port)
    parser.add_argument("--log-level", default=settings.log_level)
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    logger.info(f"Discord CDN proxy on {args.host}:{args.port}...")

    uvicorn.run(
        "cdnproxy.api.main:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
