#!/usr/bin/env python3
"""Run the DeliveryNav API under uvicorn.

Reads ``HOST``, ``PORT`` and ``LOG_LEVEL`` from the environment so the same
script works locally and behind a platform proxy.
"""

import logging
import os
import sys
from pathlib import Path

import uvicorn

SRC_DIR = Path(__file__).resolve().parent / "src"


def _port(default: int = 8000) -> int:
    raw = os.environ.get("PORT", str(default))
    try:
        return int(raw)
    except ValueError:
        print(f"Warning: Invalid PORT value '{raw}', using default {default}", file=sys.stderr)
        return default


def main() -> None:
    log_level = os.environ.get("LOG_LEVEL", "info").lower()
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.environ.get("HOST", "0.0.0.0")
    port = _port()
    logging.getLogger(__name__).info(f"Starting DeliveryNav API on {host}:{port}")
    uvicorn.run(
        "delivery_nav.main:app",
        host=host,
        port=port,
        app_dir=str(SRC_DIR),
        log_level=log_level,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )


if __name__ == "__main__":
    main()
