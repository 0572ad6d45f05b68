"""Logging configuration helpers."""

from __future__ import annotations

import logging


def configure_logging(level: str = "INFO") -> None:
    normalized = level.upper()
    logging.basicConfig(
        level=getattr(logging, normalized, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # Keep SDK transport chatter out of run output unless explicitly debugging.
    if normalized != "DEBUG":
        for noisy in ("httpx", "botocore", "urllib3"):
            logging.getLogger(noisy).setLevel(logging.WARNING)
