# src/site_ledger/logging_setup.py
from __future__ import annotations

import logging
import sys


def setup_logging(level: str = "WARNING") -> None:
    """One stderr handler on the package logger; the library itself never calls this."""
    logger = logging.getLogger("site_ledger")
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.handlers = [handler]
