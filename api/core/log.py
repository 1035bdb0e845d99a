"""
Process-wide logging setup for the API and the migration CLI.
"""

from __future__ import annotations

import logging

from . import config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> None:
    name = (level or config.log_level()).upper()
    logging.basicConfig(level=getattr(logging, name, logging.INFO), format=LOG_FORMAT)
