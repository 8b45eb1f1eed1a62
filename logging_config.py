"""
Centrale logging configuratie voor de Minivoetbal portal.

Zowel de Streamlit app als de request handlers (functions.py) roepen
setup_logging() één keer aan; modules halen hun logger op via get_logger().
"""

import logging
import os
import sys

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)-20s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_geconfigureerd = False


def setup_logging(level: str | None = None) -> None:
    """Configureer de root logger met een console handler (idempotent)."""
    global _geconfigureerd
    if _geconfigureerd:
        return

    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    # httpx logt elke Supabase request op INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _geconfigureerd = True


def get_logger(name: str) -> logging.Logger:
    """Convenience functie om een logger op te halen."""
    return logging.getLogger(name)
