"""Logging setup for the API process.

Modules log through ``logging.getLogger(__name__)`` and pass structured context
with ``extra=``; this module only installs the root handler and level.
"""

import logging
import sys

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = None) -> None:
    """Install a stream handler on the root logger (idempotent)."""
    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())
    if any(getattr(h, "_school_backend", False) for h in root.handlers):
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._school_backend = True
    root.addHandler(handler)
    # SQL echo is controlled by DATABASE_ECHO, keep the engine logger quiet otherwise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
