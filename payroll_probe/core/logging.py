from __future__ import annotations

import logging
import sys

from payroll_probe.core.logger import configure_structlog


def configure_logging(level: str = "WARNING") -> None:
    log_level = getattr(logging, level.upper(), logging.WARNING)

    # stdout belongs to the console report
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
        force=True,
    )
    configure_structlog()
