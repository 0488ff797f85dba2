"""Logging configuration for secondbrain.

Modules log through the standard library:
    import logging
    log = logging.getLogger(__name__)

The level is read from the SECONDBRAIN_LOG_LEVEL environment variable
(DEBUG, INFO, WARNING, ERROR). INFO is the default.
"""

import logging
import os
import sys


def configure_logging(level_name: str | None = None) -> None:
    """Configure logging for the secondbrain package.

    Call once at application startup (cli.py does). Subsequent calls are no-ops.

    Args:
        level_name: Explicit level; overrides SECONDBRAIN_LOG_LEVEL when given.
    """
    root_logger = logging.getLogger("secondbrain")

    if root_logger.handlers:
        return

    level_name = (level_name or os.environ.get("SECONDBRAIN_LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            fmt="[%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    # Avoid duplicate messages through the root logger
    root_logger.propagate = False
