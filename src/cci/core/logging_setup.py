"""
Logging setup shared by the CLI and HTTP entry points.
"""

import logging

from cci.core.config import LoggingConfig


def configure_logging(config: LoggingConfig | None = None) -> None:
    """
    Configure root logging from a LoggingConfig.

    Unknown level names fall back to INFO.
    """
    config = config or LoggingConfig()
    level = logging.getLevelName(str(config.level).upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=config.format, force=True)
