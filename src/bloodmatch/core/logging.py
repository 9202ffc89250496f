"""
Logging configuration.

The packaged YAML (`src/bloodmatch/config/logging.yaml`) defines formatters and
handlers; the level comes from settings (`app.log_level`, or `BLOODMATCH_LOG_LEVEL`).
"""

from __future__ import annotations

import copy
import logging.config

from bloodmatch.config.settings import get_logging_config, get_settings


def configure_logging(level: str | None = None) -> None:
    """Apply the packaged logging config. `level` wins over the configured level."""
    settings = get_settings()
    # The loader is cached; never mutate the shared dict.
    config = copy.deepcopy(get_logging_config())

    level = (level or settings.app.log_level).upper()
    config.setdefault("root", {})["level"] = level
    app_logger = config.get("loggers", {}).get("bloodmatch")
    if isinstance(app_logger, dict):
        app_logger["level"] = level
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict) and "level" in handler:
            handler["level"] = level

    logging.config.dictConfig(config)
