from __future__ import annotations

import logging
import os
from typing import Optional

from .config_loader import PipelineConfig

LOG_LEVEL_ENV = "RECIPIENTS_ETL_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DEFAULT_LEVEL = "WARNING"


def effective_level_name(config: PipelineConfig, level_override: Optional[str] = None) -> str:
    """First non-empty of: env var, ``--log-level``, ``logging.level`` from YAML."""
    for candidate in (os.getenv(LOG_LEVEL_ENV), level_override, config.logging.level):
        if candidate and candidate.strip():
            return candidate.strip()
    return DEFAULT_LEVEL


def _level_number(level_name: str) -> int:
    upper = level_name.upper()
    if upper.isdigit():
        return int(upper)
    level = logging.getLevelName(upper)
    # getLevelName answers "Level X" for names it does not know
    return level if isinstance(level, int) else logging.INFO


def configure_logging(config: PipelineConfig, level_override: Optional[str] = None) -> int:
    """Set the root level for a batch run and return it.

    A handler is only installed when the root logger has none, so an embedding
    application keeps its own setup.
    """
    level_value = _level_number(effective_level_name(config, level_override))
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root_logger.setLevel(level_value)
    return level_value
