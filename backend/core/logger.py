# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Logging bootstrap.

Handlers, formats and rotation are declared in ``etc/logging.conf``.  Two
environment variables adjust it per deployment without editing the file:

    LOG_DIR     where ``app.log`` is written       (default: <project>/log)
    LOG_LEVEL   level of the ``crowlee`` logger     (default: from the file)

Usage:
    from core.logger import logger
"""

import configparser
import logging
import logging.config
import os
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_LOGGING_CONF = _PROJECT_ROOT / "etc" / "logging.conf"

APP_LOGGER = "crowlee"


def _load_config(log_file: Path) -> configparser.RawConfigParser:
    # Raw parser: the format strings carry %(asctime)s-style fields that
    # interpolation would choke on, so the log path is substituted by hand.
    text = _LOGGING_CONF.read_text(encoding="utf-8").replace("%(log_file)s", str(log_file))
    parser = configparser.RawConfigParser()
    parser.read_string(text)
    return parser


def setup_logging() -> logging.Logger:
    """Apply etc/logging.conf and return the application logger."""
    log_dir = Path(os.environ.get("LOG_DIR") or _PROJECT_ROOT / "log")
    log_dir.mkdir(parents=True, exist_ok=True)

    logging.config.fileConfig(_load_config(log_dir / "app.log"), disable_existing_loggers=False)

    app_logger = logging.getLogger(APP_LOGGER)
    level = os.environ.get("LOG_LEVEL")
    if level:
        app_logger.setLevel(level.upper())
    return app_logger


logger = setup_logging()
