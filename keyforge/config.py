"""
config.py - Paths, limits and logging setup for KeyForge
"""
import logging
import os
from datetime import timedelta
from typing import Optional

# Data directory, overridable per shell with KEYFORGE_HOME
DEFAULT_HOME = os.path.expanduser("~/.keyforge")
HOME_ENV_VAR = "KEYFORGE_HOME"
LOG_LEVEL_ENV_VAR = "KEYFORGE_LOG_LEVEL"

HISTORY_FILENAME = "history.json"
LOG_FILENAME = "keyforge.log"
STORAGE_KEY = "password-generator:history"

# History retention window (inclusive)
MAX_AGE = timedelta(days=30)

MIN_LENGTH = 4
MAX_LENGTH = 64
DEFAULT_LENGTH = 16

VERSION = "1.0.0"

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def get_home(override: Optional[str] = None) -> str:
    """
    Resolve the data directory, creating it if needed.

    Args:
        override: Explicit directory (e.g. from --home), wins over the environment

    Returns:
        Absolute path of the data directory
    """
    home = override or os.environ.get(HOME_ENV_VAR) or DEFAULT_HOME
    home = os.path.abspath(os.path.expanduser(home))
    if not os.path.exists(home):
        os.makedirs(home, mode=0o700)  # Owner-only directory
    return home


def history_path(home: str) -> str:
    return os.path.join(home, HISTORY_FILENAME)


def setup_logging(home: str, verbose: bool = False) -> None:
    """Configure file logging under the data directory."""
    if verbose:
        level = logging.DEBUG
    else:
        level_name = os.environ.get(LOG_LEVEL_ENV_VAR, "WARNING").upper()
        level = getattr(logging, level_name, logging.WARNING)
        if not isinstance(level, int):
            level = logging.WARNING

    logging.basicConfig(
        filename=os.path.join(home, LOG_FILENAME),
        level=level,
        format=LOG_FORMAT,
    )
    logging.getLogger("keyforge").setLevel(level)
