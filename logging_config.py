# logging_config.py
import logging
import sys
from typing import Optional

from config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once for the service."""
    level_name = (level or get_settings().LOG_LEVEL).upper()
    logging.basicConfig(
        format=LOG_FORMAT,
        stream=sys.stdout,
        level=getattr(logging, level_name, logging.INFO),
    )
    # requests/urllib3 are chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
