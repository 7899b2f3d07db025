"""Logging configuration for build mirroring runs."""

import logging
import os
from typing import Optional

DEV_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
PROD_FORMAT = "%(levelname)s | %(message)s"


def configure_logging(env: Optional[str] = None) -> int:
    """
    Configure root logging based on the environment.

    ENV=dev: INFO level with detailed format (default)
    ENV=prod/staging: WARNING level, minimal logs

    Returns:
        The level applied to the root logger
    """
    env = (env or os.getenv("ENV", "dev")).lower()
    is_dev = env == "dev"
    level = logging.INFO if is_dev else logging.WARNING

    logging.basicConfig(
        level=level,
        format=DEV_FORMAT if is_dev else PROD_FORMAT,
        datefmt="%H:%M:%S",
        force=True,
    )

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return level
