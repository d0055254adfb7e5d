"""
Logging Configuration
Configures the stdlib logging tree from application settings
"""
import logging
import os
from typing import Optional

from app.config import Settings, settings as default_settings


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(config: Optional[Settings] = None) -> logging.Logger:
    """Attach stream (and optional file) handlers to the `app` logger"""
    config = config or default_settings
    logger = logging.getLogger("app")
    logger.setLevel(config.LOG_LEVEL.upper())

    # Create handlers only once, uvicorn reloads re-run the lifespan
    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT)

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        if config.LOG_FILE:
            log_dir = os.path.dirname(config.LOG_FILE)
            if log_dir and not os.path.exists(log_dir):
                os.makedirs(log_dir)
            file_handler = logging.FileHandler(config.LOG_FILE)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
