import logging
import os
import sys
from datetime import datetime

from influencore.core.config import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def configure_logging(level: str = None, log_dir: str = None):
    """configure structured logging for the api process"""
    level = level or settings.LOG_LEVEL
    log_dir = log_dir if log_dir is not None else settings.LOG_DIR

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_dir:
        # create logs directory before the file handler opens it
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            logging.FileHandler(
                os.path.join(log_dir, f'app_{datetime.now().strftime("%Y%m%d")}.log'),
                mode='a'
            )
        )

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )

def get_logger(name: str) -> logging.Logger:
    """get a configured logger instance"""
    return logging.getLogger(name)
