"""
Logging configuration for the Scouting Report Function.
"""

import logging
import os
import sys

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def configure_logging(level: str = None) -> logging.Logger:
    """Configure root logging to stdout; level defaults to LOG_LEVEL."""
    log_level_name = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    log_level = getattr(logging, log_level_name, logging.INFO)

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
        force=True
    )

    # Set specific levels for noisy client libraries
    for noisy in ('aiohttp', 'urllib3', 'google', 'httpx'):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logging.getLogger('scouting_report_function')
