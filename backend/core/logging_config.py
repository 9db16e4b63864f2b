"""
Centralized logging configuration for the application.
"""
import logging
import sys
from typing import Optional


DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(
    level: str = "INFO",
    log_format: Optional[str] = None
) -> None:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string (optional)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=log_format or DEFAULT_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout)
        ],
        force=True,
    )

    # Quieten chatty libraries
    for noisy in ('sqlalchemy.engine', 'botocore', 'boto3', 'urllib3', 'passlib'):
        logging.getLogger(noisy).setLevel(logging.WARNING)
