"""
Logging setup shared by the API process and maintenance scripts.
"""
import logging
from typing import Optional

from catechism_app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once; repeated calls are no-ops."""
    resolved = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, resolved, logging.INFO),
        format=LOG_FORMAT,
    )
    # SQL echo is controlled separately through DATABASE_ECHO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
