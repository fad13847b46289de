import logging
import sys
from logging import StreamHandler

from rsvp_portal.config.settings import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Per-request chatter from the HTTP client and the SQLite driver
QUIET_LOGGERS = ("httpx", "httpcore", "aiosqlite")


def setup_logging(level: int | None = None) -> None:
    if level is None:
        level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[StreamHandler(sys.stdout)],
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
