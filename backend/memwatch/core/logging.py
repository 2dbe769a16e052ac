import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme
from rich.traceback import install as install_rich_traceback

from memwatch.core.config import settings

install_rich_traceback(show_locals=settings.DEBUG)

console = Console(
    theme=Theme(
        {
            "info": "cyan",
            "warning": "yellow",
            "error": "red",
            "debug": "grey50",
            "cluster": "green",
            "db": "blue",
            "api": "magenta",
        }
    )
)

rich_handler = RichHandler(
    console=console,
    rich_tracebacks=True,
    tracebacks_show_locals=settings.DEBUG,
    markup=True,
    show_time=True,
    show_path=True,
)

LOG_LEVEL = logging.DEBUG if settings.DEBUG else getattr(
    logging, settings.LOG_LEVEL.upper(), logging.INFO
)

logger = logging.getLogger("memwatch")
logger.setLevel(LOG_LEVEL)
logger.handlers = []
logger.addHandler(rich_handler)
logger.propagate = False


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance with rich formatting."""
    log = logging.getLogger(name or "memwatch")
    if not log.handlers:
        log.setLevel(LOG_LEVEL)
        log.addHandler(rich_handler)
        log.propagate = False
    return log


# Component loggers
cluster_logger = get_logger("cluster")  # config reads and node sampling
db_logger = get_logger("db")
api_logger = get_logger("api")
