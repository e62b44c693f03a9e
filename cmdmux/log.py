import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(
    level: str = "WARNING",
    log_file: str | Path | None = None,
    console: Console | None = None,
) -> logging.Logger:
    """Attach one handler to the package logger.

    Without a log file, records go to stderr through rich so they are printed
    above the live dashboard instead of tearing it.
    """
    logger = logging.getLogger("cmdmux")
    logger.setLevel(level.upper())
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    if log_file is not None:
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(FILE_FORMAT))
    else:
        handler = RichHandler(
            console=console if console is not None else Console(stderr=True),
            show_path=False,
            rich_tracebacks=False,
        )
    logger.addHandler(handler)
    logger.propagate = False
    return logger
