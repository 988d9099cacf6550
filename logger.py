import os
import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.traceback import install

# ignore errors from these libs
import aiofiles, tomlkit, voluptuous

console = Console()


def setup_logging(level: Optional[str] = None):
    FORMAT = "%(message)s"
    logging_handler = RichHandler(
        level=os.environ.get("LOGLEVEL", level or "INFO"),
        console=console,
        rich_tracebacks=True,
        tracebacks_suppress=[aiofiles, tomlkit, voluptuous]
    )

    logging.basicConfig(
        level="NOTSET", format=FORMAT, datefmt="[%X]", handlers=[logging_handler], force=True
    )

    install(
        console = console
    )


def set_level(level: str):
    """Change the console level after the settings file has been read."""
    if "LOGLEVEL" in os.environ:
        return
    for handler in logging.getLogger().handlers:
        if isinstance(handler, RichHandler):
            handler.setLevel(level)
