import atexit
import logging
import os

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "storefront"


class CenteredFormatter(logging.Formatter):
    """Shows the component name without the root prefix, centered in a column
    that widens to the longest name seen so far."""

    width = 14

    def format(self, record):
        name = record.name.removeprefix(ROOT_LOGGER + ".")
        CenteredFormatter.width = max(CenteredFormatter.width, len(name))
        record.component = name.center(CenteredFormatter.width)
        return super().format(record)


def _log_level() -> int:
    return logging.DEBUG if os.getenv("DEBUG") else logging.INFO


def _file_console() -> Console | None:
    # the terminal client sets this so log lines do not draw over the UI
    log_file = os.getenv("STOREFRONT_LOG_FILE")
    if not log_file:
        return None
    directory = os.path.dirname(log_file)
    if directory:
        os.makedirs(directory, exist_ok=True)
    stream = open(log_file, "a", encoding="utf-8")
    atexit.register(stream.close)
    return Console(file=stream, width=120)


def _root_logger() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if root.handlers:
        return root

    handler = RichHandler(
        console=_file_console(),
        show_time=True,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
        log_time_format="[%X]",
    )
    handler.setFormatter(CenteredFormatter("[%(component)s]  %(message)s"))
    root.addHandler(handler)
    root.setLevel(_log_level())
    root.propagate = False
    return root


def get_logger(name=None) -> logging.Logger:
    """
    Logger for one module, e.g. ``get_logger(__name__)``.
    All of them share the RichHandler on the ``storefront`` logger;
    DEBUG=1 in the environment switches to debug output.
    """
    return _root_logger().getChild(name or "app")
