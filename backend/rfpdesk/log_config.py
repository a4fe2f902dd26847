"""
Console logging for the rfpdesk backend.
Call setup_logging() once at app startup.
"""
import logging
import sys

NOISY_LOGGERS = ("httpx", "httpcore", "openai", "urllib3")

CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class ConsoleFormatter(logging.Formatter):
    """Stock formatter, with the line tinted by level when writing to a terminal."""
    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, color=None):
        super().__init__(CONSOLE_FORMAT, datefmt="%H:%M:%S")
        self.color = sys.stderr.isatty() if color is None else color

    def format(self, record):
        line = super().format(record)
        tint = self.LEVEL_COLORS.get(record.levelno) if self.color else None
        return f"{tint}{line}{self.RESET}" if tint else line


def setup_logging(level: str = "INFO"):
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # uvicorn --reload imports the app again
    for h in list(root.handlers):
        if getattr(h, "_rfpdesk", False):
            root.removeHandler(h)

    console = logging.StreamHandler()
    console.setFormatter(ConsoleFormatter())
    console._rfpdesk = True
    root.addHandler(console)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
