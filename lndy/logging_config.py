"""
Logging configuration for LNDY.
Supports normal mode (concise) and debug mode (verbose with file output).
"""
import logging
import sys
import os
from pathlib import Path

# Debug mode: set LNDY_DEBUG=1 to enable verbose service logging
LNDY_DEBUG = os.getenv('LNDY_DEBUG', '').lower() in ('1', 'true', 'yes')

# Debug log file path
DEBUG_LOG_PATH = Path(__file__).parent.parent / 'lndy_debug.log'

DEBUG_HANDLER_NAME = 'lndy_debug_file'


class ConciseFormatter(logging.Formatter):
    """
    Single-line log format with a one-letter level tag.

    Service loggers keep their name on every line so normalization and
    submission messages can be told apart; other loggers show it only for
    DEBUG and ERROR and above. Colors are dropped when `use_color` is False.
    """

    LEVEL_TAGS = {
        logging.DEBUG: ("D", "90"),
        logging.INFO: ("I", "32"),
        logging.WARNING: ("W", "33"),
        logging.ERROR: ("E", "31"),
        logging.CRITICAL: ("!", "31;1"),
    }

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color
        self._formatters = {}
        for levelno, (tag, color) in self.LEVEL_TAGS.items():
            prefix = f"\033[{color}m[{tag}]\033[0m" if use_color else f"[{tag}]"
            self._formatters[(levelno, False)] = logging.Formatter(f"{prefix} %(message)s")
            self._formatters[(levelno, True)] = logging.Formatter(f"{prefix} %(name)s: %(message)s")

    def format(self, record):
        levelno = record.levelno if record.levelno in self.LEVEL_TAGS else logging.INFO
        show_name = (record.name.startswith('lndy.services')
                     or levelno == logging.DEBUG or levelno >= logging.ERROR)
        return self._formatters[(levelno, show_name)].format(record)


class VerboseFormatter(logging.Formatter):
    """Debug file format: timestamp, level, origin function and line."""
    def __init__(self):
        super().__init__(
            fmt='%(asctime)s %(levelname)-8s %(name)s.%(funcName)s:%(lineno)d  %(message)s',
            datefmt='%Y-%m-%dT%H:%M:%S'
        )


def setup_logging(level=logging.INFO, debug: bool = None):
    """
    Configure logging for the entire application.
    Call this once at startup.

    Set LNDY_DEBUG=1 (or pass debug=True) to write verbose service logs to file.
    """
    # RPC and HTTP libraries are chatty at INFO
    noisy_loggers = [
        'urllib3', 'requests', 'asyncio', 'websockets',
        'web3', 'web3.providers', 'web3.RequestManager', 'web3.manager',
    ]
    for logger_name in noisy_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ConciseFormatter(use_color=sys.stdout.isatty()))
    root.addHandler(handler)

    app_logger = logging.getLogger('lndy')
    app_logger.setLevel(level)

    if LNDY_DEBUG if debug is None else debug:
        setup_debug_logging()
        app_logger.info(f"LNDY_DEBUG enabled - verbose logs written to {DEBUG_LOG_PATH}")

    return app_logger


def setup_debug_logging(path: Path = DEBUG_LOG_PATH):
    """
    Attach a verbose file handler to the service logger tree.
    Normalization fallbacks and raw RPC payloads are logged at DEBUG.
    """
    services_logger = logging.getLogger('lndy.services')
    services_logger.setLevel(logging.DEBUG)
    if any(getattr(h, 'name', None) == DEBUG_HANDLER_NAME for h in services_logger.handlers):
        return

    file_handler = logging.FileHandler(path, mode='w', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(VerboseFormatter())
    file_handler.name = DEBUG_HANDLER_NAME
    services_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the lndy namespace. Use: logger = get_logger(__name__)"""
    if name == 'lndy' or name.startswith('lndy.'):
        return logging.getLogger(name)
    return logging.getLogger(f'lndy.{name}')
