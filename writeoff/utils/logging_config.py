import logging
import sys

from colorama import Fore, Style, init

from .config import LOG_FILE, LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ColoredFormatter(logging.Formatter):
    """Custom formatter adding colors to log messages based on level."""

    FORMATS = {
        logging.DEBUG: Fore.CYAN + "[DEBUG] %(name)s: %(message)s",
        logging.INFO: "%(message)s",
        logging.WARNING: Fore.YELLOW + "[WARN] %(message)s",
        logging.ERROR: Fore.RED + "[ERROR] %(name)s: %(message)s",
        logging.CRITICAL: Fore.RED + Style.BRIGHT + "[CRIT] %(name)s: %(message)s",
    }

    def format(self, record):
        fmt = self.FORMATS.get(record.levelno, "%(message)s")
        if record.levelno != logging.INFO:
            fmt += Style.RESET_ALL
        return logging.Formatter(fmt).format(record)


def configure_logging(level=None, log_file=None, colored=False):
    """
    Configure logging for the application.
    Reduces verbose output from the HTTP and SDK libraries.
    """
    level = level or LOG_LEVEL
    log_file = log_file or LOG_FILE

    console = logging.StreamHandler(sys.stdout)
    if colored:
        init(autoreset=True)
        console.setFormatter(ColoredFormatter())
    else:
        console.setFormatter(logging.Formatter(LOG_FORMAT))

    handlers = [console]
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    # SDK request logging is noisy at INFO
    for noisy in ("httpx", "openai", "urllib3", "plaid"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger("writeoff").setLevel(level)

    return logging.getLogger(__name__)
