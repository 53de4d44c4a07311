import sys
import logging
import logging.handlers

from . import config


class ColorLogFormatter(logging.Formatter):
    """Adds ANSI color codes to log messages based on level for console output."""

    GREY = "\x1b[38;20m"
    YELLOW = "\x1b[33;20m" # Warning
    RED = "\x1b[31;20m"    # Error
    BOLD_RED = "\x1b[31;1m" # Critical
    RESET = "\x1b[0m"

    BASE_FORMAT = '%(asctime)s [%(levelname)-7s] %(name)s: %(message)s'
    DATE_FORMAT = '%H:%M:%S'

    FORMATS = {
        logging.DEBUG: GREY + BASE_FORMAT + RESET,
        logging.INFO: BASE_FORMAT, # No color for INFO
        logging.WARNING: YELLOW + BASE_FORMAT + RESET,
        logging.ERROR: RED + BASE_FORMAT + RESET,
        logging.CRITICAL: BOLD_RED + BASE_FORMAT + RESET
    }

    def format(self, record):
        log_fmt = self.FORMATS.get(record.levelno, self.BASE_FORMAT)
        formatter = logging.Formatter(log_fmt, datefmt=self.DATE_FORMAT)
        return formatter.format(record)


def configure_logging(verbose: bool = False, log_to_file: bool = True) -> None:
    """
    Console handler on stderr (WARNING and up by default, DEBUG when verbose)
    plus a rotating file log in config.LOG_DIR capturing DEBUG, if that
    directory can be created.
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]: # Clear any existing handlers
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(ColorLogFormatter())
    root_logger.addHandler(console_handler)

    if not log_to_file:
        return

    if config.ensure_dir(config.LOG_DIR):
        log_file_path = config.LOG_DIR / config.LOG_FILE_NAME
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file_path, maxBytes=5 * 1024 * 1024, backupCount=3, encoding='utf-8'
            )
            file_handler.setFormatter(logging.Formatter(ColorLogFormatter.BASE_FORMAT, datefmt=ColorLogFormatter.DATE_FORMAT))
            file_handler.setLevel(logging.DEBUG)
            root_logger.addHandler(file_handler)
            logging.debug(f"LOG_SETUP: File logging initialized at: {log_file_path}")
        except OSError as log_e:
            logging.error(f"LOG_SETUP: Failed to set up file logging at {log_file_path}: {log_e}")
    else:
        logging.warning(f"LOG_SETUP: LOG_DIR '{config.LOG_DIR}' could not be ensured. Skipping file logging.")
