"""Console logging for the inspection app."""
import logging
import sys

LOG_FORMAT = '%(asctime)s %(levelname)-8s %(name)-22s %(message)s'

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ('PIL', 'urllib3', 'toga')


class LevelColorFormatter(logging.Formatter):
    """Wraps the level name in an ANSI color for terminal output."""

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        color = self.LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)
        plain = record.levelname
        record.levelname = f"{color}{plain:<8}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


def setup_logging(level='INFO', use_colors=True, stream=None):
    """Route all logging to one console handler.

    Args:
        level: Level name such as 'DEBUG'; unknown names fall back to INFO
        use_colors: Color level names when the stream is a terminal
        stream: Output stream, stdout by default

    Returns:
        The root logger
    """
    stream = stream or sys.stdout
    log_level = logging.getLevelName(str(level).upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    handler = logging.StreamHandler(stream)
    handler.setLevel(log_level)
    is_tty = hasattr(stream, 'isatty') and stream.isatty()
    formatter_class = LevelColorFormatter if use_colors and is_tty else logging.Formatter
    handler.setFormatter(formatter_class(LOG_FORMAT))

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info(f"Logging initialized (level: {logging.getLevelName(log_level)})")
    return root
