import sys
import logging
import re

LOG_FORMAT = '{GREEN}%(asctime)-15s{RESET}' \
             ' [%(levelname)s] [%(processName)s] [%(name)-9s:%(lineno)d] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

RESET = "\033[0m"
BOLD = "\033[1m"
BLACK, RED, GREEN, YELLOW, BLUE, MAGENTA, CYAN, WHITE = [
    "\033[1;%dm" % i for i in range(30, 38)
]

PALLETE = {
    'RESET': RESET,
    'BOLD': BOLD,
    'GREEN': GREEN,
    'YELLOW': YELLOW,
    'RED': RED,
    'BLUE': BLUE,
    'WHITE': WHITE,
}

COLORS = {
    'WARNING': YELLOW,
    'INFO': WHITE,
    'DEBUG': BLUE,
    'CRITICAL': YELLOW,
    'ERROR': RED
}

FORMAT_PATTERN = re.compile('|'.join('{%s}' % k for k in PALLETE))


def formatter_message(message, use_color=True):
    if use_color:
        return FORMAT_PATTERN.sub(
            lambda m: PALLETE[m.group(0)[1:-1]],
            message
        )

    return FORMAT_PATTERN.sub('', message)


class ColoredFormatter(logging.Formatter):
    def __init__(self, fmt=None, datefmt=None, use_color=True):
        if fmt:
            fmt = formatter_message(fmt, use_color)

        logging.Formatter.__init__(self, fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record):
        record = logging.makeLogRecord(record.__dict__)
        levelname = record.levelname
        if self.use_color and levelname in COLORS:
            record.levelname = COLORS[levelname] + levelname + RESET

        if isinstance(record.msg, str):
            record.msg = formatter_message(record.msg, self.use_color)
        return logging.Formatter.format(self, record)


def init_ratefuse_logger(log_level, use_color=None):
    """Send everything under the `ratefuse` logger to stderr.

    Calling it twice replaces the handler instead of stacking a second one.
    """
    if use_color is None:
        use_color = getattr(sys.stderr, 'isatty', lambda: False)()

    logger = get_logger('ratefuse')
    logger.propagate = False
    for h in list(logger.handlers):
        if getattr(h, '_ratefuse_stderr', False):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT, use_color))
    handler.setLevel(log_level)
    handler._ratefuse_stderr = True
    logger.addHandler(handler)
    logger.setLevel(log_level)
    return logger


def get_logger(name):
    """ Always use logging.Logger class.

    The user code may change the loggerClass (e.g. pyinotify),
    and will cause exception when format log message.
    """
    old_class = logging.getLoggerClass()
    logging.setLoggerClass(logging.Logger)
    logger = logging.getLogger(name)
    logging.setLoggerClass(old_class)
    return logger
