import logging
import sys
from datetime import datetime
from pathlib import Path

from valotracker.config import Config

# Library loggers that flood INFO with per-request lines
NOISY_LOGGERS = ('discord.http', 'discord.gateway', 'aiohttp.access', 'sqlalchemy.engine')


class ApiKeyFilter(logging.Filter):
    """Masks the upstream API key if it ever ends up in a log message."""

    def __init__(self, secret):
        super().__init__()
        self.secret = secret

    def filter(self, record: logging.LogRecord) -> bool:
        if self.secret:
            message = record.getMessage()
            if self.secret in message:
                record.msg = message.replace(self.secret, '***')
                record.args = None
        return True


def _quiet_libraries():
    level = logging.INFO if Config.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level)


def setup_logger(name: str) -> logging.Logger:
    """Logger writing to stdout and the day's file under Config.LOG_DIR"""
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    log_level = logging.DEBUG if Config.DEBUG else logging.INFO
    logger.setLevel(log_level)
    logger.addFilter(ApiKeyFilter(Config.VALORANT_API_KEY))
    _quiet_libraries()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_dir = Path(Config.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    # One file per day the process was started on
    file_handler = logging.FileHandler(
        log_dir / f'valotracker_{datetime.now().strftime("%Y%m%d")}.log',
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger
