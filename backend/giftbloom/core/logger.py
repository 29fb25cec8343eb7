from pythonjsonlogger.json import JsonFormatter
import logging
import datetime

from giftbloom.core.config import LOG_LEVEL


class CustomJsonFormatter(JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super(CustomJsonFormatter, self).add_fields(log_record, record, message_dict)
        log_record['timestamp'] = datetime.datetime.now(datetime.timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name


def get_logger(name: str = "giftbloom") -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(LOG_LEVEL)
    # Child loggers propagate to the configured root "giftbloom" logger
    if name == "giftbloom" and not logger.handlers:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(CustomJsonFormatter('%(timestamp)s %(level)s %(logger)s %(message)s'))
        logger.addHandler(stream_handler)
    return logger


logger = get_logger()
