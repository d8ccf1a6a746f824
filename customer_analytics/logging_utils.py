import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def default_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    # Named logger with a single stream handler; safe to call repeatedly.
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(h)
        logger.setLevel(level)
    return logger
