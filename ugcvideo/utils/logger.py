import logging, os, sys


_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def get_logger(name: str = "ugcvideo") -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logger.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    return logger


class SessionLogger(logging.LoggerAdapter):
    """Prefixes every record with the polling/submission session id."""

    def process(self, msg, kwargs):
        return "[%s] %s" % (self.extra.get("session_id") or "-", msg), kwargs


def session_logger(logger: logging.Logger, session_id: str | None) -> SessionLogger:
    return SessionLogger(logger, {"session_id": session_id})
