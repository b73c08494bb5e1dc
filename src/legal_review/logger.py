import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class Log:
    """Shared ``legal_review`` logger used by the web handler, extractor and CLI."""

    _logger = logging.getLogger("legal_review")

    @classmethod
    def configure(cls, log_level: str) -> None:
        cls._logger.setLevel(log_level.upper())
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            cls._logger.addHandler(handler)

    @classmethod
    def debug(cls, message: str, *args: object) -> None:
        cls._logger.debug(message, *args)

    @classmethod
    def info(cls, message: str, *args: object) -> None:
        cls._logger.info(message, *args)

    @classmethod
    def warning(cls, message: str, *args: object) -> None:
        cls._logger.warning(message, *args)

    @classmethod
    def error(cls, message: str, *args: object) -> None:
        cls._logger.error(message, *args)

    @classmethod
    def exception(cls, message: str, *args: object) -> None:
        # Only valid inside an except block; appends the traceback.
        cls._logger.exception(message, *args)
