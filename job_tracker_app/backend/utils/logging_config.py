"""
Logging setup for the Job Tracker backend, driven by the same ``Settings``
object the rest of the app is built from.
"""
import logging
import sys


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Marks the handlers installed here so a rebuilt app replaces only its own
_HANDLER_TAG = "_job_tracker_handler"


def _tagged(handler: logging.Handler, formatter: logging.Formatter, level: int) -> logging.Handler:
    handler.setFormatter(formatter)
    handler.setLevel(level)
    setattr(handler, _HANDLER_TAG, True)
    return handler


def setup_logging(settings) -> None:
    """
    Configure the root logger from ``settings``.

    ``log_level`` sets the threshold, ``log_file`` adds a file handler next to
    stdout, and ``database_echo`` lets SQL statements through; otherwise the
    SQLAlchemy engine is held at WARNING. Handlers installed by anything
    else (test log capture, uvicorn) are left alone.
    """
    numeric_level = getattr(logging, settings.log_level, logging.INFO)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        if getattr(handler, _HANDLER_TAG, False):
            root_logger.removeHandler(handler)
            handler.close()

    root_logger.addHandler(_tagged(logging.StreamHandler(sys.stdout), formatter, numeric_level))
    if settings.log_file:
        root_logger.addHandler(_tagged(logging.FileHandler(settings.log_file), formatter, numeric_level))

    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.database_echo else logging.WARNING)
    # Request lines duplicate what the handlers already log in production
    logging.getLogger("uvicorn.access").setLevel(
        logging.WARNING if settings.is_production() else numeric_level
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
