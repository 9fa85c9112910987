import logging
import sys

import structlog
from pythonjsonlogger import jsonlogger

from ..config import Settings


def setup_logging(settings: Settings):
    """Structured logging setup: structlog on top of the stdlib root logger."""

    renderer = structlog.processors.JSONRenderer() if settings.log_json else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    if settings.log_json:
        handler.setFormatter(jsonlogger.JsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s"
        ))
    else:
        handler.setFormatter(logging.Formatter("%(levelname)-8s %(name)s: %(message)s"))

    root = logging.getLogger()
    # At most one of our handlers on the root logger
    for existing in list(root.handlers):
        if getattr(existing, "_hms_handler", False):
            root.removeHandler(existing)
    handler._hms_handler = True
    root.addHandler(handler)
    root.setLevel(settings.log_level.upper())

    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.db_logging else logging.WARNING)

    return structlog.get_logger()
