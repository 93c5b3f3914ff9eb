import logging
import sys

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
# Request-level chatter from the HTTP and database stacks drowns out the resolver trail
QUIET_LOGGERS = ("sqlalchemy", "httpx", "httpcore", "aiosqlite", "asyncio")


def setup_logging(level: int | str = logging.INFO) -> None:
    """Send records to stdout once; later calls only adjust the level."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper() if isinstance(level, str) else level)
    if any(getattr(h, "_dof_fx_handler", False) for h in root_logger.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler._dof_fx_handler = True  # type: ignore[attr-defined]
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
