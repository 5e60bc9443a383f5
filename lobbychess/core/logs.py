"""Process-wide logging setup. Modules log through logging.getLogger(<name>); the logger name is the source tag."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def parse_log_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=parse_log_level(level), format=LOG_FORMAT)
    # uvicorn's access log repeats every websocket frame otherwise
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
