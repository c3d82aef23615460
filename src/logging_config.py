"""JSON logs on stdout for the API process and the scheduled job."""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

UVICORN_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")
# Per-request INFO chatter from the webhook client
QUIET_LOGGERS = ("httpx", "httpcore")


def _json_formatter() -> JsonFormatter:
    return JsonFormatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )


def setup_logging(log_level: str = "INFO") -> None:
    """Route root and uvicorn logging through one JSON stdout handler.

    Existing root handlers are replaced, including any the job runtime
    installed before the entrypoint ran.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    stdout = logging.StreamHandler(sys.stdout)
    stdout.setFormatter(_json_formatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers[:] = [stdout]

    for name in UVICORN_LOGGERS:
        uv_logger = logging.getLogger(name)
        uv_logger.handlers[:] = [stdout]
        uv_logger.propagate = False

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
