"""
Logging setup and per-request logger handles.
"""

from __future__ import annotations

import logging
import sys

from . import ids

REQUEST_ID_LENGTH = 8
MAIN_PREFIX = "MAIN"

# Either a plain module logger or a per-request adapter.
Log = logging.LoggerAdapter | logging.Logger


class _RequestIdFilter(logging.Filter):
    """
    Default `request_id` for records emitted outside a request.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = MAIN_PREFIX
        return True


def setup_logging(*, level: str | int = logging.INFO, force: bool = False) -> None:
    """
    Configure the root logger with one stdout handler.

    A root logger that already has handlers is left alone unless `force` is set.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    if root.handlers and not force:
        return None

    root.setLevel(level)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(request_id)s] %(levelname)s %(name)s:%(lineno)d: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    handler.addFilter(_RequestIdFilter())
    root.addHandler(handler)


def request_logger(logger: logging.Logger, request_id: str | None = None) -> logging.LoggerAdapter:
    """
    Wrap `logger` so every record carries a request id.
    """
    return logging.LoggerAdapter(logger, {"request_id": request_id or ids.must_generate_id(REQUEST_ID_LENGTH)})
