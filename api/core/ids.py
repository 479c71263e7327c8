"""
Random identifier generation.
"""

from __future__ import annotations

import logging
import secrets

logger = logging.getLogger(__name__)


def must_generate_id(n: int) -> str:
    """
    Return `n` lowercase hex characters from the OS CSPRNG.

    An unavailable random source is an environment failure, not a request
    failure, so it terminates the process.
    """
    if n <= 0 or n % 2:
        raise ValueError(f"id length must be a positive even number, got {n}")
    try:
        return secrets.token_hex(n // 2)
    except NotImplementedError as exc:
        logger.critical("random source unavailable: %s", exc)
        raise SystemExit(1) from exc
