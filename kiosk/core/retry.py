"""
Bounded retry for collaborator calls.

Only timeout-class failures (CollaboratorTimeout) are retried. Any other
exception is wrapped as CollaboratorError, unless it is already a KioskError,
and propagated immediately.
"""

import time
from typing import Callable, TypeVar

from .errors import CollaboratorError, CollaboratorTimeout, KioskError

from util.logging import logger

T = TypeVar("T")


def call_with_retry(collaborator: str, operation: str, fn: Callable[[], T],
                    max_retries: int = 2, backoff_sec: float = 0.5,
                    sleep: Callable[[float], None] = time.sleep) -> T:
    """Call ``fn`` up to ``max_retries + 1`` times, backing off ``backoff_sec * attempt``."""
    last_error = None

    for attempt in range(max_retries + 1):
        try:
            result = fn()
        except CollaboratorTimeout as e:
            last_error = e
            if attempt < max_retries:
                logger.log_collaborator_call(collaborator, operation, attempt + 1, "retrying", {"error": e.message})
                sleep(backoff_sec * (attempt + 1))
                continue
            break
        except KioskError as e:
            logger.log_collaborator_call(collaborator, operation, attempt + 1, "failed", {"error": e.message})
            raise
        except Exception as e:
            logger.log_collaborator_call(collaborator, operation, attempt + 1, "failed", {"error": str(e)})
            raise CollaboratorError(f"{collaborator} {operation} failed: {e}") from e

        logger.log_collaborator_call(collaborator, operation, attempt + 1)
        return result

    logger.log_collaborator_call(collaborator, operation, max_retries + 1, "failed", {"error": last_error.message})
    raise CollaboratorTimeout(
        f"{collaborator} {operation} timed out after {max_retries + 1} attempts: {last_error.message}",
        {"attempts": max_retries + 1},
    )
