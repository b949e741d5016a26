"""Shared utilities for the pipeline."""

import logging
import re
import time
from collections.abc import Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CITATION = re.compile(r"\[\d+\]")
_EMPTY_BRACKETS = re.compile(r"\[\s*\]")
_SPACE_RUN = re.compile(r" +")
_SPACE_BEFORE_PUNCT = re.compile(r" +([.,!?;:])")


def strip_citations(text: str) -> str:
    """Remove search-provider citation markers such as ``[1]`` from a reply.

    Runs of spaces left behind are collapsed (newlines are kept) and no
    space is left in front of punctuation, so ``"Paris [1]."`` becomes
    ``"Paris."``.
    """
    text = _CITATION.sub("", text)
    text = _EMPTY_BRACKETS.sub("", text)
    text = _SPACE_RUN.sub(" ", text)
    text = _SPACE_BEFORE_PUNCT.sub(r"\1", text)
    return text.strip()


def call_with_retries(
    fn: Callable[[], T],
    *,
    attempts: int,
    base_delay: float,
    retry_if: Callable[[Exception], bool] = lambda exc: True,
    sleep: Callable[[float], None] | None = None,
) -> T:
    """Call fn up to `attempts` times with exponential backoff between failures.

    Waits base_delay, 2*base_delay, 4*base_delay, ... between attempts.
    Re-raises the last error once attempts are exhausted, or immediately when
    retry_if rejects it.
    """
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except Exception as exc:
            logger.warning("Attempt %d/%d failed: %s", attempt, attempts, exc)
            if attempt >= attempts or not retry_if(exc):
                raise
            wait = base_delay * 2 ** (attempt - 1)
            logger.info("Retrying in %.1fs", wait)
            (sleep or time.sleep)(wait)
    raise ValueError("attempts must be at least 1")
