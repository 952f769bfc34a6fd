"""Server-sent event parsing for deep search responses.

The provider streams progress updates and finishes with the complete answer.
Handling is a left fold over parsed lines seeded with None, where every parsed
object replaces the accumulator, so the last parsed object wins.
"""

import json
import logging
from collections.abc import Iterable
from functools import reduce
from typing import Any

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


def parse_event_line(line: str) -> dict[str, Any] | None:
    """Parse one stream line into a JSON object.

    Returns None for blank lines, non-data lines, the end-of-stream sentinel,
    and payloads that are not valid JSON objects.
    """
    line = line.strip()
    if not line.startswith(DATA_PREFIX):
        return None

    payload = line[len(DATA_PREFIX) :].strip()
    if not payload or payload == DONE_SENTINEL:
        return None

    try:
        value = json.loads(payload)
    except json.JSONDecodeError as e:
        logger.debug(f"Skipping unparseable stream chunk: {e}")
        return None

    if not isinstance(value, dict):
        logger.debug(f"Skipping non-object stream chunk: {type(value).__name__}")
        return None
    return value


def fold_step(acc: dict[str, Any] | None, item: dict[str, Any] | None) -> dict[str, Any] | None:
    """Keep the newest parsed object, or the previous one if nothing parsed."""
    return item if item is not None else acc


def last_complete(items: Iterable[dict[str, Any] | None]) -> dict[str, Any] | None:
    """Fold parse results down to the last successfully parsed object."""
    return reduce(fold_step, items, None)


def last_event(lines: Iterable[str]) -> dict[str, Any] | None:
    """Parse raw stream lines and return the last complete object."""
    return last_complete(parse_event_line(line) for line in lines)
