"""Lenient decoder for newline-delimited stream records."""

from __future__ import annotations

import json

import structlog
from pydantic import ValidationError

from streaming_api.models import Batch

logger = structlog.get_logger()


def decode_batch(line: str | bytes) -> Batch | None:
    """Decode one raw stream line into a :class:`Batch`.

    Blank or malformed lines yield ``None`` instead of raising, so a single
    corrupt keep-alive cannot end the session.
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("decoder.invalid_utf8", size=len(line))
            return None

    text = line.strip()
    if not text:
        return None

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.debug("decoder.invalid_json", error=str(exc), line=text[:200])
        return None

    if not isinstance(data, dict):
        logger.debug("decoder.not_an_object", line=text[:200])
        return None

    try:
        return Batch.model_validate(data)
    except ValidationError as exc:
        logger.debug(
            "decoder.invalid_batch", error_count=exc.error_count(), line=text[:200]
        )
        return None
