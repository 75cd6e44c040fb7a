"""
Site Content API - Shared Utilities

Common helpers used across multiple modules to avoid duplication.
"""

import json
import time
import uuid
from pathlib import PurePosixPath
from typing import Any, List, Optional, Sequence

from loguru import logger


def upload_extension(original_name: Optional[str], allowed: Sequence[str]) -> str:
    """
    Pick the stored extension for an upload.

    The client's suffix is kept only when it is one of *allowed* (the
    extensions of the media type that was validated); otherwise the first,
    canonical entry of *allowed* is used.
    """
    basename = (original_name or "").replace("\\", "/").rsplit("/", 1)[-1]
    suffix = PurePosixPath(basename).suffix.lower()
    return suffix if suffix in allowed else allowed[0]


def generate_upload_filename(original_name: Optional[str], allowed: Sequence[str]) -> str:
    """Collision-resistant upload name: ``<epoch-millis>-<8 hex chars><ext>``."""
    millis = int(time.time() * 1000)
    return f"{millis}-{uuid.uuid4().hex[:8]}{upload_extension(original_name, allowed)}"


def coerce_numeros(raw: Any) -> List[str]:
    """
    Normalise a ``numeros`` entry into a list of strings.

    Accepts an already-structured list or a JSON-encoded array string.
    Anything else (missing, malformed JSON, JSON that is not an array)
    falls back to an empty list.  Malformed input is swallowed on purpose,
    which can hide client bugs; it is only logged at debug level.
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return [str(item) for item in raw]
    if isinstance(raw, str):
        if not raw.strip():
            return []
        try:
            decoded = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.debug("Ignoring malformed numeros value: {!r}", raw)
            return []
        if isinstance(decoded, list):
            return [str(item) for item in decoded]
        logger.debug("Ignoring non-array numeros value: {!r}", raw)
        return []
    return []


def item_at(values: List[Any], index: int, default: Any = "") -> Any:
    """Return ``values[index]`` or *default* when the index is out of range."""
    if 0 <= index < len(values):
        return values[index]
    return default
