"""Tag and custom-property codec for the bookmarks text columns.

Tags are stored as a JSON array of strings (``'[]'`` when empty), custom
properties as a JSON object of string to string (``'{}'`` when empty).

Decoding comes in two forms:

* ``decode_*_result`` returns a :class:`Decoded` carrying either the value or a
  :class:`DecodeError`, so the caller chooses what to do with bad data.
* ``decode_tags`` / ``decode_properties`` are the lenient forms the repository
  uses: malformed text is logged and read back as empty.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Generic, TypeVar

from bookminder.errors import DecodeError
from bookminder.logs import sanitize_for_log

logger = logging.getLogger(__name__)

EMPTY_TAGS = "[]"
EMPTY_PROPERTIES = "{}"

T = TypeVar("T")


@dataclass(frozen=True)
class Decoded(Generic[T]):
    """Outcome of decoding one column value."""

    value: T
    error: DecodeError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


def encode_tags(tags: list[str] | None) -> str:
    """Encode *tags* as a JSON array, preserving order. Empty or None → ``'[]'``."""
    if not tags:
        return EMPTY_TAGS
    return json.dumps([str(t) for t in tags], ensure_ascii=False, separators=(",", ":"))


def decode_tags_result(text: str | None) -> Decoded[list[str]]:
    if text is None or text.strip() in ("", EMPTY_TAGS):
        return Decoded([])
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        return Decoded([], DecodeError(f"tags are not valid JSON: {exc.msg}"))
    if not isinstance(data, list) or not all(isinstance(t, str) for t in data):
        return Decoded([], DecodeError("tags must be a JSON array of strings"))
    return Decoded(data)


def decode_tags(text: str | None) -> list[str]:
    """Lenient decode: malformed text is logged and returned as ``[]``."""
    result = decode_tags_result(text)
    if not result.ok:
        logger.warning("Discarding malformed tags %r: %s", sanitize_for_log(text or ""), result.error)
    return result.value


# ---------------------------------------------------------------------------
# Custom properties
# ---------------------------------------------------------------------------


def encode_properties(props: dict[str, str] | None) -> str:
    """Encode *props* as a JSON object. Empty or None → ``'{}'``."""
    if not props:
        return EMPTY_PROPERTIES
    return json.dumps(
        {str(k): str(v) for k, v in props.items()},
        ensure_ascii=False,
        separators=(",", ":"),
        sort_keys=True,
    )


def decode_properties_result(text: str | None) -> Decoded[dict[str, str]]:
    if text is None or text.strip() in ("", EMPTY_PROPERTIES):
        return Decoded({})
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        return Decoded({}, DecodeError(f"custom properties are not valid JSON: {exc.msg}"))
    if not isinstance(data, dict) or not all(isinstance(v, str) for v in data.values()):
        return Decoded({}, DecodeError("custom properties must be a JSON object of strings"))
    return Decoded(data)


def decode_properties(text: str | None) -> dict[str, str]:
    """Lenient decode: malformed text is logged and returned as ``{}``."""
    result = decode_properties_result(text)
    if not result.ok:
        logger.warning(
            "Discarding malformed custom properties %r: %s",
            sanitize_for_log(text or ""),
            result.error,
        )
    return result.value
