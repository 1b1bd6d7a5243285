"""Encoding of multipart user content into wire content arrays.

A user turn that includes media is sent as an ordered list of entries::

    [
        {"type": "text", "text": "What is in this picture?"},
        {"type": "image_url", "image_url": {"url": "data:image/png;base64,..."}},
    ]

:func:`encode` builds that list from :class:`TextPart`, :class:`MediaPart`,
:class:`FilePart` and :class:`UrlPart` values.
"""

from __future__ import annotations

import base64
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from chatwire.exceptions import ContentEncodingError

logger = logging.getLogger(__name__)

DEFAULT_PROMPT_PREFIX = "### "
DEFAULT_RESPONSE_PREFIX = ""


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class MediaPart:
    """Inline binary media, sent as a base64 data URL."""

    data: bytes
    mime: str


@dataclass(frozen=True)
class FilePart:
    """A text file whose contents are inlined as a text entry."""

    path: str | Path


@dataclass(frozen=True)
class UrlPart:
    """Remote media referenced by URL."""

    url: str


ContentPart = TextPart | MediaPart | FilePart | UrlPart


def trim_prefixes(
    text: str,
    prompt_prefix: str = DEFAULT_PROMPT_PREFIX,
    response_prefix: str = DEFAULT_RESPONSE_PREFIX,
) -> str:
    """Strip surrounding whitespace, a leading prompt prefix and a
    trailing response prefix from ``text``."""
    head = re.match(rf"\s*(?:{re.escape(prompt_prefix)})?\s*", text)
    text = text[head.end():]
    tail = re.search(rf"\s*(?:{re.escape(response_prefix)})?\s*\Z", text)
    return text[:tail.start()]


def data_url(part: MediaPart) -> str:
    encoded = base64.b64encode(part.data).decode("ascii")
    return f"data:{part.mime};base64,{encoded}"


def _image_entry(url: str) -> dict:
    return {"type": "image_url", "image_url": {"url": url}}


def _read_text(path: str | Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ContentEncodingError(f"Cannot read text file {path}: {e}") from e


def encode(
    parts: Sequence[ContentPart],
    prompt_prefix: str = DEFAULT_PROMPT_PREFIX,
    response_prefix: str = DEFAULT_RESPONSE_PREFIX,
) -> list[dict]:
    """Encode content parts into a wire content array, preserving order.

    The first and last parts, when they are text, have prompt/response
    prefixes trimmed. Text that ends up empty is dropped.

    Raises:
        ContentEncodingError: If a :class:`FilePart` cannot be read.
        TypeError: If a part is not one of the known part types.
    """
    last = len(parts) - 1
    entries = []
    for n, part in enumerate(parts):
        if isinstance(part, TextPart):
            text = part.text
            if n in (0, last):
                text = trim_prefixes(text, prompt_prefix, response_prefix)
            if text:
                entries.append({"type": "text", "text": text})
        elif isinstance(part, MediaPart):
            entries.append(_image_entry(data_url(part)))
        elif isinstance(part, UrlPart):
            entries.append(_image_entry(part.url))
        elif isinstance(part, FilePart):
            text = _read_text(part.path)
            if text:
                entries.append({"type": "text", "text": text})
            else:
                logger.debug(f"Skipping empty text file {part.path}")
        else:
            raise TypeError(f"Unsupported content part: {part!r}")
    return entries
