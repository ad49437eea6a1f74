"""Source id classification and canonical breakpoint identity.

Original (authored) sources are addressed by ids derived from their
generated source: ``"<generated-id>/originalSource-<url-hash>"``. These
helpers classify ids and convert between the two forms.
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bpsites.protocol.structures import SourceLocation

ORIGINAL_MARKER = "/originalSource"


def is_original_id(source_id: str) -> bool:
    """Return True if ``source_id`` names an original source."""
    return ORIGINAL_MARKER in source_id


def original_to_generated_id(source_id: str) -> str:
    """Return the generated source id for an original id, or "" if not original."""
    index = source_id.find(ORIGINAL_MARKER)
    if index < 0:
        return ""
    return source_id[:index]


def generated_to_original_id(generated_id: str, url: str) -> str:
    """Build the original source id for ``url`` mapped from ``generated_id``."""
    digest = hashlib.md5(url.encode("utf-8"), usedforsecurity=False).hexdigest()[:8]
    return f"{generated_id}{ORIGINAL_MARKER}-{digest}"


def make_breakpoint_id(location: SourceLocation) -> str:
    """Canonical identity of a breakpoint site: ``"<source_id>:<line>:<column>"``.

    A missing column contributes an empty component.
    """
    column = "" if location.column is None else location.column
    return f"{location.source_id}:{location.line}:{column}"


__all__ = [
    "ORIGINAL_MARKER",
    "generated_to_original_id",
    "is_original_id",
    "make_breakpoint_id",
    "original_to_generated_id",
]
