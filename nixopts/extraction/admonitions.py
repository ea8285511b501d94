"""Splits description text into plain and callout segments.

Callouts use the fenced-div syntax found in nixpkgs option docs::

    ::: {.warning}
    Text shown in a warning box.
    :::

Blocks do not nest: a start marker inside a block is kept as body text, and
the first bare ``:::`` closes the block. A block left open at the end of the
text is closed there. Delimiter lines are dropped; everything else is kept
byte for byte, so joining the segment bodies gives back the input minus the
delimiter lines.
"""

from __future__ import annotations

import re
from typing import List, Optional

from ..models import Admonition, Description, DescriptionSegment, Plain

_START_MARKER = re.compile(r"^\s*:::\s*\{\.(?P<kind>[A-Za-z][\w-]*)\}\s*$")
_END_MARKER = re.compile(r"^\s*:::\s*$")


def structure(raw: str) -> Description:
    """Return the segments of ``raw`` in order."""
    segments: List[DescriptionSegment] = []
    buffer: List[str] = []
    kind: Optional[str] = None

    def _flush() -> None:
        body = "".join(buffer)
        buffer.clear()
        if not body:
            return
        if kind is None:
            segments.append(Plain(body))
        else:
            segments.append(Admonition(kind=kind, body=body))

    for line in raw.splitlines(keepends=True):
        if kind is None:
            start = _START_MARKER.match(line)
            if start:
                _flush()
                kind = start.group("kind")
                continue
        elif _END_MARKER.match(line):
            _flush()
            kind = None
            continue
        buffer.append(line)

    _flush()
    return Description(tuple(segments))


__all__ = ["structure"]
