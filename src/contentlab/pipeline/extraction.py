"""Directive extraction.

Directives look like::

    [number-line min=-5 max=5]
    point(2)
    [/number-line]

The opening tag is the kind name followed by optional ``key=value`` options.
Each opener pairs with the nearest following closer of the same kind. Nesting a
directive inside another of the same kind is not supported: the outer opener
is dropped (with a warning) and the inner directive is kept.
"""

from __future__ import annotations

import re
from typing import Iterable

from contentlab.logging import get_logger
from contentlab.models.blocks import BlockKind, VisualBlock

logger = get_logger(__name__)


def _opener_re(kind: BlockKind) -> re.Pattern[str]:
    # "[graph" must be followed by options or "]", so "[graphs]" is not a graph
    return re.compile(r"\[" + re.escape(kind.value) + r"(?=[\s\]])")


def _scan_kind(document: str, kind: BlockKind) -> list[VisualBlock]:
    opener = _opener_re(kind)
    closer = f"[/{kind.value}]"

    blocks: list[VisualBlock] = []
    pos = 0
    while True:
        m = opener.search(document, pos)
        if m is None:
            break

        tag_end = document.find("]", m.end())
        if tag_end == -1:
            break
        close_start = document.find(closer, tag_end + 1)
        if close_start == -1:
            # No closer after this opener means none after any later opener either
            break

        nested = opener.search(document, tag_end + 1, close_start)
        if nested is not None:
            logger.warning(
                "Nested directive dropped",
                extra={"kind": kind.value, "outer_position": m.start(), "inner_position": nested.start()},
            )
            pos = nested.start()
            continue

        end = close_start + len(closer)
        blocks.append(
            VisualBlock(
                kind=kind,
                raw_directive=document[m.start() : end],
                options_text=document[m.end() : tag_end].strip(),
                body_text=document[tag_end + 1 : close_start].strip(),
                source_position=m.start(),
            )
        )
        pos = end
    return blocks


def extract_blocks(document: str, kinds: Iterable[BlockKind] | None = None) -> list[VisualBlock]:
    """Find all visual directives in ``document``.

    Args:
        document: Arbitrary text, possibly empty.
        kinds: Kinds to look for. Defaults to every :class:`BlockKind`.

    Returns:
        Blocks sorted by source position. Malformed or unclosed directives are
        skipped; this function never raises on content.
    """

    if not document:
        return []

    found: list[VisualBlock] = []
    for kind in (kinds if kinds is not None else BlockKind):
        found.extend(_scan_kind(document, kind))
    # sorted() is stable, ties keep scan order
    return sorted(found, key=lambda b: b.source_position)
