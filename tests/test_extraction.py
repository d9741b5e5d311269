"""Tests for directive extraction."""

from __future__ import annotations

from contentlab.models.blocks import BlockKind
from contentlab.pipeline.extraction import extract_blocks


MIXED = (
    "Intro [graph] line y = 2x + 1 [/graph] then\n"
    "[number-line min=-5 max=5] point(2)\ninterval [0, 3) [/number-line]\n"
    "and [graph xMin=-3 xMax=3] f(x) = x^2 [/graph] done"
)


def test_extract_blocks_empty_and_plain_text() -> None:
    """It should return nothing for empty input or text without directives."""

    assert extract_blocks("") == []
    assert extract_blocks("just some prose, [not a directive]") == []


def test_extract_blocks_fields() -> None:
    """It should capture options, body, raw span and offset of a directive."""

    doc = "Plot: [number-line min=-5 max=5] 0,1,2 [/number-line]!"
    [block] = extract_blocks(doc)

    assert block.kind is BlockKind.NUMBER_LINE
    assert block.options_text == "min=-5 max=5"
    assert block.body_text == "0,1,2"
    assert block.raw_directive == "[number-line min=-5 max=5] 0,1,2 [/number-line]"
    assert block.source_position == doc.index("[number-line")


def test_extract_blocks_sorted_across_kinds() -> None:
    """It should order blocks by position no matter which kind was scanned first."""

    blocks = extract_blocks(MIXED)

    assert [b.kind for b in blocks] == [BlockKind.GRAPH, BlockKind.NUMBER_LINE, BlockKind.GRAPH]
    positions = [b.source_position for b in blocks]
    assert positions == sorted(positions)

    separately = extract_blocks(MIXED, [BlockKind.GRAPH]) + extract_blocks(MIXED, [BlockKind.NUMBER_LINE])
    assert blocks == sorted(separately, key=lambda b: b.source_position)


def test_extract_blocks_options_absent() -> None:
    """It should accept an opening tag without options."""

    [block] = extract_blocks("[graph]point(1, 2)[/graph]")
    assert block.options_text == ""
    assert block.body_text == "point(1, 2)"


def test_extract_blocks_pairs_with_nearest_closer() -> None:
    """It should close a directive at the first matching closing tag."""

    [block] = extract_blocks("[graph]a[/graph]b[/graph]")
    assert block.body_text == "a"


def test_extract_blocks_skips_unclosed() -> None:
    """It should silently drop directives without closing tag."""

    assert extract_blocks("[graph] y = x") == []
    assert len(extract_blocks("[graph] a [/graph] [graph] b")) == 1

    [block] = extract_blocks("[graph] x [number-line]1[/number-line]")
    assert block.kind is BlockKind.NUMBER_LINE


def test_extract_blocks_requires_exact_kind_name() -> None:
    """It should not treat a longer tag name as a known kind."""

    assert extract_blocks("[graphs]x[/graphs]") == []


def test_extract_blocks_nested_same_kind_keeps_inner() -> None:
    """It should drop the outer opener of a nested same-kind directive."""

    [block] = extract_blocks("[graph]a[graph]b[/graph]c[/graph]")
    assert block.body_text == "b"
    assert block.source_position == 8
