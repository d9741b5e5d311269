"""Directive option parsing and retry adjustments."""

from __future__ import annotations

import re
from typing import Iterable, Mapping

from contentlab.models.results import OptionValue, RenderOptions

_OPTION_RE = re.compile(r"(?P<key>\w+)=(?P<value>\S+)")
_INT_RE = re.compile(r"[+-]?\d+", re.ASCII)
_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)

_SIZE_STEPS = {"small": "medium", "medium": "large", "large": "xlarge"}
_LOWER_BOUNDS = ("min", "xMin", "yMin")
_UPPER_BOUNDS = ("max", "xMax", "yMax")


def coerce_value(raw: str) -> OptionValue:
    """Turn a raw option token value into bool, int, float or str (in that order)."""

    if raw == "true":
        return True
    if raw == "false":
        return False
    if _INT_RE.fullmatch(raw):
        return int(raw)
    if _FLOAT_RE.fullmatch(raw):
        return float(raw)
    return raw


def parse_options(raw: str | None) -> RenderOptions:
    """Parse ``key=value`` pairs from a directive's opening tag.

    Tokens that are not ``key=value`` are ignored; a repeated key keeps its
    last value.

    >>> parse_options("min=-10 max=10 size=large")
    {'min': -10, 'max': 10, 'size': 'large'}
    """

    options: RenderOptions = {}
    if not raw:
        return options
    for token in raw.split():
        m = _OPTION_RE.fullmatch(token)
        if m is None:
            continue
        options[m.group("key")] = coerce_value(m.group("value"))
    return options


def _is_number(value: OptionValue) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def adjust_options_for_retry(options: Mapping[str, OptionValue], errors: Iterable[str]) -> RenderOptions:
    """Derive the options for the next attempt from verification errors.

    Clipped content widens numeric bounds by one unit on each side, unreadable
    content bumps ``size`` one step, and spacing complaints reset an explicit
    ``intervalSpacing`` to 25. The input mapping is left untouched.
    """

    adjusted: RenderOptions = dict(options)
    for error in errors:
        if "Content cutoff" in error or "clipping" in error:
            for key in _LOWER_BOUNDS:
                value = adjusted.get(key)
                if value is not None and _is_number(value):
                    adjusted[key] = value - 1  # type: ignore[operator]
            for key in _UPPER_BOUNDS:
                value = adjusted.get(key)
                if value is not None and _is_number(value):
                    adjusted[key] = value + 1  # type: ignore[operator]

        if "not readable" in error:
            size = adjusted.get("size")
            if isinstance(size, str) and size in _SIZE_STEPS:
                adjusted["size"] = _SIZE_STEPS[size]

        if "spacing" in error and "intervalSpacing" in adjusted:
            adjusted["intervalSpacing"] = 25
    return adjusted
