"""Flow path geometry.

Flow paths are stored as tuples of ``(x, y)`` points.  The topology file may
describe them either as point lists or as SVG-style path data
(``"M140,200 L180,200 L300,200"``); :func:`parse_path` converts the latter
once, when the network is built, so nothing re-parses strings per tick.
"""

from __future__ import annotations

import re
from typing import Iterable, Sequence, Tuple, Union

from .errors import DegenerateGeometry


Point = Tuple[float, float]
Path = Tuple[Point, ...]

ORIGIN: Point = (0.0, 0.0)

_COMMAND_RE = re.compile(r"([MLml])((?:[^A-Za-z]|[eE])*)")
_NUMBER_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def parse_path(d: str) -> Path:
    """Parse SVG move-to/line-to path data into a point tuple.

    Only absolute and relative ``M``/``L`` commands are understood, which is
    all a process schematic needs.  Each command may carry several
    coordinate pairs (``"M0,0 10,0 10,10"`` is a move followed by two
    implicit line-tos).

    :param d: The path data string.
    :returns: The polyline vertices in drawing order.
    :raises DegenerateGeometry: If the string has no commands, does not
        start with a move-to, or a command carries an odd number of values.
    """
    text = d.strip()
    if not text or text[0] not in "Mm":
        raise DegenerateGeometry(f"Path data must start with a move-to command: {d!r}")
    leftover = _COMMAND_RE.sub("", text).strip()
    if leftover:
        raise DegenerateGeometry(f"Unsupported path commands in {d!r}")
    points = []
    cx, cy = 0.0, 0.0
    for command, args in _COMMAND_RE.findall(text):
        numbers = [float(n) for n in _NUMBER_RE.findall(args)]
        if not numbers or len(numbers) % 2:
            raise DegenerateGeometry(f"Command {command!r} needs coordinate pairs in {d!r}")
        relative = command.islower()
        for i in range(0, len(numbers), 2):
            x, y = numbers[i], numbers[i + 1]
            if relative:
                x, y = cx + x, cy + y
            cx, cy = x, y
            points.append((x, y))
    return tuple(points)


def as_path(raw: Union[str, Iterable[Sequence[float]]]) -> Path:
    """Normalise a topology path entry (string or point list) to a tuple."""
    if isinstance(raw, str):
        return parse_path(raw)
    points = []
    for item in raw:
        if len(item) != 2:
            raise DegenerateGeometry(f"Path points must be (x, y) pairs, got {item!r}")
        points.append((float(item[0]), float(item[1])))
    return tuple(points)


def midpoint(path: Sequence[Point]) -> Point:
    """Pick the anchor point for an edge's flow label.

    The path is treated as a list of drawing commands, one per vertex (the
    initial move-to followed by line-tos).  The command at index
    ``len // 2`` is chosen and its point returned.  This is the middle
    command, not the arc-length midpoint of the polyline.

    Paths with fewer than two commands anchor at the origin.
    """
    if len(path) < 2:
        return ORIGIN
    x, y = path[len(path) // 2]
    return (float(x), float(y))


__all__ = ["Point", "Path", "parse_path", "as_path", "midpoint"]
