"""Geometry value types, fuzzy comparison, hashing, list helpers and formatting."""

from __future__ import annotations

import copy
import enum
import logging
import struct
import sys
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, MutableSequence, Sequence

_MASK64 = (1 << 64) - 1


@dataclass
class Extent2D:
    width: int = 0
    height: int = 0


@dataclass
class Position2D:
    x: int = 0
    y: int = 0


@dataclass
class Rect2D:
    position: Position2D = field(default_factory=Position2D)
    extent: Extent2D = field(default_factory=Extent2D)

    def is_null(self) -> bool:
        return self.extent.width == 0 or self.extent.height == 0


class LogLevel(enum.IntEnum):
    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARNING = 3
    ERROR = 4
    CRITICAL = 5


def create_logger(name: str) -> logging.Logger:
    """Return the named logger, writing to stdout."""
    logger = logging.getLogger(name)
    if not any(getattr(h, "_kdfoundation", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler._kdfoundation = True  # type: ignore[attr-defined]
        handler.setFormatter(logging.Formatter("[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s"))
        logger.addHandler(handler)
    return logger


def _to_float32(value: float) -> float:
    return struct.unpack("f", struct.pack("f", value))[0]


def _fuzzy_scalar(p1: float, p2: float, single_precision: bool) -> bool:
    if single_precision:
        p1, p2 = _to_float32(p1), _to_float32(p2)
        return abs(p1 - p2) * 100000.0 <= min(abs(p1), abs(p2))
    return abs(p1 - p2) * 1000000000000.0 <= min(abs(p1), abs(p2))


def fuzzy_compare(p1: Any, p2: Any, single_precision: bool = False) -> bool:
    """Compare numbers, or vectors/quaternions component-wise, with relative tolerance."""
    if isinstance(p1, Real) and isinstance(p2, Real):
        return _fuzzy_scalar(float(p1), float(p2), single_precision)
    a, b = list(p1), list(p2)
    if len(a) != len(b):
        raise ValueError(f"cannot compare vectors of sizes {len(a)} and {len(b)}")
    return all(_fuzzy_scalar(float(x), float(y), single_precision) for x, y in zip(a, b))


def fuzzy_is_null(value: float, single_precision: bool = False) -> bool:
    if single_precision:
        return abs(_to_float32(value)) <= 0.00001
    return abs(value) <= 0.000000000001


def hash_combine(seed: int, value: Any) -> int:
    """Mix the hash of value into a 64-bit seed and return the new seed."""
    seed &= _MASK64
    hashed = hash(value) & _MASK64
    mixed = (hashed + 0x9E3779B9 + ((seed << 6) & _MASK64) + (seed >> 2)) & _MASK64
    return seed ^ mixed


def move_at_end(destination: MutableSequence, source: MutableSequence) -> None:
    """Append all of source to destination, leaving source empty."""
    destination.extend(source)
    source.clear()


def move_and_clear(data: Any) -> Any:
    """Return a copy of data's contents and clear data."""
    result = copy.copy(data)
    data.clear()
    return result


def index_of(sequence: Sequence, element: Any) -> int:
    """Position of element in sequence, or -1 if absent."""
    try:
        return sequence.index(element)
    except ValueError:
        return -1


def format_vec3(v: Sequence[float]) -> str:
    return f"Vec3({v[0]:f}, {v[1]:f}, {v[2]:f})"


def format_vec4(v: Sequence[float]) -> str:
    return f"Vec4({v[0]:f}, {v[1]:f}, {v[2]:f} {v[3]:f})"


def format_quat(q: Sequence[float]) -> str:
    """Format a quaternion given in x, y, z, w order."""
    return f"Quat({q[0]:f}, {q[1]:f}, {q[2]:f} {q[3]:f})"


def format_mat4(m: Sequence[Sequence[float]]) -> str:
    """Format a 4x4 matrix given as four columns, printed row by row."""
    rows = [f"{m[0][r]:f}, {m[1][r]:f}, {m[2][r]:f} {m[3][r]:f}" for r in range(4)]
    return "Mat4(" + "\n     ".join(rows) + ")"