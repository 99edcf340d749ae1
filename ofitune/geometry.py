"""Planar geometry for tuner regions: points, polygons and ray casting."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from .tuner_common import Algorithm, Protocol

__all__ = [
    "Point",
    "Region",
    "TUNER_MAX_SIZE",
    "TUNER_MAX_RANKS",
    "intersect",
    "distance",
    "is_inside_region",
    "extend_region",
]

# Largest message size (bytes) and rank count covered by the region tables.
TUNER_MAX_SIZE = float(100 * 1024 * 1024 * 1024)
TUNER_MAX_RANKS = 1024.0 * 1024

_EPS = 1e-10


@dataclass(frozen=True)
class Point:
    """A point (or vector) with coordinates (message size, rank count)."""

    x: float
    y: float

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def dot(self, other: Point) -> float:
        return self.x * other.x + self.y * other.y

    def cross(self, other: Point) -> float:
        """Magnitude of the cross product."""
        return self.x * other.y - self.y * other.x

    def madd(self, scale: float, other: Point) -> Point:
        """Return ``self + scale * other``."""
        return Point(self.x + scale * other.x, self.y + scale * other.y)


@dataclass(frozen=True)
class Region:
    """A polygon in which one algorithm/protocol combination is preferred."""

    algorithm: Algorithm
    protocol: Protocol
    vertices: tuple[Point, ...]

    @property
    def num_vertices(self) -> int:
        return len(self.vertices)


def intersect(
    x0: Point, x1: Point, y0: Point, y1: Point, eps: float
) -> tuple[int, Optional[Point]]:
    """Check whether segment x0->x1 crosses segment y0->y1.

    Returns ``(result, point)`` where result is 1 for an intersection, -1 for
    none, and 0 if the segments are parallel or the crossing lies too close to
    y0 or y1. ``point`` is the crossing of the x line with the y line, or None
    when the segments are parallel.
    """
    dx = x1 - x0
    dy = y1 - y0
    d = dy.cross(dx)
    if abs(d) < eps:
        return 0, None

    a = (x0.cross(dx) - y0.cross(dx)) / d
    sect = y0.madd(a, dy)

    if a < -eps or a > 1 + eps:
        return -1, sect
    if a < eps or a > 1 - eps:
        return 0, sect

    a = (x0.cross(dy) - y0.cross(dy)) / d
    if a < 0 or a > 1:
        return -1, sect
    return 1, sect


def distance(x: Point, y0: Point, y1: Point, eps: float) -> float:
    """Distance from ``x`` to the nearest point of segment y0->y1.

    Returns infinity when the perpendicular from ``x`` misses the segment.
    """
    dy = y1 - y0
    x1 = Point(x.x + dy.y, x.y - dy.x)
    result, sect = intersect(x, x1, y0, y1, eps)
    if result == -1 or sect is None:
        return math.inf
    s = sect - x
    return math.sqrt(s.dot(s))


def is_inside_region(point: Point, region: Region) -> int:
    """Ray-casting test: 1 if ``point`` is inside, -1 if outside, 0 if on an edge."""
    vertices = region.vertices
    if len(vertices) <= 1:
        raise ValueError("a region needs more than one vertex")

    edges = list(zip(vertices, vertices[1:] + vertices[:1]))

    if any(distance(point, a, b, _EPS) < _EPS for a, b in edges):
        return 0

    min_x = min(v.x for v in vertices)
    max_x = max(v.x for v in vertices)
    min_y = min(v.y for v in vertices)
    max_y = max(v.y for v in vertices)
    if point.x < min_x or point.x > max_x or point.y < min_y or point.y > max_y:
        return -1

    # A point far enough away to be outside every region.
    far = Point(2.0 * TUNER_MAX_SIZE, 2.0 * TUNER_MAX_RANKS)
    crosses = sum(1 for a, b in edges if intersect(point, far, a, b, _EPS)[0] == 1)
    return 1 if crosses % 2 else -1


def extend_region(a: Point, b: Point, z: Point) -> Point:
    """Extend the line through ``a`` and ``b`` to the x or y coordinate of ``z``.

    Returns the farthest point on that line sharing either the x or the y
    coordinate with ``z``.
    """
    if a.x == b.x:
        return Point(a.x, z.y)
    if a.y == b.y:
        return Point(z.x, a.y)

    m = (a.y - b.y) / (a.x - b.x)
    c = b.y - m * b.x
    projected_zy = m * z.x + c
    if projected_zy < z.y:
        return Point(z.x, projected_zy)
    return Point((z.y - c) / m, z.y)