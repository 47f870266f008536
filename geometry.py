# -*- coding: utf-8 -*-
########################
# geometry.py
########################
# Purpose:
# - 2D value types and interpolation helpers shared by the path, tap detector and renderers.
#
# Design notes:
# - No Qt usage. Pure functions over immutable values.
# - ilerp returns 0.0 for an empty range instead of dividing by zero.
#
########################
# Interfaces:
# Public dataclasses:
# - Point(x: float, y: float)
# - Bounds(min_x: float, min_y: float, max_x: float, max_y: float)
#   - clamp(point: Point) -> Point
#
# Public functions:
# - distance(a: Point, b: Point) -> float
# - lerp(a: float, b: float, t: float) -> float
# - ilerp(a: float, b: float, value: float) -> float
# - lerp_point(a: Point, b: Point, t: float) -> Point
#
########################

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Bounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def centered(cls, half_extent: float) -> "Bounds":
        extent = abs(float(half_extent))
        return cls(min_x=-extent, min_y=-extent, max_x=extent, max_y=extent)

    def clamp(self, point: Point) -> Point:
        x = min(max(float(point.x), float(self.min_x)), float(self.max_x))
        y = min(max(float(point.y), float(self.min_y)), float(self.max_y))
        return Point(x=x, y=y)


def distance(a: Point, b: Point) -> float:
    return math.hypot(float(b.x) - float(a.x), float(b.y) - float(a.y))


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation from a to b, with t clamped to [0, 1]."""
    t = min(max(float(t), 0.0), 1.0)
    if t == 0.0:
        return float(a)
    if t == 1.0:
        return float(b)
    return t * (float(b) - float(a)) + float(a)


def ilerp(a: float, b: float, value: float) -> float:
    """Inverse of lerp: where value sits within [a, b]. An empty range maps to 0."""
    if b == a:
        return 0.0
    return (float(value) - float(a)) / (float(b) - float(a))


def lerp_point(a: Point, b: Point, t: float) -> Point:
    return Point(x=lerp(a.x, b.x, t), y=lerp(a.y, b.y, t))


def _run_unit_tests() -> None:
    assert distance(Point(0.0, 0.0), Point(3.0, 4.0)) == 5.0
    assert lerp(2.0, 4.0, 0.5) == 3.0
    assert lerp(2.0, 4.0, 7.0) == 4.0
    assert ilerp(1.0, 1.0, 5.0) == 0.0
    assert ilerp(0.0, 10.0, 2.5) == 0.25

    end = lerp_point(Point(0.0, 100.0), Point(100.0, 0.0), 1.0)
    assert end == Point(100.0, 0.0)

    bounds = Bounds.centered(10.0)
    assert bounds.clamp(Point(50.0, -50.0)) == Point(10.0, -10.0)


if __name__ == "__main__":
    _run_unit_tests()
    print("geometry.py: ok")
