# -*- coding: utf-8 -*-
########################
# shape_path.py
########################
# Purpose:
# - Owns the cyclic sequence of nodes that forms the sequencer shape.
# - Derives segment lengths, cumulative lengths and the perimeter from current node positions.
#
# Design notes:
# - No Qt usage. Pure geometry plus a lock.
# - Segment i joins node i and node (i + 1) % N. The last node connects back to the first.
# - Lengths are recomputed on every query. Nodes can be dragged at any time, so nothing is cached.
# - Node positions may be written from the input thread. Writes and position reads go through
#   one lock so a length computation never observes a half-applied drag.
#
########################
# Interfaces:
# Public classes:
# - class ShapePath(Generic[PayloadT])
#   - __init__(num_nodes: int, radius: float, payload_factory: Callable[[int], PayloadT],
#              bounds: Optional[Bounds] = None)
#   - num_nodes() -> int
#   - node(index: int) -> Node
#   - nodes() -> list[Node]
#   - positions() -> list[Point]
#   - position(index: int) -> Point
#   - set_node_position(index: int, point: Point) -> Point
#   - set_node_payload(index: int, payload: PayloadT) -> None
#   - segment_lengths() -> list[float]
#   - cumulative_lengths() -> list[float]
#   - perimeter() -> float
#   - emplace_regular(n: int, radius: Optional[float] = None) -> int
#
# Public functions:
# - regular_polygon_points(n: int, radius: float) -> list[Point]
#
########################

from __future__ import annotations

import math
import threading
from typing import Callable, Generic, List, Optional

from geometry import Bounds, Point, distance
from logging_utils import log_event
from sequence_models import Node, PayloadT, clamp_num_nodes


def regular_polygon_points(n: int, radius: float) -> List[Point]:
    """
    Evenly spaced points on a circle, starting at the top and going clockwise.

    Node i sits at angle (n - i) * (2*pi / n) + pi / 2.
    """
    count = int(n)
    delta_angle = 2.0 * math.pi / count
    points: List[Point] = []
    for index in range(count):
        angle = (count - index) * delta_angle + math.pi * 0.5
        points.append(Point(x=float(radius) * math.cos(angle), y=float(radius) * math.sin(angle)))
    return points


class ShapePath(Generic[PayloadT]):
    def __init__(
        self,
        num_nodes: int,
        radius: float,
        payload_factory: Callable[[int], PayloadT],
        bounds: Optional[Bounds] = None,
    ) -> None:
        self._radius = float(radius)
        self._payload_factory = payload_factory
        self._bounds = bounds
        self._lock = threading.Lock()
        self._nodes: List[Node[PayloadT]] = []
        self.emplace_regular(num_nodes, radius)

    def num_nodes(self) -> int:
        return len(self._nodes)

    def radius(self) -> float:
        return float(self._radius)

    def bounds(self) -> Optional[Bounds]:
        return self._bounds

    def node(self, index: int) -> Node[PayloadT]:
        return self._nodes[self._check_index(index)]

    def nodes(self) -> List[Node[PayloadT]]:
        return list(self._nodes)

    def positions(self) -> List[Point]:
        with self._lock:
            return [node.position for node in self._nodes]

    def position(self, index: int) -> Point:
        checked = self._check_index(index)
        with self._lock:
            return self._nodes[checked].position

    def set_node_position(self, index: int, point: Point) -> Point:
        """Move one node. Returns the stored position, which is clamped to the bounds when set."""
        checked = self._check_index(index)
        position = Point(x=float(point.x), y=float(point.y))
        if self._bounds is not None:
            position = self._bounds.clamp(position)
        with self._lock:
            self._nodes[checked].position = position
        return position

    def set_node_payload(self, index: int, payload: PayloadT) -> None:
        self._nodes[self._check_index(index)].payload = payload

    def segment_lengths(self) -> List[float]:
        points = self.positions()
        count = len(points)
        return [distance(points[index], points[(index + 1) % count]) for index in range(count)]

    def cumulative_lengths(self) -> List[float]:
        cumulative = [0.0]
        running = 0.0
        for length in self.segment_lengths():
            running += length
            cumulative.append(running)
        return cumulative

    def perimeter(self) -> float:
        return self.cumulative_lengths()[-1]

    def emplace_regular(self, n: int, radius: Optional[float] = None) -> int:
        """
        Rebuild the node list as a regular n-gon. n is clamped to the supported node range.

        Payloads of indices that survive the rebuild are kept. Returns the node count used.
        """
        count = clamp_num_nodes(n)
        if count != int(n):
            log_event("warning", "Path", "Node count clamped", requested=int(n), used=count)
        if radius is not None:
            self._radius = float(radius)

        points = regular_polygon_points(count, self._radius)
        with self._lock:
            previous = self._nodes
            rebuilt: List[Node[PayloadT]] = []
            for index, point in enumerate(points):
                if self._bounds is not None:
                    point = self._bounds.clamp(point)
                if index < len(previous):
                    payload = previous[index].payload
                else:
                    payload = self._payload_factory(index)
                rebuilt.append(Node(position=point, payload=payload))
            self._nodes = rebuilt
        return count

    def _check_index(self, index: int) -> int:
        value = int(index)
        if value < 0 or value >= len(self._nodes):
            raise IndexError(f"Node index {value} out of range for {len(self._nodes)} nodes")
        return value


def _run_unit_tests() -> None:
    path = ShapePath(4, 100.0, payload_factory=lambda index: index)
    positions = path.positions()
    assert abs(positions[0].x) < 1e-9 and abs(positions[0].y - 100.0) < 1e-9
    assert abs(positions[1].x - 100.0) < 1e-9 and abs(positions[1].y) < 1e-9

    side = math.sqrt(100.0 ** 2 + 100.0 ** 2)
    assert all(abs(length - side) < 1e-9 for length in path.segment_lengths())
    cumulative = path.cumulative_lengths()
    assert len(cumulative) == 5 and cumulative[0] == 0.0
    assert abs(path.perimeter() - 4.0 * side) < 1e-9

    path.set_node_position(2, Point(0.0, 0.0))
    assert path.perimeter() < 4.0 * side

    assert path.emplace_regular(20) == 8
    assert path.node(0).payload == 0 and path.node(7).payload == 7


if __name__ == "__main__":
    _run_unit_tests()
    print("shape_path.py: ok")
