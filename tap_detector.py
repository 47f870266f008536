# -*- coding: utf-8 -*-
########################
# tap_detector.py
########################
# Purpose:
# - Locate the pair of nodes that bracket the playhead along the shape perimeter.
# - Interpolate the playhead position for rendering.
# - Work out which nodes were crossed during one cycle and when.
#
# Design notes:
# - No Qt usage. Pure functions over the cumulative-length table produced by ShapePath.
# - Intervals are closed-open: an arc length exactly on node i's boundary belongs to node i.
# - A relative tolerance absorbs float drift so a boundary reached by summed deltas still counts.
# - Degenerate shapes (perimeter ~ 0) and zero-length segments never divide by zero.
#
########################
# Interfaces:
# Constants:
# - DEGENERATE_PERIMETER_EPSILON
#
# Public dataclasses:
# - Bracket(behind: int, ahead: int, cum_behind: float, cum_ahead: float)
#
# Public functions:
# - locate_bracket(arc_length: float, cumulative_lengths: Sequence[float]) -> Bracket
# - interpolate_position(arc_length: float, bracket: Bracket, pos_behind: Point, pos_ahead: Point) -> Point
# - crossed_indices(last_behind: Optional[int], behind: int, num_nodes: int, wrapped_full_bar: bool) -> list[int]
# - crossing_offset(boundary_fraction: float, span: ProgressSpan) -> float
# - boundary_in_span(boundary_fraction: float, span: ProgressSpan) -> bool
#
# Inputs:
# - Arc length from Playhead, cumulative lengths and positions from ShapePath.
#
# Outputs:
# - Bracket and Point values consumed by SequencerEngine and renderers.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from geometry import Point, ilerp, lerp_point
from playhead import ProgressSpan

DEGENERATE_PERIMETER_EPSILON = 1e-9

# Fraction of the perimeter treated as "on" a boundary.
_BOUNDARY_TOLERANCE = 1e-9


@dataclass(frozen=True)
class Bracket:
    behind: int
    ahead: int
    cum_behind: float
    cum_ahead: float


def locate_bracket(arc_length: float, cumulative_lengths: Sequence[float]) -> Bracket:
    """
    Find the nodes behind and ahead of the playhead.

    cumulative_lengths holds N + 1 non-decreasing values with [0] == 0 and [N] == perimeter.
    cum_ahead is the end of the behind node's segment, so it equals the perimeter for the last
    node even though the ahead index wraps to 0.
    """
    num_nodes = len(cumulative_lengths) - 1
    if num_nodes < 1:
        raise ValueError("cumulative_lengths needs at least two entries")

    perimeter = float(cumulative_lengths[num_nodes])
    if perimeter < DEGENERATE_PERIMETER_EPSILON:
        return Bracket(behind=0, ahead=1 % num_nodes, cum_behind=0.0, cum_ahead=0.0)

    tolerance = perimeter * _BOUNDARY_TOLERANCE
    arc = float(arc_length) + tolerance
    if arc >= perimeter:
        arc -= perimeter

    behind = 0
    for index in range(num_nodes):
        if float(cumulative_lengths[index]) <= arc:
            behind = index
        else:
            break

    return Bracket(
        behind=behind,
        ahead=(behind + 1) % num_nodes,
        cum_behind=float(cumulative_lengths[behind]),
        cum_ahead=float(cumulative_lengths[behind + 1]),
    )


def interpolate_position(arc_length: float, bracket: Bracket, pos_behind: Point, pos_ahead: Point) -> Point:
    if bracket.cum_ahead - bracket.cum_behind <= 0.0:
        return pos_behind
    # An arc just short of the perimeter that was snapped onto node 0.
    if bracket.behind == 0 and float(arc_length) > bracket.cum_ahead:
        return pos_behind
    dist = ilerp(bracket.cum_behind, bracket.cum_ahead, float(arc_length))
    return lerp_point(pos_behind, pos_ahead, dist)


def crossed_indices(
    last_behind: Optional[int],
    behind: int,
    num_nodes: int,
    wrapped_full_bar: bool,
) -> List[int]:
    """
    Node indices passed since the previous tap, in traversal order, ending at behind.

    A cycle covering one bar or more visits every node once; repeated bars are not repeated here.
    """
    if last_behind is None or last_behind >= num_nodes:
        return [int(behind)]

    steps = (int(behind) - int(last_behind)) % num_nodes
    if steps == 0:
        if not wrapped_full_bar:
            return []
        steps = num_nodes
    return [(int(last_behind) + step) % num_nodes for step in range(1, steps + 1)]


def crossing_offset(boundary_fraction: float, span: ProgressSpan) -> float:
    """
    Seconds from the start of the cycle until the playhead reached boundary_fraction of the bar.

    The latest crossing inside the span is used. The result is clamped to [0, elapsed].
    """
    behind_end = (span.end_unwrapped - float(boundary_fraction)) % 1.0
    if 1.0 - behind_end < _BOUNDARY_TOLERANCE:
        behind_end = 0.0
    offset = span.elapsed_seconds - behind_end * span.seconds_per_bar
    return min(max(offset, 0.0), span.elapsed_seconds)


def boundary_in_span(boundary_fraction: float, span: ProgressSpan) -> bool:
    """True when the playhead travelled over boundary_fraction of the bar during span."""
    if span.wrapped_full_bar():
        return True
    travelled = span.end_unwrapped - span.start
    if travelled <= 0.0:
        return False
    ahead_of_start = (float(boundary_fraction) - span.start) % 1.0
    if 1.0 - ahead_of_start < _BOUNDARY_TOLERANCE:
        ahead_of_start = 0.0
    return ahead_of_start <= travelled + _BOUNDARY_TOLERANCE


def _run_unit_tests() -> None:
    cumulative = [0.0, 10.0, 20.0, 30.0, 40.0]

    assert locate_bracket(0.0, cumulative).behind == 0
    assert locate_bracket(10.0, cumulative).behind == 1
    last = locate_bracket(39.0, cumulative)
    assert (last.behind, last.ahead, last.cum_ahead) == (3, 0, 40.0)
    assert locate_bracket(40.0, cumulative).behind == 0

    degenerate = locate_bracket(0.0, [0.0, 0.0, 0.0, 0.0])
    assert (degenerate.behind, degenerate.ahead) == (0, 1)

    bracket = locate_bracket(15.0, cumulative)
    mid = interpolate_position(15.0, bracket, Point(0.0, 0.0), Point(10.0, 0.0))
    assert mid == Point(5.0, 0.0)

    assert crossed_indices(None, 2, 4, False) == [2]
    assert crossed_indices(3, 1, 4, False) == [0, 1]
    assert crossed_indices(1, 1, 4, False) == []
    assert crossed_indices(1, 1, 4, True) == [2, 3, 0, 1]

    span = ProgressSpan(start=0.0, end_unwrapped=0.25, elapsed_seconds=0.03125, seconds_per_bar=0.125)
    assert abs(crossing_offset(0.25, span) - 0.03125) < 1e-12
    assert abs(crossing_offset(0.0, span) - 0.0) < 1e-12

    assert boundary_in_span(0.25, span)
    assert not boundary_in_span(0.5, span)


if __name__ == "__main__":
    _run_unit_tests()
    print("tap_detector.py: ok")
