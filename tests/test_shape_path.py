import math

import pytest

from geometry import Bounds, Point
from shape_path import ShapePath, regular_polygon_points


def _payload(index):
    return "node-%d" % index


def test_regular_polygon_starts_at_top_and_runs_clockwise():
    points = regular_polygon_points(4, 250.0)
    assert points[0].x == pytest.approx(0.0, abs=1e-9)
    assert points[0].y == pytest.approx(250.0)
    assert points[1].x == pytest.approx(250.0)
    assert points[2].y == pytest.approx(-250.0)
    assert points[3].x == pytest.approx(-250.0)


@pytest.mark.parametrize("num_nodes", [3, 5, 8])
def test_regular_polygon_has_equal_sides(num_nodes):
    path = ShapePath(num_nodes, 100.0, payload_factory=_payload)
    expected_side = 2.0 * 100.0 * math.sin(math.pi / num_nodes)
    assert path.segment_lengths() == pytest.approx([expected_side] * num_nodes)


def test_cumulative_lengths_are_prefix_sums_with_wrap_segment():
    path = ShapePath(3, 10.0, payload_factory=_payload)
    path.set_node_position(0, Point(0.0, 0.0))
    path.set_node_position(1, Point(3.0, 0.0))
    path.set_node_position(2, Point(3.0, 4.0))

    assert path.segment_lengths() == pytest.approx([3.0, 4.0, 5.0])
    assert path.cumulative_lengths() == pytest.approx([0.0, 3.0, 7.0, 12.0])
    assert path.perimeter() == pytest.approx(12.0)


def test_lengths_follow_node_moves_without_stale_cache():
    path = ShapePath(4, 100.0, payload_factory=_payload)
    before = path.perimeter()
    path.set_node_position(0, Point(0.0, 300.0))
    assert path.perimeter() > before


def test_drag_is_clamped_to_bounds():
    path = ShapePath(4, 100.0, payload_factory=_payload, bounds=Bounds.centered(150.0))
    stored = path.set_node_position(2, Point(400.0, -999.0))
    assert stored == Point(150.0, -150.0)
    assert path.position(2) == stored


def test_emplace_regular_keeps_existing_payloads_and_clamps_count():
    path = ShapePath(3, 100.0, payload_factory=_payload)
    path.set_node_payload(1, "custom")

    assert path.emplace_regular(5) == 5
    assert [node.payload for node in path.nodes()] == ["node-0", "custom", "node-2", "node-3", "node-4"]

    assert path.emplace_regular(1) == 3
    assert path.num_nodes() == 3


def test_emplace_regular_with_new_radius():
    path = ShapePath(4, 100.0, payload_factory=_payload)
    path.emplace_regular(4, radius=50.0)
    assert path.radius() == 50.0
    assert path.position(0).y == pytest.approx(50.0)


def test_bad_index_raises():
    path = ShapePath(4, 100.0, payload_factory=_payload)
    with pytest.raises(IndexError):
        path.set_node_position(4, Point(0.0, 0.0))
    with pytest.raises(IndexError):
        path.node(-1)
