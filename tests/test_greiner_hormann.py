from __future__ import annotations

import pytest

from geometry import Polygon, Vector2, is_clockwise
from greiner_hormann import (
    IN, INTERSECT, OUT, SUBTRACT_CLIPPER, SUBTRACT_SUBJECT, UNION,
    Crossing, Err, InvalidPolygon, Ok, Ring, Side, UnclassifiablePairing, UnclosedBoundary,
    Vertex, build_boundaries, clip, get_mode, greiner_hormann, poly_difference,
    poly_intersection, poly_union, resolve_entry,
)


SQUARE_A = Polygon([(0, 0), (2, 0), (2, 2), (0, 2)])
SQUARE_B = Polygon([(1, 1), (3, 1), (3, 3), (1, 3)])


def _groups(result):
    assert isinstance(result, Ok)
    return result.unwrap()


def _group_area(group) -> float:
    return abs(group[0].signed_area()) - sum(abs(h.signed_area()) for h in group[1:])


def _total_area(groups) -> float:
    return sum(_group_area(g) for g in groups)


def _point_set(polygon):
    return {(round(p.x, 9), round(p.y, 9)) for p in polygon.outer}


def test_mode_table() -> None:
    assert get_mode(True, True) == INTERSECT
    assert get_mode(True, False) == SUBTRACT_CLIPPER
    assert get_mode(False, True) == SUBTRACT_SUBJECT
    assert get_mode(False, False) == UNION


def test_ring_is_clockwise_and_linked() -> None:
    arena = []
    ring = Ring(arena, SQUARE_A.outer)
    assert is_clockwise(ring.to_points())
    for index in ring.indices():
        vertex = arena[index]
        assert arena[vertex.next].prev == index
    assert ring.count() == 4


def test_ring_insert_orders_by_alpha() -> None:
    arena = []
    ring = Ring(arena, [Vector2(0, 0), Vector2(0, 4), Vector2(4, 4), Vector2(4, 0)])
    start = ring.first
    end = arena[start].next
    ring.insert(Vertex(0, 3, alpha=0.75, inserted=True), start, end)
    ring.insert(Vertex(0, 1, alpha=0.25, inserted=True), start, end)
    ring.insert(Vertex(0, 2, alpha=0.5, inserted=True), start, end)
    ys = [p.y for p in ring.to_points()[:5]]
    assert ys == [0, 1, 2, 3, 4]
    assert ring.next_original(start) == end
    assert ring.count(lambda v: v.inserted) == 3


def test_intersect_overlapping_squares() -> None:
    groups = _groups(clip(SQUARE_A, SQUARE_B, True, True))
    assert len(groups) == 1 and len(groups[0]) == 1
    assert groups[0][0].area() == pytest.approx(1.0)
    assert _point_set(groups[0][0]) == {(1, 1), (2, 1), (2, 2), (1, 2)}


def test_union_overlapping_squares() -> None:
    groups = _groups(clip(SQUARE_A, SQUARE_B, False, False))
    assert len(groups) == 1 and len(groups[0]) == 1
    assert groups[0][0].area() == pytest.approx(7.0)


def test_subtract_clipper_from_subject() -> None:
    groups = _groups(clip(SQUARE_A, SQUARE_B, True, False))
    assert len(groups) == 1
    l_shape = groups[0][0]
    assert l_shape.area() == pytest.approx(3.0)
    assert l_shape.contains_vector((0.5, 0.5))
    assert not l_shape.contains_vector((2.5, 2.5))


def test_subtract_subject_from_clipper() -> None:
    groups = _groups(clip(SQUARE_A, SQUARE_B, False, True))
    assert len(groups) == 1
    l_shape = groups[0][0]
    assert l_shape.area() == pytest.approx(3.0)
    assert l_shape.contains_vector((2.5, 2.5))
    assert not l_shape.contains_vector((0.5, 0.5))


def test_outputs_are_clockwise() -> None:
    for flags in [(True, True), (False, False), (True, False), (False, True)]:
        for group in _groups(clip(SQUARE_A, SQUARE_B, *flags)):
            assert is_clockwise(group[0].outer)


def test_self_clip_is_identity() -> None:
    for flags in [(True, True), (False, False)]:
        groups = _groups(clip(SQUARE_A, SQUARE_A, *flags))
        assert len(groups) == 1
        assert groups[0][0].area() == pytest.approx(4.0)
        assert _point_set(groups[0][0]) == _point_set(SQUARE_A)


def test_self_subtract_is_empty() -> None:
    assert _groups(clip(SQUARE_A, SQUARE_A, True, False)) == []


def test_disjoint_polygons() -> None:
    far = Polygon([(5, 5), (6, 5), (6, 6), (5, 6)])
    assert _groups(poly_intersection(SQUARE_A, far)) == []

    groups = _groups(poly_union(SQUARE_A, far))
    assert len(groups) == 2
    assert all(len(g) == 1 for g in groups)
    assert _total_area(groups) == pytest.approx(4.0 + 1.0)

    groups = _groups(poly_difference(SQUARE_A, far))
    assert len(groups) == 1 and groups[0][0].area() == pytest.approx(4.0)


def test_contained_polygon() -> None:
    outer = Polygon([(0, 0), (10, 0), (10, 10), (0, 10)])
    inner = Polygon([(2, 2), (4, 2), (4, 4), (2, 4)])

    # the hole's points lie inside the outer polygon before clipping
    assert all(outer.contains_vector(p) for p in inner.outer)

    groups = _groups(poly_difference(outer, inner))
    assert len(groups) == 1
    assert len(groups[0]) == 2
    assert _group_area(groups[0]) == pytest.approx(96.0)
    assert not is_clockwise(groups[0][1].outer)
    assert Polygon.from_group(groups[0]).area() == pytest.approx(96.0)

    groups = _groups(poly_union(outer, inner))
    assert len(groups) == 1 and len(groups[0]) == 1
    assert groups[0][0].area() == pytest.approx(100.0)

    groups = _groups(poly_intersection(outer, inner))
    assert len(groups) == 1 and groups[0][0].area() == pytest.approx(4.0)

    assert _groups(clip(outer, inner, False, True)) == []

    groups = _groups(clip(inner, outer, False, True))
    assert len(groups) == 1 and len(groups[0]) == 2


def test_corner_touching_squares() -> None:
    a = Polygon([(0, 0), (1, 0), (1, 1), (0, 1)])
    b = Polygon([(1, 1), (2, 1), (2, 2), (1, 2)])
    assert _groups(poly_intersection(a, b)) == []
    groups = _groups(poly_union(a, b))
    assert len(groups) == 2
    assert _total_area(groups) == pytest.approx(2.0)


def test_inscribed_diamond_touches_without_crossing() -> None:
    square = Polygon([(0, 0), (4, 0), (4, 4), (0, 4)])
    diamond = Polygon([(2, 0), (4, 2), (2, 4), (0, 2)])

    groups = _groups(poly_intersection(square, diamond))
    assert len(groups) == 1 and groups[0][0].area() == pytest.approx(8.0)

    groups = _groups(poly_union(square, diamond))
    assert len(groups) == 1 and groups[0][0].area() == pytest.approx(16.0)

    groups = _groups(poly_difference(square, diamond))
    assert _total_area(groups) == pytest.approx(8.0)


def test_vertex_on_edge_crossing() -> None:
    square = Polygon([(0, 0), (2, 0), (2, 2), (0, 2)])
    triangle = Polygon([(1, 1), (2, 1), (4, 2)])

    groups = _groups(poly_intersection(square, triangle))
    assert len(groups) == 1
    assert groups[0][0].area() == pytest.approx(1.0 / 6.0)

    groups = _groups(poly_union(square, triangle))
    assert len(groups) == 1
    assert groups[0][0].area() == pytest.approx(4.0 + 0.5 - 1.0 / 6.0)


def test_union_produces_hole() -> None:
    u_shape = Polygon([(0, 0), (3, 0), (3, 3), (2, 3), (2, 1), (1, 1), (1, 3), (0, 3)])
    bar = Polygon([(-1, 2), (4, 2), (4, 4), (-1, 4)])

    groups = _groups(poly_union(u_shape, bar))
    assert len(groups) == 1
    outer, hole = groups[0]
    assert abs(outer.signed_area()) == pytest.approx(16.0)
    assert _point_set(hole) == {(1, 1), (2, 1), (2, 2), (1, 2)}
    assert _group_area(groups[0]) == pytest.approx(15.0)


def test_intersection_with_two_pieces() -> None:
    u_shape = Polygon([(0, 0), (3, 0), (3, 3), (2, 3), (2, 1), (1, 1), (1, 3), (0, 3)])
    bar = Polygon([(-1, 2), (4, 2), (4, 4), (-1, 4)])

    groups = _groups(poly_intersection(u_shape, bar))
    assert len(groups) == 2
    assert all(len(g) == 1 for g in groups)
    assert sorted(g[0].area() for g in groups) == pytest.approx([1.0, 1.0])


def test_clip_is_repeatable_and_leaves_inputs_alone() -> None:
    subject = SQUARE_A.clone()
    clipper = SQUARE_B.clone()
    first = _groups(clip(subject, clipper, False, False))
    second = _groups(clip(subject, clipper, False, False))
    assert [[p.outer for p in g] for g in first] == [[p.outer for p in g] for g in second]
    assert subject == SQUARE_A
    assert clipper == SQUARE_B


def test_input_holes_are_ignored() -> None:
    holed = Polygon(SQUARE_A.outer, [[(0.5, 0.5), (0.5, 1.5), (1.5, 1.5), (1.5, 0.5)]])
    groups = _groups(poly_intersection(holed, SQUARE_B))
    assert groups[0][0].area() == pytest.approx(1.0)


def test_invalid_polygon() -> None:
    line = Polygon([(0, 0), (1, 1)])
    result = clip(line, SQUARE_A, True, True)
    assert isinstance(result, Err)
    assert isinstance(result.error, InvalidPolygon)
    with pytest.raises(InvalidPolygon):
        result.unwrap()
    with pytest.raises(InvalidPolygon):
        greiner_hormann(SQUARE_A, line, False, False)


def test_unclassified_vertex_is_an_error() -> None:
    arena = []
    ring = Ring(arena, SQUARE_A.outer)
    arena[ring.first].intersect = True
    # neighbouring vertices were never classified
    with pytest.raises(UnclassifiablePairing):
        resolve_entry(arena, ring.first, set())


def test_same_pairing_defers_to_neighbor() -> None:
    arena = []
    ring_a = Ring(arena, SQUARE_A.outer)
    ring_b = Ring(arena, SQUARE_B.outer)
    a = ring_a.first
    b = ring_b.first
    arena[a].neighbor, arena[b].neighbor = b, a
    for index in ring_a.indices():
        arena[index].type = IN
    for index in ring_b.indices():
        arena[index].type = OUT
    arena[arena[b].next].type = IN

    assert resolve_entry(arena, a, set()) is Crossing.EXIT
    assert resolve_entry(arena, b, set()) is Crossing.ENTRY

    arena[arena[b].next].type = OUT
    assert resolve_entry(arena, a, set()) is Crossing.BOUNCE


def test_touch_next_to_crossing() -> None:
    # the triangle's edge runs from a touch on the top edge straight to a crossing
    square = Polygon([(0, 0), (4, 0), (4, 4), (0, 4)])
    triangle = Polygon([(2, 4), (3, 2), (5, 3)])

    groups = _groups(poly_intersection(square, triangle))
    assert len(groups) == 1 and len(groups[0]) == 1
    assert groups[0][0].area() == pytest.approx(25.0 / 12.0)
    assert groups[0][0].contains_vector((3, 3))

    groups = _groups(clip(square, triangle, False, True))
    assert len(groups) == 1
    assert groups[0][0].area() == pytest.approx(5.0 / 12.0)
    assert groups[0][0].contains_vector((4.5, 3))


def test_broken_ring_raises_unclosed_boundary() -> None:
    arena = []
    ring = Ring(arena, SQUARE_A.outer)
    other = Ring(arena, SQUARE_B.outer)
    first = ring.first
    second = arena[first].next
    third = arena[second].next
    arena[first].intersect = True
    arena[first].neighbor = other.first
    # the ring loops back on itself and never reaches another intersection
    arena[third].next = second
    with pytest.raises(UnclosedBoundary):
        build_boundaries(ring, True, True)


def test_unclassifiable_pairing_names_the_sides() -> None:
    error = UnclassifiablePairing((Side.IN, None), Vector2(1, 2))
    assert error.pairing == (IN, None)
    assert "in/unclassified" in str(error)
