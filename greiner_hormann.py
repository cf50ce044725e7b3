# greiner_hormann.py
"""
Greiner-Hormann boolean clipping of two simple polygons.

Only the outer ring of each input polygon takes part in the clip. Both
rings live in one shared arena of Vertex records; next/prev/neighbor are
indices into that arena, so all state is local to a single call.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, List, Optional, Sequence, Set, Tuple, Union

from geometry import EPS, Polygon, Segment, Vector2, is_clockwise, point_eq

logger = logging.getLogger(__name__)


class Side(Enum):
    """vertex classification relative to the other polygon"""
    IN = 'in'
    OUT = 'out'
    ON = 'on'


IN, OUT, ON = Side.IN, Side.OUT, Side.ON

INTERSECT = 'intersect'
SUBTRACT_CLIPPER = 'subtract_clipper'  # subject - clipper
SUBTRACT_SUBJECT = 'subtract_subject'  # clipper - subject
UNION = 'union'

ENTRY_PAIRINGS = {(OUT, IN), (ON, IN), (OUT, ON)}
EXIT_PAIRINGS = {(IN, OUT), (ON, OUT), (IN, ON)}
SAME_PAIRINGS = {(IN, IN), (OUT, OUT), (ON, ON)}

# (subject keeps inside part, clipper keeps inside part)
WALK_DIRECTIONS = {
    INTERSECT: (True, True),
    UNION: (False, False),
    SUBTRACT_CLIPPER: (False, True),
    SUBTRACT_SUBJECT: (True, False),
}

Group = List[Polygon]


class ClipError(Exception):
    """Base class for clip failures."""


class InvalidPolygon(ClipError):
    pass


class UnclassifiablePairing(ClipError):
    def __init__(self, pairing: Tuple[Optional[Side], Optional[Side]], point: Vector2):
        names = "/".join(side.value if side is not None else "unclassified" for side in pairing)
        super().__init__(f"cannot label vertex at ({point.x}, {point.y}) with pairing {names}")
        self.pairing = pairing
        self.point = point


class UnclosedBoundary(ClipError):
    pass


@dataclass(frozen=True)
class Ok:
    groups: List[Group]

    def unwrap(self) -> List[Group]:
        return self.groups


@dataclass(frozen=True)
class Err:
    error: ClipError

    def unwrap(self) -> List[Group]:
        raise self.error


ClipResult = Union[Ok, Err]


class Crossing(Enum):
    ENTRY = 'entry'
    EXIT = 'exit'
    BOUNCE = 'bounce'


@dataclass
class Vertex:
    x: float
    y: float
    alpha: float = 0.0
    intersect: bool = False
    degenerate: bool = False
    inserted: bool = False
    type: Optional[Side] = None
    # sides of the two adjacent edges, set on intersections before labelling
    sides: Optional[Tuple[Side, Side]] = None
    entry: bool = True
    neighbor: Optional[int] = None
    remove: bool = False
    checked: bool = False
    next: int = -1
    prev: int = -1

    @property
    def point(self) -> Vector2:
        return Vector2(self.x, self.y)

    def __repr__(self):
        return (f"Vertex(({self.x}, {self.y}), type={self.type}, inter={self.intersect}, "
                f"degenerate={self.degenerate}, entry={self.entry})")


class Ring:
    """Circular doubly linked list of vertices stored in a shared arena."""

    def __init__(self, arena: List[Vertex], points: Sequence[Vector2]):
        self.arena = arena
        self.first: Optional[int] = None
        if not is_clockwise(points):
            points = list(reversed(points))
        for p in points:
            self.push(Vertex(p.x, p.y))

    def push(self, vertex: Vertex) -> int:
        index = len(self.arena)
        self.arena.append(vertex)
        if self.first is None:
            self.first = index
            vertex.next = vertex.prev = index
            return index

        first = self.arena[self.first]
        last = first.prev
        vertex.next = self.first
        vertex.prev = last
        self.arena[last].next = index
        first.prev = index
        return index

    def insert(self, vertex: Vertex, start: int, end: int) -> int:
        """Insert between start and end, ordered by alpha among the vertices already there."""
        index = len(self.arena)
        self.arena.append(vertex)

        current = self.arena[start].next
        while current != end and self.arena[current].alpha < vertex.alpha:
            current = self.arena[current].next

        prev = self.arena[current].prev
        vertex.next = current
        vertex.prev = prev
        self.arena[prev].next = index
        self.arena[current].prev = index
        return index

    def indices(self) -> Iterator[int]:
        current = self.first
        while True:
            yield current
            current = self.arena[current].next
            if current == self.first:
                break

    def next_original(self, start: int) -> int:
        """next vertex that was not inserted by the intersection scan"""
        current = self.arena[start].next
        while self.arena[current].inserted and current != start:
            current = self.arena[current].next
        return current

    def first_intersect(self) -> Optional[int]:
        for index in self.indices():
            vertex = self.arena[index]
            if vertex.intersect and not vertex.checked:
                return index
        return None

    def count(self, predicate: Callable[[Vertex], bool] = lambda v: True) -> int:
        return sum(1 for index in self.indices() if predicate(self.arena[index]))

    def to_points(self) -> List[Vector2]:
        return [self.arena[index].point for index in self.indices()]


def get_mode(subject_forward: bool, clipper_forward: bool) -> str:
    if subject_forward:
        return INTERSECT if clipper_forward else SUBTRACT_CLIPPER
    return SUBTRACT_SUBJECT if clipper_forward else UNION


def _set_type(vertex: Vertex, other: Polygon):
    if vertex.type is None:
        vertex.type = IN if other.contains_vector(vertex.point) else OUT


def _locate(ring: Ring, start: int, end: int, alpha: float, hit: Vector2) -> Optional[int]:
    """Existing vertex of the segment start..end sitting at hit, if any."""
    if alpha <= EPS:
        return start
    if alpha >= 1.0 - EPS:
        return end
    current = ring.arena[start].next
    while current != end:
        if point_eq(ring.arena[current].point, hit):
            return current
        current = ring.arena[current].next
    return None


def _handle_intersection(subject_ring: Ring, clipper_ring: Ring,
                         s_start: int, s_end: int, c_start: int, c_end: int,
                         hit: Vector2, subject_alpha: float, clipper_alpha: float):
    arena = subject_ring.arena
    s_index = _locate(subject_ring, s_start, s_end, subject_alpha, hit)
    c_index = _locate(clipper_ring, c_start, c_end, clipper_alpha, hit)

    # one side already registered this touch: the other side must not pair again
    if s_index is not None and arena[s_index].neighbor is not None:
        return
    if c_index is not None and arena[c_index].neighbor is not None:
        return

    crossing = s_index is None and c_index is None

    if s_index is None:
        s_index = subject_ring.insert(Vertex(hit.x, hit.y, alpha=subject_alpha, inserted=True), s_start, s_end)
    if c_index is None:
        c_index = clipper_ring.insert(Vertex(hit.x, hit.y, alpha=clipper_alpha, inserted=True), c_start, c_end)

    subject_vertex = arena[s_index]
    clipper_vertex = arena[c_index]
    if crossing:
        subject_vertex.intersect = clipper_vertex.intersect = True
    else:
        subject_vertex.degenerate = clipper_vertex.degenerate = True

    subject_vertex.neighbor = c_index
    clipper_vertex.neighbor = s_index
    subject_vertex.type = clipper_vertex.type = ON


def compute_intersections(subject_ring: Ring, clipper_ring: Ring, subject: Polygon, clipper: Polygon):
    """
    Insert every crossing into both rings and pair every touch.
    Original vertices are classified against the other polygon on the way.
    """
    arena = subject_ring.arena
    subject_originals = list(subject_ring.indices())
    clipper_originals = list(clipper_ring.indices())

    for s_start in subject_originals:
        _set_type(arena[s_start], clipper)
        s_end = subject_ring.next_original(s_start)

        for c_start in clipper_originals:
            _set_type(arena[c_start], subject)
            c_end = clipper_ring.next_original(c_start)

            subject_segment = Segment(arena[s_start].point, arena[s_end].point)
            clipper_segment = Segment(arena[c_start].point, arena[c_end].point)
            hit = subject_segment.intersect(clipper_segment)
            if hit is None:
                continue

            subject_alpha = arena[s_start].point.distance_to(hit) / subject_segment.length()
            clipper_alpha = arena[c_start].point.distance_to(hit) / clipper_segment.length()
            _handle_intersection(subject_ring, clipper_ring, s_start, s_end, c_start, c_end,
                                 hit, subject_alpha, clipper_alpha)


def mark_degenerates_as_intersections(ring: Ring):
    for index in ring.indices():
        vertex = ring.arena[index]
        if vertex.degenerate:
            vertex.intersect = True


def _outer(points: Sequence[Vector2]) -> Polygon:
    points = list(points)
    if not is_clockwise(points):
        points.reverse()
    return Polygon(points)


def _hole(points: Sequence[Vector2]) -> Polygon:
    points = list(points)
    if is_clockwise(points):
        points.reverse()
    return Polygon(points)


def _resolve_containment(subject_ring: Ring, clipper_ring: Ring,
                         subject: Polygon, clipper: Polygon, mode: str) -> List[Group]:
    subject_inside = subject_ring.count(lambda v: v.type == OUT) == 0
    clipper_inside = clipper_ring.count(lambda v: v.type == OUT) == 0
    logger.debug("no walk needed: mode=%s subject_inside=%s clipper_inside=%s",
                 mode, subject_inside, clipper_inside)

    if mode == INTERSECT:
        if subject_inside:
            return [[_outer(subject.outer)]]
        if clipper_inside:
            return [[_outer(clipper.outer)]]
        return []

    if mode == UNION:
        if subject_inside:
            return [[_outer(clipper.outer)]]
        if clipper_inside:
            return [[_outer(subject.outer)]]
        return [[_outer(subject.outer)], [_outer(clipper.outer)]]

    if mode == SUBTRACT_CLIPPER:
        if subject_inside:
            return []
        if clipper_inside:
            return [[_outer(subject.outer), _hole(clipper.outer)]]
        return [[_outer(subject.outer)]]

    if subject_inside:
        return [[_outer(clipper.outer), _hole(subject.outer)]]
    if clipper_inside:
        return []
    return [[_outer(clipper.outer)]]


def check_quit_cases(subject_ring: Ring, clipper_ring: Ring,
                     subject: Polygon, clipper: Polygon, mode: str) -> Optional[List[Group]]:
    """Result for the cases that need no boundary walk, else None."""
    intersections = subject_ring.count(lambda v: v.intersect)
    if intersections == 0:
        return _resolve_containment(subject_ring, clipper_ring, subject, clipper, mode)

    # tangent polygons: a single touch cannot open a walk
    if intersections == 1 and subject_ring.count(lambda v: v.degenerate) == 1:
        return _resolve_containment(subject_ring, clipper_ring, subject, clipper, mode)

    return None


def _side(arena: List[Vertex], index: int, adjacent: int, other: Polygon) -> Side:
    """Side of the edge index..adjacent relative to the other polygon."""
    side = arena[adjacent].type
    if side is not ON:
        return side
    mid = (arena[index].point + arena[adjacent].point) / 2
    if other.boundary_contains(mid):
        return ON
    return IN if other.contains_vector(mid) else OUT


def classify_sides(ring: Ring, other: Polygon):
    """
    Record the sides of the edges around every intersection. Two
    intersections next to each other would otherwise read ON for the
    edge between them, even when that edge runs inside or outside.
    """
    arena = ring.arena
    for index in ring.indices():
        vertex = arena[index]
        if vertex.intersect:
            vertex.sides = (_side(arena, index, vertex.prev, other),
                            _side(arena, index, vertex.next, other))


def _pairing(arena: List[Vertex], index: int) -> Tuple[Optional[Side], Optional[Side]]:
    vertex = arena[index]
    if vertex.sides is not None:
        return vertex.sides
    return arena[vertex.prev].type, arena[vertex.next].type


def resolve_entry(arena: List[Vertex], index: int, visited: Set[int]) -> Crossing:
    """
    Entry/exit label of an intersection vertex from the types around it.
    Same-same pairings defer to the neighbor on the other ring.
    """
    vertex = arena[index]
    pairing = _pairing(arena, index)
    if index in visited:
        raise UnclassifiablePairing(pairing, vertex.point)
    visited.add(index)

    if pairing in ENTRY_PAIRINGS:
        return Crossing.ENTRY
    if pairing in EXIT_PAIRINGS:
        return Crossing.EXIT
    if pairing not in SAME_PAIRINGS:
        raise UnclassifiablePairing(pairing, vertex.point)

    if vertex.neighbor is None or _pairing(arena, vertex.neighbor) in SAME_PAIRINGS:
        return Crossing.BOUNCE
    # a touch whose edges both run along the other boundary, leaving it outside
    if pairing == (ON, ON) and vertex.degenerate and _pairing(arena, vertex.neighbor) == (ON, OUT):
        return Crossing.BOUNCE

    neighbor_crossing = resolve_entry(arena, vertex.neighbor, visited)
    if neighbor_crossing is Crossing.BOUNCE:
        return Crossing.BOUNCE
    return Crossing.EXIT if neighbor_crossing is Crossing.ENTRY else Crossing.ENTRY


def _suppress(vertex: Vertex, neighbor: Vertex):
    vertex.remove = neighbor.remove = True
    vertex.intersect = neighbor.intersect = False


def set_entry_exit(ring: Ring):
    arena = ring.arena
    for index in ring.indices():
        vertex = arena[index]
        if not vertex.intersect or vertex.neighbor is None:
            continue
        neighbor = arena[vertex.neighbor]

        crossing = resolve_entry(arena, index, set())
        neighbor_crossing = resolve_entry(arena, vertex.neighbor, set())
        if Crossing.BOUNCE in (crossing, neighbor_crossing):
            logger.debug("suppressing bounce at (%s, %s)", vertex.x, vertex.y)
            _suppress(vertex, neighbor)
            continue

        vertex.entry = crossing is Crossing.ENTRY
        neighbor.entry = neighbor_crossing is Crossing.ENTRY

        # both enter or both leave: the boundaries touch without crossing
        if vertex.entry == neighbor.entry:
            logger.debug("suppressing touch at (%s, %s)", vertex.x, vertex.y)
            _suppress(vertex, neighbor)
            vertex.type = neighbor.type = IN if vertex.entry else OUT


def build_boundaries(ring: Ring, subject_keeps_inside: bool,
                     clipper_keeps_inside: bool) -> List[Tuple[List[Vector2], Vector2]]:
    """
    Walk the linked rings from every unchecked intersection.
    Returns (points, probe) pairs; probe is a point of the boundary that
    does not lie on the other input polygon.
    """
    arena = ring.arena
    limit = 2 * len(arena)
    boundaries = []

    while True:
        start = ring.first_intersect()
        if start is None:
            break

        current = start
        on_clipper = False
        points = [arena[current].point]
        probe = None
        steps = 0

        while True:
            keeps_inside = clipper_keeps_inside if on_clipper else subject_keeps_inside
            vertex = arena[current]
            vertex.checked = True
            arena[vertex.neighbor].checked = True

            step = 'next' if vertex.entry == keeps_inside else 'prev'
            while True:
                current = getattr(arena[current], step)
                vertex = arena[current]
                points.append(vertex.point)
                if probe is None and not (vertex.intersect or vertex.degenerate or vertex.remove):
                    probe = vertex.point
                steps += 1
                if steps > limit:
                    raise UnclosedBoundary(f"boundary walk from ({arena[start].x}, {arena[start].y}) did not close")
                if vertex.intersect:
                    break

            current = vertex.neighbor
            on_clipper = not on_clipper
            if arena[current].checked:
                break

        cleaned = []
        for p in points:
            if not cleaned or not point_eq(cleaned[-1], p):
                cleaned.append(p)
        if len(cleaned) >= 2 and point_eq(cleaned[0], cleaned[-1]):
            cleaned.pop()
        if len(cleaned) < 3:
            logger.debug("dropping collapsed boundary %s", cleaned)
            continue
        boundaries.append((cleaned, probe if probe is not None else cleaned[0]))

    return boundaries


def assign_holes(boundaries: List[Tuple[List[Vector2], Vector2]]) -> List[Group]:
    """Group every outer boundary with the boundaries directly nested in it."""
    polygons = [Polygon(points) for points, _ in boundaries]
    containers: List[List[int]] = [[] for _ in boundaries]
    for i, polygon in enumerate(polygons):
        for j, (_, probe) in enumerate(boundaries):
            if i != j and polygon.contains_vector(probe):
                containers[j].append(i)

    depth = [len(c) for c in containers]
    holes: List[List[int]] = [[] for _ in boundaries]
    for j, c in enumerate(containers):
        if depth[j] % 2 == 0:
            continue
        for i in c:
            if depth[i] == depth[j] - 1:
                holes[i].append(j)
                break

    groups = []
    for i, polygon in enumerate(polygons):
        if depth[i] % 2 == 1:
            continue
        groups.append([_outer(polygon.outer)] + [_hole(polygons[j].outer) for j in holes[i]])
    return groups


def greiner_hormann(subject: Polygon, clipper: Polygon,
                    subject_forward: bool, clipper_forward: bool) -> List[Group]:
    """
    Boolean combination of the outer rings of subject and clipper.
    The two flags select the mode (see get_mode). Returns groups
    [outer, *holes]; raises ClipError on bad input or corrupt state.
    """
    for name, polygon in (('subject', subject), ('clipper', clipper)):
        if polygon is None or len(polygon.outer) < 3:
            raise InvalidPolygon(f"{name} needs at least 3 outer points")

    mode = get_mode(subject_forward, clipper_forward)

    arena: List[Vertex] = []
    subject_ring = Ring(arena, subject.outer)
    clipper_ring = Ring(arena, clipper.outer)

    compute_intersections(subject_ring, clipper_ring, subject, clipper)
    mark_degenerates_as_intersections(subject_ring)
    mark_degenerates_as_intersections(clipper_ring)

    result = check_quit_cases(subject_ring, clipper_ring, subject, clipper, mode)
    if result is not None:
        return result

    classify_sides(subject_ring, clipper)
    classify_sides(clipper_ring, subject)
    set_entry_exit(subject_ring)

    # every touch was a bounce
    if subject_ring.count(lambda v: v.intersect) == 0:
        return _resolve_containment(subject_ring, clipper_ring, subject, clipper, mode)

    subject_keeps_inside, clipper_keeps_inside = WALK_DIRECTIONS[mode]
    boundaries = build_boundaries(subject_ring, subject_keeps_inside, clipper_keeps_inside)
    groups = assign_holes(boundaries)

    logger.debug("%s result: %d group(s)", mode, len(groups))
    for idx, group in enumerate(groups):
        logger.debug("  group %d: outer %s, %d hole(s)", idx + 1, group[0].outer, len(group) - 1)
    return groups


def clip(subject: Polygon, clipper: Polygon,
         subject_forward: bool, clipper_forward: bool) -> ClipResult:
    try:
        groups = greiner_hormann(subject, clipper, subject_forward, clipper_forward)
    except ClipError as e:
        logger.warning("clip failed: %s", e)
        return Err(e)
    return Ok(groups)


def poly_intersection(a: Polygon, b: Polygon) -> ClipResult:
    return clip(a, b, True, True)


def poly_union(a: Polygon, b: Polygon) -> ClipResult:
    return clip(a, b, False, False)


def poly_difference(a: Polygon, b: Polygon) -> ClipResult:
    """a - b"""
    return clip(a, b, True, False)
