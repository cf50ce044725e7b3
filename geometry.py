# geometry.py
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union
import math


# shared tolerance
EPS = 1e-8


@dataclass(frozen=True)
class Vector2:
    x: float = 0.0
    y: float = 0.0

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __add__(self, other: 'Vector2') -> 'Vector2':
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: 'Vector2') -> 'Vector2':
        return Vector2(self.x - other.x, self.y - other.y)

    def __neg__(self) -> 'Vector2':
        return Vector2(-self.x, -self.y)

    def __mul__(self, n: float) -> 'Vector2':
        return Vector2(self.x * n, self.y * n)

    __rmul__ = __mul__

    def __truediv__(self, n: float) -> 'Vector2':
        return Vector2(self.x / n, self.y / n)

    def dot(self, other: 'Vector2') -> float:
        return self.x * other.x + self.y * other.y

    def cross(self, other: 'Vector2') -> float:
        """z component of the 3D cross product"""
        return self.x * other.y - self.y * other.x

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def normalize(self) -> 'Vector2':
        n = self.length()
        if n == 0:
            return self
        return Vector2(self.x / n, self.y / n)

    def rotate(self, angle: float) -> 'Vector2':
        c = math.cos(angle)
        s = math.sin(angle)
        return Vector2(self.x * c - self.y * s, self.x * s + self.y * c)

    def rotate_around(self, center: 'Vector2', angle: float) -> 'Vector2':
        return (self - center).rotate(angle) + center

    def angle(self) -> float:
        return math.atan2(self.y, self.x)

    def angle_to(self, other: 'Vector2') -> float:
        return math.acos(self.dot(other) / (self.length() * other.length()))

    def distance_to(self, other: 'Vector2') -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def almost_equal(self, other: 'Vector2', eps: float = EPS) -> bool:
        return self.distance_to(other) <= eps


PointLike = Union[Vector2, Tuple[float, float]]


def as_vector(p: PointLike) -> Vector2:
    if isinstance(p, Vector2):
        return p
    return Vector2(float(p[0]), float(p[1]))


def signed_area(pts: Sequence[PointLike]) -> float:
    """signed area, positive when counter-clockwise in a y-up frame"""
    a = 0.0
    n = len(pts)
    for i in range(n):
        x1, y1 = pts[i]
        x2, y2 = pts[(i + 1) % n]
        a += x1 * y2 - x2 * y1
    return a / 2.0


def is_ccw(pts: Sequence[PointLike]) -> bool:
    return signed_area(pts) > 0


def is_clockwise(pts: Sequence[PointLike]) -> bool:
    return signed_area(pts) < 0


def point_eq(a: PointLike, b: PointLike, eps: float = EPS) -> bool:
    (ax, ay), (bx, by) = a, b
    return math.hypot(ax - bx, ay - by) <= eps


def on_segment(a: PointLike, b: PointLike, p: PointLike) -> bool:
    """p lies on segment ab, end points included"""
    (ax, ay), (bx, by), (px, py) = a, b, p
    if abs((bx - ax) * (py - ay) - (by - ay) * (px - ax)) > EPS:
        return False
    return (min(ax, bx) - EPS <= px <= max(ax, bx) + EPS and
            min(ay, by) - EPS <= py <= max(ay, by) + EPS)


@dataclass(frozen=True)
class Segment:
    a: Vector2
    b: Vector2

    def intersect(self, other: 'Segment') -> Optional[Vector2]:
        """
        Intersection point of two segments, or None.
        Parallel and collinear segments never intersect here.
        """
        x1, y1 = self.a
        x2, y2 = self.b
        x3, y3 = other.a
        x4, y4 = other.b

        denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
        if denom == 0:
            return None

        t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / denom
        u = ((x1 - x3) * (y1 - y2) - (y1 - y3) * (x1 - x2)) / denom
        if t < 0 or t > 1 or u < 0 or u > 1:
            return None
        return Vector2(x1 + t * (x2 - x1), y1 + t * (y2 - y1))

    def length(self) -> float:
        return self.a.distance_to(self.b)

    def direction(self) -> Vector2:
        return (self.b - self.a).normalize()

    def project(self, point: PointLike) -> float:
        return (as_vector(point) - self.a).dot(self.direction())


@dataclass(frozen=True)
class Ray:
    origin: Vector2
    direction: Vector2

    def intersect(self, segment: Segment) -> Optional[Vector2]:
        """Same as Segment.intersect, but the ray is only bounded at its origin."""
        x1, y1 = segment.a
        x2, y2 = segment.b
        x3, y3 = self.origin
        x4, y4 = self.origin + self.direction.normalize()

        denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
        if denom == 0:
            return None

        t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / denom
        u = ((x1 - x3) * (y1 - y2) - (y1 - y3) * (x1 - x2)) / denom
        if t < 0 or t > 1 or u < 0:
            return None
        return Vector2(x1 + t * (x2 - x1), y1 + t * (y2 - y1))

    def cast(self, segments: Iterable[Segment]) -> Optional[Vector2]:
        """Nearest hit among segments, measured from the ray origin."""
        result = None
        best = 0.0
        for segment in segments:
            hit = self.intersect(segment)
            if hit is None:
                continue
            d = self.origin.distance_to(hit)
            if result is None or d < best:
                result = hit
                best = d
        return result


@dataclass
class Polygon:
    """
    An outer ring plus zero or more inner rings (holes).
    The outer ring needs at least 3 points to be a closed boundary.
    """
    outer: List[Vector2] = field(default_factory=list)
    inners: List[List[Vector2]] = field(default_factory=list)

    def __post_init__(self):
        self.outer = [as_vector(p) for p in self.outer]
        self.inners = [[as_vector(p) for p in inner] for inner in self.inners]

    @staticmethod
    def is_clockwise(points: Sequence[PointLike]) -> bool:
        return is_clockwise(points)

    @classmethod
    def from_group(cls, group: Sequence['Polygon']) -> 'Polygon':
        """Pack a clip output group [outer, *holes] into a single Polygon."""
        outer, holes = group[0], group[1:]
        return cls(list(outer.outer), [list(hole.outer) for hole in holes])

    def get_outer(self, index: int) -> Vector2:
        return self.outer[index % len(self.outer)]

    def has_inners(self) -> bool:
        return len(self.inners) != 0

    def pop_inners(self) -> List['Polygon']:
        polygons = [Polygon(inner) for inner in self.inners]
        self.inners = []
        return polygons

    def transfer_inners_to_outer(self) -> None:
        """Splice every hole into the outer ring through a bridge to the last outer point."""
        last = self.outer[-1]
        for inner in self.inners:
            self.outer.extend(inner)
            self.outer.append(inner[0])
            self.outer.append(last)
        self.inners = []

    def clone(self) -> 'Polygon':
        return Polygon(list(self.outer), [list(inner) for inner in self.inners])

    def get_linear(self) -> List[Vector2]:
        """outer ring with the first point repeated at the end"""
        if not self.outer:
            return []
        return self.outer + [self.outer[0]]

    def get_segments(self) -> List[Segment]:
        points = self.get_linear()
        if len(points) < 3:
            return []
        return [Segment(points[i], points[i + 1]) for i in range(len(points) - 1)]

    def contains_vector(self, point: PointLike) -> bool:
        """Even-odd test with a ray fired towards +X."""
        point = as_vector(point)
        ray = Ray(point, Vector2(1.0, 0.0))
        count = 0
        for segment in self.get_segments():
            # half-open in y: a ray through a shared vertex is counted once
            if (segment.a.y > point.y) == (segment.b.y > point.y):
                continue
            if ray.intersect(segment) is not None:
                count += 1
        return count % 2 == 1

    def boundary_contains(self, point: PointLike) -> bool:
        return any(on_segment(s.a, s.b, point) for s in self.get_segments())

    def signed_area(self) -> float:
        return signed_area(self.outer)

    def area(self) -> float:
        """outer area minus the area of the holes"""
        return abs(signed_area(self.outer)) - sum(abs(signed_area(inner)) for inner in self.inners)
