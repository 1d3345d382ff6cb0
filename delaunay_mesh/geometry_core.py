"""
Core geometric primitives shared by the Delaunay engines and the mesh indexer.

This module provides foundational geometric functionality, including:
- Global tolerances (`EPSILON`, `MIN_VOLUME`, `VERTEX_TOLERANCE`).
- Immutable value types for points, simplices, circumcircles/circumspheres
  and constraint edges.
- Canonical edge/face/vertex keys used for hashing and deduplication.
- Orientation, area and volume predicates, the barycentric point-in-triangle
  test and the proper segment-crossing test.
- Input coercion from PyTorch tensors or plain sequences.
- A 2D convex hull (Monotone Chain) and the unit-cube normalization used to
  condition 3D input.
"""
import math
from typing import Callable, Iterable, List, NamedTuple, Optional, Sequence, Tuple

import torch

EPSILON = 1e-10 # Global epsilon for determinant and orientation tests.
MIN_VOLUME = 1e-12 # Tetrahedra at or below this volume are treated as degenerate.
VERTEX_TOLERANCE = 1e-9 # Bucket size for coordinate-based vertex deduplication.


# --- Value types ---

class Point2D(NamedTuple):
    x: float
    y: float


class Point3D(NamedTuple):
    x: float
    y: float
    z: float


class Circumcircle(NamedTuple):
    center: Point2D
    radius: float


class Circumsphere(NamedTuple):
    center: Point3D
    radius: float


class Constraint(NamedTuple):
    """A mandatory edge of a constrained 2D triangulation."""
    start: Point2D
    end: Point2D


class Triangle(NamedTuple):
    """
    Ordered triple of 2D points.

    The circumcircle is derived on demand through `circumcircle(triangle)` from
    `circumcenter_calculations`; it is `None` for collinear vertices.
    """
    p1: Point2D
    p2: Point2D
    p3: Point2D

    @property
    def points(self) -> Tuple[Point2D, Point2D, Point2D]:
        return (self.p1, self.p2, self.p3)

    @property
    def circumcircle(self) -> Optional[Circumcircle]:
        from .circumcenter_calculations import circumcircle
        return circumcircle(self)

    def edges(self):
        return ((self.p1, self.p2), (self.p2, self.p3), (self.p3, self.p1))


class Tetrahedron(NamedTuple):
    """
    Ordered quadruple of 3D points.

    The circumsphere is derived on demand through `circumsphere(tetrahedron)`;
    it is `None` for coplanar vertices.
    """
    p1: Point3D
    p2: Point3D
    p3: Point3D
    p4: Point3D

    @property
    def points(self) -> Tuple[Point3D, Point3D, Point3D, Point3D]:
        return (self.p1, self.p2, self.p3, self.p4)

    @property
    def circumsphere(self) -> Optional[Circumsphere]:
        from .circumcenter_calculations import circumsphere
        return circumsphere(self)

    @property
    def volume(self) -> float:
        return tetrahedron_volume(self.p1, self.p2, self.p3, self.p4)

    def faces(self):
        p1, p2, p3, p4 = self
        return ((p1, p2, p3), (p1, p2, p4), (p1, p3, p4), (p2, p3, p4))


# --- Canonical keys ---

def edge_key(a, b) -> tuple:
    """Order-independent key of an edge: `edge_key(a, b) == edge_key(b, a)`."""
    return (a, b) if a <= b else (b, a)


def face_key(a, b, c) -> tuple:
    """Order-independent key of a triangular face (points sorted by x, y, z)."""
    return tuple(sorted((a, b, c)))


def vertex_key(point: Sequence[float], tolerance: float = VERTEX_TOLERANCE) -> tuple:
    """
    Epsilon-bucketed key of a point.

    Coordinates are snapped onto a grid of spacing `tolerance`, so points whose
    coordinates differ by much less than `tolerance` share a key. A non-positive
    tolerance falls back to exact coordinate equality, as do coordinates that
    are not finite once divided by the tolerance.
    """
    if tolerance <= 0:
        return tuple(float(c) for c in point)
    return tuple(_snap(float(c), tolerance) for c in point)


def _snap(c: float, tolerance: float):
    scaled = c / tolerance
    if not math.isfinite(scaled):
        return c
    return int(round(scaled))


# --- Vector helpers ---

def subtract(a: Point3D, b: Point3D) -> Point3D:
    return Point3D(a.x - b.x, a.y - b.y, a.z - b.z)


def dot(a: Point3D, b: Point3D) -> float:
    return a.x * b.x + a.y * b.y + a.z * b.z


def cross(a: Point3D, b: Point3D) -> Point3D:
    return Point3D(a.y * b.z - a.z * b.y,
                   a.z * b.x - a.x * b.z,
                   a.x * b.y - a.y * b.x)


def centroid(points: Iterable[Sequence[float]]):
    """Arithmetic mean of a non-empty collection of 2D or 3D points."""
    pts = list(points)
    if not pts:
        raise ValueError("Cannot compute the centroid of an empty point set.")
    dims = len(pts[0])
    sums = [sum(p[i] for p in pts) / len(pts) for i in range(dims)]
    return Point2D(*sums) if dims == 2 else Point3D(*sums)


# --- Predicates ---

def orientation_2d(a: Point2D, b: Point2D, c: Point2D, tol: float = EPSILON) -> int:
    """
    Orientation of the turn a -> b -> c.

    Returns:
        int: 1 for counter-clockwise, -1 for clockwise, 0 when the three points
             are collinear within `tol`.
    """
    value = (b.x - a.x) * (c.y - a.y) - (b.y - a.y) * (c.x - a.x)
    if abs(value) < tol:
        return 0
    return 1 if value > 0 else -1


def signed_area(p1: Point2D, p2: Point2D, p3: Point2D) -> float:
    """Signed area of a 2D triangle, positive for counter-clockwise vertices."""
    return 0.5 * ((p2.x - p1.x) * (p3.y - p1.y) - (p2.y - p1.y) * (p3.x - p1.x))


def triangle_area(p1: Point2D, p2: Point2D, p3: Point2D) -> float:
    return abs(signed_area(p1, p2, p3))


def signed_volume(p1: Point3D, p2: Point3D, p3: Point3D, p4: Point3D) -> float:
    """
    Signed volume of a tetrahedron from the scalar triple product of its edge vectors.

    The value is positive when p4 lies on the side of plane (p1, p2, p3) towards
    which the counter-clockwise normal of p1 -> p2 -> p3 points.
    """
    return dot(subtract(p2, p1), cross(subtract(p3, p1), subtract(p4, p1))) / 6.0


def tetrahedron_volume(p1: Point3D, p2: Point3D, p3: Point3D, p4: Point3D) -> float:
    return abs(signed_volume(p1, p2, p3, p4))


def orientation_3d(p1: Point3D, p2: Point3D, p3: Point3D, p4: Point3D, tol: float = EPSILON) -> int:
    """
    Orientation of p4 relative to the plane through p1, p2, p3.

    Uses the sign of det([p2-p1; p3-p1; p4-p1]).

    Returns:
        int: 0 if the points are coplanar within `tol`, otherwise 1 or -1.
    """
    det_val = 6.0 * signed_volume(p1, p2, p3, p4)
    if abs(det_val) < tol:
        return 0
    return 1 if det_val > 0 else -1


def is_point_in_triangle(point: Point2D, triangle: Triangle) -> bool:
    """
    Barycentric point-in-triangle test, inclusive on the edges.

    Args:
        point (Point2D): The point to classify.
        triangle (Triangle): The reference triangle (any winding).

    Returns:
        bool: True if `s >= 0`, `t >= 0` and `1 - s - t >= 0` for the barycentric
              coordinates of `point`. Degenerate (zero-area) triangles contain
              no points.
    """
    a, b, c = triangle
    area = 0.5 * (-b.y * c.x + a.y * (-b.x + c.x) + a.x * (b.y - c.y) + b.x * c.y)
    if abs(area) < EPSILON:
        return False
    s = (a.y * c.x - a.x * c.y + (c.y - a.y) * point.x + (a.x - c.x) * point.y) / (2 * area)
    t = (a.x * b.y - a.y * b.x + (a.y - b.y) * point.x + (b.x - a.x) * point.y) / (2 * area)
    return s >= 0 and t >= 0 and 1 - s - t >= 0


def is_point_in_half_plane(point: Point2D, start: Point2D, end: Point2D, tol: float = EPSILON) -> bool:
    """True if `point` lies strictly to the left of the directed line start -> end."""
    return orientation_2d(start, end, point, tol) > 0


def segments_intersect(p1: Point2D, p2: Point2D, q1: Point2D, q2: Point2D, tol: float = EPSILON) -> bool:
    """
    Proper-crossing test for segments p1-p2 and q1-q2.

    Segments that share an endpoint, merely touch, or overlap collinearly are not
    reported as intersecting, so an edge that meets a constraint only at its tip
    never counts as crossing it.
    """
    if p1 in (q1, q2) or p2 in (q1, q2):
        return False
    o1 = orientation_2d(p1, p2, q1, tol)
    o2 = orientation_2d(p1, p2, q2, tol)
    o3 = orientation_2d(q1, q2, p1, tol)
    o4 = orientation_2d(q1, q2, p2, tol)
    return o1 * o2 < 0 and o3 * o4 < 0


def is_point_on_segment(point: Point2D, start: Point2D, end: Point2D, tol: float = EPSILON) -> bool:
    """True if `point` lies on the open segment start-end (endpoints excluded)."""
    if point == start or point == end:
        return False
    if orientation_2d(start, end, point, tol) != 0:
        return False
    seg_x, seg_y = end.x - start.x, end.y - start.y
    t = ((point.x - start.x) * seg_x + (point.y - start.y) * seg_y)
    return 0 < t < seg_x * seg_x + seg_y * seg_y


# --- Input coercion ---

def _as_points(points, dim: int, point_type):
    if isinstance(points, torch.Tensor):
        if points.ndim != 2 or points.shape[1] != dim:
            raise ValueError(f"Input points tensor must have shape (N, {dim}).")
        return [point_type(*map(float, row)) for row in points.tolist()]
    result = []
    for item in points:
        if isinstance(item, point_type):
            result.append(item)
            continue
        if isinstance(item, torch.Tensor):
            item = item.tolist()
        if len(item) != dim:
            raise ValueError(f"Expected {dim} coordinates per point, got {len(item)}.")
        result.append(point_type(*map(float, item)))
    return result


def as_points_2d(points) -> List[Point2D]:
    """
    Coerces 2D input into a list of `Point2D`.

    Args:
        points: A tensor of shape (N, 2), or any iterable of `Point2D`, pairs or
                tensors of shape (2,).

    Raises:
        ValueError: If the input does not describe 2D points.
    """
    return _as_points(points, 2, Point2D)


def as_points_3d(points) -> List[Point3D]:
    """Coerces 3D input (tensor of shape (N, 3) or iterable of triples) into `Point3D`s."""
    return _as_points(points, 3, Point3D)


# --- Convex hull and areas ---

def monotone_chain_2d(points, tol: float = EPSILON) -> List[Point2D]:
    """
    Computes the convex hull of 2D points using the Monotone Chain algorithm.

    The Monotone Chain algorithm (also known as Andrew's algorithm) sorts points
    lexicographically and then constructs the lower and upper hulls.

    Args:
        points: 2D points in any form accepted by `as_points_2d`.
        tol (float, optional): Tolerance for the orientation tests; collinear
                               points on hull edges are dropped. Defaults to `EPSILON`.

    Returns:
        List[Point2D]: Hull vertices ordered counter-clockwise. Fewer than three
                       distinct points are returned as they are.
    """
    pts = sorted(set(as_points_2d(points)))
    if len(pts) < 3:
        return pts

    lower: List[Point2D] = []
    for p in pts:
        # Pop while the last two hull points and p do not make a strict left turn
        while len(lower) >= 2 and orientation_2d(lower[-2], lower[-1], p, tol) <= 0:
            lower.pop()
        lower.append(p)

    upper: List[Point2D] = []
    for p in reversed(pts):
        while len(upper) >= 2 and orientation_2d(upper[-2], upper[-1], p, tol) <= 0:
            upper.pop()
        upper.append(p)

    # Last point of each chain is the first point of the other
    return lower[:-1] + upper[:-1]


def polygon_area(vertices: Sequence[Point2D]) -> float:
    """Area of a simple polygon (shoelace formula); zero for fewer than 3 vertices."""
    n = len(vertices)
    if n < 3:
        return 0.0
    twice_area = 0.0
    for i in range(n):
        a, b = vertices[i], vertices[(i + 1) % n]
        twice_area += a.x * b.y - b.x * a.y
    return abs(twice_area) / 2.0


# --- Normalization ---

def normalize_points_3d(points) -> Tuple[List[Point3D], Callable[[Point3D], Point3D]]:
    """
    Rescales 3D points into the unit cube to limit floating-point magnitude growth.

    Points are offset by the minimum corner of their bounding box and divided by
    the largest extent, so the widest axis spans [0, 1].

    Returns:
        Tuple[List[Point3D], Callable[[Point3D], Point3D]]:
            - the normalized points, in input order,
            - a `denormalize` function mapping normalized coordinates back to
              the original frame.
    """
    pts = as_points_3d(points)
    if not pts:
        return [], lambda p: p

    coords = torch.tensor([list(p) for p in pts], dtype=torch.float64)
    min_corner = torch.min(coords, dim=0).values
    scale = torch.max(torch.max(coords, dim=0).values - min_corner).item()
    if scale < EPSILON: # All points (nearly) coincide
        scale = 1.0

    normalized = ((coords - min_corner) / scale).tolist()
    offset = Point3D(*min_corner.tolist())

    def denormalize(p: Point3D) -> Point3D:
        return Point3D(p.x * scale + offset.x, p.y * scale + offset.y, p.z * scale + offset.z)

    return [Point3D(*row) for row in normalized], denormalize
