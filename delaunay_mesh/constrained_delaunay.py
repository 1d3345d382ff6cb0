"""
Computes 2D constrained Delaunay triangulations (CDT).

A constrained triangulation must contain every constraint segment as a triangle
edge, and no triangle edge may cross a constraint. The triangulation is built in
two passes:

1. The unconstrained Bowyer-Watson triangulation of the points (plus any
   constraint endpoint missing from them) is computed with `delaunay_2d`.
2. Every constraint segment that is not already an edge is enforced: the
   triangles whose edges properly cross it are removed, the boundary of the
   removed region is split into the two chains lying on either side of the
   segment, and each side is re-triangulated recursively, always picking the
   apex whose circumcircle with the current base edge is empty.

Constraints are expected to be simple and mutually non-crossing. Segments that
cannot be enforced are reported through the module logger and left out; the
engine never raises for geometric reasons.
"""
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .circumcenter_calculations import circumcircle, is_point_strictly_in_circumcircle
from .config import TriangulationConfig, resolve_config
from .delaunay_2d import triangulate
from .geometry_core import (
    Constraint, Point2D, Triangle, as_points_2d, edge_key, is_point_in_half_plane,
    is_point_on_segment, segments_intersect, signed_area, vertex_key,
)
from .logging_utils import get_logger

logger = get_logger(__name__)

Segment = Tuple[Point2D, Point2D]


def as_constraints(constraints: Iterable) -> List[Constraint]:
    """Coerces `Constraint`s or pairs of 2D points into a list of `Constraint`."""
    result = []
    for item in constraints:
        start, end = as_points_2d(item)
        result.append(Constraint(start, end))
    return result


def _snap_constraints(points: List[Point2D], constraints: Sequence[Constraint],
                      tolerance: float) -> List[Segment]:
    """
    Resolves constraint endpoints against the point set.

    An endpoint whose `vertex_key` matches an existing point is replaced by that
    point; otherwise it is appended to `points`. Zero-length constraints are
    discarded.
    """
    by_key: Dict[tuple, Point2D] = {}
    for p in points:
        by_key.setdefault(vertex_key(p, tolerance), p)

    def resolve(p: Point2D) -> Point2D:
        key = vertex_key(p, tolerance)
        if key not in by_key:
            by_key[key] = p
            points.append(p)
        return by_key[key]

    segments = []
    for constraint in constraints:
        start, end = resolve(constraint.start), resolve(constraint.end)
        if start == end:
            logger.warning("Ignoring zero-length constraint at %s", start)
            continue
        segments.append((start, end))
    return segments


def _split_at_collinear_points(segment: Segment, points: Sequence[Point2D], tol: float) -> List[Segment]:
    """Splits a segment at every input point lying on its interior."""
    start, end = segment
    on_segment = [p for p in points if is_point_on_segment(p, start, end, tol)]
    if not on_segment:
        return [segment]
    dx, dy = end.x - start.x, end.y - start.y
    on_segment.sort(key=lambda p: (p.x - start.x) * dx + (p.y - start.y) * dy)
    chain = [start] + on_segment + [end]
    return list(zip(chain[:-1], chain[1:]))


def _has_edge(triangles: Sequence[Triangle], a: Point2D, b: Point2D) -> bool:
    return any(a in tri and b in tri for tri in triangles)


def _boundary_cycle(triangles: Sequence[Triangle]) -> Optional[Dict[Point2D, Point2D]]:
    """
    Directed boundary of the union of counter-clockwise triangles, as a successor map.

    Returns None when the boundary is not a single simple cycle.
    """
    boundary: Dict[tuple, Segment] = {}
    for tri in triangles:
        for a, b in tri.edges():
            key = edge_key(a, b)
            if key in boundary:
                del boundary[key]
            else:
                boundary[key] = (a, b)

    successor: Dict[Point2D, Point2D] = {}
    for a, b in boundary.values():
        if a in successor:
            return None
        successor[a] = b
    return successor


def _walk(successor: Dict[Point2D, Point2D], start: Point2D, end: Point2D) -> Optional[List[Point2D]]:
    """Vertices strictly between `start` and `end` along the cycle, or None if `end` is unreachable."""
    chain = []
    current = successor.get(start)
    while current is not None and current != end:
        if current == start or len(chain) > len(successor):
            return None
        chain.append(current)
        current = successor.get(current)
    return chain if current == end else None


def _oriented(a: Point2D, b: Point2D, c: Point2D) -> Triangle:
    return Triangle(a, b, c) if signed_area(a, b, c) >= 0 else Triangle(a, c, b)


def _triangulate_pseudo_polygon(chain: Sequence[Point2D], a: Point2D, b: Point2D,
                                tol: float) -> List[Triangle]:
    """
    Triangulates the polygon a, chain..., b lying on one side of base edge a-b.

    The apex c is the chain vertex whose circumcircle with a and b contains no
    other chain vertex; the two sub-polygons a..c and c..b are handled recursively.
    """
    if not chain:
        return []
    apex = 0
    for i in range(1, len(chain)):
        circle = circumcircle(Triangle(a, b, chain[apex]), tol)
        if is_point_strictly_in_circumcircle(chain[i], circle, tol):
            apex = i
    c = chain[apex]

    triangles = _triangulate_pseudo_polygon(chain[:apex], a, c, tol)
    if abs(signed_area(a, b, c)) > tol:
        triangles.append(_oriented(a, b, c))
    else:
        logger.debug("Skipping degenerate triangle (%s, %s, %s)", a, b, c)
    triangles.extend(_triangulate_pseudo_polygon(chain[apex + 1:], c, b, tol))
    return triangles


def _enforce_segment(triangles: List[Triangle], start: Point2D, end: Point2D,
                     tol: float) -> List[Triangle]:
    """Makes start-end an edge of the triangulation by re-triangulating the triangles it crosses."""
    if _has_edge(triangles, start, end):
        return triangles

    violating = [
        tri for tri in triangles
        if any(segments_intersect(a, b, start, end, tol) for a, b in tri.edges())
    ]
    if not violating:
        logger.warning("Constraint %s-%s crosses no triangle edge and is not an edge; skipped", start, end)
        return triangles

    successor = _boundary_cycle(violating)
    if successor is None or start not in successor or end not in successor:
        logger.warning("Region crossed by constraint %s-%s is not a simple polygon; skipped", start, end)
        return triangles

    forward = _walk(successor, start, end)
    backward = _walk(successor, end, start)
    if forward is None or backward is None:
        logger.warning("Constraint %s-%s does not split its cavity in two; skipped", start, end)
        return triangles

    # Both chains run from start to end; each must lie in one half-plane of the constraint
    sides = [forward, list(reversed(backward))]
    for chain in sides:
        left = [is_point_in_half_plane(p, start, end, tol) for p in chain]
        right = [is_point_in_half_plane(p, end, start, tol) for p in chain]
        if not (all(left) or all(right)):
            logger.warning("Cavity of constraint %s-%s straddles the constraint line; skipped", start, end)
            return triangles

    removed = set(violating)
    result = [tri for tri in triangles if tri not in removed]
    for chain in sides:
        if len(chain) + 2 >= 3:
            result.extend(_triangulate_pseudo_polygon(chain, start, end, tol))
    logger.debug("Enforced constraint %s-%s: replaced %d triangles", start, end, len(violating))
    return result


def triangulate_constrained(points, constraints: Iterable = (),
                            config: Optional[TriangulationConfig] = None) -> List[Triangle]:
    """
    Computes a constrained Delaunay triangulation of 2D points.

    Args:
        points: 2D points as a tensor of shape (N, 2), pairs, or `Point2D`s.
        constraints: `Constraint`s or pairs of points. Endpoints missing from
                     `points` are added; endpoints within `config.vertex_tolerance`
                     of an existing point are snapped onto it.
        config (TriangulationConfig, optional): Tolerances and engine settings.

    Returns:
        List[Triangle]: Counter-clockwise triangles. Every enforceable constraint
                        appears as a chain of triangle edges (split at input points
                        lying on it) and no triangle edge properly crosses it.
                        Empty when fewer than 3 distinct points are available.
    """
    config = resolve_config(config)
    pts = list(dict.fromkeys(as_points_2d(points)))
    segments = _snap_constraints(pts, as_constraints(constraints), config.vertex_tolerance)

    triangles = triangulate(pts, config)
    if not triangles:
        return triangles

    for segment in segments:
        for start, end in _split_at_collinear_points(segment, pts, config.epsilon):
            triangles = _enforce_segment(triangles, start, end, config.epsilon)
    return triangles


def satisfies_constraints(triangles: Sequence[Triangle], constraints: Iterable,
                          config: Optional[TriangulationConfig] = None) -> bool:
    """
    Checks that every constraint is present and uncrossed in a triangulation.

    A constraint counts as present when it, or each of its pieces between
    triangulation vertices lying on it, is a triangle edge.
    """
    config = resolve_config(config)
    vertices = list(dict.fromkeys(p for tri in triangles for p in tri))
    by_key = {vertex_key(p, config.vertex_tolerance): p for p in vertices}
    edges = {edge_key(a, b) for tri in triangles for a, b in tri.edges()}

    for constraint in as_constraints(constraints):
        start = by_key.get(vertex_key(constraint.start, config.vertex_tolerance))
        end = by_key.get(vertex_key(constraint.end, config.vertex_tolerance))
        if start is None or end is None:
            return False
        for a, b in _split_at_collinear_points((start, end), vertices, config.epsilon):
            if edge_key(a, b) not in edges:
                return False
        for a, b in edges:
            if segments_intersect(a, b, start, end, config.epsilon):
                return False
    return True
