"""
Computes 2D Delaunay triangulation using the Bowyer-Watson algorithm.

This module provides functions to generate a Delaunay triangulation for a given
set of 2D input points. Points are inserted one at a time into a triangulation
seeded with a synthetic super-triangle; every insertion removes the triangles
whose circumcircle contains the new point and reconnects the boundary of the
resulting cavity to it. Geometric predicates come from
`circumcenter_calculations.py` and tolerances from `TriangulationConfig`.

Triangles that use a super-triangle vertex are tested with `_FarField`, which
treats those vertices as points at infinity, so the output covers the full
convex hull even when hull triangles are slivers with huge circumcircles.
"""
import math
from typing import Dict, List, Optional, Sequence, Tuple

import torch

from .circumcenter_calculations import circumcircle, is_point_in_circumcircle
from .config import TriangulationConfig, resolve_config
from .geometry_core import (
    Circumcircle, Point2D, Triangle, as_points_2d, edge_key, is_point_on_segment, orientation_2d, signed_area,
)
from .logging_utils import get_logger

logger = get_logger(__name__)

# The circle is None for triangles that touch the super-triangle
_Entry = Tuple[Triangle, Optional[Circumcircle]]


# Angles of the super-triangle vertices around its center, counter-clockwise.
# The offset keeps the far-field directions off the coordinate axes.
_SUPER_ANGLES = tuple(math.pi / 2.0 + 0.1 + 2.0 * math.pi * i / 3.0 for i in range(3))


def super_triangle(points: Sequence[Point2D], margin: float = 100.0) -> Triangle:
    """
    Builds an equilateral triangle that strictly encloses every input point.

    The triangle is centered on the bounding box of `points`; its inradius is
    `margin` times the radius of the circle circumscribing the bounding box.
    The vertices are returned in counter-clockwise order.
    """
    min_x = min(p.x for p in points)
    max_x = max(p.x for p in points)
    min_y = min(p.y for p in points)
    max_y = max(p.y for p in points)

    cx, cy = (min_x + max_x) / 2.0, (min_y + max_y) / 2.0
    radius = math.hypot(max_x - min_x, max_y - min_y) / 2.0
    if radius < 1e-12: # All points (nearly) coincide
        radius = 1.0

    # Circumradius of an equilateral triangle is twice its inradius
    k = 2.0 * margin * radius
    return Triangle(*(Point2D(cx + k * math.cos(a), cy + k * math.sin(a)) for a in _SUPER_ANGLES))


class _FarField:
    """
    Circumcircle containment for triangles that use super-triangle vertices.

    The super vertices are treated as points at infinity along their directions
    from the super-triangle center, which is the limit of an ever larger
    super-triangle. In that limit:

    - a triangle (a, b, S) in counter-clockwise order contains the open
      half-plane left of a -> b plus the open segment a-b;
    - a triangle with real vertex a and super vertices S_i, S_j contains the
      open half-plane {p : (p - a) . u > 0}, where u points from the missing
      super vertex S_k towards the center;
    - the super-triangle itself contains everything.

    Real circumcircles never reach a point at infinity, so hull slivers with huge
    circumcircles survive the final removal of the super-structure.
    """

    def __init__(self, seed: Triangle, tol: float):
        self.vertices = frozenset(seed)
        self.tol = tol
        cx = sum(p.x for p in seed) / 3.0
        cy = sum(p.y for p in seed) / 3.0
        self._inward: Dict[Point2D, Tuple[float, float]] = {}
        for s in seed:
            dx, dy = cx - s.x, cy - s.y
            norm = math.hypot(dx, dy)
            self._inward[s] = (dx / norm, dy / norm)

    def touches(self, triangle: Triangle) -> bool:
        return not self.vertices.isdisjoint(triangle)

    def contains(self, point: Point2D, triangle: Triangle) -> bool:
        far = [v in self.vertices for v in triangle]
        count = sum(far)
        if count == 3:
            return True
        if count == 2:
            a = triangle[far.index(False)]
            (missing,) = self.vertices.difference(triangle)
            ux, uy = self._inward[missing]
            return (point.x - a.x) * ux + (point.y - a.y) * uy > 0
        s = far.index(True)
        a, b = triangle[(s + 1) % 3], triangle[(s + 2) % 3]
        turn = orientation_2d(a, b, point, self.tol)
        return turn > 0 or (turn == 0 and is_point_on_segment(point, a, b, self.tol))


def _counter_clockwise(triangle: Triangle) -> Triangle:
    if signed_area(*triangle) < 0:
        return Triangle(triangle.p1, triangle.p3, triangle.p2)
    return triangle


def _insert_point(point: Point2D, working: List[_Entry], far_field: _FarField,
                  config: TriangulationConfig) -> List[_Entry]:
    """Performs one Bowyer-Watson insertion and returns the rebuilt working set."""
    boundary: Dict[tuple, Tuple[Point2D, Point2D]] = {}
    kept: List[_Entry] = []

    for tri, circle in working:
        if circle is None:
            bad = far_field.contains(point, tri)
        else:
            bad = is_point_in_circumcircle(point, circle, config.epsilon)
        if not bad:
            kept.append((tri, circle))
            continue
        # Edges shared by two bad triangles cancel out; the rest bound the cavity
        for a, b in tri.edges():
            key = edge_key(a, b)
            if key in boundary:
                del boundary[key]
            else:
                boundary[key] = (a, b)

    # Cavity edges keep the counter-clockwise direction of the removed triangles
    for a, b in boundary.values():
        new_tri = Triangle(a, b, point)
        if far_field.touches(new_tri):
            kept.append((new_tri, None))
            continue
        circle = circumcircle(new_tri, config.epsilon)
        if circle is None:
            logger.debug("Skipping degenerate triangle %s", new_tri)
            continue
        kept.append((new_tri, circle))
    return kept


def triangulate(points, config: Optional[TriangulationConfig] = None) -> List[Triangle]:
    """
    Computes the 2D Delaunay triangulation of a set of points.

    Args:
        points: 2D points as a tensor of shape (N, 2), pairs, or `Point2D`s.
                Exact duplicates are inserted once.
        config (TriangulationConfig, optional): Tolerances and super-triangle margin.

    Returns:
        List[Triangle]: Delaunay triangles with counter-clockwise vertices, none of
                        which touches the super-triangle. Empty when fewer than
                        3 distinct points are given or all points are collinear.
    """
    config = resolve_config(config)
    pts = list(dict.fromkeys(as_points_2d(points)))
    if len(pts) < 3:
        return []

    seed = super_triangle(pts, config.super_margin)
    far_field = _FarField(seed, config.epsilon)
    working: List[_Entry] = [(seed, None)]

    for point in pts:
        working = _insert_point(point, working, far_field, config)

    triangles = [
        _counter_clockwise(tri) for tri, _ in working
        if not far_field.touches(tri)
    ]
    logger.debug("Triangulated %d points into %d triangles", len(pts), len(triangles))
    return triangles


def delaunay_triangulation_2d(points: torch.Tensor, config: Optional[TriangulationConfig] = None) -> torch.Tensor:
    """
    Tensor front-end of `triangulate`.

    Args:
        points (torch.Tensor): Tensor of shape (N, 2).

    Returns:
        torch.Tensor: Tensor of shape (M, 3) whose rows hold the input indices of
                      each triangle's vertices. For duplicated input points the
                      first occurrence is referenced. Empty `(0, 3)` if no
                      triangle can be formed.
    """
    pts = as_points_2d(points)
    first_index: Dict[Point2D, int] = {}
    for idx, p in enumerate(pts):
        first_index.setdefault(p, idx)

    rows = [[first_index[p] for p in tri] for tri in triangulate(pts, config)]
    device = points.device if isinstance(points, torch.Tensor) else None
    if not rows:
        return torch.empty((0, 3), dtype=torch.long, device=device)
    return torch.tensor(rows, dtype=torch.long, device=device)


def format_triangles(triangles: Sequence[Triangle]) -> List[List[List[float]]]:
    """Plain nested-list form of triangles: `[[[x, y], [x, y], [x, y]], ...]`."""
    return [[[p.x, p.y] for p in tri] for tri in triangles]
