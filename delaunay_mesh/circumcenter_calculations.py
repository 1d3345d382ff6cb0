"""
Computes circumcircles for 2D triangles and circumspheres for 3D tetrahedra.

The circumcircle (circumsphere) is the unique circle (sphere) passing through
all vertices of a triangle (tetrahedron). Both the Bowyer-Watson cavity search
and the constrained re-triangulation are driven by the containment tests
defined here.

Degenerate simplices (collinear triangles, coplanar tetrahedra) have no
circumcircle/circumsphere: the functions return `None` instead of raising, and
the containment tests report `False` for them.
"""
import math
from typing import Optional

import torch

from .geometry_core import (
    EPSILON, Circumcircle, Circumsphere, Point2D, Point3D, Tetrahedron, Triangle,
)


def circumcircle(triangle: Triangle, tol: float = EPSILON) -> Optional[Circumcircle]:
    """
    Computes the circumcircle of a 2D triangle.

    Uses the standard closed form with denominator
    D = 2 * (x1(y2-y3) + x2(y3-y1) + x3(y1-y2)).

    Args:
        triangle (Triangle): The triangle whose circumcircle is computed.
        tol (float, optional): If |D| is below this value the vertices are
                               considered collinear. Defaults to `EPSILON`.

    Returns:
        Circumcircle | None: Center and radius, or `None` for collinear vertices.
    """
    a, b, c = triangle
    d = 2 * (a.x * (b.y - c.y) + b.x * (c.y - a.y) + c.x * (a.y - b.y))
    if abs(d) < tol:
        return None

    a_sq = a.x * a.x + a.y * a.y
    b_sq = b.x * b.x + b.y * b.y
    c_sq = c.x * c.x + c.y * c.y

    ux = (a_sq * (b.y - c.y) + b_sq * (c.y - a.y) + c_sq * (a.y - b.y)) / d
    uy = (a_sq * (c.x - b.x) + b_sq * (a.x - c.x) + c_sq * (b.x - a.x)) / d

    center = Point2D(ux, uy)
    return Circumcircle(center, math.hypot(ux - a.x, uy - a.y))


def circumsphere(tetrahedron: Tetrahedron, tol: float = EPSILON) -> Optional[Circumsphere]:
    """
    Computes the circumsphere of a 3D tetrahedron.

    The center c satisfies |c - p_i|^2 = |c - p_1|^2 for i = 2, 3, 4, which gives
    the linear system A c = d with rows A_i = p_i - p_1 and
    d_i = (|p_i|^2 - |p_1|^2) / 2. The system is solved with Cramer's rule; all
    determinants are evaluated in float64.

    Args:
        tetrahedron (Tetrahedron): The tetrahedron whose circumsphere is computed.
        tol (float, optional): If |det(A)| is below this value the vertices are
                               considered coplanar. Defaults to `EPSILON`.

    Returns:
        Circumsphere | None: Center and radius, or `None` for coplanar vertices.
    """
    coords = torch.tensor([list(p) for p in tetrahedron], dtype=torch.float64)
    p1 = coords[0]
    a_matrix = coords[1:] - p1
    d_vector = 0.5 * (torch.sum(coords[1:] ** 2, dim=1) - torch.sum(p1 ** 2))

    det = torch.linalg.det(a_matrix).item()
    if abs(det) < tol:
        return None

    center_coords = []
    for col in range(3):
        # Cramer's rule: replace column `col` by the right-hand side
        replaced = a_matrix.clone()
        replaced[:, col] = d_vector
        center_coords.append(torch.linalg.det(replaced).item() / det)

    center = Point3D(*center_coords)
    first = tetrahedron.p1
    radius = math.sqrt((center.x - first.x) ** 2 + (center.y - first.y) ** 2 + (center.z - first.z) ** 2)
    return Circumsphere(center, radius)


def _contains(dist_sq: float, radius: float, tol: float) -> bool:
    # Inclusive test: co-circular/co-spherical points count as inside
    radius_sq = radius * radius
    return dist_sq - radius_sq <= tol * max(1.0, radius_sq)


def is_point_in_circumcircle(point: Point2D, circle: Optional[Circumcircle], tol: float = EPSILON) -> bool:
    """
    Checks whether a point lies inside or on a circumcircle.

    Points on the boundary count as inside, which makes the Bowyer-Watson cavity
    absorb every triangle whose circumcircle passes through a co-circular point.

    Args:
        point (Point2D): The point to check.
        circle (Circumcircle | None): A circumcircle, or a `Triangle` whose
                                      circumcircle is computed on the fly.
        tol (float, optional): Relative slack on the squared-radius comparison.

    Returns:
        bool: True if dist^2 <= radius^2. False for a missing (degenerate) circle.
    """
    if isinstance(circle, Triangle):
        circle = circumcircle(circle)
    if circle is None:
        return False
    dx = circle.center.x - point.x
    dy = circle.center.y - point.y
    return _contains(dx * dx + dy * dy, circle.radius, tol)


def is_point_in_circumsphere(point: Point3D, sphere: Optional[Circumsphere], tol: float = EPSILON) -> bool:
    """
    Checks whether a point lies inside or on a circumsphere (inclusive test).

    Accepts either a precomputed `Circumsphere` or a `Tetrahedron`. Returns False
    when the sphere is missing because the tetrahedron is degenerate.
    """
    if isinstance(sphere, Tetrahedron):
        sphere = circumsphere(sphere)
    if sphere is None:
        return False
    dx = sphere.center.x - point.x
    dy = sphere.center.y - point.y
    dz = sphere.center.z - point.z
    return _contains(dx * dx + dy * dy + dz * dz, sphere.radius, tol)


def is_point_strictly_in_circumcircle(point: Point2D, circle: Optional[Circumcircle], tol: float = EPSILON) -> bool:
    """Like `is_point_in_circumcircle` but points on (or within `tol` of) the boundary are outside."""
    if isinstance(circle, Triangle):
        circle = circumcircle(circle)
    if circle is None:
        return False
    dx = circle.center.x - point.x
    dy = circle.center.y - point.y
    radius_sq = circle.radius * circle.radius
    return dx * dx + dy * dy < radius_sq - tol * max(1.0, radius_sq)


def is_point_strictly_in_circumsphere(point: Point3D, sphere: Optional[Circumsphere], tol: float = EPSILON) -> bool:
    if isinstance(sphere, Tetrahedron):
        sphere = circumsphere(sphere)
    if sphere is None:
        return False
    dx = sphere.center.x - point.x
    dy = sphere.center.y - point.y
    dz = sphere.center.z - point.z
    radius_sq = sphere.radius * sphere.radius
    return dx * dx + dy * dy + dz * dz < radius_sq - tol * max(1.0, radius_sq)
