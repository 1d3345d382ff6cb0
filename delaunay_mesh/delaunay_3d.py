"""
Computes 3D Delaunay tetrahedralization using a Bowyer-Watson style algorithm.

This module provides the `triangulate3d` function for generating a Delaunay
tetrahedralization from a set of 3D input points. It mirrors the 2D engine:
points are inserted one at a time into a mesh seeded with a super-tetrahedron,
the tetrahedra whose circumsphere contains the new point are removed, and each
face of the resulting cavity that belonged to exactly one removed tetrahedron is
connected to the point. Candidate tetrahedra whose volume does not exceed
`TriangulationConfig.min_volume` are dropped instead of entering the mesh.

Input is rescaled into the unit cube beforehand (see
`geometry_core.normalize_points_3d`) unless the configuration disables it;
output tetrahedra always reference the caller's original points.
"""
import math
from typing import Dict, List, Optional, Sequence, Tuple

import torch

from .circumcenter_calculations import circumsphere, is_point_in_circumsphere
from .config import TriangulationConfig, resolve_config
from .geometry_core import (
    Circumsphere, Point3D, Tetrahedron, as_points_3d, face_key, normalize_points_3d, signed_volume,
)
from .logging_utils import get_logger

logger = get_logger(__name__)

_Entry = Tuple[Tetrahedron, Optional[Circumsphere]]

# Vertices of a regular tetrahedron centered at the origin; its inradius is 1/sqrt(3)
_REGULAR_TETRAHEDRON = ((1.0, 1.0, 1.0), (1.0, -1.0, -1.0), (-1.0, 1.0, -1.0), (-1.0, -1.0, 1.0))


def super_tetrahedron(points: Sequence[Point3D], margin: float = 100.0) -> Tetrahedron:
    """
    Builds a regular tetrahedron that strictly encloses every input point.

    The tetrahedron is centered on the bounding box of `points`; its inradius is
    `margin` times the radius of the sphere circumscribing the bounding box. The
    vertices are ordered so that the signed volume is positive.
    """
    mins = [min(p[i] for p in points) for i in range(3)]
    maxs = [max(p[i] for p in points) for i in range(3)]
    center = [(lo + hi) / 2.0 for lo, hi in zip(mins, maxs)]
    radius = math.sqrt(sum((hi - lo) ** 2 for lo, hi in zip(mins, maxs))) / 2.0
    if radius < 1e-12: # All points (nearly) coincide
        radius = 1.0

    k = margin * radius * math.sqrt(3.0)
    v1, v2, v3, v4 = (
        Point3D(*(c + k * d for c, d in zip(center, direction)))
        for direction in _REGULAR_TETRAHEDRON
    )
    if signed_volume(v1, v2, v3, v4) < 0:
        v2, v3 = v3, v2
    return Tetrahedron(v1, v2, v3, v4)


def _insert_point(point: Point3D, working: List[_Entry], config: TriangulationConfig) -> List[_Entry]:
    """Performs one Bowyer-Watson insertion and returns the rebuilt working set."""
    boundary: Dict[tuple, Tuple[Point3D, Point3D, Point3D]] = {}
    kept: List[_Entry] = []

    for tet, sphere in working:
        if not is_point_in_circumsphere(point, sphere, config.epsilon):
            kept.append((tet, sphere))
            continue
        # A face shared by two bad tetrahedra is interior to the cavity
        for face in tet.faces():
            key = face_key(*face)
            if key in boundary:
                del boundary[key]
            else:
                boundary[key] = face

    dropped = 0
    for a, b, c in boundary.values():
        volume = signed_volume(a, b, c, point)
        if abs(volume) <= config.min_volume:
            dropped += 1
            continue
        tet = Tetrahedron(a, b, c, point) if volume > 0 else Tetrahedron(a, c, b, point)
        kept.append((tet, circumsphere(tet, config.epsilon)))
    if dropped:
        logger.debug("Dropped %d near-zero-volume tetrahedra while inserting %s", dropped, point)
    return kept


def triangulate3d(points, config: Optional[TriangulationConfig] = None) -> List[Tetrahedron]:
    """
    Computes the 3D Delaunay tetrahedralization of a set of points.

    Args:
        points: 3D points as a tensor of shape (N, 3), triples, or `Point3D`s.
                Exact duplicates are inserted once.
        config (TriangulationConfig, optional): Tolerances, minimum volume,
                super-tetrahedron margin and the normalization switch.

    Returns:
        List[Tetrahedron]: Delaunay tetrahedra with positive signed volume, built
                           from the original (non-normalized) input points. Empty
                           when fewer than 4 distinct points are given or all
                           points are coplanar.
    """
    config = resolve_config(config)
    originals = list(dict.fromkeys(as_points_3d(points)))
    if len(originals) < 4:
        return []

    original_of: Optional[Dict[Point3D, Point3D]] = None
    work_points = originals
    if config.normalize:
        normalized, _ = normalize_points_3d(originals)
        original_of = {}
        for n, o in zip(normalized, originals):
            original_of.setdefault(n, o)
        work_points = list(original_of)

    seed = super_tetrahedron(work_points, config.super_margin)
    working: List[_Entry] = [(seed, circumsphere(seed, config.epsilon))]
    for point in work_points:
        working = _insert_point(point, working, config)

    super_vertices = set(seed)
    tetrahedra = [tet for tet, _ in working if not super_vertices.intersection(tet)]
    if original_of is not None:
        # Normalization is a positive scaling plus offset, so orientation is preserved
        tetrahedra = [Tetrahedron(*(original_of[p] for p in tet)) for tet in tetrahedra]

    logger.debug("Tetrahedralized %d points into %d tetrahedra", len(work_points), len(tetrahedra))
    return tetrahedra


def delaunay_triangulation_3d(points: torch.Tensor, config: Optional[TriangulationConfig] = None) -> torch.Tensor:
    """
    Tensor front-end of `triangulate3d`.

    Args:
        points (torch.Tensor): Tensor of shape (N, 3).

    Returns:
        torch.Tensor: Tensor of shape (M, 4) whose rows hold the input indices of
                      each tetrahedron's vertices (first occurrence for duplicated
                      points). Empty `(0, 4)` if no tetrahedron can be formed.
    """
    pts = as_points_3d(points)
    first_index: Dict[Point3D, int] = {}
    for idx, p in enumerate(pts):
        first_index.setdefault(p, idx)

    rows = [[first_index[p] for p in tet] for tet in triangulate3d(pts, config)]
    device = points.device if isinstance(points, torch.Tensor) else None
    if not rows:
        return torch.empty((0, 4), dtype=torch.long, device=device)
    return torch.tensor(rows, dtype=torch.long, device=device)
