"""
Converts triangulations into renderer-friendly vertex/index buffers.

The indexer walks every simplex in structural order, assigns each vertex the
next unused index the first time its coordinates are seen and reuses that index
afterwards. Vertices are flattened as (x, y, z) triples; 2D points get z = 0.
Tetrahedra are decomposed into their four triangular faces before indexing.

`extract_surface_faces` isolates the boundary of a tetrahedral mesh: faces that
belong to exactly one tetrahedron, wound so that their normal points away from
the mesh centroid.

Vertex identity follows `geometry_core.vertex_key`: coordinates are bucketed by
`TriangulationConfig.vertex_tolerance`, so points that differ only by rounding
noise share one index.
"""
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

import torch

from .config import TriangulationConfig, resolve_config
from .geometry_core import Point3D, Tetrahedron, centroid, cross, dot, subtract, vertex_key


class MeshBuffers(NamedTuple):
    """
    Flat buffers ready for upload to a triangle-mesh renderer.

    Attributes:
        vertices (torch.Tensor): float64 tensor of shape (3V,), (x, y, z) per vertex.
        indices (torch.Tensor): long tensor of shape (3F,), three indices per face,
                                each `< V`.
    """
    vertices: torch.Tensor
    indices: torch.Tensor

    @property
    def vertex_count(self) -> int:
        return self.vertices.numel() // 3

    @property
    def face_count(self) -> int:
        return self.indices.numel() // 3


class SurfaceFace(NamedTuple):
    points: Tuple[Point3D, Point3D, Point3D]
    normal: Point3D


class _VertexTable:
    """Accumulates deduplicated vertices and the index stream referencing them."""

    def __init__(self, tolerance: float):
        self.tolerance = tolerance
        self._index_of: Dict[tuple, int] = {}
        self.coords: List[float] = []
        self.indices: List[int] = []

    def add(self, point: Sequence[float]) -> int:
        xyz = (float(point[0]), float(point[1]), float(point[2]) if len(point) > 2 else 0.0)
        key = vertex_key(xyz, self.tolerance)
        idx = self._index_of.get(key)
        if idx is None:
            idx = len(self.coords) // 3
            self._index_of[key] = idx
            self.coords.extend(xyz)
        self.indices.append(idx)
        return idx

    def buffers(self) -> MeshBuffers:
        return MeshBuffers(
            torch.tensor(self.coords, dtype=torch.float64),
            torch.tensor(self.indices, dtype=torch.long),
        )


def _index_faces(faces: Iterable[Sequence], config: Optional[TriangulationConfig]) -> MeshBuffers:
    table = _VertexTable(resolve_config(config).vertex_tolerance)
    for face in faces:
        for point in face:
            table.add(point)
    return table.buffers()


def index_triangles(triangles: Iterable[Sequence], config: Optional[TriangulationConfig] = None) -> MeshBuffers:
    """
    Builds vertex/index buffers from 2D (or 3D) triangles.

    Args:
        triangles: `Triangle`s or any sequences of three points.
        config (TriangulationConfig, optional): Supplies the deduplication tolerance.

    Returns:
        MeshBuffers: Deduplicated vertices (z = 0 for 2D points) and three indices
                     per triangle, in the triangles' own vertex order. Empty
                     buffers for an empty input.
    """
    return _index_faces(triangles, config)


def index_tetrahedra(tetrahedra: Iterable[Tetrahedron], config: Optional[TriangulationConfig] = None) -> MeshBuffers:
    """Builds vertex/index buffers from the four faces of every tetrahedron (12 indices each)."""
    return _index_faces((face for tet in tetrahedra for face in Tetrahedron(*tet).faces()), config)


def face_normal(a: Point3D, b: Point3D, c: Point3D) -> Point3D:
    """Unnormalized normal (b - a) x (c - a); follows the right-hand rule on a -> b -> c."""
    return cross(subtract(b, a), subtract(c, a))


def extract_surface_faces(tetrahedra: Sequence[Tetrahedron],
                          config: Optional[TriangulationConfig] = None) -> List[SurfaceFace]:
    """
    Extracts the boundary faces of a tetrahedral mesh.

    Each face is keyed by its vertices sorted by (x, y, z); faces seen exactly
    once are on the boundary of the solid, faces shared by two tetrahedra are
    internal and dropped. The retained faces are wound so that their normal
    points away from the mesh centroid (the mean of the tetrahedron centroids).

    Args:
        tetrahedra (Sequence[Tetrahedron]): The tetrahedral mesh.
        config (TriangulationConfig, optional): Supplies the vertex tolerance used
                                                for the face keys.

    Returns:
        List[SurfaceFace]: Boundary faces in first-seen order, each with its
                           outward normal.
    """
    tetrahedra = [Tetrahedron(*tet) for tet in tetrahedra]
    if not tetrahedra:
        return []
    tolerance = resolve_config(config).vertex_tolerance
    center = centroid(centroid(tet) for tet in tetrahedra)

    counts: Dict[tuple, List] = {}
    for tet in tetrahedra:
        for face in tet.faces():
            key = tuple(sorted(vertex_key(p, tolerance) for p in face))
            entry = counts.get(key)
            if entry is None:
                counts[key] = [tuple(sorted(face)), 1]
            else:
                entry[1] += 1

    surface = []
    for (a, b, c), count in counts.values():
        if count != 1:
            continue
        normal = face_normal(a, b, c)
        if dot(normal, subtract(a, center)) <= 0:
            b, c = c, b
            normal = face_normal(a, b, c)
        surface.append(SurfaceFace((a, b, c), normal))
    return surface


def index_surface_faces(faces: Iterable[SurfaceFace], config: Optional[TriangulationConfig] = None) -> MeshBuffers:
    """Builds vertex/index buffers from extracted surface faces, keeping their outward winding."""
    return _index_faces((face.points for face in faces), config)
