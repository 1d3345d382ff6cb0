"""
Incremental Delaunay triangulation kernel for 2D and 3D point sets.

Public entry points:
- `triangulate` / `delaunay_triangulation_2d`: 2D Bowyer-Watson.
- `triangulate_constrained`: 2D constrained Delaunay triangulation.
- `triangulate3d` / `delaunay_triangulation_3d`: 3D Bowyer-Watson.
- `index_triangles`, `index_tetrahedra`, `extract_surface_faces`: render buffers.
"""
import logging as _logging

from .circumcenter_calculations import (
    circumcircle, circumsphere, is_point_in_circumcircle, is_point_in_circumsphere,
)
from .config import DEFAULT_CONFIG, TriangulationConfig
from .constrained_delaunay import satisfies_constraints, triangulate_constrained
from .delaunay_2d import delaunay_triangulation_2d, format_triangles, triangulate
from .delaunay_3d import delaunay_triangulation_3d, triangulate3d
from .geometry_core import (
    EPSILON, MIN_VOLUME, Circumcircle, Circumsphere, Constraint, Point2D, Point3D, Tetrahedron,
    Triangle, is_point_in_triangle, segments_intersect, signed_volume, tetrahedron_volume,
)
from .logging_utils import configure_logging, get_logger
from .mesh_indexer import (
    MeshBuffers, SurfaceFace, extract_surface_faces, index_surface_faces, index_tetrahedra,
    index_triangles,
)

__version__ = "0.1.0"

_logging.getLogger(__name__).addHandler(_logging.NullHandler())

__all__ = [
    "EPSILON", "MIN_VOLUME", "Point2D", "Point3D", "Triangle", "Tetrahedron", "Circumcircle",
    "Circumsphere", "Constraint", "TriangulationConfig", "DEFAULT_CONFIG",
    "circumcircle", "circumsphere", "is_point_in_circumcircle", "is_point_in_circumsphere",
    "is_point_in_triangle", "segments_intersect", "signed_volume", "tetrahedron_volume",
    "triangulate", "delaunay_triangulation_2d", "format_triangles",
    "triangulate_constrained", "satisfies_constraints",
    "triangulate3d", "delaunay_triangulation_3d",
    "MeshBuffers", "SurfaceFace", "index_triangles", "index_tetrahedra",
    "extract_surface_faces", "index_surface_faces",
    "configure_logging", "get_logger", "__version__",
]
