"""Configuration objects for the triangulation engines and the mesh indexer."""
from __future__ import annotations

from dataclasses import dataclass, replace

from .geometry_core import EPSILON, MIN_VOLUME, VERTEX_TOLERANCE


@dataclass(frozen=True)
class TriangulationConfig:
    """Tolerances and tuning knobs shared by every engine.

    Attributes
    ----------
    epsilon : float
        Threshold below which a circumcircle/circumsphere determinant is
        treated as zero (collinear or coplanar simplex).
    min_volume : float
        Tetrahedra whose absolute volume does not exceed this value are
        dropped from the 3D mesh.
    super_margin : float
        Ratio between the inradius of the synthetic super-triangle /
        super-tetrahedron and the radius of the input bounding sphere.
    normalize : bool
        Rescale 3D input into the unit cube before triangulating.
    vertex_tolerance : float
        Bucket size used when deduplicating vertices by coordinate.
    """
    epsilon: float = EPSILON
    min_volume: float = MIN_VOLUME
    super_margin: float = 100.0
    normalize: bool = True
    vertex_tolerance: float = VERTEX_TOLERANCE

    def with_overrides(self, **overrides) -> 'TriangulationConfig':
        return replace(self, **overrides)


DEFAULT_CONFIG = TriangulationConfig()


def resolve_config(config: TriangulationConfig | None) -> TriangulationConfig:
    return DEFAULT_CONFIG if config is None else config


__all__ = ['TriangulationConfig', 'DEFAULT_CONFIG', 'resolve_config']
