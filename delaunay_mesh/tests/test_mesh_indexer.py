"""
Unit tests for `mesh_indexer.py`: vertex/index buffer construction and
surface-face extraction from tetrahedral meshes.
"""
import torch
import unittest

from ..config import TriangulationConfig
from ..delaunay_2d import triangulate
from ..delaunay_3d import triangulate3d
from ..geometry_core import Point2D, Point3D, Tetrahedron, Triangle, centroid, dot, subtract
from ..mesh_indexer import (
    MeshBuffers, extract_surface_faces, face_normal, index_surface_faces, index_tetrahedra, index_triangles,
)

UNIT_TET = Tetrahedron(Point3D(0., 0., 0.), Point3D(1., 0., 0.), Point3D(0., 1., 0.), Point3D(0., 0., 1.))


class TestIndexTriangles(unittest.TestCase):
    """Tests for `index_triangles`."""

    def test_single_triangle(self):
        buffers = index_triangles([Triangle(Point2D(0., 0.), Point2D(1., 0.), Point2D(0., 1.))])
        self.assertIsInstance(buffers, MeshBuffers)
        self.assertEqual(buffers.vertices.tolist(), [0., 0., 0., 1., 0., 0., 0., 1., 0.])
        self.assertEqual(buffers.indices.tolist(), [0, 1, 2])
        self.assertEqual(buffers.vertices.dtype, torch.float64)
        self.assertEqual(buffers.indices.dtype, torch.long)

    def test_shared_vertices_are_reused(self):
        """Two triangles sharing an edge produce 4 vertices and 6 indices."""
        a, b, c, d = Point2D(0., 0.), Point2D(1., 0.), Point2D(0., 1.), Point2D(1., 1.)
        buffers = index_triangles([Triangle(a, b, c), Triangle(b, d, c)])
        self.assertEqual(buffers.vertex_count, 4)
        self.assertEqual(buffers.face_count, 2)
        self.assertEqual(buffers.vertices.tolist(), [0., 0., 0., 1., 0., 0., 0., 1., 0., 1., 1., 0.])
        self.assertEqual(buffers.indices.tolist(), [0, 1, 2, 1, 3, 2])

    def test_empty_input(self):
        buffers = index_triangles([])
        self.assertEqual(buffers.vertices.numel(), 0)
        self.assertEqual(buffers.indices.numel(), 0)

    def test_floating_point_coordinates(self):
        buffers = index_triangles([[(0.5, 0.25), (1.75, 0.5), (0.125, 2.5)]])
        self.assertEqual(buffers.vertices.tolist(), [0.5, 0.25, 0., 1.75, 0.5, 0., 0.125, 2.5, 0.])

    def test_rounding_noise_shares_an_index(self):
        buffers = index_triangles([
            [(0., 0.), (0.3, 0.), (0., 1.)],
            [(0.1 + 0.2, 0.), (1., 1.), (0., 1.)],
        ])
        self.assertEqual(buffers.vertex_count, 4)
        self.assertEqual(buffers.indices.tolist()[3], 1)

    def test_distinct_points_beyond_tolerance(self):
        buffers = index_triangles([[(0., 0.), (1., 0.), (0., 1.)], [(1e-6, 0.), (1., 0.), (0., 1.)]])
        self.assertEqual(buffers.vertex_count, 4)

    def test_exact_deduplication(self):
        config = TriangulationConfig(vertex_tolerance=0.0)
        buffers = index_triangles([[(0.3, 0.), (1., 0.), (0., 1.)], [(0.1 + 0.2, 0.), (1., 0.), (0., 1.)]], config)
        self.assertEqual(buffers.vertex_count, 4)

    def test_non_finite_coordinates_do_not_raise(self):
        """NaN and infinite vertices are indexed by their exact value instead of raising."""
        buffers = index_triangles([
            [(0., 0.), (float('nan'), 0.), (0., 1.)],
            [(0., 0.), (float('inf'), 1.), (0., 1.)],
        ])
        self.assertEqual(buffers.face_count, 2)
        self.assertEqual(buffers.vertex_count, 4)
        self.assertEqual(buffers.indices.tolist(), [0, 1, 2, 0, 3, 2])

    def test_indices_reference_existing_vertices(self):
        torch.manual_seed(0)
        triangles = triangulate(torch.rand((30, 2), dtype=torch.float64))
        buffers = index_triangles(triangles)
        self.assertEqual(buffers.indices.numel(), 3 * len(triangles))
        self.assertLess(int(buffers.indices.max()), buffers.vertex_count)
        self.assertLessEqual(buffers.vertex_count, 30)


class TestIndexTetrahedra(unittest.TestCase):
    """Tests for `index_tetrahedra`."""

    def test_single_tetrahedron(self):
        buffers = index_tetrahedra([UNIT_TET])
        self.assertEqual(buffers.vertex_count, 4)
        self.assertEqual(buffers.indices.numel(), 12)
        self.assertTrue(torch.all(buffers.indices < 4))

    def test_shared_face(self):
        second = Tetrahedron(Point3D(1., 0., 0.), Point3D(0., 1., 0.), Point3D(0., 0., 1.), Point3D(1., 1., 1.))
        buffers = index_tetrahedra([UNIT_TET, second])
        self.assertEqual(buffers.vertex_count, 5)
        self.assertEqual(buffers.face_count, 8)


class TestExtractSurfaceFaces(unittest.TestCase):
    """Tests for `extract_surface_faces` and `index_surface_faces`."""

    def _assert_outward(self, faces, tetrahedra):
        center = centroid(centroid(tet) for tet in tetrahedra)
        for face in faces:
            face_center = centroid(face.points)
            self.assertGreater(dot(face.normal, subtract(face_center, center)), 0,
                               f"Normal of {face.points} should point away from the mesh center.")
            self.assertEqual(face.normal, face_normal(*face.points))

    def test_empty_mesh(self):
        self.assertEqual(extract_surface_faces([]), [])

    def test_single_tetrahedron(self):
        faces = extract_surface_faces([UNIT_TET])
        self.assertEqual(len(faces), 4)
        self._assert_outward(faces, [UNIT_TET])

    def test_shared_face_is_internal(self):
        second = Tetrahedron(Point3D(1., 0., 0.), Point3D(0., 1., 0.), Point3D(0., 0., 1.), Point3D(1., 1., 1.))
        faces = extract_surface_faces([UNIT_TET, second])
        self.assertEqual(len(faces), 6)
        shared = {Point3D(1., 0., 0.), Point3D(0., 1., 0.), Point3D(0., 0., 1.)}
        for face in faces:
            self.assertNotEqual(set(face.points), shared)
        self._assert_outward(faces, [UNIT_TET, second])

    def test_surface_of_subdivided_tetrahedron(self):
        """Splitting a tetrahedron at an interior point leaves its 4 outer faces as the surface."""
        tetrahedra = triangulate3d([list(p) for p in UNIT_TET] + [[0.2, 0.2, 0.2]])
        faces = extract_surface_faces(tetrahedra)
        self.assertEqual(len(faces), 4)
        for face in faces:
            self.assertNotIn(Point3D(0.2, 0.2, 0.2), face.points)
        self._assert_outward(faces, tetrahedra)

    def test_nan_vertex_does_not_raise(self):
        broken = Tetrahedron(Point3D(0., 0., 0.), Point3D(1., 0., 0.), Point3D(0., 1., 0.),
                             Point3D(float('nan'), 0., 1.))
        faces = extract_surface_faces([broken])
        self.assertEqual(len(faces), 4)
        self.assertEqual(index_tetrahedra([broken]).vertex_count, 4)

    def test_index_surface_faces(self):
        faces = extract_surface_faces([UNIT_TET])
        buffers = index_surface_faces(faces)
        self.assertEqual(buffers.vertex_count, 4)
        self.assertEqual(buffers.face_count, 4)
        vertices = buffers.vertices.view(-1, 3)
        for i, face in enumerate(faces):
            for j, point in enumerate(face.points):
                index = int(buffers.indices[3 * i + j])
                self.assertEqual(tuple(vertices[index].tolist()), tuple(point))


if __name__ == '__main__':
    unittest.main(argv=['first-arg-is-ignored'], exit=False)
