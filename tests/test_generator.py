"""Tests for the tessellation passes and generate()."""

import numpy as np
import pytest

from parasurf.buffer import Layout
from parasurf.generator import (
    SurfaceGenerator, accumulate_normals, cell_normals, generate, quad_corners,
    quad_count, sample_grid, sample_positions, triangle_indices, triangulate,
)
from parasurf.surfaces import plane_surface, sphere_surface, torus_surface


def _triangulation(surface, U, V, **kwargs):
    params, positions = sample_grid(surface, U, V)
    return triangulate(positions, params, U, V, **kwargs)


class TestCounts:
    """Triangle, vertex and float counts."""

    @pytest.mark.parametrize("U,V", [(1, 1), (2, 3), (4, 4), (5, 7)])
    def test_closed_grid_counts(self, U, V):
        buf = generate(torus_surface(), U, V)
        assert buf.triangle_count == 2 * U * V
        assert buf.vertex_count == 6 * U * V
        assert len(buf) == 48 * U * V
        assert buf.data.dtype == np.float32

    @pytest.mark.parametrize("U,V", [(0, 4), (4, 0), (-1, 3), (0, 0)])
    def test_invalid_counts_give_empty_buffer(self, U, V):
        buf = generate(torus_surface(), U, V)
        assert len(buf) == 0
        assert buf.vertex_count == 0
        assert buf.triangle_count == 0

    def test_open_axes_drop_one_row_of_quads(self):
        surf = torus_surface()
        assert generate(surf, 5, 4, close_u=False).triangle_count == 2 * 4 * 4
        assert generate(surf, 5, 4, close_v=False).triangle_count == 2 * 5 * 3
        assert generate(surf, 5, 4, close_u=False, close_v=False).triangle_count == 2 * 4 * 3

    def test_single_open_axis_cell_has_no_quads(self):
        buf = generate(torus_surface(), 1, 4, close_u=False)
        assert len(buf) == 0

    def test_quad_count(self):
        assert quad_count(4, True) == 4
        assert quad_count(4, False) == 3
        assert quad_count(1, False) == 0
        assert quad_count(0, True) == 0


class TestTriangulation:
    """Quad corners, emission order and wraparound."""

    def test_quad_corners_wrap(self):
        corners = quad_corners(3, 2)
        assert corners.shape == (6, 4)
        # quad (0, 0): cells (0,0), (1,0), (1,1), (0,1)
        assert corners[0].tolist() == [0, 2, 3, 1]
        # quad (2, 1) wraps both axes back to cell (0, 0)
        assert corners[-1].tolist() == [5, 1, 0, 4]

    def test_triangle_indices_split(self):
        corners = np.array([[10, 11, 12, 13]])
        assert triangle_indices(corners).tolist() == [[10, 11, 12], [10, 12, 13]]

    def test_positions_are_sampled_per_cell(self):
        surf = torus_surface()
        positions = sample_positions(surf, 3, 4)
        assert positions.shape == (12, 3)
        assert np.allclose(positions[1 * 4 + 2], surf.evaluate(1, 2, 3, 4))

    def test_wraparound_quad_matches_independent_samples(self):
        surf = torus_surface(2.0, 0.5)
        U, V = 8, 6
        buf = generate(surf, U, V)
        positions = buf.positions()
        normals = buf.normals()
        for v in range(V):
            quad = (U - 1) * V + v
            a = positions[6 * quad:6 * quad + 3]
            assert np.allclose(a[0], surf.evaluate(U - 1, v, U, V), atol=1e-6)
            assert np.allclose(a[1], surf.evaluate(0, v, U, V), atol=1e-6)
            assert np.allclose(a[2], surf.evaluate(0, (v + 1) % V, U, V), atol=1e-6)
            assert np.linalg.norm(normals[6 * quad]) == pytest.approx(1.0, abs=1e-6)

    def test_uvs_come_from_originating_cells(self):
        surf = torus_surface()
        U, V = 4, 3
        buf = generate(surf, U, V)
        uvs = buf.uvs()
        uv = surf.uv_for(U, V)
        # last quad: A is (3,2) (0,2) (0,0), B is (3,2) (0,0) (3,0)
        last = uvs[-6:]
        expected = [uv(3, 2), uv(0, 2), uv(0, 0), uv(3, 2), uv(0, 0), uv(3, 0)]
        assert np.allclose(last, expected, atol=1e-6)

    def test_idempotent(self):
        surf = torus_surface()
        first = generate(surf, 9, 7, smooth=True)
        second = generate(surf, 9, 7, smooth=True)
        assert first.data.tobytes() == second.data.tobytes()


class TestFlatNormals:
    """Per-triangle normals."""

    def test_vertices_share_face_normal_perpendicular_to_edges(self):
        buf = generate(torus_surface(), 12, 8)
        normals = buf.normals().reshape(-1, 3, 3)
        tris = buf.triangles()
        assert np.array_equal(normals[:, 0], normals[:, 1])
        assert np.array_equal(normals[:, 0], normals[:, 2])
        e1 = tris[:, 1] - tris[:, 0]
        e2 = tris[:, 2] - tris[:, 0]
        n = normals[:, 0]
        assert np.allclose(np.einsum('ij,ij->i', n, e1), 0.0, atol=1e-5)
        assert np.allclose(np.einsum('ij,ij->i', n, e2), 0.0, atol=1e-5)
        assert np.allclose(np.linalg.norm(n, axis=1), 1.0, atol=1e-5)

    def test_torus_normals_point_outward(self):
        R = 2.0
        buf = generate(torus_surface(R, 0.5), 24, 16)
        tris = buf.triangles().astype(float)
        normals = buf.normals().reshape(-1, 3, 3)[:, 0]
        centroids = tris.mean(axis=1)
        ring = centroids.copy()
        ring[:, 2] = 0.0
        ring *= R / np.linalg.norm(ring, axis=1)[:, None]
        assert np.all(np.einsum('ij,ij->i', normals, centroids - ring) > 0)


class TestSmoothNormals:
    """Per-cell averaged normals."""

    def test_every_cell_has_six_corners_on_closed_grid(self):
        U, V = 5, 4
        tris = _triangulation(torus_surface(), U, V)
        _, counts = accumulate_normals(tris, U * V)
        assert counts.tolist() == [6] * (U * V)

    def test_open_grid_corner_counts(self):
        U, V = 4, 3
        tris = _triangulation(torus_surface(), U, V, close_u=False, close_v=False)
        _, counts = accumulate_normals(tris, U * V)
        assert counts[0 * V + 0] == 2
        assert counts[(U - 1) * V + (V - 1)] == 2
        assert counts[(U - 1) * V + 0] == 1
        assert counts[0 * V + (V - 1)] == 1
        assert counts[1 * V + 1] == 6

    def test_smooth_normal_is_average_of_corner_face_normals(self):
        U, V = 6, 5
        surf = torus_surface()
        tris = _triangulation(surf, U, V)
        expected = np.zeros((U * V, 3))
        count = np.zeros(U * V)
        for tri, normal in zip(tris.indices, tris.normals):
            for cell in tri:
                expected[cell] += normal
                count[cell] += 1
        expected /= count[:, None]
        assert np.allclose(cell_normals(tris, U * V), expected)

        buf = generate(surf, U, V, smooth=True)
        emitted = buf.normals()
        for i, cell in enumerate(tris.indices.ravel()):
            assert np.allclose(emitted[i], expected[cell], atol=1e-6)

    def test_smooth_vertices_of_one_cell_agree(self):
        U, V = 6, 5
        surf = torus_surface()
        tris = _triangulation(surf, U, V)
        normals = generate(surf, U, V, smooth=True).normals()
        cells = tris.indices.ravel()
        for cell in range(U * V):
            occurrences = normals[cells == cell]
            assert len(occurrences) == 6
            assert np.all(occurrences == occurrences[0])


class TestIdentityPlane:
    """The 4x4 identity plane scenario."""

    def test_counts(self):
        buf = generate(plane_surface(), 4, 4)
        assert buf.triangle_count == 32
        assert buf.vertex_count == 96
        assert len(buf) == 768

    def test_flat_normals_are_z_axis(self):
        buf = generate(plane_surface(), 4, 4)
        normals = buf.normals()
        assert np.all(normals[:, 0] == 0.0)
        assert np.all(normals[:, 1] == 0.0)
        assert np.all(np.abs(normals[:, 2]) == 1.0)

        per_quad = normals[:, 2].reshape(16, 6)
        for quad, values in enumerate(per_quad):
            u, v = divmod(quad, 4)
            # quads closing exactly one axis fold back over the plane
            expected = 1.0 if (u == 3) == (v == 3) else -1.0
            assert np.all(values == expected)

    def test_smooth_normals_stay_on_z_axis(self):
        normals = generate(plane_surface(), 4, 4, smooth=True).normals()
        assert np.all(normals[:, :2] == 0.0)
        assert np.all(np.abs(normals[:, 2]) <= 1.0)

    def test_open_plane_normals_all_up(self):
        for smooth in (False, True):
            buf = generate(plane_surface(), 4, 4, smooth=smooth, close_u=False, close_v=False)
            assert buf.triangle_count == 18
            assert np.allclose(buf.normals(), [0.0, 0.0, 1.0])


class TestDegenerateGeometry:
    """Collapsed triangles give zero normals, never NaN."""

    @pytest.mark.parametrize("smooth", [False, True])
    @pytest.mark.parametrize("U,V", [(1, 1), (1, 4), (4, 1)])
    def test_single_cell_axis(self, U, V, smooth):
        buf = generate(torus_surface(), U, V, smooth=smooth)
        assert buf.triangle_count == 2 * U * V
        assert np.all(np.isfinite(buf.data))
        assert np.all(buf.normals() == 0.0)

    @pytest.mark.parametrize("smooth", [False, True])
    def test_sphere_poles(self, smooth):
        U, V = 8, 5
        buf = generate(sphere_surface(), U, V, close_v=False, smooth=smooth)
        assert np.all(np.isfinite(buf.data))
        if smooth:
            return
        normals = buf.normals().reshape(U, V - 1, 2, 3, 3)
        # triangle A of the south row and B of the north row collapse
        assert np.all(normals[:, 0, 0] == 0.0)
        assert np.all(normals[:, -1, 1] == 0.0)
        lengths = np.linalg.norm(normals[:, 1:-1], axis=-1)
        assert np.allclose(lengths, 1.0, atol=1e-5)


class TestSurfaceGenerator:
    """The bound generator object."""

    def test_matches_generate(self):
        surf = torus_surface()
        gen = SurfaceGenerator(surf, smooth=True, layout=Layout.INTERLEAVED)
        buf = gen.generate(6, 4)
        ref = generate(surf, 6, 4, smooth=True, layout=Layout.INTERLEAVED)
        assert buf.layout is Layout.INTERLEAVED
        assert np.array_equal(buf.data, ref.data)

    def test_each_call_is_independent(self):
        gen = SurfaceGenerator(torus_surface())
        small = gen.generate(3, 3)
        gen.generate(10, 10)
        again = gen.generate(3, 3)
        assert np.array_equal(small.data, again.data)
