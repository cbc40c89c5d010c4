import numpy as np

from reliefmesh.topology import compute_vertex_normals, remove_degenerate_faces


def _quad_with_sliver():
    positions = np.array([
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [0.0, 0.0, 1.0],
        [1.0, 0.0, 1.0],
        [0.5, 0.0, 0.0],     # collinear with 0 and 1
        [9.0, 9.0, 9.0],     # never referenced
    ])
    faces = np.array([
        [0, 2, 1],
        [1, 2, 3],
        [0, 4, 1],
    ])
    return positions, faces


def test_degenerate_faces_are_dropped():
    positions, faces = _quad_with_sliver()
    kept = remove_degenerate_faces(positions, faces)
    assert kept.tolist() == [[0, 2, 1], [1, 2, 3]]


def test_epsilon_is_on_twice_the_area():
    positions = np.array([[0, 0, 0], [0.01, 0, 0], [0, 0, 0.01]], dtype=np.float64)
    faces = np.array([[0, 2, 1]])
    # |cross| = 1e-4, below the default 1e-3
    assert len(remove_degenerate_faces(positions, faces)) == 0
    assert len(remove_degenerate_faces(positions, faces, epsilon=1e-5)) == 1


def test_empty_face_array_is_passed_through():
    positions, _ = _quad_with_sliver()
    empty = np.zeros((0, 3), dtype=np.int64)
    assert remove_degenerate_faces(positions, empty).shape == (0, 3)


def test_normals_are_unit_or_zero():
    positions, faces = _quad_with_sliver()
    normals = compute_vertex_normals(positions, faces)
    np.testing.assert_allclose(normals[:4], [[0, 1, 0]] * 4)
    np.testing.assert_array_equal(normals[5], [0, 0, 0])
    # vertex 4 only touches the zero-area sliver
    np.testing.assert_array_equal(normals[4], [0, 0, 0])


def test_normals_are_area_weighted():
    positions = np.array([
        [0, 0, 0], [1, 0, 0], [0, 0, 1],      # small +Y triangle
        [0, 0, 0], [0, 4, 0], [4, 0, 0],      # large +Z triangle
    ], dtype=np.float64)
    faces = np.array([[0, 2, 1], [0, 5, 4]])
    normals = compute_vertex_normals(positions, faces)
    n0 = normals[0]
    assert abs(np.linalg.norm(n0) - 1.0) < 1e-12
    # vertex 0 blends the two faces, dominated by the larger one
    assert abs(n0[2]) > abs(n0[1]) > 0


def test_quality_tiers_agree():
    rng = np.random.default_rng(5)
    positions = rng.random((20, 3))
    faces = rng.integers(0, 20, size=(30, 3))
    np.testing.assert_array_equal(
        compute_vertex_normals(positions, faces, high_quality=True),
        compute_vertex_normals(positions, faces, high_quality=False))
