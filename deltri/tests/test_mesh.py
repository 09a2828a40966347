import numpy as np
import pytest

from deltri import INVALID_INDEX, InvalidHandleError, TopologyError
from deltri.core.mesh import Mesh


def test_store_returns_stable_handles():
    mesh = Mesh()
    a = mesh.store_vertex((0.0, 0.0))
    b = mesh.store_vertex((1.0, 0.0))
    c = mesh.store_vertex((0.0, 1.0))
    assert (a, b, c) == (0, 1, 2)
    f = mesh.store_face([a, b, c])
    assert f == 0
    face = mesh.face(f)
    assert face.vertices == [a, b, c]
    assert face.neighbors == [INVALID_INDEX] * 3
    assert face.constraints == [0, 0, 0]
    assert face.corner_of(b) == 1
    assert face.corner_of(99) == INVALID_INDEX


def test_infinite_vertex_is_designated_once():
    mesh = Mesh()
    inf = mesh.store_vertex(None)
    v = mesh.store_vertex((0.0, 0.0))
    mesh.set_infinite_vertex(inf)
    assert not mesh.is_finite_vertex(inf)
    assert mesh.is_finite_vertex(v)
    assert mesh.finite_vertex_count == 1
    with pytest.raises(TopologyError):
        mesh.set_infinite_vertex(v)
    f = mesh.store_face([inf, v, v])
    assert not mesh.is_finite_face(f)


@pytest.mark.parametrize('handle', [-1, 5, 1.0, None, True])
def test_invalid_handles(handle):
    mesh = Mesh()
    mesh.store_vertex((0.0, 0.0))
    with pytest.raises(InvalidHandleError):
        mesh.vertex(handle)
    with pytest.raises(InvalidHandleError):
        mesh.face(handle)


def test_tag_epochs_increase():
    mesh = Mesh()
    t1 = mesh.new_tag()
    t2 = mesh.new_tag()
    assert t2 > t1 > 0


def test_numpy_exports_and_clear():
    mesh = Mesh()
    inf = mesh.store_vertex(None)
    mesh.set_infinite_vertex(inf)
    a = mesh.store_vertex((0.0, 0.0))
    b = mesh.store_vertex((1.0, 0.0))
    c = mesh.store_vertex((0.0, 1.0))
    mesh.store_face([a, b, c])
    mesh.store_face([inf, b, a])
    pts = mesh.points_array()
    assert pts.shape == (4, 2)
    assert np.isnan(pts[inf]).all()
    np.testing.assert_allclose(pts[c], [0.0, 1.0])
    tris = mesh.triangles_array()
    assert tris.shape == (1, 3)
    assert tris.tolist() == [[a, b, c]]
    mesh.clear()
    assert mesh.vertex_count == 0
    assert mesh.face_count == 0
    assert mesh.infinite_vertex == INVALID_INDEX
    assert mesh.dimension == -1
    assert mesh.triangles_array().shape == (0, 3)
