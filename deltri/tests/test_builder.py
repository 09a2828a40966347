import numpy as np
import pytest
from scipy.spatial import Delaunay

from deltri import InvalidHandleError, InvalidPositionError, LocationKind, TopologyError, Triangulation


def assert_valid(tri, delaunay=True):
    ok, msg = tri.check_orientation()
    assert ok, msg
    ok, msg = tri.check_area(1e-9)
    assert ok, msg
    ok, msg = tri.check(area_tolerance=1e-9, delaunay=delaunay)
    assert ok, msg


def face_set(tri, handles):
    index = {h: i for i, h in enumerate(handles)}
    return {tuple(sorted(index[v] for v in t)) for t in tri.triangles().tolist()}


def test_scenario_single_triangle(make_tri):
    tri = make_tri()
    a, b, c = tri.add_vertices([(0, 0), (2, 0), (1, 2)])
    assert tri.dimension == 2
    assert tri.finite_face_count == 1
    (face,) = tri.triangles().tolist()
    assert sorted(face) == sorted([a, b, c])
    assert tri.query.get_vertices_orientation(*face).is_ccw()
    assert_valid(tri)


def test_scenario_interior_point(make_tri):
    tri = make_tri()
    tri.add_vertices([(0, 0), (2, 0), (1, 2), (1, 0.5)])
    assert tri.finite_face_count == 3
    ok, msg = tri.checker.check_delaunay()
    assert ok, msg
    assert_valid(tri)


@pytest.mark.parametrize('exact', [False, True])
def test_scenario_duplicate_point(make_tri, exact):
    tri = make_tri(exact=exact)
    v0 = tri.add_vertex((0, 0))
    v1 = tri.add_vertex((0, 0))
    assert v0 == v1
    assert tri.vertex_count == 1
    assert tri.dimension == 0
    assert tri.stats_summary()['insert_vertex']['noop'] == 1


def test_duplicate_in_planar_mesh_returns_existing_handle(make_tri):
    tri = make_tri()
    handles = tri.add_vertices([(0, 0), (2, 0), (1, 2), (1, 0.5)])
    faces_before = tri.triangles().tolist()
    for h, p in zip(handles, [(0, 0), (2, 0), (1, 2), (1, 0.5)]):
        assert tri.add_vertex(p) == h
    assert tri.vertex_count == 4
    assert tri.triangles().tolist() == faces_before


def test_no_faces_below_three_points(make_tri):
    tri = make_tri()
    assert tri.dimension == -1
    tri.add_vertex((1.0, 1.0))
    assert tri.dimension == 0
    assert tri.finite_face_count == 0
    tri.add_vertex((2.0, 3.0))
    assert tri.dimension == 1
    assert tri.finite_face_count == 0
    assert_valid(tri)


def test_collinear_points_then_lift(make_tri):
    tri = make_tri()
    line = [(3, 3), (0, 0), (4, 4), (1, 1), (2, 2)]
    handles = tri.add_vertices(line)
    assert tri.dimension == 1
    assert tri.finite_face_count == 0
    # coincident with a buffered vertex
    assert tri.add_vertex((2, 2)) == handles[-1]
    apex = tri.add_vertex((1, 3))
    assert tri.dimension == 2
    assert tri.finite_face_count == 4
    assert len(tri.query.incident_faces(apex)) == 4 + 2
    assert_valid(tri)


def test_lift_orientation_for_point_on_either_side(make_tri):
    for apex in [(1.5, -2.0), (1.5, 2.0)]:
        tri = make_tri()
        tri.add_vertices([(0, 0), (1, 0), (2, 0), (3, 0)])
        tri.add_vertex(apex)
        assert tri.finite_face_count == 3
        assert_valid(tri)


def test_vertical_collinear_lift(make_tri):
    tri = make_tri()
    tri.add_vertices([(0, 0), (0, 2), (0, 1), (0, -5)])
    tri.add_vertex((-1, 0.5))
    assert tri.finite_face_count == 3
    assert_valid(tri)


def test_points_outside_hull_repair_the_hull(make_tri):
    tri = make_tri()
    tri.add_vertices([(0, 0), (1, 0), (0, 1)])
    # collinear with the hull edge (0, 0)-(1, 0), beyond its end
    tri.add_vertex((2, 0))
    assert tri.finite_face_count == 2
    assert_valid(tri)
    # strictly sees the two collinear bottom hull edges
    tri.add_vertex((3, -1))
    assert_valid(tri)
    tri.add_vertex((-5, -5))
    tri.add_vertex((10, 10))
    assert_valid(tri)
    assert tri.vertex_count == 7


def _interior_edge(tri):
    mesh = tri.mesh
    for f in mesh.finite_face_handles():
        for i in range(3):
            if mesh.is_finite_face(mesh.faces[f].neighbors[i]):
                return f, i
    raise AssertionError("no interior edge")


def _hull_edge(tri):
    mesh = tri.mesh
    for f in mesh.finite_face_handles():
        for i in range(3):
            if not mesh.is_finite_face(mesh.faces[f].neighbors[i]):
                return f, i
    raise AssertionError("no hull edge")


def _midpoint(tri, f, i):
    face = tri.mesh.faces[f]
    a = tri.position(face.vertices[(i + 1) % 3])
    b = tri.position(face.vertices[(i + 2) % 3])
    return ((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)


def test_point_on_edge_splits_both_faces(make_tri):
    tri = make_tri()
    tri.add_vertices([(0, 0), (4, 0), (5, 4), (0, 3)])
    n = tri.finite_face_count
    mid = _midpoint(tri, *_interior_edge(tri))
    assert tri.locate(mid).kind is LocationKind.EDGE
    tri.add_vertex(mid)
    assert tri.finite_face_count == n + 2
    # on a hull edge only one finite face is split
    n = tri.finite_face_count
    mid = _midpoint(tri, *_hull_edge(tri))
    tri.add_vertex(mid)
    assert tri.finite_face_count == n + 1
    assert_valid(tri)


def test_locate_kinds(make_tri):
    tri = make_tri()
    assert tri.locate((0, 0)).kind is LocationKind.EMPTY
    a = tri.add_vertex((0, 0))
    assert tri.locate((0, 0)).vertex == a
    assert tri.locate((1, 1)).kind is LocationKind.OUTSIDE_AFFINE_HULL
    tri.add_vertex((2, 0))
    assert tri.locate((1, 0)).kind is LocationKind.EDGE
    assert tri.locate((1, 1)).kind is LocationKind.OUTSIDE_AFFINE_HULL
    tri.add_vertex((0, 2))
    assert tri.locate((0.5, 0.5)).kind is LocationKind.FACE
    assert tri.locate((1, 0)).kind is LocationKind.EDGE
    assert tri.locate((5, 5)).kind is LocationKind.OUTSIDE_CONVEX_HULL
    loc = tri.locate((2, 0))
    assert loc.kind is LocationKind.VERTEX
    assert tri.mesh.faces[loc.face].vertices[loc.corner] == loc.vertex


def test_invalid_position_leaves_mesh_unchanged(make_tri):
    tri = make_tri()
    tri.add_vertices([(0, 0), (1, 0), (0, 1)])
    before = (tri.vertex_count, tri.triangles().tolist())
    for bad in [(float('nan'), 0.0), (1.0,), 'ab', None, (0.0, float('-inf'))]:
        with pytest.raises(InvalidPositionError):
            tri.add_vertex(bad)
    assert (tri.vertex_count, tri.triangles().tolist()) == before
    assert tri.stats_summary()['insert_vertex']['fail'] == 5


def test_bad_hint_is_rejected(make_tri):
    tri = make_tri()
    tri.add_vertices([(0, 0), (1, 0), (0, 1)])
    with pytest.raises(InvalidHandleError):
        tri.add_vertex((0.2, 0.2), hint=10_000)
    v = tri.add_vertex((0.2, 0.2), hint=0)
    assert tri.position(v) == (0.2, 0.2)


def test_random_points_match_scipy_delaunay(rng):
    pts = rng.random((300, 2))
    tri = Triangulation(locator_seed=3)
    handles = tri.add_vertices(pts)
    assert tri.vertex_count == 300
    expected = {tuple(sorted(s)) for s in Delaunay(pts).simplices.tolist()}
    assert face_set(tri, handles) == expected
    assert_valid(tri)
    assert tri.stats_summary()['insert_vertex']['flips'] > 0


def test_random_points_with_validation_each_step(make_tri, rng):
    tri = make_tri()
    tri.add_vertices(rng.normal(size=(80, 2)) * 10.0)
    assert_valid(tri)


def test_exact_and_inexact_agree_on_integer_grid(rng):
    pts = [tuple(p) for p in rng.integers(0, 30, size=(150, 2)).tolist()]
    exact = Triangulation(exact=True, locator_seed=11)
    inexact = Triangulation(exact=False, locator_seed=11)
    he = exact.add_vertices(pts)
    hi = inexact.add_vertices(pts)
    assert he == hi
    assert exact.triangles().tolist() == inexact.triangles().tolist()
    assert_valid(exact)
    assert_valid(inexact)


def test_exact_rational_coordinates(make_tri):
    from fractions import Fraction
    tri = make_tri(exact=True)
    tri.add_vertices([(0, 0), (1, 0), (0, 1), (Fraction(1, 3), Fraction(1, 3))])
    assert tri.finite_face_count == 3
    assert_valid(tri)


def test_public_flip_and_its_guards():
    tri = Triangulation(locator_seed=5)
    tri.add_vertices([(0, 0), (4, 0), (5, 3), (0, 2)])
    mesh = tri.mesh
    interior = [(f, i) for f in mesh.finite_face_handles() for i in range(3)
                if mesh.is_finite_face(mesh.faces[f].neighbors[i])]
    f, i = interior[0]
    f1, f2 = tri.flip(f, i)
    ok, msg = tri.check(delaunay=False)
    assert ok, msg
    ok, _ = tri.checker.check_delaunay()
    assert not ok
    # flip back restores the Delaunay triangulation
    face = mesh.faces[f1]
    j = [k for k in range(3) if face.neighbors[k] == f2][0]
    tri.flip(f1, j)
    assert_valid(tri)
    hull = [(f, i) for f in mesh.finite_face_handles() for i in range(3)
            if not mesh.is_finite_face(mesh.faces[f].neighbors[i])]
    with pytest.raises(TopologyError):
        tri.flip(*hull[0])
    with pytest.raises(InvalidHandleError):
        tri.flip(10_000, 0)
    assert tri.stats_summary()['flip']['success'] == 2
    assert tri.stats_summary()['flip']['fail'] == 2


def test_clear_resets_everything(make_tri):
    tri = make_tri()
    tri.add_vertices([(0, 0), (1, 0), (0, 1)])
    tri.clear()
    assert tri.vertex_count == 0
    assert tri.dimension == -1
    assert tri.finite_face_count == 0
    tri.add_vertices([(0, 0), (1, 0), (0, 1)])
    assert tri.finite_face_count == 1
    assert_valid(tri)


def test_oversized_float_coordinates_are_rejected_before_mutation():
    tri = Triangulation()
    tri.add_vertices([(0, 0), (1, 0)])
    with pytest.raises(InvalidPositionError):
        tri.add_vertex((0, 1e200))
    assert tri.vertex_count == 2
    assert tri.dimension == 1
    assert tri.stats_summary()['insert_vertex']['fail'] == 1
    # large coordinates inside the float limit still triangulate
    tri = Triangulation()
    tri.add_vertices([(0, 0), (1e75, 0), (0, 1e75)])
    assert tri.finite_face_count == 1
    assert_valid(tri)
    # the exact family takes them as exact integers
    exact = Triangulation(exact=True)
    exact.add_vertices([(0, 0), (1e200, 0), (0, 1e200)])
    assert exact.dimension == 2
    assert exact.finite_face_count == 1
    ok, msg = exact.check_orientation()
    assert ok, msg


def test_location_failure_is_a_topology_error():
    from deltri.core.locator import Locator
    from deltri.core.mesh import Mesh
    from deltri import InexactPredicates
    locator = Locator(Mesh(), InexactPredicates())
    with pytest.raises(TopologyError):
        locator.scan((0.0, 0.0))
