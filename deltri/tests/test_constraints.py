from fractions import Fraction

import pytest

from deltri import (
    EarClipCavityStrategy, InfiniteVertexError, InvalidConstraintError, InvalidHandleError,
    TopologyError, Triangulation,
)

SQUARE = [(0, 0), (4, 0), (4, 4), (0, 4)]


def assert_valid(tri, delaunay=True):
    ok, msg = tri.check(area_tolerance=1e-9, delaunay=delaunay)
    assert ok, msg


def edge_masks_both_sides(tri, u, w):
    """Constraint mask of edge u-w as stored in each of its two faces."""
    f, e = tri.query.find_edge(u, w)
    g, j = tri.query.opposite_edge(f, e)
    return tri.mesh.faces[f].constraints[e], tri.mesh.faces[g].constraints[j]


@pytest.mark.parametrize('exact', [False, True])
def test_scenario_square_diagonal(make_tri, exact):
    tri = make_tri(exact=exact)
    a, b, c, d = tri.add_vertices(SQUARE)
    tri.add_constraint_edge(a, c)
    assert edge_masks_both_sides(tri, a, c) == (1, 1)
    assert tri.is_constrained(c, a)
    # legalization triggered by later insertions never removes it
    tri.add_vertices([(1, 3), (3, 1), (0.5, 2), (2, 0.5)])
    assert tri.is_constrained(a, c)
    assert_valid(tri)


@pytest.mark.parametrize('exact', [False, True])
def test_other_diagonal_goes_through_a_corridor(make_tri, exact):
    tri = make_tri(exact=exact)
    a, b, c, d = tri.add_vertices(SQUARE)
    tri.add_constraint_edge(a, c)
    tri.add_constraint_edge(b, d, 2)
    # the crossing inserted the centre and split both diagonals
    centre = tri.locate((2, 2)).vertex
    assert centre not in (a, b, c, d)
    assert tri.vertex_count == 5
    assert tri.edge_constraint(a, centre) == 1
    assert tri.edge_constraint(centre, c) == 1
    assert tri.edge_constraint(b, centre) == 2
    assert tri.edge_constraint(centre, d) == 2
    assert not tri.is_constrained(a, c)
    assert_valid(tri)


def test_corridor_rebuild_without_crossing(make_tri):
    tri = make_tri()
    left = [(0, float(y)) for y in range(0, 11, 2)]
    right = [(10, float(y)) for y in range(1, 10, 2)]
    inner = [(5, 1.5), (4, 5.2), (6, 7.7), (5.5, 3.3)]
    handles = tri.add_vertices(left + right + inner)
    v0 = handles[0]
    v1 = handles[len(left) + len(right) - 1]
    tri.add_constraint_edge(v0, v1, 4)
    assert tri.edge_constraint(v0, v1) == 4
    assert tri.stats_summary()['constraint']['cavities'] >= 1
    assert_valid(tri)


def test_vertex_on_segment_splits_constraint(make_tri):
    tri = make_tri(exact=True)
    a = tri.add_vertex((0, 0))
    m = tri.add_vertex((2, 2))
    c = tri.add_vertex((4, 4))
    tri.add_vertices([(4, 0), (0, 4), (1, 3), (3, 1)])
    tri.add_constraint_edge(a, c)
    assert tri.edge_constraint(a, m) == 1
    assert tri.edge_constraint(m, c) == 1
    assert tri.query.find_edge(a, c) is None
    assert_valid(tri)


def test_constraint_monotonicity(make_tri):
    tri = make_tri()
    a, b, c, d = tri.add_vertices(SQUARE)
    tri.add_constraint_edge(a, b, 1)
    tri.add_constraint_edge(b, a, 4)
    assert tri.edge_constraint(a, b) == 5
    tri.add_constraint_edge(a, b, 1)
    assert tri.edge_constraint(a, b) == 5
    assert edge_masks_both_sides(tri, a, b) == (5, 5)
    # splitting a constrained hull edge keeps the mask on both halves
    m = tri.add_vertex((2, 0))
    assert tri.edge_constraint(a, m) == 5
    assert tri.edge_constraint(m, b) == 5


def test_constraints_added_before_the_mesh_is_planar(make_tri):
    tri = make_tri()
    a = tri.add_vertex((0, 0))
    b = tri.add_vertex((4, 0))
    m = tri.add_vertex((2, 0))
    tri.add_constraint_edge(a, b, 3)
    assert tri.pending_constraints == [(a, b, 3)]
    assert not tri.is_constrained(a, m)
    tri.add_vertex((2, 3))
    assert tri.pending_constraints == []
    assert tri.edge_constraint(a, m) == 3
    assert tri.edge_constraint(m, b) == 3
    assert_valid(tri)


def test_add_constraint_segment_inserts_endpoints(make_tri):
    tri = make_tri()
    tri.add_vertices([(0, 0), (10, 0), (10, 10), (0, 10), (3, 7), (7, 3), (5, 5.5)])
    v0, v1 = tri.add_constraint_segment((1, 1), (9, 8), 8)
    assert tri.position(v0) == (1.0, 1.0)
    assert tri.position(v1) == (9.0, 8.0)
    assert tri.edge_constraint(v0, v1) == 8
    assert_valid(tri)


def test_crossing_many_constraints_exact(make_tri):
    tri = make_tri(exact=True)
    tri.add_vertices([(0, 0), (12, 0), (12, 12), (0, 12)])
    for x in (2, 5, 9):
        tri.add_constraint_segment((x, 0), (x, 12), 1)
    v0, v1 = tri.add_constraint_segment((0, 1), (12, 11), 2)
    # crossings land on exact rational positions
    for x in (2, 5, 9):
        y = 1 + Fraction(10 * x, 12)
        loc = tri.locate((x, y))
        assert loc.vertex != -1
        assert tri.edge_constraint(loc.vertex, tri.locate((x, 0)).vertex) in (1, 3)
    assert tri.stats_summary()['insert_vertex']['attempts'] >= 4 + 6 + 2
    assert_valid(tri)


@pytest.mark.parametrize('c', [0, -1, True, 1.0, None, '1'])
def test_inactive_or_malformed_constraint_rejected(make_tri, c):
    tri = make_tri()
    a, b, _ = tri.add_vertices([(0, 0), (1, 0), (0, 1)])
    with pytest.raises(InvalidConstraintError):
        tri.add_constraint_edge(a, b, c)
    assert not tri.is_constrained(a, b)


def test_invalid_endpoints_rejected(make_tri):
    tri = make_tri()
    a, b, _ = tri.add_vertices([(0, 0), (1, 0), (0, 1)])
    with pytest.raises(InvalidHandleError):
        tri.add_constraint_edge(a, 999)
    with pytest.raises(InfiniteVertexError):
        tri.add_constraint_edge(a, tri.infinite_vertex)
    tri.add_constraint_edge(a, a)
    assert tri.stats_summary()['constraint']['noop'] == 1
    assert tri.constrained_edges() == []


def test_constrained_edge_cannot_be_flipped():
    tri = Triangulation(locator_seed=2)
    a, b, c, d = tri.add_vertices([(0, 0), (4, 0), (5, 3), (0, 2)])
    tri.add_constraint_edge(b, d)
    f, e = tri.query.find_edge(b, d)
    with pytest.raises(TopologyError):
        tri.flip(f, e)


def test_earclip_cavity_strategy(make_tri):
    tri = make_tri(cavity_strategy='earclip')
    assert isinstance(tri.constraints.strategy, EarClipCavityStrategy)
    handles = tri.add_vertices([(0, 0), (10, 0), (10, 6), (0, 6), (3, 2), (5, 4.5), (7, 1), (2, 5)])
    tri.add_constraint_edge(handles[0], handles[2])
    assert tri.is_constrained(handles[0], handles[2])
    assert_valid(tri, delaunay=False)


def test_unknown_cavity_strategy():
    with pytest.raises(ValueError):
        Triangulation(cavity_strategy='nope')
