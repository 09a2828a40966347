"""Incremental point insertion with Delaunay legalization.

All topological updates go through ``replace_faces``: a set of old faces is
replaced by new vertex triples covering the same region. Slots of the old
faces are reused first, adjacency across the region boundary is rewired and
boundary constraints are carried over unchanged.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .constants import INVALID_INDEX, NO_CONSTRAINT
from .errors import TopologyError
from .locator import Locator
from .logging_utils import get_logger
from .mesh import Mesh
from .predicates import Predicates
from .query import Query, edge_corner
from .stats import OpStats
from .trace import Trace
from .types import (
    FaceIndex, Location, LocationKind, VertexIndex, decrement, increment,
)

logger = get_logger('deltri.builder')


def edge_key(u: VertexIndex, w: VertexIndex) -> Tuple[VertexIndex, VertexIndex]:
    """Undirected edge key."""
    return (u, w) if u < w else (w, u)


class Builder:
    """Owns every mutation of the mesh caused by vertex insertion."""

    def __init__(self, mesh: Mesh, predicates: Predicates, query: Query, locator: Locator,
                 trace: Optional[Trace] = None):
        self.mesh = mesh
        self.predicates = predicates
        self.query = query
        self.locator = locator
        self.trace = trace or Trace()
        self.op_stats = OpStats()
        # Finite vertices while the mesh has no faces (dimension < 2)
        self.collinear: List[VertexIndex] = []
        self.ensure_infinite_vertex()

    def ensure_infinite_vertex(self) -> VertexIndex:
        if self.mesh.infinite_vertex == INVALID_INDEX:
            self.mesh.set_infinite_vertex(self.mesh.store_vertex(None))
        return self.mesh.infinite_vertex

    def reset(self) -> None:
        self.mesh.clear()
        self.collinear = []
        self.ensure_infinite_vertex()

    # -- location ------------------------------------------------------
    def locate(self, p, hint: FaceIndex = INVALID_INDEX) -> Location:
        """Locate a validated position in any dimension.

        Below dimension 2 the collinear buffer is searched: a coincident vertex
        gives VERTEX, a point off the line (or off the single point) gives
        OUTSIDE_AFFINE_HULL, and a point on the line of a 1-dimensional
        triangulation gives EDGE without a face.
        """
        dim = self.mesh.dimension
        if dim == 2:
            return self.locator.locate(p, hint)
        if dim < 0:
            return Location(LocationKind.EMPTY)
        for v in self.collinear:
            if self.predicates.test_coincident_points(self.mesh.vertices[v].position, p):
                return Location(LocationKind.VERTEX, vertex=v)
        if dim == 0:
            return Location(LocationKind.OUTSIDE_AFFINE_HULL)
        a = self.mesh.vertices[self.collinear[0]].position
        b = self.mesh.vertices[self.collinear[1]].position
        if self.predicates.orientation_triangle(a, b, p).is_collinear():
            return Location(LocationKind.EDGE)
        return Location(LocationKind.OUTSIDE_AFFINE_HULL)

    # -- insertion -----------------------------------------------------
    def insert(self, p, hint: FaceIndex = INVALID_INDEX) -> Tuple[VertexIndex, bool]:
        """Insert a validated position. Returns (handle, created)."""
        loc = self.locate(p, hint)
        kind = loc.kind
        if kind is LocationKind.VERTEX:
            return loc.vertex, False

        mesh = self.mesh
        v = mesh.store_vertex(p)
        if kind is LocationKind.EMPTY:
            self.collinear.append(v)
            mesh.dimension = 0
        elif mesh.dimension < 2:
            if kind is LocationKind.OUTSIDE_AFFINE_HULL and mesh.dimension == 1:
                self.lift(v)
            else:
                self.collinear.append(v)
                mesh.dimension = 1
        elif kind is LocationKind.FACE:
            self.legalize(v, self.split_face(loc.face, v))
        elif kind is LocationKind.EDGE:
            self.legalize(v, self.split_edge(loc.face, loc.corner, v))
        elif kind is LocationKind.OUTSIDE_CONVEX_HULL:
            self.legalize(v, self.extend_hull(loc.face, v))
        else:
            raise TopologyError(f"unexpected location {loc!r}")
        logger.debug('inserted vertex %d at %r (%s)', v, p, kind.value)
        return v, True

    def insert_on_edge(self, face: FaceIndex, corner: int, p) -> VertexIndex:
        """Insert p on the edge opposite ``corner`` of ``face`` and legalize.

        Used for constraint crossings, where p is known to lie on the edge.
        """
        v = self.mesh.store_vertex(p)
        self.legalize(v, self.split_edge(face, corner, v))
        return v

    # -- dimension lift ------------------------------------------------
    def lift(self, q: VertexIndex) -> List[FaceIndex]:
        """Build the first faces from the collinear buffer and the off-line vertex q."""
        mesh = self.mesh
        inf = mesh.infinite_vertex
        line = list(self.collinear)
        pos = mesh.vertices
        a = pos[line[0]].position
        b = pos[line[1]].position
        axis = 0 if abs(b[0] - a[0]) >= abs(b[1] - a[1]) else 1
        line.sort(key=lambda v: pos[v].position[axis])
        if self.predicates.orientation_triangle(pos[line[0]].position, pos[line[-1]].position,
                                                pos[q].position).is_cw():
            line.reverse()

        triples = [(line[i], line[i + 1], q) for i in range(len(line) - 1)]
        triples += [(inf, line[i + 1], line[i]) for i in range(len(line) - 1)]
        triples += [(inf, line[0], q), (inf, q, line[-1])]

        faces = [mesh.store_face(t) for t in triples]
        edges: Dict[Tuple[VertexIndex, VertexIndex], Tuple[FaceIndex, int]] = {}
        for f in faces:
            vs = mesh.faces[f].vertices
            for i in range(3):
                edges[(vs[increment(i)], vs[decrement(i)])] = (f, i)
        for f in faces:
            face = mesh.faces[f]
            vs = face.vertices
            for i in range(3):
                twin = edges.get((vs[decrement(i)], vs[increment(i)]))
                if twin is None:
                    raise TopologyError(f"unmatched edge while lifting to dimension 2 at face {f}")
                face.neighbors[i] = twin[0]
            for v in vs:
                mesh.vertices[v].face = f

        self.collinear = []
        mesh.dimension = 2
        logger.debug('lifted %d collinear vertices to dimension 2 with vertex %d', len(line), q)
        return faces

    # -- topology updates ----------------------------------------------
    def replace_faces(self, old_faces: Sequence[FaceIndex], triples: Sequence[Sequence[VertexIndex]],
                      internal_constraints: Optional[Dict[Tuple[VertexIndex, VertexIndex], int]] = None
                      ) -> List[FaceIndex]:
        """Replace ``old_faces`` by CCW ``triples`` spanning the same region."""
        mesh = self.mesh
        internal_constraints = internal_constraints or {}
        if len(triples) < len(old_faces):
            raise TopologyError(f"cannot replace {len(old_faces)} faces by {len(triples)}")

        old_set = set(old_faces)
        boundary: Dict[Tuple[VertexIndex, VertexIndex], Tuple[FaceIndex, int]] = {}
        for f in old_faces:
            face = mesh.faces[f]
            for i in range(3):
                g = face.neighbors[i]
                if g in old_set:
                    continue
                boundary[(face.vertices[increment(i)], face.vertices[decrement(i)])] = (g, face.constraints[i])

        handles: List[FaceIndex] = []
        for k, tri in enumerate(triples):
            if k < len(old_faces):
                h = old_faces[k]
                mesh.faces[h].reset(tri)
            else:
                h = mesh.store_face(tri)
            handles.append(h)

        edges: Dict[Tuple[VertexIndex, VertexIndex], FaceIndex] = {}
        for h in handles:
            vs = mesh.faces[h].vertices
            for i in range(3):
                edges[(vs[increment(i)], vs[decrement(i)])] = h

        for h in handles:
            face = mesh.faces[h]
            vs = face.vertices
            for i in range(3):
                u, w = vs[increment(i)], vs[decrement(i)]
                twin = edges.get((w, u))
                if twin is not None:
                    face.neighbors[i] = twin
                    face.constraints[i] = internal_constraints.get(edge_key(u, w), NO_CONSTRAINT)
                    continue
                ext = boundary.get((u, w))
                if ext is None:
                    raise TopologyError(f"edge {u}->{w} of new face {h} matches neither the region nor its boundary")
                g, cons = ext
                face.neighbors[i] = g
                face.constraints[i] = cons
                if g != INVALID_INDEX:
                    j = edge_corner(mesh, g, w, u)
                    if j == INVALID_INDEX:
                        raise TopologyError(f"face {g} lost the edge {w}->{u}")
                    mesh.faces[g].neighbors[j] = h
            for v in vs:
                mesh.vertices[v].face = h
        return handles

    def split_face(self, f: FaceIndex, v: VertexIndex) -> List[FaceIndex]:
        a, b, c = self.mesh.faces[f].vertices
        self.op_stats.splits += 1
        return self.replace_faces([f], [(a, b, v), (b, c, v), (c, a, v)])

    def split_edge(self, f: FaceIndex, corner: int, v: VertexIndex) -> List[FaceIndex]:
        """Split the edge opposite ``corner`` of f and both faces sharing it.

        A constrained edge passes its mask on to both halves.
        """
        mesh = self.mesh
        face = mesh.faces[f]
        p = face.vertices[corner]
        a = face.vertices[increment(corner)]
        b = face.vertices[decrement(corner)]
        cons = face.constraints[corner]
        g, j = self.query.opposite_edge(f, corner)
        q = mesh.faces[g].vertices[j]
        self.op_stats.splits += 1
        internal = {}
        if cons != NO_CONSTRAINT:
            internal[edge_key(a, v)] = cons
            internal[edge_key(v, b)] = cons
        return self.replace_faces(
            [f, g],
            [(p, a, v), (p, v, b), (q, b, v), (q, v, a)],
            internal,
        )

    def flip_edge(self, f: FaceIndex, corner: int) -> Tuple[FaceIndex, FaceIndex]:
        """Flip the edge opposite ``corner`` of f without legality checks."""
        mesh = self.mesh
        face = mesh.faces[f]
        p = face.vertices[corner]
        a = face.vertices[increment(corner)]
        b = face.vertices[decrement(corner)]
        g, j = self.query.opposite_edge(f, corner)
        q = mesh.faces[g].vertices[j]
        self.op_stats.flips += 1
        f1, f2 = self.replace_faces([f, g], [(p, a, q), (q, b, p)])
        return f1, f2

    def extend_hull(self, f: FaceIndex, v: VertexIndex) -> List[FaceIndex]:
        """Attach v, outside the hull and seeing the hull edge of infinite face f."""
        mesh = self.mesh
        inf = mesh.infinite_vertex
        face = mesh.faces[f]
        c = face.corner_of(inf)
        a = face.vertices[increment(c)]
        b = face.vertices[decrement(c)]
        self.op_stats.splits += 1
        _, fa, fb = self.replace_faces([f], [(a, b, v), (inf, a, v), (inf, v, b)])
        orient = self.predicates.orientation_triangle
        pv = mesh.vertices[v].position

        # Walk the hull on the b side while v strictly sees the next hull edge
        while True:
            g, j = self.query.opposite_edge(fb, 1)
            nxt = mesh.faces[g].vertices[j]
            cur = mesh.faces[fb].vertices[2]
            if not orient(mesh.vertices[cur].position, mesh.vertices[nxt].position, pv).is_ccw():
                break
            # (inf, v, cur) + (inf, cur, nxt) -> (v, cur, nxt) + (inf, v, nxt)
            _, fb = self.flip_edge(fb, 1)
            fb = self._infinite_face_of_edge(v, nxt, fb)

        # Same on the a side
        while True:
            g, j = self.query.opposite_edge(fa, 2)
            prev = mesh.faces[g].vertices[j]
            cur = mesh.faces[fa].vertices[1]
            if not orient(mesh.vertices[prev].position, mesh.vertices[cur].position, pv).is_ccw():
                break
            # (inf, cur, v) + (inf, prev, cur) -> (prev, cur, v) + (inf, prev, v)
            f1, _ = self.flip_edge(fa, 2)
            fa = self._infinite_face_of_edge(prev, v, f1)

        return self.query.incident_faces(v)

    def _infinite_face_of_edge(self, u: VertexIndex, w: VertexIndex, guess: FaceIndex) -> FaceIndex:
        """Return the infinite face (inf, u, w), rotated so inf sits at corner 0."""
        mesh = self.mesh
        inf = mesh.infinite_vertex
        for f in (guess,) + tuple(mesh.faces[guess].neighbors):
            face = mesh.faces[f]
            c = face.corner_of(inf)
            if c != INVALID_INDEX and face.vertices[increment(c)] == u and face.vertices[decrement(c)] == w:
                self._rotate_to(f, c)
                return f
        raise TopologyError(f"no infinite face on hull edge {u}->{w}")

    def _rotate_to(self, f: FaceIndex, c: int) -> None:
        """Rotate face storage so corner c becomes corner 0."""
        if c == 0:
            return
        face = self.mesh.faces[f]
        face.vertices = face.vertices[c:] + face.vertices[:c]
        face.neighbors = face.neighbors[c:] + face.neighbors[:c]
        face.constraints = face.constraints[c:] + face.constraints[:c]

    # -- legalization --------------------------------------------------
    def is_legal(self, f: FaceIndex, corner: int) -> bool:
        """True unless the edge opposite ``corner`` must be flipped for the Delaunay property."""
        mesh = self.mesh
        face = mesh.faces[f]
        if face.constraints[corner] != NO_CONSTRAINT:
            return True
        g = face.neighbors[corner]
        if g == INVALID_INDEX or not mesh.is_finite_face(f) or not mesh.is_finite_face(g):
            return True
        if not self.query.is_convex(f, corner):
            return True
        q = self.query.opposite_vertex(f, corner)
        a, b, c = (mesh.vertices[v].position for v in face.vertices)
        return not self.predicates.test_in_circle(a, b, c, mesh.vertices[q].position).is_inside()

    def legalize(self, v: VertexIndex, faces: Iterable[FaceIndex]) -> None:
        """Flip illegal edges opposite v until every face around v is locally Delaunay."""
        mesh = self.mesh
        trace = self.trace
        trace.begin('legalize')
        trace.add_point(mesh.vertices[v].position, f'v{v}')
        stack = list(faces)
        flips = 0
        while stack:
            f = stack.pop()
            face = mesh.faces[f]
            c = face.corner_of(v)
            if c == INVALID_INDEX or self.is_legal(f, c):
                continue
            a = face.vertices[increment(c)]
            b = face.vertices[decrement(c)]
            f1, f2 = self.flip_edge(f, c)
            flips += 1
            q = mesh.faces[f1].vertices[2]
            trace.add_segment(mesh.vertices[v].position, mesh.vertices[q].position, f'flip {a}-{b}')
            stack.append(f1)
            stack.append(f2)
        if flips:
            logger.debug('legalized vertex %d with %d flips', v, flips)
        trace.end()


__all__ = ['Builder', 'edge_key']
