"""Read-only topology and geometry queries over a Mesh."""
from __future__ import annotations

from typing import List, Optional

from .circulator import EdgeCirculator
from .constants import INVALID_INDEX, NO_CONSTRAINT
from .errors import InfiniteVertexError, TopologyError
from .mesh import Mesh
from .predicates import Orientation, Predicates
from .types import (
    EdgeEnd, EdgeStart, FaceEdge, FaceIndex, FaceVertex, VertexClue, VertexIndex,
    decrement, increment,
)


def edge_corner(mesh: Mesh, f: FaceIndex, u: VertexIndex, w: VertexIndex) -> int:
    """Corner of face f opposite the directed edge u -> w, or INVALID_INDEX."""
    vs = mesh.faces[f].vertices
    for i in range(3):
        if vs[increment(i)] == u and vs[decrement(i)] == w:
            return i
    return INVALID_INDEX


class Query:
    """Topology and geometry queries; never mutates the mesh."""

    def __init__(self, mesh: Mesh, predicates: Predicates):
        self.mesh = mesh
        self.predicates = predicates

    # -- addressing ----------------------------------------------------
    def resolve_vertex(self, clue: VertexClue) -> VertexIndex:
        """Turn a raw handle or a face based clue into a vertex handle."""
        if isinstance(clue, FaceVertex):
            return self.mesh.face(clue.face).vertices[clue.corner % 3]
        if isinstance(clue, EdgeStart):
            return self.mesh.face(clue.face).vertices[increment(clue.edge)]
        if isinstance(clue, EdgeEnd):
            return self.mesh.face(clue.face).vertices[decrement(clue.edge)]
        self.mesh.vertex(clue)
        return int(clue)

    def position(self, clue: VertexClue):
        v = self.resolve_vertex(clue)
        if not self.mesh.is_finite_vertex(v):
            raise InfiniteVertexError(f"vertex {v} is the infinite vertex and has no position")
        return self.mesh.vertices[v].position

    def opposite_edge(self, face: FaceIndex, corner: int) -> FaceEdge:
        """The same edge seen from the neighboring face."""
        f = self.mesh.face(face)
        n = f.neighbors[corner]
        if n == INVALID_INDEX:
            raise TopologyError(f"face {face} has no neighbor across corner {corner}")
        j = edge_corner(self.mesh, n, f.vertices[decrement(corner)], f.vertices[increment(corner)])
        if j == INVALID_INDEX:
            raise TopologyError(f"face {n} does not share the edge opposite corner {corner} of face {face}")
        return FaceEdge(n, j)

    def opposite_vertex(self, face: FaceIndex, corner: int) -> VertexIndex:
        n, j = self.opposite_edge(face, corner)
        return self.mesh.faces[n].vertices[j]

    # -- geometry ------------------------------------------------------
    def get_vertices_orientation(self, a: VertexClue, b: VertexClue, c: VertexClue) -> Orientation:
        return self.predicates.orientation_triangle(self.position(a), self.position(b), self.position(c))

    def get_edge_vertex_orientation(self, face: FaceIndex, edge: int, v: VertexClue) -> Orientation:
        """Orientation of v relative to the directed edge opposite ``edge`` of ``face``."""
        return self.get_vertices_orientation(EdgeStart(face, edge), EdgeEnd(face, edge), v)

    def is_convex(self, face: FaceIndex, corner: int) -> bool:
        """Strict convexity of the quad made of face and its neighbor across corner."""
        f = self.mesh.face(face)
        p = f.vertices[corner]
        a = f.vertices[increment(corner)]
        b = f.vertices[decrement(corner)]
        n, j = self.opposite_edge(face, corner)
        q = self.mesh.faces[n].vertices[j]
        mesh = self.mesh
        if not all(mesh.is_finite_vertex(v) for v in (p, a, b, q)):
            return False
        pp, pa, pb, pq = (mesh.vertices[v].position for v in (p, a, b, q))
        orient = self.predicates.orientation_triangle
        return (orient(pp, pa, pq).is_ccw()
                and orient(pa, pq, pb).is_ccw()
                and orient(pq, pb, pp).is_ccw()
                and orient(pb, pp, pa).is_ccw())

    # -- stars ---------------------------------------------------------
    def incident_faces(self, v: VertexIndex) -> List[FaceIndex]:
        """Faces around v in CCW order; empty below dimension 2."""
        vert = self.mesh.vertex(v)
        if vert.face == INVALID_INDEX:
            return []
        circ = EdgeCirculator(self.mesh, v)
        start = circ.face
        out = [start]
        while True:
            circ.advance_ccw()
            if circ.face == start:
                return out
            out.append(circ.face)
            if len(out) > self.mesh.face_count:
                raise TopologyError(f"circulation around vertex {v} does not close")

    def vertex_neighbors(self, v: VertexIndex) -> List[VertexIndex]:
        """Vertices adjacent to v in CCW order (may include the infinite vertex)."""
        mesh = self.mesh
        out = []
        for f in self.incident_faces(v):
            face = mesh.faces[f]
            out.append(face.vertices[increment(face.corner_of(v))])
        return out

    def find_edge(self, v0: VertexIndex, v1: VertexIndex) -> Optional[FaceEdge]:
        """The edge v0 -> v1 as (face, edge) with the face on its left, or None."""
        mesh = self.mesh
        for f in self.incident_faces(v0):
            face = mesh.faces[f]
            c = face.corner_of(v0)
            if face.vertices[increment(c)] == v1:
                return FaceEdge(f, decrement(c))
        return None

    # -- constraints ---------------------------------------------------
    def get_constraint(self, face: FaceIndex, corner: int) -> int:
        return self.mesh.face(face).constraints[corner]

    def is_constrained(self, v0: VertexIndex, v1: VertexIndex) -> bool:
        return self.edge_constraint(v0, v1) != NO_CONSTRAINT

    def edge_constraint(self, v0: VertexIndex, v1: VertexIndex) -> int:
        """Constraint mask of the edge v0-v1; NO_CONSTRAINT if the edge is missing."""
        self.mesh.vertex(v0)
        self.mesh.vertex(v1)
        if self.mesh.dimension < 2:
            return NO_CONSTRAINT
        found = self.find_edge(v0, v1)
        if found is None:
            return NO_CONSTRAINT
        return self.mesh.faces[found.face].constraints[found.edge]

    def constrained_edges(self):
        """List of (v0, v1, mask) for every constrained edge, each reported once."""
        out = []
        for f, face in enumerate(self.mesh.faces):
            for i in range(3):
                c = face.constraints[i]
                if c == NO_CONSTRAINT:
                    continue
                u = face.vertices[increment(i)]
                w = face.vertices[decrement(i)]
                if u < w:
                    out.append((u, w, c))
        return out


__all__ = ['Query', 'edge_corner']
