"""Insertion of constraint edges into a planar triangulation.

A constraint from v0 to v1 is inserted piece by piece from a work stack:

- an existing edge only gets the mask merged on both sides;
- a vertex lying on the segment splits it in two sub-segments;
- crossing an already constrained edge inserts the crossing point on that
  edge and both halves go back on the stack;
- otherwise the faces crossed by the segment form a corridor whose two side
  chains are re-triangulated by the cavity strategy, with the new edge
  between them.
"""
from __future__ import annotations

from typing import List, Optional, Tuple

from .builder import Builder, edge_key
from .cavity import CavityStrategy, DelaunayCavityStrategy
from .chain import Chain
from .constants import NO_CONSTRAINT
from .errors import TopologyError
from .logging_utils import get_logger
from .mesh import Mesh
from .types import FaceIndex, VertexIndex, decrement, increment

logger = get_logger('deltri.constraint')


class ConstraintInserter:

    def __init__(self, builder: Builder, strategy: Optional[CavityStrategy] = None):
        self.builder = builder
        self.mesh: Mesh = builder.mesh
        self.query = builder.query
        self.predicates = builder.predicates
        self.strategy = strategy or DelaunayCavityStrategy()

    @property
    def trace(self):
        return self.builder.trace

    def _pos(self, v: VertexIndex):
        return self.mesh.vertices[v].position

    def merge_constraint(self, face: FaceIndex, edge: int, c: int) -> None:
        """OR ``c`` into the edge mask on both of its sides."""
        f = self.mesh.faces[face]
        f.constraints[edge] |= c
        g, j = self.query.opposite_edge(face, edge)
        self.mesh.faces[g].constraints[j] |= c

    # -- entry point ---------------------------------------------------
    def insert(self, v0: VertexIndex, v1: VertexIndex, c: int) -> None:
        """Insert the constraint v0-v1 with mask c; the mesh must be planar."""
        work: List[Tuple[VertexIndex, VertexIndex]] = [(v0, v1)]
        while work:
            a, b = work.pop()
            if a == b:
                continue
            self._insert_segment(a, b, c, work)

    def _insert_segment(self, a: VertexIndex, b: VertexIndex, c: int, work) -> None:
        found = self.query.find_edge(a, b)
        if found is not None:
            self.merge_constraint(found.face, found.edge, c)
            return

        start = self._find_wedge(a, b)
        if isinstance(start, int):
            # A vertex on the segment next to a: constrain a-x then carry on from x
            x = start
            e = self.query.find_edge(a, x)
            self.merge_constraint(e.face, e.edge, c)
            work.append((x, b))
            return

        face, corner = start
        self._walk_corridor(a, b, face, corner, c, work)

    # -- wedge search --------------------------------------------------
    def _find_wedge(self, a: VertexIndex, b: VertexIndex):
        """Find where a -> b leaves a.

        Returns a vertex handle when a neighbor of a lies on the segment, or
        the (face, corner of a) whose opposite edge the segment crosses.
        """
        mesh = self.mesh
        orient = self.predicates.orientation_triangle
        pa, pb = self._pos(a), self._pos(b)
        for f in self.query.incident_faces(a):
            if not mesh.is_finite_face(f):
                continue
            face = mesh.faces[f]
            ca = face.corner_of(a)
            x = face.vertices[increment(ca)]
            y = face.vertices[decrement(ca)]
            px, py = self._pos(x), self._pos(y)
            ox = orient(pa, pb, px)
            oy = orient(pa, pb, py)
            if ox.is_collinear() and self.predicates.test_collinear_points(pa, pb, px).is_between():
                return x
            if oy.is_collinear() and self.predicates.test_collinear_points(pa, pb, py).is_between():
                return y
            if ox.is_cw() and oy.is_ccw():
                return (f, ca)
        raise TopologyError(f"segment {a}->{b} leaves vertex {a} through no face")

    # -- corridor ------------------------------------------------------
    def _walk_corridor(self, a, b, f, ca, c, work) -> None:
        mesh = self.mesh
        orient = self.predicates.orientation_triangle
        pa, pb = self._pos(a), self._pos(b)

        corridor: List[FaceIndex] = [f]
        left = Chain()
        right = Chain()
        face = mesh.faces[f]
        right.push_back(face.vertices[increment(ca)])
        left.push_back(face.vertices[decrement(ca)])
        cross_face, cross_corner = f, ca

        while True:
            if mesh.faces[cross_face].constraints[cross_corner] != NO_CONSTRAINT:
                self._split_crossing(a, b, cross_face, cross_corner, work)
                return
            g, j = self.query.opposite_edge(cross_face, cross_corner)
            gface = mesh.faces[g]
            if not mesh.is_finite_face(g):
                raise TopologyError(f"segment {a}->{b} leaves the convex hull")
            corridor.append(g)
            z = gface.vertices[j]
            if z == b:
                end = b
                break
            o = orient(pa, pb, self._pos(z))
            if o.is_collinear():
                # z lies on the segment: close the corridor at z
                end = z
                work.append((z, b))
                break
            if o.is_ccw():
                left.push_back(z)
                # Exit through (right vertex, z): the edge opposite the left vertex
                cross_face, cross_corner = g, gface.corner_of(left.vertex[left.prev[left.tail]])
            else:
                right.push_back(z)
                cross_face, cross_corner = g, gface.corner_of(right.vertex[right.prev[right.tail]])

        self._rebuild_cavity(a, end, corridor, left, right, c)

    def _split_crossing(self, a, b, f, corner, work) -> None:
        """Insert the crossing of a-b with the constrained edge opposite corner of f."""
        mesh = self.mesh
        face = mesh.faces[f]
        u = face.vertices[increment(corner)]
        w = face.vertices[decrement(corner)]
        pu, pw = self._pos(u), self._pos(w)
        p = self.predicates.segment_intersection(self._pos(a), self._pos(b), pu, pw)
        if self.predicates.test_coincident_points(p, pu):
            v = u
        elif self.predicates.test_coincident_points(p, pw):
            v = w
        else:
            v = self.builder.insert_on_edge(f, corner, p)
            logger.debug('constraint %d->%d crosses constrained edge %d-%d at new vertex %d', a, b, u, w, v)
        work.append((v, b))
        work.append((a, v))

    def _rebuild_cavity(self, a, e, corridor, left: Chain, right: Chain, c) -> None:
        mesh = self.mesh
        trace = self.trace
        position = self._pos
        trace.begin('cavity')
        trace.add_segment(position(a), position(e), f'constraint {a}-{e}')

        left_poly = [a, e] + list(reversed(left.to_list()))
        right_poly = [e, a] + right.to_list()
        triangles = []
        for side, poly in (('left', left_poly), ('right', right_poly)):
            trace.push_group(side)
            for v in poly[2:]:
                trace.add_point(position(v), f'v{v}')
            ok, tris, err = self.strategy.try_triangulate(poly, position, self.predicates)
            trace.pop_group()
            trace.pause()
            if not ok:
                trace.end()
                raise TopologyError(f"{self.strategy.name} cavity triangulation failed on {side} side of {a}-{e}: {err}")
            triangles.extend(tris)

        self.builder.replace_faces(corridor, triangles, {edge_key(a, e): c})
        self.builder.op_stats.cavities += 1
        logger.debug('constraint %d-%d replaced %d corridor faces (%s)', a, e, len(corridor), self.strategy.name)
        trace.end()


__all__ = ['ConstraintInserter']
