"""Point location by a tagged visibility walk."""
from __future__ import annotations

import math
import random
from typing import Optional

from .config import LocatorConfig
from .constants import INVALID_INDEX
from .errors import TopologyError
from .logging_utils import get_logger
from .mesh import Mesh
from .predicates import Predicates
from .types import FaceIndex, Location, LocationKind, decrement, increment, third

logger = get_logger('deltri.locator')

_FORWARD = (0, 1, 2)
_BACKWARD = (2, 1, 0)


class Locator:
    """Locate a position in a planar mesh.

    The walk starts at a hint face or at the face of the nearest vertex of a
    small random sample, then crosses any edge that has the target strictly on
    its far side. The first ``stochastic_limit`` steps alternate the edge test
    order; afterwards the order is random, which breaks the cycles a
    deterministic walk can run into on non-Delaunay meshes. A face visited
    twice in the same walk sends the query to a linear scan.
    """

    def __init__(self, mesh: Mesh, predicates: Predicates, config: Optional[LocatorConfig] = None,
                 rng: Optional[random.Random] = None):
        self.mesh = mesh
        self.predicates = predicates
        self.config = config or LocatorConfig()
        self.rng = rng or random.Random(self.config.seed)
        self.scan_fallbacks = 0

    # -- start face ----------------------------------------------------
    def _finite_side(self, f: FaceIndex) -> FaceIndex:
        face = self.mesh.faces[f]
        c = face.corner_of(self.mesh.infinite_vertex)
        if c == INVALID_INDEX:
            return f
        return face.neighbors[c]

    def start_face(self, p, hint: FaceIndex = INVALID_INDEX) -> FaceIndex:
        mesh = self.mesh
        if hint != INVALID_INDEX and 0 <= hint < mesh.face_count:
            return self._finite_side(hint)
        n = mesh.finite_vertex_count
        k = max(1, math.ceil(n / max(1, self.config.sampling_density)))
        best = INVALID_INDEX
        best_d = None
        inf = mesh.infinite_vertex
        nverts = mesh.vertex_count
        for _ in range(k):
            v = self.rng.randrange(nverts)
            if v == inf:
                continue
            d = self.predicates.distance_sq(mesh.vertices[v].position, p)
            if best_d is None or d < best_d:
                best, best_d = v, d
        if best == INVALID_INDEX:
            best = next(iter(mesh.finite_vertex_handles()))
        return self._finite_side(mesh.vertices[best].face)

    # -- walk ----------------------------------------------------------
    def locate(self, p, hint: FaceIndex = INVALID_INDEX) -> Location:
        """Classify position p (already validated) against the planar mesh."""
        mesh = self.mesh
        orient = self.predicates.orientation_triangle
        limit = self.config.stochastic_limit
        tag = mesh.new_tag()
        f = self.start_face(p, hint)
        steps = 0
        while True:
            face = mesh.faces[f]
            if not mesh.is_finite_face(f):
                return self._classify_outside(f, p)
            if face.tag == tag:
                logger.debug('walk revisited face %d after %d steps, scanning', f, steps)
                self.scan_fallbacks += 1
                return self.scan(p)
            face.tag = tag
            if steps < limit:
                order = _FORWARD if steps % 2 == 0 else _BACKWARD
            else:
                order = list(_FORWARD)
                self.rng.shuffle(order)
            steps += 1
            vs = face.vertices
            nxt = INVALID_INDEX
            for i in order:
                a = mesh.vertices[vs[increment(i)]].position
                b = mesh.vertices[vs[decrement(i)]].position
                if orient(a, b, p).is_cw():
                    nxt = face.neighbors[i]
                    break
            if nxt == INVALID_INDEX:
                return self.classify_in_face(f, p)
            f = nxt

    def scan(self, p) -> Location:
        """Linear fallback over every face."""
        mesh = self.mesh
        orient = self.predicates.orientation_triangle
        outside = INVALID_INDEX
        for f, face in enumerate(mesh.faces):
            if not mesh.is_finite_face(f):
                c = face.corner_of(mesh.infinite_vertex)
                a = mesh.vertices[face.vertices[increment(c)]].position
                b = mesh.vertices[face.vertices[decrement(c)]].position
                if outside == INVALID_INDEX and orient(a, b, p).is_ccw():
                    outside = f
                continue
            vs = face.vertices
            if all(not orient(mesh.vertices[vs[increment(i)]].position,
                              mesh.vertices[vs[decrement(i)]].position, p).is_cw()
                   for i in range(3)):
                return self.classify_in_face(f, p)
        if outside == INVALID_INDEX:
            raise TopologyError(f"point location failed for {p!r}")
        return self._classify_outside(outside, p)

    def classify_in_face(self, f: FaceIndex, p) -> Location:
        """Refine a face hit into VERTEX, EDGE or FACE."""
        mesh = self.mesh
        face = mesh.faces[f]
        vs = face.vertices
        pos = [mesh.vertices[v].position for v in vs]
        for i in range(3):
            if self.predicates.test_coincident_points(pos[i], p):
                return Location(LocationKind.VERTEX, f, i, vs[i])
        on_edge = [i for i in range(3)
                   if self.predicates.orientation_triangle(pos[increment(i)], pos[decrement(i)], p).is_collinear()]
        if len(on_edge) >= 2:
            # On two edge lines at once: only the shared vertex fits
            k = third(on_edge[0], on_edge[1])
            return Location(LocationKind.VERTEX, f, k, vs[k])
        if on_edge:
            return Location(LocationKind.EDGE, f, on_edge[0])
        return Location(LocationKind.FACE, f)

    def _classify_outside(self, f: FaceIndex, p) -> Location:
        mesh = self.mesh
        face = mesh.faces[f]
        c = face.corner_of(mesh.infinite_vertex)
        for i in (increment(c), decrement(c)):
            v = face.vertices[i]
            if self.predicates.test_coincident_points(mesh.vertices[v].position, p):
                return Location(LocationKind.VERTEX, f, i, v)
        return Location(LocationKind.OUTSIDE_CONVEX_HULL, f, c)


__all__ = ['Locator']
