"""Read-only consistency checks of a triangulation.

Every check returns ``(ok, message)``; a broken mesh is reported, never
raised. Messages name the first offending face or vertex.
"""
from __future__ import annotations

from typing import Tuple

import numpy as np

from .constants import EPS_AREA_REL, INVALID_INDEX, NO_CONSTRAINT
from .logging_utils import get_logger
from .mesh import Mesh
from .predicates import Predicates
from .query import edge_corner
from .types import decrement, increment

logger = get_logger('deltri.checker')

CheckResult = Tuple[bool, str]


class ConsistencyChecker:
    """Validates geometric and topological invariants of a Mesh.

    Used by tests and, when ``validate_after_insert`` is set, after every
    mutation of a Triangulation.
    """

    def __init__(self, mesh: Mesh, predicates: Predicates):
        self.mesh = mesh
        self.predicates = predicates

    def check_orientation(self) -> CheckResult:
        """Every finite face must be strictly counter-clockwise."""
        mesh = self.mesh
        orient = self.predicates.orientation_triangle
        for f in mesh.finite_face_handles():
            vs = mesh.faces[f].vertices
            a, b, c = (mesh.vertices[v].position for v in vs)
            o = orient(a, b, c)
            if not o.is_ccw():
                return (False, f"face {f} {vs} is not counter-clockwise ({o.name.lower()})")
        return (True, "")

    def _centered(self, pts: np.ndarray) -> np.ndarray:
        finite = np.isfinite(pts[:, 0])
        if not np.any(finite):
            return pts
        return pts - pts[finite].mean(axis=0)

    def check_area(self, tolerance: float = EPS_AREA_REL) -> CheckResult:
        """Compare the summed face areas with the area enclosed by the hull ring.

        Args:
            tolerance: maximum relative divergence between the two areas

        Returns:
            tuple: (ok, message)
        """
        mesh = self.mesh
        if mesh.dimension < 2:
            if any(True for _ in mesh.finite_face_handles()):
                return (False, f"faces exist in dimension {mesh.dimension}")
            return (True, "")
        pts = self._centered(mesh.points_array())
        tris = mesh.triangles_array()
        if tris.size == 0:
            return (False, "planar triangulation without finite faces")
        p0, p1, p2 = pts[tris[:, 0]], pts[tris[:, 1]], pts[tris[:, 2]]
        twice = ((p1[:, 0] - p0[:, 0]) * (p2[:, 1] - p0[:, 1])
                 - (p1[:, 1] - p0[:, 1]) * (p2[:, 0] - p0[:, 0]))
        faces_area = float(np.sum(twice))

        inf = mesh.infinite_vertex
        hull = []
        for f in mesh.infinite_face_handles():
            face = mesh.faces[f]
            c = face.corner_of(inf)
            # Hull edge a -> b of an infinite face runs clockwise around the mesh
            hull.append((face.vertices[decrement(c)], face.vertices[increment(c)]))
        if not hull:
            return (False, "planar triangulation without infinite faces")
        edges = np.array(hull, dtype=int)
        pa, pb = pts[edges[:, 0]], pts[edges[:, 1]]
        hull_area = float(np.sum(pa[:, 0] * pb[:, 1] - pb[:, 0] * pa[:, 1]))

        scale = max(abs(hull_area), abs(faces_area))
        if scale == 0.0:
            return (True, "")
        rel = abs(faces_area - hull_area) / scale
        if rel > tolerance:
            return (False, f"face area {faces_area / 2.0:.17g} differs from hull area "
                           f"{hull_area / 2.0:.17g} (relative {rel:.3e} > {tolerance:.3e})")
        return (True, "")

    def check_dimension(self) -> CheckResult:
        """The recorded dimension must match the stored vertices and faces."""
        mesh = self.mesh
        n = mesh.finite_vertex_count
        dim = mesh.dimension
        expected = {-1: 0, 0: 1}
        if dim in expected and n != expected[dim]:
            return (False, f"dimension {dim} with {n} finite vertices")
        if dim < 2 and mesh.face_count:
            return (False, f"dimension {dim} with {mesh.face_count} stored faces")
        if dim == 1:
            verts = list(mesh.finite_vertex_handles())
            if n < 2:
                return (False, f"dimension 1 with {n} finite vertices")
            a = mesh.vertices[verts[0]].position
            b = mesh.vertices[verts[1]].position
            for v in verts[2:]:
                if not self.predicates.orientation_triangle(a, b, mesh.vertices[v].position).is_collinear():
                    return (False, f"dimension 1 but vertex {v} is off the line")
        if dim == 2 and not any(True for _ in mesh.finite_face_handles()):
            return (False, "dimension 2 without finite faces")
        if dim not in (-1, 0, 1, 2):
            return (False, f"invalid dimension {dim}")
        return (True, "")

    def check_vertex_face_link(self) -> CheckResult:
        """Each vertex must point to a face that holds it (planar case only)."""
        mesh = self.mesh
        for v, vert in enumerate(mesh.vertices):
            if mesh.dimension < 2:
                if vert.face != INVALID_INDEX:
                    return (False, f"vertex {v} links face {vert.face} in dimension {mesh.dimension}")
                continue
            if not 0 <= vert.face < mesh.face_count:
                return (False, f"vertex {v} has invalid face link {vert.face}")
            if mesh.faces[vert.face].corner_of(v) == INVALID_INDEX:
                return (False, f"vertex {v} links face {vert.face} {mesh.faces[vert.face].vertices} that does not hold it")
        return (True, "")

    def check_face_face_link(self) -> CheckResult:
        """Neighbor links must be mutual, share the edge, and agree on constraints."""
        mesh = self.mesh
        nfaces = mesh.face_count
        for f, face in enumerate(mesh.faces):
            if len(set(face.vertices)) != 3:
                return (False, f"face {f} has repeated vertices {face.vertices}")
            for i in range(3):
                g = face.neighbors[i]
                if not 0 <= g < nfaces or g == f:
                    return (False, f"face {f} has invalid neighbor {g} across corner {i}")
                u = face.vertices[increment(i)]
                w = face.vertices[decrement(i)]
                j = edge_corner(mesh, g, w, u)
                if j == INVALID_INDEX:
                    return (False, f"face {g} does not hold edge {w}->{u} of face {f}")
                if mesh.faces[g].neighbors[j] != f:
                    return (False, f"face {g} does not link back to face {f} across edge {u}-{w}")
                if mesh.faces[g].constraints[j] != face.constraints[i]:
                    return (False, f"edge {u}-{w} has constraint {face.constraints[i]} in face {f} "
                                   f"but {mesh.faces[g].constraints[j]} in face {g}")
        return (True, "")

    def check_delaunay(self) -> CheckResult:
        """No unconstrained edge may have its opposite vertex strictly inside the circumcircle."""
        mesh = self.mesh
        in_circle = self.predicates.test_in_circle
        for f in mesh.finite_face_handles():
            face = mesh.faces[f]
            for i in range(3):
                g = face.neighbors[i]
                if face.constraints[i] != NO_CONSTRAINT or g < f or not mesh.is_finite_face(g):
                    continue
                u = face.vertices[increment(i)]
                w = face.vertices[decrement(i)]
                j = edge_corner(mesh, g, w, u)
                if j == INVALID_INDEX:
                    return (False, f"face {g} does not hold edge {w}->{u} of face {f}")
                q = mesh.faces[g].vertices[j]
                a, b, c = (mesh.vertices[v].position for v in face.vertices)
                if in_circle(a, b, c, mesh.vertices[q].position).is_inside():
                    return (False, f"vertex {q} lies inside the circumcircle of face {f} {face.vertices}")
        return (True, "")

    def check_all(self, area_tolerance: float = EPS_AREA_REL, delaunay: bool = True) -> CheckResult:
        """Run every check, stopping at the first failure."""
        checks = [
            self.check_dimension,
            self.check_vertex_face_link,
            self.check_face_face_link,
            self.check_orientation,
            lambda: self.check_area(area_tolerance),
        ]
        if delaunay:
            checks.append(self.check_delaunay)
        for check in checks:
            ok, msg = check()
            if not ok:
                logger.debug('consistency check failed: %s', msg)
                return (False, msg)
        return (True, "")


__all__ = ['ConsistencyChecker', 'CheckResult']
