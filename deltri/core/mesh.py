"""Index based triangle storage.

Vertices and faces live in append-only arenas and are addressed by integer
handles that stay valid for the lifetime of the mesh (until ``clear``). Faces
are always stored counter-clockwise; ``neighbors[i]`` is the face across the
edge opposite corner ``i`` and ``constraints[i]`` the bit mask pinned on that
edge (0 = unconstrained).

One vertex may be designated as the infinite vertex. It has no position and
closes the mesh: every convex hull edge ``a -> b`` is shared with an infinite
face ``(inf, a, b)``.
"""
from __future__ import annotations

from typing import Iterator, List, Optional, Sequence

import numpy as np

from .constants import INVALID_INDEX, NO_CONSTRAINT
from .errors import InvalidHandleError, TopologyError
from .types import FaceIndex, VertexIndex


class Vertex:
    __slots__ = ('position', 'face')

    def __init__(self, position=None, face: FaceIndex = INVALID_INDEX):
        self.position = position
        self.face = face

    def __repr__(self):
        return f"Vertex(position={self.position!r}, face={self.face})"


class Face:
    __slots__ = ('vertices', 'neighbors', 'constraints', 'tag')

    def __init__(self, vertices: Sequence[VertexIndex],
                 neighbors: Sequence[FaceIndex] = (INVALID_INDEX, INVALID_INDEX, INVALID_INDEX),
                 constraints: Sequence[int] = (NO_CONSTRAINT, NO_CONSTRAINT, NO_CONSTRAINT)):
        self.vertices: List[VertexIndex] = list(vertices)
        self.neighbors: List[FaceIndex] = list(neighbors)
        self.constraints: List[int] = list(constraints)
        self.tag = 0

    def corner_of(self, v: VertexIndex) -> int:
        """Corner holding v, or INVALID_INDEX."""
        vs = self.vertices
        if vs[0] == v:
            return 0
        if vs[1] == v:
            return 1
        if vs[2] == v:
            return 2
        return INVALID_INDEX

    def reset(self, vertices: Sequence[VertexIndex]) -> None:
        self.vertices = list(vertices)
        self.neighbors = [INVALID_INDEX, INVALID_INDEX, INVALID_INDEX]
        self.constraints = [NO_CONSTRAINT, NO_CONSTRAINT, NO_CONSTRAINT]

    def __repr__(self):
        return (f"Face(vertices={self.vertices}, neighbors={self.neighbors}, "
                f"constraints={self.constraints})")


class Mesh:
    """Vertex and face arenas plus the dimension of the triangulation."""

    def __init__(self):
        self.vertices: List[Vertex] = []
        self.faces: List[Face] = []
        self.infinite_vertex: VertexIndex = INVALID_INDEX
        # -1 empty, 0 single point, 1 collinear points, 2 planar
        self.dimension: int = -1
        self._tag = 0

    # -- storage -------------------------------------------------------
    def store_vertex(self, position=None, face: FaceIndex = INVALID_INDEX) -> VertexIndex:
        self.vertices.append(Vertex(position, face))
        return len(self.vertices) - 1

    def store_face(self, vertices: Sequence[VertexIndex], neighbors=None, constraints=None) -> FaceIndex:
        face = Face(vertices)
        if neighbors is not None:
            face.neighbors = list(neighbors)
        if constraints is not None:
            face.constraints = list(constraints)
        self.faces.append(face)
        return len(self.faces) - 1

    def set_infinite_vertex(self, v: VertexIndex) -> None:
        if self.infinite_vertex != INVALID_INDEX:
            raise TopologyError(f"infinite vertex already set to {self.infinite_vertex}")
        self.vertex(v)
        self.infinite_vertex = v

    def clear(self) -> None:
        self.vertices = []
        self.faces = []
        self.infinite_vertex = INVALID_INDEX
        self.dimension = -1
        self._tag = 0

    # -- access --------------------------------------------------------
    def vertex(self, v: VertexIndex) -> Vertex:
        if not isinstance(v, (int, np.integer)) or isinstance(v, bool) or not 0 <= v < len(self.vertices):
            raise InvalidHandleError(f"invalid vertex handle {v!r}")
        return self.vertices[v]

    def face(self, f: FaceIndex) -> Face:
        if not isinstance(f, (int, np.integer)) or isinstance(f, bool) or not 0 <= f < len(self.faces):
            raise InvalidHandleError(f"invalid face handle {f!r}")
        return self.faces[f]

    def position(self, v: VertexIndex):
        return self.vertices[v].position

    def is_finite_vertex(self, v: VertexIndex) -> bool:
        return v != self.infinite_vertex

    def is_finite_face(self, f: FaceIndex) -> bool:
        inf = self.infinite_vertex
        return inf not in self.faces[f].vertices

    @property
    def vertex_count(self) -> int:
        """Number of stored vertices, the infinite vertex included."""
        return len(self.vertices)

    @property
    def finite_vertex_count(self) -> int:
        return len(self.vertices) - (1 if self.infinite_vertex != INVALID_INDEX else 0)

    @property
    def face_count(self) -> int:
        return len(self.faces)

    def vertex_handles(self) -> Iterator[VertexIndex]:
        return iter(range(len(self.vertices)))

    def finite_vertex_handles(self) -> Iterator[VertexIndex]:
        inf = self.infinite_vertex
        return (v for v in range(len(self.vertices)) if v != inf)

    def face_handles(self) -> Iterator[FaceIndex]:
        return iter(range(len(self.faces)))

    def finite_face_handles(self) -> Iterator[FaceIndex]:
        inf = self.infinite_vertex
        return (f for f, face in enumerate(self.faces) if inf not in face.vertices)

    def infinite_face_handles(self) -> Iterator[FaceIndex]:
        inf = self.infinite_vertex
        return (f for f, face in enumerate(self.faces) if inf in face.vertices)

    # -- scratch tags --------------------------------------------------
    def new_tag(self) -> int:
        """Start a traversal epoch; faces with ``tag == epoch`` count as visited."""
        self._tag += 1
        return self._tag

    # -- numpy exports -------------------------------------------------
    def points_array(self) -> np.ndarray:
        """(N, 2) float array indexed by vertex handle; the infinite row is NaN."""
        pts = np.full((len(self.vertices), 2), np.nan, dtype=float)
        for v, vert in enumerate(self.vertices):
            if vert.position is not None:
                pts[v, 0] = float(vert.position[0])
                pts[v, 1] = float(vert.position[1])
        return pts

    def triangles_array(self, faces: Optional[Sequence[FaceIndex]] = None) -> np.ndarray:
        """(M, 3) int array of finite faces (vertex handles, CCW)."""
        if faces is None:
            faces = list(self.finite_face_handles())
        if not faces:
            return np.empty((0, 3), dtype=int)
        return np.array([self.faces[f].vertices for f in faces], dtype=int)


__all__ = ['Vertex', 'Face', 'Mesh']
