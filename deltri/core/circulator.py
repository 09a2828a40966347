"""Rotation around a vertex, one outgoing edge at a time."""
from __future__ import annotations

from .constants import INVALID_INDEX
from .errors import InvalidHandleError
from .mesh import Mesh
from .types import FaceEdge, FaceIndex, VertexIndex, decrement, increment


class EdgeCirculator:
    """Iterate the edges leaving ``base_vertex``.

    The current edge goes from the base vertex to ``end_vertex`` and the
    current face lies on its left. The circulator does not detect a full
    revolution; callers compare against the starting ``end_vertex`` or face.
    Only meaningful on a planar (dimension 2) mesh.
    """

    def __init__(self, mesh: Mesh, base_vertex: VertexIndex, face: FaceIndex = INVALID_INDEX):
        self.mesh = mesh
        vert = mesh.vertex(base_vertex)
        if face == INVALID_INDEX:
            face = vert.face
        if face == INVALID_INDEX:
            raise InvalidHandleError(f"vertex {base_vertex} has no incident face")
        corner = mesh.face(face).corner_of(base_vertex)
        if corner == INVALID_INDEX:
            raise InvalidHandleError(f"face {face} is not incident to vertex {base_vertex}")
        self.base_vertex = base_vertex
        self._face = face
        self._corner = corner

    @property
    def face(self) -> FaceIndex:
        return self._face

    @property
    def corner(self) -> int:
        """Corner of the base vertex in the current face."""
        return self._corner

    @property
    def edge(self) -> FaceEdge:
        """The current edge, directed base -> end, as seen from the current face."""
        return FaceEdge(self._face, decrement(self._corner))

    def start_vertex(self) -> VertexIndex:
        return self.base_vertex

    def end_vertex(self) -> VertexIndex:
        return self.mesh.faces[self._face].vertices[increment(self._corner)]

    def _move(self, face: FaceIndex) -> None:
        self._face = face
        self._corner = self.mesh.faces[face].corner_of(self.base_vertex)

    def advance_ccw(self) -> 'EdgeCirculator':
        face = self.mesh.faces[self._face]
        self._move(face.neighbors[increment(self._corner)])
        return self

    def advance_cw(self) -> 'EdgeCirculator':
        face = self.mesh.faces[self._face]
        self._move(face.neighbors[decrement(self._corner)])
        return self


__all__ = ['EdgeCirculator']
