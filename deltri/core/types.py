"""Handles, corner arithmetic and small value types shared by the core.

Vertices and faces are addressed by plain integer handles into the mesh
arenas; ``INVALID_INDEX`` means "no handle". A corner is an int in {0, 1, 2}
naming a face's vertex and, by convention, the edge opposite to it.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import NamedTuple, Union

from .constants import INVALID_INDEX

VertexIndex = int
FaceIndex = int
Corner = int


def increment(i: Corner) -> Corner:
    return (i + 1) % 3


def decrement(i: Corner) -> Corner:
    return (i + 2) % 3


def third(a: Corner, b: Corner) -> Corner:
    """The corner that is neither a nor b."""
    return 3 - a - b


def is_valid_index(idx) -> bool:
    return idx is not None and idx != INVALID_INDEX


class FaceVertex(NamedTuple):
    """A vertex named by the face and the corner holding it."""
    face: FaceIndex
    corner: Corner


class FaceEdge(NamedTuple):
    """The edge of ``face`` opposite to ``edge``.

    Directed from corner ``edge + 1`` to corner ``edge + 2``, matching the CCW
    order of the face.
    """
    face: FaceIndex
    edge: Corner


class EdgeStart(NamedTuple):
    face: FaceIndex
    edge: Corner


class EdgeEnd(NamedTuple):
    face: FaceIndex
    edge: Corner


# A vertex may be named by raw handle or by one of the face based clues
VertexClue = Union[VertexIndex, FaceVertex, EdgeStart, EdgeEnd]


class LocationKind(enum.Enum):
    EMPTY = 'empty'
    VERTEX = 'vertex'
    EDGE = 'edge'
    FACE = 'face'
    OUTSIDE_CONVEX_HULL = 'outside_convex_hull'
    OUTSIDE_AFFINE_HULL = 'outside_affine_hull'


@dataclass(frozen=True)
class Location:
    """Result of a point location query.

    ``face``/``corner`` are meaningful for VERTEX (corner of the vertex),
    EDGE (corner opposite the edge), FACE and OUTSIDE_CONVEX_HULL (an infinite
    face whose hull edge sees the point). ``vertex`` is set for VERTEX hits,
    including those found in the collinear buffer of low dimensions.
    """
    kind: LocationKind
    face: FaceIndex = INVALID_INDEX
    corner: Corner = INVALID_INDEX
    vertex: VertexIndex = INVALID_INDEX


__all__ = [
    'VertexIndex', 'FaceIndex', 'Corner',
    'increment', 'decrement', 'third', 'is_valid_index',
    'FaceVertex', 'FaceEdge', 'EdgeStart', 'EdgeEnd', 'VertexClue',
    'LocationKind', 'Location',
]
