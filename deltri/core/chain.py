"""Scratch doubly linked list of vertex handles.

Nodes live in flat lists and link to each other by integer index, so a
Chain is cheap to build and throw away within one constraint insertion.
Unlinked nodes keep their slot; the arena is never compacted.
"""
from __future__ import annotations

from typing import Iterator, List

from .constants import INVALID_INDEX
from .types import VertexIndex


class Chain:
    """Ordered vertex handles of one side of a constraint corridor.

    Nodes hold bare vertex handles rather than (face, corner) pairs: the
    corridor faces are replaced as a whole, so only the boundary vertices are
    needed to re-triangulate each side.
    """

    def __init__(self, vertices=()):
        self.vertex: List[VertexIndex] = []
        self.prev: List[int] = []
        self.next: List[int] = []
        self.head = INVALID_INDEX
        self.tail = INVALID_INDEX
        self._size = 0
        for v in vertices:
            self.push_back(v)

    def __len__(self) -> int:
        return self._size

    def push_back(self, v: VertexIndex) -> int:
        node = len(self.vertex)
        self.vertex.append(v)
        self.prev.append(self.tail)
        self.next.append(INVALID_INDEX)
        if self.tail != INVALID_INDEX:
            self.next[self.tail] = node
        else:
            self.head = node
        self.tail = node
        self._size += 1
        return node

    def push_front(self, v: VertexIndex) -> int:
        node = len(self.vertex)
        self.vertex.append(v)
        self.prev.append(INVALID_INDEX)
        self.next.append(self.head)
        if self.head != INVALID_INDEX:
            self.prev[self.head] = node
        else:
            self.tail = node
        self.head = node
        self._size += 1
        return node

    def unlink(self, node: int) -> None:
        p, n = self.prev[node], self.next[node]
        if p != INVALID_INDEX:
            self.next[p] = n
        else:
            self.head = n
        if n != INVALID_INDEX:
            self.prev[n] = p
        else:
            self.tail = p
        self.prev[node] = self.next[node] = INVALID_INDEX
        self._size -= 1

    def succ(self, node: int) -> int:
        """Next node, wrapping from the tail to the head."""
        n = self.next[node]
        return self.head if n == INVALID_INDEX else n

    def pred(self, node: int) -> int:
        """Previous node, wrapping from the head to the tail."""
        p = self.prev[node]
        return self.tail if p == INVALID_INDEX else p

    def nodes(self) -> Iterator[int]:
        node = self.head
        while node != INVALID_INDEX:
            yield node
            node = self.next[node]

    def __iter__(self) -> Iterator[VertexIndex]:
        for node in self.nodes():
            yield self.vertex[node]

    def last(self) -> VertexIndex:
        return self.vertex[self.tail]

    def to_list(self) -> List[VertexIndex]:
        return list(self)


__all__ = ['Chain']
