"""Re-triangulation of the two cavities opened by a constraint edge.

A cavity polygon is given CCW as ``[a, b, c0, c1, ...]``: the new constraint
edge ``a -> b`` followed by the chain of boundary vertices leading from b back
to a. Every chain vertex lies strictly to the left of ``a -> b``. Strategies
return triples whose union is the polygon, so the caller can swap them in for
the removed corridor faces.
"""
from __future__ import annotations

from typing import Callable, List, Sequence, Tuple

from .chain import Chain
from .logging_utils import get_logger
from .predicates import Predicates
from .types import VertexIndex

logger = get_logger('deltri.cavity')

Triple = Tuple[VertexIndex, VertexIndex, VertexIndex]


class CavityStrategy:
    """Base class for cavity triangulation strategies.

    ``position`` maps a vertex handle to its coordinates.
    """

    name = 'base'

    def try_triangulate(self, polygon: Sequence[VertexIndex], position: Callable, predicates: Predicates):
        """Try to triangulate a CCW cavity polygon.

        Returns:
            tuple: (success: bool, triangles: list or None, error: str)
        """
        raise NotImplementedError("Subclasses must implement try_triangulate")


class DelaunayCavityStrategy(CavityStrategy):
    """Constrained Delaunay filling of a pseudo-polygon.

    For the base edge (a, b) the apex c starts at the first chain vertex and is
    replaced by any later chain vertex inside the circumcircle of (a, b, c).
    The triangle (a, b, c) is emitted and the two sub-chains on either side of
    c are solved the same way, with an explicit stack instead of recursion.
    """

    name = 'delaunay'

    def try_triangulate(self, polygon, position, predicates):
        if len(polygon) < 3:
            return (False, None, f"cavity polygon needs 3 vertices, got {len(polygon)}")
        in_circle = predicates.test_in_circle
        triangles: List[Triple] = []
        stack = [(polygon[0], polygon[1], list(polygon[2:]))]
        while stack:
            a, b, chain = stack.pop()
            if not chain:
                continue
            pa, pb = position(a), position(b)
            idx = 0
            pc = position(chain[0])
            for k in range(1, len(chain)):
                pd = position(chain[k])
                if in_circle(pa, pb, pc, pd).is_inside():
                    idx, pc = k, pd
            c = chain[idx]
            if not predicates.orientation_triangle(pa, pb, pc).is_ccw():
                return (False, None, f"apex {c} is not left of base edge {a}->{b}")
            triangles.append((a, b, c))
            stack.append((c, b, chain[:idx]))
            stack.append((a, c, chain[idx + 1:]))
        return (True, triangles, "")


class EarClipCavityStrategy(CavityStrategy):
    """Clip the first valid ear until a triangle remains.

    Produces a valid but not necessarily Delaunay filling.
    """

    name = 'earclip'

    def try_triangulate(self, polygon, position, predicates):
        if len(polygon) < 3:
            return (False, None, f"cavity polygon needs 3 vertices, got {len(polygon)}")
        orient = predicates.orientation_triangle
        ring = Chain(polygon)
        triangles: List[Triple] = []
        while len(ring) > 3:
            clipped = False
            for node in ring.nodes():
                p_node, n_node = ring.pred(node), ring.succ(node)
                p, v, n = ring.vertex[p_node], ring.vertex[node], ring.vertex[n_node]
                pp, pv, pn = position(p), position(v), position(n)
                if not orient(pp, pv, pn).is_ccw():
                    continue
                blocked = False
                for other in ring:
                    if other in (p, v, n):
                        continue
                    po = position(other)
                    if (not orient(pp, pv, po).is_cw() and not orient(pv, pn, po).is_cw()
                            and not orient(pn, pp, po).is_cw()):
                        blocked = True
                        break
                if blocked:
                    continue
                triangles.append((p, v, n))
                ring.unlink(node)
                clipped = True
                break
            if not clipped:
                return (False, None, f"no ear found among {len(ring)} remaining vertices")
        a, b, c = ring.to_list()
        if not orient(position(a), position(b), position(c)).is_ccw():
            return (False, None, f"last triangle {a},{b},{c} is not counter-clockwise")
        triangles.append((a, b, c))
        return (True, triangles, "")


_STRATEGIES = {
    DelaunayCavityStrategy.name: DelaunayCavityStrategy,
    EarClipCavityStrategy.name: EarClipCavityStrategy,
}


def make_cavity_strategy(name) -> CavityStrategy:
    """Return a strategy instance from its name, or pass an instance through."""
    if isinstance(name, CavityStrategy):
        return name
    try:
        return _STRATEGIES[str(name).lower()]()
    except KeyError:
        raise ValueError(f"Unknown cavity strategy {name!r}; expected one of {sorted(_STRATEGIES)}") from None


__all__ = ['CavityStrategy', 'DelaunayCavityStrategy', 'EarClipCavityStrategy', 'make_cavity_strategy']
