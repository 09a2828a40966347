"""Triangulation: the public entry point wiring storage, kernel and builders."""
from __future__ import annotations

import random
import time
from typing import Dict, Iterable, List, Optional, Tuple

from .builder import Builder
from .cavity import DelaunayCavityStrategy, make_cavity_strategy
from .checker import ConsistencyChecker
from .config import TriangulationConfig
from .constants import DEFAULT_CONSTRAINT, EPS_AREA_REL, EPS_AREA_VALIDATE, INVALID_INDEX
from .constraint import ConstraintInserter
from .errors import (
    DeltriError, InfiniteVertexError, InvalidConstraintError, InvalidHandleError, TopologyError,
)
from .locator import Locator
from .logging_utils import get_logger
from .mesh import Mesh
from .predicates import make_predicates
from .query import Query
from .stats import OpStats, format_stats_table
from .trace import Trace
from .types import FaceIndex, Location, VertexIndex

logger = get_logger('deltri.triangulation')

_OPS = ('insert_vertex', 'constraint', 'flip')


class Triangulation:
    """Incremental constrained Delaunay triangulation of the plane.

    Vertices are added one at a time; coincident positions return the existing
    handle. Constraint edges pin straight segments between vertices and are
    never flipped. Handles are stable ints for the lifetime of the object.

    Example
    -------
        tri = Triangulation()
        a, b, c = tri.add_vertices([(0, 0), (1, 0), (0, 1)])
        tri.add_constraint_edge(a, b)
        ok, msg = tri.check()
    """

    def __init__(self, config: Optional[TriangulationConfig] = None, **overrides):
        if config is None:
            config = TriangulationConfig.from_overrides(**overrides)
        elif overrides:
            raise TypeError("pass either a TriangulationConfig or keyword overrides, not both")
        self.config = config
        self.predicates = make_predicates(config.exact)
        self.mesh = Mesh()
        self.query = Query(self.mesh, self.predicates)
        self.trace = config.trace if config.trace is not None else Trace()
        self.locator = Locator(self.mesh, self.predicates, config.locator,
                               random.Random(config.locator.seed))
        self.builder = Builder(self.mesh, self.predicates, self.query, self.locator, self.trace)
        self.constraints = ConstraintInserter(self.builder, make_cavity_strategy(config.cavity_strategy))
        self.checker = ConsistencyChecker(self.mesh, self.predicates)
        # Constraints requested before the mesh became planar
        self._pending: List[Tuple[VertexIndex, VertexIndex, int]] = []
        self._op_stats: Dict[str, OpStats] = {name: OpStats() for name in _OPS}

    def __repr__(self):
        return (f"Triangulation(dimension={self.dimension}, vertices={self.vertex_count}, "
                f"faces={self.finite_face_count}, exact={self.config.exact})")

    # --- Properties ---
    @property
    def dimension(self) -> int:
        return self.mesh.dimension

    @property
    def vertex_count(self) -> int:
        """Number of finite vertices."""
        return self.mesh.finite_vertex_count

    @property
    def finite_face_count(self) -> int:
        return sum(1 for _ in self.mesh.finite_face_handles())

    @property
    def infinite_vertex(self) -> VertexIndex:
        return self.mesh.infinite_vertex

    @property
    def pending_constraints(self) -> List[Tuple[VertexIndex, VertexIndex, int]]:
        return list(self._pending)

    def position(self, v: VertexIndex):
        return self.query.position(v)

    def is_finite_vertex(self, v: VertexIndex) -> bool:
        self.mesh.vertex(v)
        return self.mesh.is_finite_vertex(v)

    def is_finite_face(self, f: FaceIndex) -> bool:
        self.mesh.face(f)
        return self.mesh.is_finite_face(f)

    def points(self):
        return self.mesh.points_array()

    def triangles(self):
        return self.mesh.triangles_array()

    # --- Timing helpers ---
    def _record_time(self, op_name: str, duration: float):
        stats = self._op_stats[op_name]
        stats.time_total += duration
        if duration > stats.time_max:
            stats.time_max = duration
        if stats.time_min == 0.0 or duration < stats.time_min:
            stats.time_min = duration

    def stats_summary(self):
        return {k: v.to_dict() for k, v in self._op_stats.items()}

    def format_stats(self) -> str:
        return format_stats_table(self.stats_summary())

    def reset_stats(self):
        self._op_stats = {name: OpStats() for name in _OPS}

    def _validate(self, what: str) -> None:
        if not self.config.validate_after_insert:
            return
        # An ear clipped cavity is valid but not Delaunay
        delaunay = isinstance(self.constraints.strategy, DelaunayCavityStrategy)
        ok, msg = self.checker.check_all(area_tolerance=EPS_AREA_VALIDATE, delaunay=delaunay)
        if not ok:
            raise TopologyError(f"consistency check failed after {what}: {msg}")

    # --- Vertices ---
    def locate(self, p, hint: FaceIndex = INVALID_INDEX) -> Location:
        """Classify a position without modifying the triangulation."""
        return self.builder.locate(self.predicates.validate_position(p), self._check_hint(hint))

    def _check_hint(self, hint) -> FaceIndex:
        if hint is None or hint == INVALID_INDEX:
            return INVALID_INDEX
        self.mesh.face(hint)
        return int(hint)

    def add_vertex(self, p, hint: FaceIndex = INVALID_INDEX) -> VertexIndex:
        """Insert a position and return its vertex handle.

        A position coincident with an existing vertex leaves the triangulation
        unchanged and returns that vertex. Malformed or non-finite positions
        raise InvalidPositionError before anything is modified.
        """
        stats = self._op_stats['insert_vertex']
        stats.attempts += 1
        t0 = time.perf_counter()
        try:
            pos = self.predicates.validate_position(p)
            hint = self._check_hint(hint)
            self.builder.op_stats = stats
            was_planar = self.mesh.dimension == 2
            v, created = self.builder.insert(pos, hint)
            if not created:
                stats.noop += 1
                return v
            stats.success += 1
            if not was_planar and self.mesh.dimension == 2 and self._pending:
                self._flush_pending()
            self._validate(f'inserting vertex {v}')
            return v
        except DeltriError:
            stats.fail += 1
            raise
        finally:
            self._record_time('insert_vertex', time.perf_counter() - t0)

    def add_vertices(self, points: Iterable) -> List[VertexIndex]:
        """Insert several positions, each one hinted by the face of the previous vertex."""
        handles = []
        hint = INVALID_INDEX
        for p in points:
            v = self.add_vertex(p, hint)
            handles.append(v)
            hint = self.mesh.vertices[v].face
        return handles

    # --- Constraints ---
    def _check_constraint_value(self, c) -> int:
        if isinstance(c, bool) or not isinstance(c, int):
            raise InvalidConstraintError(f"constraint must be an int bit mask, got {c!r}")
        if c <= 0:
            raise InvalidConstraintError(f"constraint must be a positive bit mask, got {c}")
        return c

    def _check_finite_vertex(self, v) -> VertexIndex:
        self.mesh.vertex(v)
        if not self.mesh.is_finite_vertex(v):
            raise InfiniteVertexError(f"vertex {v} is the infinite vertex")
        return int(v)

    def add_constraint_edge(self, v0: VertexIndex, v1: VertexIndex, c: int = DEFAULT_CONSTRAINT) -> None:
        """Pin the straight segment v0-v1 with the constraint mask c.

        Existing constraints along the segment are merged (OR), never cleared.
        Vertices on the segment and crossings with other constraints split it.
        """
        stats = self._op_stats['constraint']
        stats.attempts += 1
        t0 = time.perf_counter()
        try:
            c = self._check_constraint_value(c)
            v0 = self._check_finite_vertex(v0)
            v1 = self._check_finite_vertex(v1)
            if v0 == v1:
                stats.noop += 1
                return
            if self.mesh.dimension < 2:
                logger.debug('constraint %d-%d pending until the triangulation is planar', v0, v1)
                self._pending.append((v0, v1, c))
                stats.success += 1
                return
            self.builder.op_stats = stats
            self.constraints.insert(v0, v1, c)
            stats.success += 1
            self._validate(f'constraint {v0}-{v1}')
        except DeltriError:
            stats.fail += 1
            raise
        finally:
            self._record_time('constraint', time.perf_counter() - t0)

    def add_constraint_segment(self, p0, p1, c: int = DEFAULT_CONSTRAINT) -> Tuple[VertexIndex, VertexIndex]:
        """Insert both end positions, then the constraint between them."""
        self._check_constraint_value(c)
        q0 = self.predicates.validate_position(p0)
        q1 = self.predicates.validate_position(p1)
        v0 = self.add_vertex(q0)
        v1 = self.add_vertex(q1)
        self.add_constraint_edge(v0, v1, c)
        return v0, v1

    def _flush_pending(self) -> None:
        pending, self._pending = self._pending, []
        logger.debug('applying %d pending constraints', len(pending))
        for v0, v1, c in pending:
            self.constraints.insert(v0, v1, c)

    def edge_constraint(self, v0: VertexIndex, v1: VertexIndex) -> int:
        return self.query.edge_constraint(v0, v1)

    def is_constrained(self, v0: VertexIndex, v1: VertexIndex) -> bool:
        return self.query.is_constrained(v0, v1)

    def constrained_edges(self):
        return self.query.constrained_edges()

    # --- Flips ---
    def flip(self, face: FaceIndex, corner: int) -> Tuple[FaceIndex, FaceIndex]:
        """Flip the edge opposite ``corner`` of ``face``.

        Raises TopologyError for a constrained edge or a quad that is not
        strictly convex (which includes any quad touching the infinite vertex).
        """
        stats = self._op_stats['flip']
        stats.attempts += 1
        t0 = time.perf_counter()
        try:
            f = self.mesh.face(face)
            if corner not in (0, 1, 2):
                raise InvalidHandleError(f"invalid corner {corner!r}")
            if f.constraints[corner]:
                raise TopologyError(f"edge opposite corner {corner} of face {face} is constrained")
            if not self.query.is_convex(face, corner):
                raise TopologyError(f"quad around edge opposite corner {corner} of face {face} is not convex")
            self.builder.op_stats = stats
            result = self.builder.flip_edge(face, corner)
            stats.success += 1
            self._validate(f'flipping face {face}')
            return result
        except DeltriError:
            stats.fail += 1
            raise
        finally:
            self._record_time('flip', time.perf_counter() - t0)

    # --- Checks ---
    def check(self, area_tolerance: float = EPS_AREA_REL, delaunay: bool = True):
        """Run every consistency check; returns (ok, message)."""
        return self.checker.check_all(area_tolerance=area_tolerance, delaunay=delaunay)

    def check_orientation(self):
        return self.checker.check_orientation()

    def check_area(self, tolerance: float = EPS_AREA_REL):
        return self.checker.check_area(tolerance)

    # --- Reset ---
    def clear(self) -> None:
        """Drop every vertex, face and pending constraint."""
        self.builder.reset()
        self._pending = []


__all__ = ['Triangulation']
