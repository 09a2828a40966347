"""Exception hierarchy for caller-contract violations.

Degenerate geometry (coincident points, zero length constraints) is never an
error; it is absorbed as a no-op by the builder. Checker failures are reported
as ``(ok, message)`` values, not exceptions.
"""
from __future__ import annotations


class DeltriError(Exception):
    """Base class of all deltri errors."""


class InvalidPositionError(DeltriError, ValueError):
    """A coordinate is missing, non-numeric, non-finite or not representable
    in the active numeric family."""


class InvalidHandleError(DeltriError, IndexError):
    """A vertex or face handle does not refer to a stored element."""


class InfiniteVertexError(DeltriError, ValueError):
    """A finite vertex was required but the infinite vertex was given."""


class InvalidConstraintError(DeltriError, ValueError):
    """A constraint value is not active (zero) or not an integer mask."""


class TopologyError(DeltriError, RuntimeError):
    """A requested topological operation is not legal on the current mesh
    (e.g. flipping a constrained edge or a non-convex quadrilateral)."""


__all__ = [
    'DeltriError',
    'InvalidPositionError',
    'InvalidHandleError',
    'InfiniteVertexError',
    'InvalidConstraintError',
    'TopologyError',
]
