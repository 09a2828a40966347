"""Central numerical tolerances and sentinel values.

Tiny numeric thresholds used across the package live here so they can be
tuned consistently and referenced without scattering literals.
"""
from __future__ import annotations

# Inexact predicate tolerances (relative to the magnitude of the operands)
EPS_ORIENT: float = 1e-12         # band around zero for orientation determinants
EPS_IN_CIRCLE: float = 1e-12      # band around zero for in-circle determinants
EPS_COINCIDENT: float = 1e-12     # relative distance under which two points are one

# Largest coordinate magnitude the float family accepts; in-circle products of
# fourth powers of coordinate differences stay finite below it
MAX_INEXACT_COORD: float = 1e75

# Checker tolerances
EPS_AREA_REL: float = 1e-12       # default relative tolerance of check_area
EPS_AREA_VALIDATE: float = 1e-9   # check_area tolerance used by validate_after_insert

# Handles
INVALID_INDEX: int = -1           # "no handle" for vertices and faces

# Constraint markers
NO_CONSTRAINT: int = 0
DEFAULT_CONSTRAINT: int = 1

# Point location
LOCATOR_SAMPLING_DENSITY: int = 100   # one sampled vertex per this many vertices
LOCATOR_STOCHASTIC_LIMIT: int = 10    # deterministic walk steps before random edge order

__all__ = [
    'EPS_ORIENT',
    'EPS_IN_CIRCLE',
    'EPS_COINCIDENT',
    'MAX_INEXACT_COORD',
    'EPS_AREA_REL',
    'EPS_AREA_VALIDATE',
    'INVALID_INDEX',
    'NO_CONSTRAINT',
    'DEFAULT_CONSTRAINT',
    'LOCATOR_SAMPLING_DENSITY',
    'LOCATOR_STOCHASTIC_LIMIT',
]
