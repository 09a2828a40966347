"""Configuration objects for deltri triangulations."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Any, Dict

from .constants import LOCATOR_SAMPLING_DENSITY, LOCATOR_STOCHASTIC_LIMIT


@dataclass
class LocatorConfig:
    # One sampled vertex per `sampling_density` stored vertices (at least one)
    sampling_density: int = LOCATOR_SAMPLING_DENSITY
    # Walk steps with alternating edge order before switching to random order
    stochastic_limit: int = LOCATOR_STOCHASTIC_LIMIT
    seed: Optional[int] = None


@dataclass
class TriangulationConfig:
    """Unified configuration.

    Attributes
    ----------
    exact : bool
        Select the exact (integer / rational) predicate family instead of the
        float family with tolerance bands.
    locator : LocatorConfig
        Point location parameters.
    cavity_strategy : str
        'delaunay' or 'earclip'; how corridor cavities are re-triangulated
        when a constraint edge is inserted.
    validate_after_insert : bool
        Run the consistency checker after every mutation and raise on failure.
        Slow; meant for debugging.
    trace : Any
        Optional Trace instance receiving debug primitives.
    extras : dict
        Free-form dictionary for future extensions.
    """
    exact: bool = False
    locator: LocatorConfig = field(default_factory=LocatorConfig)
    cavity_strategy: str = 'delaunay'
    validate_after_insert: bool = False
    trace: Any = None
    extras: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_overrides(cls, **overrides) -> 'TriangulationConfig':
        """Build a config from keyword overrides; `locator_*` keys go to the locator."""
        cfg = cls()
        for k, v in overrides.items():
            if k.startswith('locator_'):
                key = k[len('locator_'):]
                if not hasattr(cfg.locator, key):
                    raise AttributeError(f"Unknown locator option: {key}")
                setattr(cfg.locator, key, v)
            elif hasattr(cfg, k):
                setattr(cfg, k, v)
            else:
                raise AttributeError(f"Unknown configuration option: {k}")
        return cfg


__all__ = ['LocatorConfig', 'TriangulationConfig']
