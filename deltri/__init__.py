"""Public package API for deltri, incremental constrained Delaunay triangulation.

This facade provides a flat import surface on top of the internal
implementation package ``deltri.core`` and defers the matplotlib based
visualization module until first use so ``import deltri`` stays light.

Example
-------
    from deltri import Triangulation

    tri = Triangulation(exact=True)
    a, b = tri.add_constraint_segment((0, 0), (4, 0))
    tri.add_vertices([(2, 3), (2, -3)])
    ok, msg = tri.check()
"""
from importlib import import_module as _imp
import logging as _logging

try:  # Python 3.8+ runtime version export
    from importlib.metadata import version as _pkg_version
    __version__ = _pkg_version("deltri")  # populated when installed
except Exception:  # pragma: no cover - editable / unknown state
    __version__ = "0.0.0+dev"

_logging.getLogger(__name__).addHandler(_logging.NullHandler())

# Eager light-weight submodules
_const = _imp('deltri.core.constants')
_types = _imp('deltri.core.types')
_errors = _imp('deltri.core.errors')
_pred = _imp('deltri.core.predicates')
_config = _imp('deltri.core.config')
_mesh = _imp('deltri.core.mesh')
_cavity = _imp('deltri.core.cavity')
_checker = _imp('deltri.core.checker')
_trace = _imp('deltri.core.trace')
_stats = _imp('deltri.core.stats')
_tri = _imp('deltri.core.triangulation')
_log = _imp('deltri.core.logging_utils')


def _lazy_module(mod_name):
    class _ModuleProxy:
        __slots__ = ('_m',)

        def _load(self):  # type: ignore
            try:
                return self._m  # type: ignore
            except AttributeError:
                self._m = _imp(mod_name)  # type: ignore
                return self._m  # type: ignore

        def __getattr__(self, item):  # type: ignore
            if item == '_m':
                raise AttributeError(item)
            return getattr(self._load(), item)

        def __dir__(self):  # type: ignore
            return dir(self._load())
    return _ModuleProxy()


# matplotlib is only imported when plotting is requested
visualization = _lazy_module('deltri.core.visualization')


def plot_triangulation(*args, **kwargs):
    return visualization.plot_triangulation(*args, **kwargs)


# Main entry point
Triangulation = _tri.Triangulation
TriangulationConfig = _config.TriangulationConfig
LocatorConfig = _config.LocatorConfig

# Value types
Location = _types.Location
LocationKind = _types.LocationKind
FaceVertex = _types.FaceVertex
FaceEdge = _types.FaceEdge
EdgeStart = _types.EdgeStart
EdgeEnd = _types.EdgeEnd
INVALID_INDEX = _const.INVALID_INDEX
DEFAULT_CONSTRAINT = _const.DEFAULT_CONSTRAINT

# Kernel
Orientation = _pred.Orientation
CollinearTest = _pred.CollinearTest
InCircle = _pred.InCircle
InexactPredicates = _pred.InexactPredicates
ExactPredicates = _pred.ExactPredicates

# Strategies, checker, trace
CavityStrategy = _cavity.CavityStrategy
DelaunayCavityStrategy = _cavity.DelaunayCavityStrategy
EarClipCavityStrategy = _cavity.EarClipCavityStrategy
ConsistencyChecker = _checker.ConsistencyChecker
Trace = _trace.Trace
RecordingTrace = _trace.RecordingTrace

# Errors
DeltriError = _errors.DeltriError
InvalidPositionError = _errors.InvalidPositionError
InvalidHandleError = _errors.InvalidHandleError
InfiniteVertexError = _errors.InfiniteVertexError
InvalidConstraintError = _errors.InvalidConstraintError
TopologyError = _errors.TopologyError

# Logging
configure_logging = _log.configure_logging
get_logger = _log.get_logger

# Namespace submodules for exploratory users
constants = _const
predicates = _pred
stats = _stats

__all__ = [
    '__version__',
    # main class and configuration
    'Triangulation', 'TriangulationConfig', 'LocatorConfig',
    # value types
    'Location', 'LocationKind', 'FaceVertex', 'FaceEdge', 'EdgeStart', 'EdgeEnd',
    'INVALID_INDEX', 'DEFAULT_CONSTRAINT',
    # kernel
    'Orientation', 'CollinearTest', 'InCircle', 'InexactPredicates', 'ExactPredicates',
    # strategies, checker, trace
    'CavityStrategy', 'DelaunayCavityStrategy', 'EarClipCavityStrategy',
    'ConsistencyChecker', 'Trace', 'RecordingTrace', 'plot_triangulation',
    # errors
    'DeltriError', 'InvalidPositionError', 'InvalidHandleError', 'InfiniteVertexError',
    'InvalidConstraintError', 'TopologyError',
    # logging
    'configure_logging', 'get_logger',
    # submodules / namespaces
    'constants', 'predicates', 'stats', 'visualization',
]
