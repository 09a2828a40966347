"""Logging utilities for deltri.

Provides a consistent logger hierarchy and formatting without modifying the
process root logger. All deltri code should obtain loggers via get_logger().
"""
from __future__ import annotations

import logging
import sys
from typing import Optional, Union

_FORMAT = logging.Formatter('%(levelname)s %(name)s: %(message)s')


def _ensure_deltri_root() -> logging.Logger:
    """Ensure the 'deltri' logger has a single stream handler and is isolated
    from the process root logger. Returns the 'deltri' logger.
    """
    deltri_root = logging.getLogger('deltri')
    # Only NullHandlers (added by the package __init__) means nobody configured output yet
    has_non_null = any(not isinstance(h, logging.NullHandler) for h in deltri_root.handlers)
    if not has_non_null:
        for h in list(deltri_root.handlers):
            if isinstance(h, logging.NullHandler):
                deltri_root.removeHandler(h)
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(_FORMAT)
        deltri_root.addHandler(handler)
    deltri_root.propagate = False
    return deltri_root


def _to_level(level: Union[str, int, None], default: int = logging.INFO) -> int:
    if level is None:
        return default
    if isinstance(level, int):
        return level
    resolved = getattr(logging, str(level).upper(), None)
    return resolved if isinstance(resolved, int) else default


def configure_logging(level: Union[str, int] = 'INFO', mute_external: bool = True) -> None:
    """Configure the 'deltri' logger family level and optional external noise suppression.

    This does NOT modify the process root logger.
    """
    deltri_root = _ensure_deltri_root()
    lvl = _to_level(level)
    deltri_root.setLevel(lvl)
    # matplotlib is chatty at DEBUG (font cache scans)
    if mute_external and lvl <= logging.DEBUG:
        for noisy in ('matplotlib', 'matplotlib.font_manager'):
            logging.getLogger(noisy).setLevel(logging.INFO)


def get_logger(name: str, level: Optional[Union[str, int]] = None) -> logging.Logger:
    """Return a logger under the 'deltri' namespace.

    Loggers obtained here inherit their level from the 'deltri' parent unless
    an explicit level is given. No handler is attached until
    configure_logging() is called, so importing the library stays silent.
    """
    log = logging.getLogger(name)
    if level is not None:
        log.setLevel(_to_level(level))
    else:
        log.setLevel(logging.NOTSET)
    return log


__all__ = ['get_logger', 'configure_logging']
