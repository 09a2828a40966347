"""Debug trace hooks.

The core calls a Trace around legalization and around cavity construction.
The base class ignores everything, so tracing costs one method call per
primitive when disabled. ``RecordingTrace`` keeps the primitives in memory;
the matplotlib renderer lives in ``visualization.PlotTrace``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple


class Trace:
    """No-op trace."""

    def begin(self, name: str) -> None:
        pass

    def end(self) -> None:
        pass

    def push_group(self, name: str) -> None:
        pass

    def pop_group(self) -> None:
        pass

    def add_point(self, p, label: str = '') -> None:
        pass

    def add_segment(self, a, b, label: str = '') -> None:
        pass

    def add_text(self, p, text: str) -> None:
        pass

    def pause(self) -> None:
        pass


@dataclass
class TraceEvent:
    kind: str                      # 'point' | 'segment' | 'text'
    coords: Tuple[Any, ...]
    label: str = ''
    group: str = ''


@dataclass
class TraceOperation:
    name: str
    events: List[TraceEvent] = field(default_factory=list)
    pauses: int = 0


class RecordingTrace(Trace):
    """Store traced primitives grouped by operation."""

    def __init__(self):
        self.operations: List[TraceOperation] = []
        # Operations may nest (a crossing split legalizes inside a cavity)
        self._open: List[TraceOperation] = []
        self._groups: List[List[str]] = []

    @property
    def _current(self) -> Optional[TraceOperation]:
        return self._open[-1] if self._open else None

    def begin(self, name: str) -> None:
        self._open.append(TraceOperation(name))
        self._groups.append([])

    def end(self) -> None:
        if not self._open:
            return
        op = self._open.pop()
        self._groups.pop()
        self.operations.append(op)
        self.on_operation(op)

    def on_operation(self, op: TraceOperation) -> None:
        """Hook called with every completed operation."""

    def push_group(self, name: str) -> None:
        if self._groups:
            self._groups[-1].append(name)

    def pop_group(self) -> None:
        if self._groups and self._groups[-1]:
            self._groups[-1].pop()

    def _record(self, kind: str, coords, label: str) -> None:
        if not self._open:
            self.begin('<anonymous>')
        group = '/'.join(self._groups[-1])
        self._current.events.append(TraceEvent(kind, tuple(coords), label, group))

    def add_point(self, p, label: str = '') -> None:
        self._record('point', (p,), label)

    def add_segment(self, a, b, label: str = '') -> None:
        self._record('segment', (a, b), label)

    def add_text(self, p, text: str) -> None:
        self._record('text', (p,), text)

    def pause(self) -> None:
        if self._current is not None:
            self._current.pauses += 1

    def names(self) -> List[str]:
        return [op.name for op in self.operations]

    def clear(self) -> None:
        self.operations = []
        self._open = []
        self._groups = []


__all__ = ['Trace', 'TraceEvent', 'TraceOperation', 'RecordingTrace']
