"""Operation statistics data structures and presentation utilities.

The Triangulation keeps one OpStats per public operation ('insert_vertex',
'flip', 'constraint') and a few structural counters the builder updates.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Any


@dataclass
class OpStats:
    attempts: int = 0
    success: int = 0
    # Calls absorbed as no-ops (coincident vertex, zero length constraint)
    noop: int = 0
    fail: int = 0
    # Structural work triggered by the operation
    flips: int = 0
    splits: int = 0
    cavities: int = 0
    # Timing (seconds)
    time_total: float = 0.0
    time_max: float = 0.0
    time_min: float = 0.0  # 0 means uninitialized

    def to_dict(self) -> Dict[str, Any]:  # pragma: no cover - simple mapping
        return {
            'attempts': self.attempts,
            'success': self.success,
            'noop': self.noop,
            'fail': self.fail,
            'flips': self.flips,
            'splits': self.splits,
            'cavities': self.cavities,
            'success_rate': (self.success / self.attempts) if self.attempts else 0.0,
            'time_total': self.time_total,
            'time_max': self.time_max,
            'time_min': (self.time_min if self.time_min != 0.0 else 0.0),
            'time_avg': (self.time_total / self.attempts) if self.attempts else 0.0,
        }


def format_stats_table(stats_dict) -> str:
    """Return a human readable multi-line table summarizing op stats."""
    if not stats_dict:
        return "<no stats>"
    header = ["op", "attempts", "succ", "noop", "fail", "flips", "splits", "cavities", "avg_ms", "max_ms"]
    rows = []
    for op in sorted(stats_dict.keys()):
        s = stats_dict[op]
        avg_ms = s['time_avg'] * 1000.0
        max_ms = s['time_max'] * 1000.0
        rows.append([
            op, str(s['attempts']), str(s['success']), str(s['noop']), str(s['fail']),
            str(s['flips']), str(s['splits']), str(s['cavities']),
            f"{avg_ms:8.3f}", f"{max_ms:8.3f}"
        ])
    col_w = [len(h) for h in header]
    for r in rows:
        for i, v in enumerate(r):
            if len(v) > col_w[i]:
                col_w[i] = len(v)

    def fmt(r):
        return " ".join(r[i].rjust(col_w[i]) for i in range(len(r)))
    lines = [fmt(header), "-" * (sum(col_w) + len(col_w) - 1)] + [fmt(r) for r in rows]
    return "\n".join(lines)


__all__ = ["OpStats", "format_stats_table"]
