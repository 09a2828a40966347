"""Matplotlib rendering of triangulations and debug traces."""
from __future__ import annotations

import os as _os
import matplotlib as _mpl
# Ensure a non-interactive backend in headless environments before importing pyplot
if not _os.environ.get('MPLBACKEND'):
    _mpl.use('Agg')
import numpy as np
import matplotlib.pyplot as plt

from .logging_utils import get_logger
from .trace import RecordingTrace, TraceOperation

logger = get_logger('deltri.viz')

_CONSTRAINT_COLOR = (0.85, 0.2, 0.2)
_GROUP_PALETTE = [(0.2, 0.6, 0.8), (0.2, 0.8, 0.3), (0.75, 0.5, 0.2), (0.6, 0.2, 0.7)]


def _marker_size(npts: int, top: float = 8.0) -> float:
    # scale markers down for dense point sets
    return max(0.6, min(top, 200.0 / float(max(1, npts))))


def plot_triangulation(tri, outname="triangulation.png", show_vertices=True, label_vertices=False, title=None):
    """Plot the finite faces of a Triangulation with constrained edges highlighted.

    Args:
        tri: Triangulation (anything with .mesh and .query)
        outname: output image path
        show_vertices: scatter the finite vertices
        label_vertices: annotate each vertex with its handle
        title: optional figure title
    """
    mesh = tri.mesh
    pts = mesh.points_array()
    tris = mesh.triangles_array()
    finite = np.isfinite(pts[:, 0])
    fig = plt.figure(figsize=(6, 6))
    if tris.size:
        plt.triplot(pts[:, 0], pts[:, 1], tris, lw=0.6, color=(0.3, 0.3, 0.3))
    elif np.count_nonzero(finite) >= 2:
        # collinear vertices: draw the line they span
        line = pts[finite]
        order = np.lexsort((line[:, 1], line[:, 0]))
        plt.plot(line[order, 0], line[order, 1], lw=0.6, color=(0.3, 0.3, 0.3))
    for u, w, _ in tri.query.constrained_edges():
        plt.plot([pts[u, 0], pts[w, 0]], [pts[u, 1], pts[w, 1]], color=_CONSTRAINT_COLOR, linewidth=1.6)
    if show_vertices and np.any(finite):
        plt.scatter(pts[finite, 0], pts[finite, 1], s=_marker_size(int(np.count_nonzero(finite))), color='black')
    if label_vertices:
        for v in np.nonzero(finite)[0]:
            plt.annotate(str(int(v)), (pts[v, 0], pts[v, 1]), fontsize=6)
    if title:
        plt.title(title)
    plt.gca().set_aspect('equal')
    plt.savefig(outname, dpi=150)
    plt.close(fig)
    logger.debug('wrote %s (%d faces)', outname, len(tris))
    return outname


def plot_trace_operation(op: TraceOperation, outname: str, background=None):
    """Render one traced operation; ``background`` is an optional Triangulation drawn underneath."""
    fig = plt.figure(figsize=(6, 6))
    if background is not None:
        pts = background.mesh.points_array()
        tris = background.mesh.triangles_array()
        if tris.size:
            plt.triplot(pts[:, 0], pts[:, 1], tris, lw=0.4, color=(0.75, 0.75, 0.75))
    groups = sorted({ev.group for ev in op.events})
    colors = {g: _GROUP_PALETTE[i % len(_GROUP_PALETTE)] for i, g in enumerate(groups)}
    for ev in op.events:
        col = colors[ev.group]
        if ev.kind == 'point':
            (p,) = ev.coords
            plt.plot([float(p[0])], [float(p[1])], marker='o', markersize=3, color=col)
            if ev.label:
                plt.annotate(ev.label, (float(p[0]), float(p[1])), fontsize=6, color=col)
        elif ev.kind == 'segment':
            a, b = ev.coords
            plt.plot([float(a[0]), float(b[0])], [float(a[1]), float(b[1])], color=col, linewidth=1.2)
        elif ev.kind == 'text':
            (p,) = ev.coords
            plt.annotate(ev.label, (float(p[0]), float(p[1])), fontsize=7)
    plt.title(op.name)
    plt.gca().set_aspect('equal')
    plt.savefig(outname, dpi=120)
    plt.close(fig)
    return outname


class PlotTrace(RecordingTrace):
    """Recording trace that writes one image per completed operation.

    Files are named ``<prefix>_<index>_<operation>.png`` inside ``out_dir``.
    """

    def __init__(self, out_dir='trace_frames', prefix='trace', background=None):
        super().__init__()
        self.out_dir = out_dir
        self.prefix = prefix
        self.background = background
        self.files = []
        _os.makedirs(out_dir, exist_ok=True)

    def on_operation(self, op: TraceOperation) -> None:
        if not op.events:
            return
        name = f"{self.prefix}_{len(self.files):04d}_{op.name}.png"
        path = _os.path.join(self.out_dir, name)
        plot_trace_operation(op, path, background=self.background)
        self.files.append(path)


__all__ = ['plot_triangulation', 'plot_trace_operation', 'PlotTrace']
