"""
circle_prm/viz.py - 路图与路径可视化

调试可视化回调：绘制障碍物（圆）、路图节点、可见性边与规划路径。
规划器只单向调用回调，不使用其返回值。
"""

import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.collections import LineCollection
from matplotlib.patches import Circle

from .obstacles import ObstacleField

logger = logging.getLogger(__name__)


def plot_roadmap(
    field: ObstacleField,
    nodes: np.ndarray,
    adjacency: Sequence[Sequence[int]],
    path: Optional[Sequence[np.ndarray]] = None,
    ax: Optional[Any] = None,
    show_edges: bool = True,
    radius: Optional[float] = None,
    bounds: Optional[Tuple[Tuple[float, float], Tuple[float, float]]] = None,
    title: str = "PRM roadmap",
    figsize: Tuple[float, float] = (8, 8),
) -> Any:
    """绘制障碍物、路图与路径

    Args:
        field: 障碍物场
        nodes: 路图节点 (n, 2)
        adjacency: 邻接表
        path: 路径点序列（可选）
        ax: matplotlib Axes
        show_edges: 绘制可见性边
        radius: 绘制半径（默认使用障碍物场半径）
        bounds: 坐标范围 ((x_lo, x_hi), (z_lo, z_hi))
        title: 标题
        figsize: 图形尺寸

    Returns:
        matplotlib figure
    """
    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=figsize)
    else:
        fig = ax.figure

    r = field.radius if radius is None else radius
    for c in field.centers:
        ax.add_patch(Circle((c[0], c[1]), r, facecolor='tab:red',
                            edgecolor='darkred', alpha=0.35, zorder=1))

    nodes = np.asarray(nodes, dtype=np.float64).reshape(-1, 2)
    if show_edges and len(nodes):
        segs = [(nodes[i], nodes[j])
                for i, nb in enumerate(adjacency) for j in nb if i < j]
        if segs:
            ax.add_collection(LineCollection(
                segs, colors='tab:blue', linewidths=0.4, alpha=0.3, zorder=2))

    if len(nodes):
        ax.plot(nodes[:, 0], nodes[:, 1], '.', color='gray',
                markersize=3, zorder=3)

    if path is not None and len(path) > 0:
        pts = np.asarray([np.asarray(p) for p in path])
        ax.plot(pts[:, 0], pts[:, 1], 'g-', linewidth=2.0,
                label='Path', zorder=5)
        ax.plot(pts[0, 0], pts[0, 1], 'o', color='lime', markersize=8,
                label='Start', zorder=6)
        ax.plot(pts[-1, 0], pts[-1, 1], '*', color='gold', markersize=12,
                label='Goal', zorder=6)
        ax.legend(loc='upper right', fontsize=8)

    if bounds is not None:
        ax.set_xlim(*bounds[0])
        ax.set_ylim(*bounds[1])
    else:
        ax.autoscale_view()
    ax.set_aspect('equal')
    ax.set_xlabel('x')
    ax.set_ylabel('z')
    ax.set_title(title)
    return fig


class RoadmapPlotter:
    """matplotlib 调试回调

    作为 ``PRMPlanner(debug_sink=...)`` 使用，每次规划调用绘制一张图；
    指定 output_dir 时保存为 PNG 并关闭图形。

    Args:
        field: 障碍物场
        output_dir: 输出目录（None 时不保存，保留最后一张图）
        dpi: 保存分辨率

    Example:
        >>> plotter = RoadmapPlotter(field, output_dir="output/roadmaps")
        >>> planner = PRMPlanner(field, debug_sink=plotter)
        >>> planner.plan((-6, -6), (6, 6))
        >>> plotter.saved_files
    """

    def __init__(
        self,
        field: ObstacleField,
        output_dir: Optional[str | Path] = None,
        dpi: int = 120,
    ) -> None:
        self.field = field
        self.output_dir = Path(output_dir) if output_dir is not None else None
        self.dpi = dpi
        self.n_calls = 0
        self.saved_files: List[Path] = []
        self.last_figure: Optional[Any] = None

    def __call__(
        self,
        nodes: np.ndarray,
        adjacency: Sequence[Sequence[int]],
        path: Sequence[np.ndarray],
    ) -> None:
        self.n_calls += 1
        status = f"{len(path)} waypoints" if len(path) else "no path"
        fig = plot_roadmap(self.field, nodes, adjacency, path,
                           title=f"PRM roadmap #{self.n_calls} ({status})")

        if self.output_dir is None:
            if self.last_figure is not None:
                plt.close(self.last_figure)
            self.last_figure = fig
            return

        self.output_dir.mkdir(parents=True, exist_ok=True)
        out = self.output_dir / f"roadmap_{self.n_calls:03d}.png"
        fig.savefig(out, dpi=self.dpi, bbox_inches='tight')
        plt.close(fig)
        self.saved_files.append(out)
        logger.info("路图可视化已保存: %s", out)
