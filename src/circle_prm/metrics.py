"""
circle_prm/metrics.py - 路径质量评价指标

提供多维度路径质量评估：
- 路径长度 (L2)
- 平滑度 (相邻线段的转角)
- 安全裕度 (折线到障碍物表面的最小距离，逐线段精确计算)
- 效率指标 (路径长度 / 直线距离)
- 路图规模与计算统计
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .models import PlannerResult
from .obstacles import ObstacleField

logger = logging.getLogger(__name__)


@dataclass
class PathMetrics:
    """路径质量指标汇总

    Attributes:
        path_length: L2 路径总长度
        direct_distance: 起终点直线距离
        length_ratio: 路径长度 / 直线距离 (>=1.0, 越接近 1 越高效)
        smoothness: 平均转角 (rad, 越小越平滑)
        max_turn: 最大转角 (rad)
        min_clearance: 折线到障碍物表面的最小距离
        n_waypoints: 路径点数量
        n_nodes: 路图节点数
        n_edges: 路图有向边数
        n_attempts: 构建路图次数
        n_collision_checks: 碰撞检测次数
        computation_time: 规划计算时间 (s)
    """
    path_length: float = 0.0
    direct_distance: float = 0.0
    length_ratio: float = float('inf')
    smoothness: float = 0.0
    max_turn: float = 0.0
    min_clearance: float = float('inf')
    n_waypoints: int = 0
    n_nodes: int = 0
    n_edges: int = 0
    n_attempts: int = 0
    n_collision_checks: int = 0
    computation_time: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """转为字典"""
        return {
            'path_length': self.path_length,
            'direct_distance': self.direct_distance,
            'length_ratio': self.length_ratio,
            'smoothness': self.smoothness,
            'max_turn': self.max_turn,
            'min_clearance': self.min_clearance,
            'n_waypoints': self.n_waypoints,
            'n_nodes': self.n_nodes,
            'n_edges': self.n_edges,
            'n_attempts': self.n_attempts,
            'n_collision_checks': self.n_collision_checks,
            'computation_time': self.computation_time,
        }

    def summary(self) -> str:
        """返回可读的指标摘要"""
        lines = [
            "=" * 50,
            "路径质量指标",
            "=" * 50,
            f"路径长度 (L2):      {self.path_length:.4f}",
            f"直线距离:           {self.direct_distance:.4f}",
            f"路径效率 (比值):    {self.length_ratio:.4f}",
            f"平滑度 (均值转角):  {self.smoothness:.4f} rad",
            f"最大转角:           {self.max_turn:.4f} rad",
            f"最小安全裕度:       {self.min_clearance:.6f}",
            f"路径点数:           {self.n_waypoints}",
            f"路图节点 / 边:      {self.n_nodes} / {self.n_edges}",
            f"路图构建次数:       {self.n_attempts}",
            f"碰撞检测次数:       {self.n_collision_checks}",
            f"计算时间:           {self.computation_time:.3f} s",
            "=" * 50,
        ]
        return "\n".join(lines)


def compute_path_length(path: Sequence[np.ndarray]) -> float:
    """计算 L2 路径总长度"""
    if len(path) < 2:
        return 0.0
    return sum(
        float(np.linalg.norm(np.asarray(path[i + 1]) - np.asarray(path[i])))
        for i in range(len(path) - 1)
    )


def compute_smoothness(path: Sequence[np.ndarray]) -> Tuple[float, float]:
    """以相邻线段之间的转角衡量平滑度

    Returns:
        (mean_turn, max_turn) in radians
    """
    if len(path) < 3:
        return 0.0, 0.0

    angles = []
    for i in range(1, len(path) - 1):
        v1 = np.asarray(path[i]) - np.asarray(path[i - 1])
        v2 = np.asarray(path[i + 1]) - np.asarray(path[i])
        n1 = np.linalg.norm(v1)
        n2 = np.linalg.norm(v2)
        if n1 < 1e-10 or n2 < 1e-10:
            continue
        cos_angle = np.clip(np.dot(v1, v2) / (n1 * n2), -1.0, 1.0)
        angles.append(np.arccos(cos_angle))

    if not angles:
        return 0.0, 0.0
    return float(np.mean(angles)), float(np.max(angles))


def point_segment_distance(p: Any, a: Any, b: Any) -> float:
    """点 p 到线段 ab 的欧氏距离"""
    p = np.asarray(p, dtype=np.float64)
    a = np.asarray(a, dtype=np.float64)
    ab = np.asarray(b, dtype=np.float64) - a
    denom = float(ab @ ab)
    if denom < 1e-24:
        return float(np.linalg.norm(p - a))
    t = float(np.clip((p - a) @ ab / denom, 0.0, 1.0))
    return float(np.linalg.norm(p - (a + t * ab)))


def min_path_clearance(
    path: Sequence[np.ndarray],
    field: ObstacleField,
    radius: Optional[float] = None,
) -> float:
    """折线路径到障碍物表面的最小距离（圆内为负，无障碍物为 inf）"""
    if field.n_obstacles == 0 or len(path) == 0:
        return float('inf')
    r = field.radius if radius is None else radius
    pts: List[np.ndarray] = [np.asarray(p, dtype=np.float64) for p in path]
    segments = list(zip(pts[:-1], pts[1:])) or [(pts[0], pts[0])]

    best = float('inf')
    for c in field.centers:
        for a, b in segments:
            best = min(best, point_segment_distance(c, a, b) - r)
    return best


def evaluate_result(
    result: PlannerResult,
    field: ObstacleField,
    radius: Optional[float] = None,
) -> PathMetrics:
    """从 PlannerResult 计算完整指标

    安全裕度按 radius 计算；未给出时依次使用 result.collision_radius
    （规划时实际使用的半径）和 field.radius。
    """
    if radius is None:
        radius = result.collision_radius
    m = PathMetrics(
        n_waypoints=len(result.path),
        n_attempts=result.n_attempts,
        n_collision_checks=result.n_collision_checks,
        computation_time=result.computation_time,
    )
    if result.roadmap is not None:
        m.n_nodes = result.roadmap.n_nodes
        m.n_edges = result.roadmap.n_edges

    if not result.success or len(result.path) < 2:
        return m

    m.path_length = compute_path_length(result.path)
    m.direct_distance = float(np.linalg.norm(result.path[-1] - result.path[0]))
    if m.direct_distance > 1e-10:
        m.length_ratio = m.path_length / m.direct_distance
    m.smoothness, m.max_turn = compute_smoothness(result.path)
    m.min_clearance = min_path_clearance(result.path, field, radius)
    logger.debug("路径指标: 长度 %.4f, 效率 %.3f, 最小裕度 %.4f",
                 m.path_length, m.length_ratio, m.min_clearance)
    return m
