"""
circle_prm/collision.py - 碰撞检测模块

提供圆形障碍物场上的无状态几何谓词：
- 点碰撞检测：点到任一圆心距离 < 半径 + 膨胀裕度
- 射线/线段碰撞检测：逐圆求解射线-圆二次方程（按膨胀半径）
- 线段可见性：两点连线是否不与任何膨胀障碍物相交

退化几何说明：
    方向向量长度为零（或含非有限值）时无法归一化，此时按
    "零距离、无相交" 处理，不让 NaN 进入距离比较和优先队列。
"""

import logging
from typing import Any, NamedTuple, Optional

import numpy as np

from .obstacles import ObstacleField

logger = logging.getLogger(__name__)

# 方向向量长度低于此值视为退化
_EPS = 1e-12


class RayHit(NamedTuple):
    """射线检测结果

    Attributes:
        hit: 是否相交
        t: 最近交点的射线参数（起点在圆内时为 0，未相交时为 inf）
        index: 相交障碍物索引（未相交为 -1）
    """
    hit: bool
    t: float
    index: int


_MISS = RayHit(False, float('inf'), -1)
_DEGENERATE = RayHit(False, 0.0, -1)


def _as_centers(centers: Any) -> np.ndarray:
    arr = np.asarray(centers, dtype=np.float64)
    if arr.size == 0:
        return np.empty((0, 2), dtype=np.float64)
    return arr.reshape(-1, 2)


def point_in_obstacles(
    centers: Any,
    radius: float,
    point: Any,
    inflation: float = 0.0,
) -> bool:
    """点是否落在任一膨胀后的圆内

    Args:
        centers: 障碍物中心 (m, 2)
        radius: 共享半径
        point: 查询点 (x, z)
        inflation: 膨胀裕度

    Returns:
        True 表示点到某个圆心的距离严格小于 radius + inflation
    """
    c = _as_centers(centers)
    if c.shape[0] == 0:
        return False
    p = np.asarray(point, dtype=np.float64)
    r = radius + inflation
    d2 = np.sum((c - p) ** 2, axis=1)
    return bool(np.any(d2 < r * r))


def segment_intersects_obstacles(
    centers: Any,
    radius: float,
    origin: Any,
    direction: Any,
    max_distance: float,
    inflation: float = 0.0,
) -> RayHit:
    """射线-圆列表相交检测

    对每个圆求解 |o + t·d - c|² = R² (R = radius + inflation)，
    若较近根 t1 ∈ [0, max_distance]，或起点已在圆内 (t1 < 0 < t2)，
    则判为相交。返回所有相交中 t 最小的一个。

    Args:
        centers: 障碍物中心 (m, 2)
        radius: 共享半径
        origin: 射线起点
        direction: 射线方向（内部会归一化）
        max_distance: 线段长度
        inflation: 膨胀裕度

    Returns:
        RayHit
    """
    if max_distance < 0:
        raise ValueError(f"max_distance 不能为负: {max_distance}")
    c = _as_centers(centers)

    d = np.asarray(direction, dtype=np.float64)
    norm = float(np.linalg.norm(d))
    if not np.isfinite(norm) or norm < _EPS or max_distance == 0.0:
        return _DEGENERATE
    if c.shape[0] == 0:
        return _MISS
    d = d / norm

    o = np.asarray(origin, dtype=np.float64)
    r = radius + inflation
    to_c = c - o
    # a = d·d = 1
    b = -2.0 * (to_c @ d)
    cc = np.sum(to_c * to_c, axis=1) - r * r
    disc = b * b - 4.0 * cc

    valid = disc >= 0.0
    if not np.any(valid):
        return _MISS
    sq = np.sqrt(np.where(valid, disc, 0.0))
    t1 = (-b - sq) / 2.0
    t2 = (-b + sq) / 2.0

    front = valid & (t1 >= 0.0) & (t1 <= max_distance)
    inside = valid & (t1 < 0.0) & (t2 > 0.0)
    t_hit = np.where(front, t1, np.where(inside, 0.0, np.inf))

    idx = int(np.argmin(t_hit))
    if not np.isfinite(t_hit[idx]):
        return _MISS
    return RayHit(True, float(t_hit[idx]), idx)


def segment_clear(
    centers: Any,
    radius: float,
    a: Any,
    b: Any,
    inflation: float = 0.0,
) -> bool:
    """两点连线是否不与任何膨胀障碍物相交（重合点视为可见）"""
    pa = np.asarray(a, dtype=np.float64)
    delta = np.asarray(b, dtype=np.float64) - pa
    dist = float(np.linalg.norm(delta))
    if dist < _EPS:
        return True
    hit = segment_intersects_obstacles(
        centers, radius, pa, delta / dist, dist, inflation)
    return not hit.hit


def clearance(centers: Any, radius: float, point: Any) -> float:
    """点到最近障碍物表面的有符号距离（圆内为负，无障碍物为 inf）"""
    c = _as_centers(centers)
    if c.shape[0] == 0:
        return float('inf')
    p = np.asarray(point, dtype=np.float64)
    return float(np.min(np.linalg.norm(c - p, axis=1)) - radius)


class CollisionChecker:
    """碰撞检测器

    绑定一个障碍物场，封装点/线段检测并统计调用次数。
    每次构建路图使用独立实例，不在调用间共享；
    采样与连边都经由同一个实例，n_collision_checks 即本次路图的检测总数。

    Args:
        field: 障碍物场
        node_clearance: 点检测的膨胀裕度
        edge_inflation: 线段检测的膨胀裕度
        radius: 碰撞半径覆盖值（None = 使用障碍物场半径）

    Example:
        >>> checker = CollisionChecker(field, node_clearance=0.2)
        >>> checker.check_point([1.0, 2.0])
        False
        >>> checker.check_segment([0.0, 0.0], [3.0, 0.0])
        True
    """

    def __init__(
        self,
        field: ObstacleField,
        node_clearance: float = 0.0,
        edge_inflation: float = 0.0,
        radius: Optional[float] = None,
    ) -> None:
        self.field = field
        self.node_clearance = node_clearance
        self.edge_inflation = edge_inflation
        self.radius = field.radius if radius is None else float(radius)
        self._centers = field.centers
        self._n_collision_checks = 0

    @property
    def n_collision_checks(self) -> int:
        """累计碰撞检测调用次数"""
        return self._n_collision_checks

    def reset_counter(self) -> None:
        """重置碰撞检测计数器"""
        self._n_collision_checks = 0

    def check_point(self, point: Any) -> bool:
        """True = 点在膨胀障碍物内"""
        self._n_collision_checks += 1
        return point_in_obstacles(
            self._centers, self.radius, point, self.node_clearance)

    def check_segment(self, a: Any, b: Any) -> bool:
        """True = 线段与膨胀障碍物相交"""
        self._n_collision_checks += 1
        return not segment_clear(
            self._centers, self.radius, a, b, self.edge_inflation)

    def clearance(self, point: Any) -> float:
        return clearance(self._centers, self.radius, point)
