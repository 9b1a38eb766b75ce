"""
circle_prm/obstacles.py - 圆形障碍物场

管理平面上的一组圆形障碍物：所有障碍物共享同一半径，
查询时的膨胀裕度由调用方按次传入，不保存在障碍物上。
提供增删、随机生成与 JSON 持久化。
"""

import json
import logging
import math
from typing import Any, Dict, Optional, Sequence

import numpy as np

from .models import Bounds, as_point

logger = logging.getLogger(__name__)


class ObstacleField:
    """圆形障碍物场

    Args:
        centers: 障碍物中心序列 [(x, z), ...]（也接受 (x, y, z)，竖直分量丢弃）
        radius: 共享半径

    Example:
        >>> field = ObstacleField([(0.0, 0.0), (2.0, 1.5)], radius=0.6)
        >>> field.add_obstacle((-3.0, 4.0))
        >>> field.n_obstacles
        3
    """

    def __init__(
        self,
        centers: Optional[Sequence[Any]] = None,
        radius: float = 0.6,
    ) -> None:
        radius = float(radius)
        if not math.isfinite(radius) or radius < 0:
            raise ValueError(f"障碍物半径非法: {radius}")
        self._radius = radius
        self._centers = np.empty((0, 2), dtype=np.float64)
        if centers is not None and len(centers) > 0:
            self._centers = np.array([as_point(c) for c in centers],
                                     dtype=np.float64)
        if not np.all(np.isfinite(self._centers)):
            raise ValueError("障碍物中心包含非有限值")

    @property
    def radius(self) -> float:
        return self._radius

    @property
    def centers(self) -> np.ndarray:
        """障碍物中心 (m, 2) 的只读视图"""
        view = self._centers.view()
        view.setflags(write=False)
        return view

    @property
    def n_obstacles(self) -> int:
        return int(self._centers.shape[0])

    def add_obstacle(self, center: Any) -> np.ndarray:
        """添加一个障碍物，返回其中心"""
        c = as_point(center)
        if not np.all(np.isfinite(c)):
            raise ValueError(f"障碍物中心非法: {c.tolist()}")
        self._centers = np.vstack([self._centers, c[None, :]])
        logger.debug("添加障碍物 #%d: center=%s", self.n_obstacles - 1, c.tolist())
        return c

    def remove_obstacle(self, index: int) -> None:
        """按索引移除障碍物"""
        if not 0 <= index < self.n_obstacles:
            raise IndexError(f"障碍物索引越界: {index}")
        self._centers = np.delete(self._centers, index, axis=0)

    def clear(self) -> None:
        """清空所有障碍物"""
        self._centers = np.empty((0, 2), dtype=np.float64)

    def snapshot(self) -> 'ObstacleField':
        """返回独立拷贝，供单次规划调用只读使用"""
        return ObstacleField(self._centers.copy(), radius=self._radius)

    # ── 随机生成 ──

    @classmethod
    def random(
        cls,
        n_obstacles: int,
        rng: np.random.Generator,
        bounds: Bounds = ((-8.0, 8.0), (-8.0, 8.0)),
        radius: float = 0.6,
    ) -> 'ObstacleField':
        """在 bounds 内均匀随机散布 n_obstacles 个障碍物"""
        if n_obstacles < 0:
            raise ValueError(f"n_obstacles 不能为负: {n_obstacles}")
        (x_lo, x_hi), (z_lo, z_hi) = bounds
        xs = rng.uniform(x_lo, x_hi, size=n_obstacles)
        zs = rng.uniform(z_lo, z_hi, size=n_obstacles)
        field = cls(np.column_stack([xs, zs]), radius=radius)
        logger.info("随机障碍物场: %d 个, 半径 %.3f", n_obstacles, radius)
        return field

    # ── 序列化 ──

    def to_dict(self) -> Dict[str, Any]:
        return {
            'radius': self._radius,
            'centers': self._centers.tolist(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ObstacleField':
        """从字典加载: {'radius': r, 'centers': [[x, z], ...]}"""
        return cls(data.get('centers', []), radius=data.get('radius', 0.6))

    def to_json(self, filepath: str) -> None:
        """保存障碍物场到 JSON 文件"""
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    @classmethod
    def from_json(cls, filepath: str) -> 'ObstacleField':
        """从 JSON 文件加载障碍物场"""
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return cls.from_dict(data)

    def __len__(self) -> int:
        return self.n_obstacles

    def __repr__(self) -> str:
        return (f"ObstacleField(n_obstacles={self.n_obstacles}, "
                f"radius={self._radius})")
