"""
circle_prm/models.py - 规划器数据模型

定义 PRM 规划器使用的核心数据结构：PlannerConfig、SampleResult、
Roadmap、SearchResult、PlannerResult。

坐标约定：平面点记为 (x, z)，以 shape (2,) 的 float64 数组表示；
节点集合为 shape (n, 2) 的数组，节点 ID 即行号。
"""

import json
import math
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

import numpy as np

from .connectivity import find_components

Bounds = Tuple[Tuple[float, float], Tuple[float, float]]


def as_point(p: Any) -> np.ndarray:
    """转换为 shape (2,) 的 float64 点；接受 (x, z) 或 (x, y, z)（丢弃竖直分量）"""
    arr = np.asarray(p, dtype=np.float64).reshape(-1)
    if arr.shape[0] == 3:
        arr = arr[[0, 2]]
    if arr.shape[0] != 2:
        raise ValueError(f"点必须是 (x, z) 二维坐标, 得到 shape {arr.shape}")
    return arr


@dataclass
class PlannerConfig:
    """PRM 规划器参数配置

    Attributes:
        node_count: 每次规划采样的路图节点数
        obstacle_radius: 碰撞半径覆盖值 (None = 使用障碍物场自身半径)
        node_clearance: 节点采样时障碍物的膨胀裕度
        edge_inflation: 连边可见性检测时的膨胀裕度
        max_edge_distance: 连边最大距离
        sampling_bounds: 采样区域 ((x_lo, x_hi), (z_lo, z_hi))
        retry_limit: 每个节点的拒绝采样最大重试次数
        symmetric_edges: 每个无序点对只检测一次并同时加入两个方向
        discard_exhausted_nodes: 丢弃重试耗尽后被接受的节点
        max_plan_attempts: 无路径时重新采样路图的总尝试次数
        seed: 随机数种子 (0 = 按时间生成)
    """
    node_count: int = 200
    obstacle_radius: Optional[float] = None
    node_clearance: float = 0.2
    edge_inflation: float = 0.0
    max_edge_distance: float = 5.0
    sampling_bounds: Bounds = ((-8.0, 8.0), (-8.0, 8.0))
    retry_limit: int = 1000
    symmetric_edges: bool = False
    discard_exhausted_nodes: bool = False
    max_plan_attempts: int = 1
    seed: int = 0

    def __post_init__(self) -> None:
        self.sampling_bounds = tuple(
            (float(lo), float(hi)) for lo, hi in self.sampling_bounds)

    def validate(self) -> None:
        """检查参数合法性，非法时抛出 ValueError"""
        if self.node_count < 0:
            raise ValueError(f"node_count 不能为负: {self.node_count}")
        if self.obstacle_radius is not None and (
                not math.isfinite(self.obstacle_radius)
                or self.obstacle_radius < 0):
            raise ValueError(f"obstacle_radius 非法: {self.obstacle_radius}")
        for name in ("node_clearance", "edge_inflation", "max_edge_distance"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} 非法: {value}")
        if self.retry_limit < 0:
            raise ValueError(f"retry_limit 不能为负: {self.retry_limit}")
        if self.max_plan_attempts < 1:
            raise ValueError(
                f"max_plan_attempts 至少为 1: {self.max_plan_attempts}")
        if len(self.sampling_bounds) != 2:
            raise ValueError("sampling_bounds 必须是二维区间")
        for lo, hi in self.sampling_bounds:
            if not (math.isfinite(lo) and math.isfinite(hi)) or lo > hi:
                raise ValueError(f"采样区间非法: ({lo}, {hi})")

    # ── JSON 序列化 ──

    def to_dict(self) -> Dict[str, Any]:
        """转为字典"""
        from dataclasses import fields as dc_fields
        d = {f.name: getattr(self, f.name) for f in dc_fields(self)}
        d['sampling_bounds'] = [list(b) for b in self.sampling_bounds]
        return d

    def to_json(self, filepath: str | Path) -> str:
        """保存到 JSON 文件，返回保存的文件路径字符串"""
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        return str(filepath)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PlannerConfig':
        """从字典创建（忽略未知字段，缺失字段用默认值）"""
        from dataclasses import fields as dc_fields
        valid_fields = {f.name for f in dc_fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered)

    @classmethod
    def from_json(cls, filepath: str | Path) -> 'PlannerConfig':
        """从 JSON 文件加载"""
        filepath = Path(filepath)
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return cls.from_dict(data)


@dataclass
class SampleResult:
    """拒绝采样结果

    区分 "干净采样" 与 "重试耗尽后尽力接受" 的节点，
    由调用方决定是否保留后者。

    Attributes:
        points: 采样点 (n, 2)
        exhausted: 重试耗尽后被接受的节点掩码 (n,)
        attempts: 每个节点实际使用的重试次数 (n,)
    """
    points: np.ndarray
    exhausted: np.ndarray
    attempts: np.ndarray

    @property
    def n_points(self) -> int:
        return int(self.points.shape[0])

    @property
    def n_exhausted(self) -> int:
        return int(np.count_nonzero(self.exhausted))

    def clean(self) -> 'SampleResult':
        """只保留干净采样的节点"""
        keep = ~self.exhausted
        return SampleResult(
            points=self.points[keep],
            exhausted=self.exhausted[keep],
            attempts=self.attempts[keep],
        )


@dataclass
class Roadmap:
    """概率路图

    Attributes:
        nodes: 节点坐标 (n, 2)，节点 ID 为行号
        adjacency: 邻接表，adjacency[i] 为按 ID 升序的可达邻居
        exhausted: 重试耗尽后被接受的节点掩码 (n,)
        n_collision_checks: 构建本路图时的碰撞检测次数
    """
    nodes: np.ndarray
    adjacency: List[List[int]]
    exhausted: Optional[np.ndarray] = None
    n_collision_checks: int = 0

    def __post_init__(self) -> None:
        self.nodes = np.array(self.nodes, dtype=np.float64).reshape(-1, 2)
        self.nodes.setflags(write=False)
        if self.exhausted is None:
            self.exhausted = np.zeros(self.n_nodes, dtype=bool)
        if len(self.adjacency) != self.n_nodes:
            raise ValueError(
                f"邻接表长度 {len(self.adjacency)} 与节点数 {self.n_nodes} 不一致")

    @property
    def n_nodes(self) -> int:
        return int(self.nodes.shape[0])

    @property
    def n_edges(self) -> int:
        """有向边数（对称图中每条无向边计两次）"""
        return sum(len(nb) for nb in self.adjacency)

    def degree(self, node_id: int) -> int:
        return len(self.adjacency[node_id])

    def edges(self) -> List[Tuple[int, int]]:
        """全部有向边 (i, j)"""
        return [(i, j) for i, nb in enumerate(self.adjacency) for j in nb]

    def asymmetric_edges(self) -> List[Tuple[int, int]]:
        """只存在单一方向的边 (i, j)：j 在 i 的邻居中而 i 不在 j 的邻居中"""
        sets = [set(nb) for nb in self.adjacency]
        return [(i, j) for i, j in self.edges() if i not in sets[j]]

    def components(self) -> List[Set[int]]:
        return find_components(self.adjacency)

    def edge_length(self, i: int, j: int) -> float:
        return float(np.linalg.norm(self.nodes[j] - self.nodes[i]))


@dataclass
class SearchResult:
    """最短路搜索结果

    Attributes:
        success: 是否到达目标节点
        node_ids: 起点到终点（含）的节点 ID 序列，失败时为空
        cost: 路径代价（欧氏边长之和），失败时为 inf
        n_expanded: 出堆（扩展）的节点数
    """
    success: bool = False
    node_ids: List[int] = field(default_factory=list)
    cost: float = float('inf')
    n_expanded: int = 0


@dataclass
class PlannerResult:
    """路径规划结果

    Attributes:
        success: 是否成功找到路径
        path: 路径点序列 [start, node_k..., goal]，失败时为空
        node_path: 路图节点 ID 序列
        roadmap: 最后一次尝试构建的路图
        start_node: 起点映射到的路图节点 ID
        goal_node: 终点映射到的路图节点 ID
        path_length: 路径总长度
        computation_time: 总计算时间 (s)
        phase_times: 各阶段耗时 (s)
        n_attempts: 构建路图的次数
        n_collision_checks: 所有尝试累计的碰撞检测次数
        collision_radius: 规划时实际使用的障碍物半径
        message: 描述信息
        timestamp: 时间戳
    """
    success: bool = False
    path: List[np.ndarray] = field(default_factory=list)
    node_path: List[int] = field(default_factory=list)
    roadmap: Optional[Roadmap] = None
    start_node: int = -1
    goal_node: int = -1
    path_length: float = 0.0
    computation_time: float = 0.0
    phase_times: Dict[str, float] = field(default_factory=dict)
    n_attempts: int = 0
    n_collision_checks: int = 0
    collision_radius: Optional[float] = None
    message: str = ""
    timestamp: str = field(
        default_factory=lambda: datetime.now().strftime('%Y%m%d_%H%M%S'))

    def compute_path_length(self) -> float:
        """计算并缓存路径总长度"""
        if len(self.path) < 2:
            self.path_length = 0.0
            return 0.0
        length = 0.0
        for i in range(1, len(self.path)):
            length += float(np.linalg.norm(self.path[i] - self.path[i - 1]))
        self.path_length = length
        return length

    # ── 路径序列化 ─────────────────────────────────────────

    def save_path(self, filepath: str | Path) -> str:
        """将规划路径保存为 JSON 文件，返回保存的文件路径字符串"""
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        data: Dict[str, Any] = {
            "success": self.success,
            "path": [p.tolist() for p in self.path],
            "node_path": list(self.node_path),
            "n_waypoints": len(self.path),
            "path_length": self.path_length,
            "computation_time": self.computation_time,
            "n_attempts": self.n_attempts,
            "n_collision_checks": self.n_collision_checks,
            "collision_radius": self.collision_radius,
            "message": self.message,
            "timestamp": self.timestamp,
        }
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        return str(filepath)

    @staticmethod
    def load_path(filepath: str | Path) -> Dict[str, Any]:
        """从 JSON 文件加载规划路径，path 转换为 np.ndarray 列表"""
        filepath = Path(filepath)
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
        data['path'] = [np.array(p, dtype=np.float64) for p in data['path']]
        return data
