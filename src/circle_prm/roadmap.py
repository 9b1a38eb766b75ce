"""
circle_prm/roadmap.py - 概率路图构建

负责：
1. 拒绝采样路图节点（有界重试，耗尽后尽力接受并打标记）
2. 在距离阈值内连接互相可见的节点对，得到可见性图
3. 把任意查询点映射到最近的路图节点

连边策略：
- 候选点对由 cKDTree.query_pairs 在 max_edge_distance 内给出（局部性剪枝）
- 默认每个方向独立做可见性检测（不假设也不强制对称）
- 采样与可见性检测都经由 CollisionChecker，统计检测次数
- symmetric=True 时每个无序点对只检测一次，两个方向同时加入
"""

import logging
from typing import Any, Callable, List, Optional, Tuple

import numpy as np
from scipy.spatial import cKDTree

from .collision import CollisionChecker
from .models import Bounds, PlannerConfig, Roadmap, SampleResult
from .obstacles import ObstacleField
from .utils.timing import Timer

logger = logging.getLogger(__name__)

DEFAULT_BOUNDS: Bounds = ((-8.0, 8.0), (-8.0, 8.0))


def _draw(rng: np.random.Generator, bounds: Bounds) -> np.ndarray:
    (x_lo, x_hi), (z_lo, z_hi) = bounds
    return np.array([rng.uniform(x_lo, x_hi), rng.uniform(z_lo, z_hi)])


def _rejection_sample(
    is_blocked: Callable[[np.ndarray], bool],
    rng: np.random.Generator,
    bounds: Bounds,
    retry_limit: int,
) -> Tuple[np.ndarray, int, bool]:
    """采样一个点；被阻挡时最多重试 retry_limit 次

    Returns:
        (point, attempts, clean)
        attempts: 实际重试次数；clean: 最终点是否无碰撞
    """
    point = _draw(rng, bounds)
    blocked = is_blocked(point)
    attempts = 0
    while blocked and attempts < retry_limit:
        point = _draw(rng, bounds)
        blocked = is_blocked(point)
        attempts += 1
    return point, attempts, not blocked


# ==================== 节点采样 ====================

def sample_nodes(
    count: int,
    centers: Any,
    radius: float,
    inflation: float,
    rng: np.random.Generator,
    bounds: Bounds = DEFAULT_BOUNDS,
    retry_limit: int = 1000,
    checker: Optional[CollisionChecker] = None,
) -> SampleResult:
    """拒绝采样 count 个路图节点

    每个候选点若落在膨胀障碍物内则重新抽样，最多重试 retry_limit 次；
    重试耗尽后接受最后一个候选并在 exhausted 中标记。

    Args:
        count: 节点数
        centers: 障碍物中心 (m, 2)
        radius: 障碍物半径
        inflation: 采样膨胀裕度
        rng: 随机数生成器
        bounds: 采样区域
        retry_limit: 每个节点的最大重试次数
        checker: 共享的碰撞检测器（给定时 centers / radius / inflation
            以检测器为准，检测次数计入该检测器）

    Returns:
        SampleResult
    """
    if count < 0:
        raise ValueError(f"count 不能为负: {count}")
    if retry_limit < 0:
        raise ValueError(f"retry_limit 不能为负: {retry_limit}")
    if checker is None:
        checker = CollisionChecker(ObstacleField(centers, radius=radius),
                                   node_clearance=inflation)

    points = np.empty((count, 2), dtype=np.float64)
    exhausted = np.zeros(count, dtype=bool)
    attempts = np.zeros(count, dtype=np.int64)

    for i in range(count):
        points[i], attempts[i], clean = _rejection_sample(
            checker.check_point, rng, bounds, retry_limit)
        exhausted[i] = not clean

    result = SampleResult(points=points, exhausted=exhausted, attempts=attempts)
    if result.n_exhausted:
        logger.warning("采样重试耗尽: %d / %d 个节点在障碍物内被接受",
                       result.n_exhausted, count)
    logger.debug("采样 %d 个节点, 平均重试 %.1f 次",
                 count, float(attempts.mean()) if count else 0.0)
    return result


def sample_free_point(
    field: ObstacleField,
    rng: np.random.Generator,
    bounds: Bounds = DEFAULT_BOUNDS,
    inflation: float = 0.5,
    retry_limit: int = 1000,
) -> Tuple[np.ndarray, bool]:
    """在自由空间中采样一个点（用于放置起点/目标点）

    Returns:
        (point, clean)：clean=False 表示重试耗尽，点可能在障碍物内
    """
    checker = CollisionChecker(field, node_clearance=inflation)
    point, _, clean = _rejection_sample(
        checker.check_point, rng, bounds, retry_limit)
    if not clean:
        logger.warning("自由点采样重试耗尽, 接受 %s", point.tolist())
    return point, clean


# ==================== 连边 ====================

def connect(
    nodes: np.ndarray,
    centers: Any,
    radius: float,
    max_edge_distance: float,
    inflation: float = 0.0,
    symmetric: bool = False,
    checker: Optional[CollisionChecker] = None,
) -> List[List[int]]:
    """连接距离不超过 max_edge_distance 且互相可见的节点

    Args:
        nodes: 节点坐标 (n, 2)
        centers: 障碍物中心 (m, 2)
        radius: 障碍物半径
        max_edge_distance: 最大边长
        inflation: 可见性检测的膨胀裕度
        symmetric: 每个无序点对只检测一次并加入两个方向
        checker: 共享的碰撞检测器（给定时 centers / radius / inflation
            以检测器为准）

    Returns:
        邻接表，每个邻居列表按节点 ID 升序
    """
    if max_edge_distance < 0:
        raise ValueError(f"max_edge_distance 不能为负: {max_edge_distance}")
    nodes = np.asarray(nodes, dtype=np.float64).reshape(-1, 2)
    n = nodes.shape[0]
    adjacency: List[List[int]] = [[] for _ in range(n)]
    if n < 2:
        return adjacency

    if checker is None:
        checker = CollisionChecker(ObstacleField(centers, radius=radius),
                                   edge_inflation=inflation)
    n_before = checker.n_collision_checks
    pairs = cKDTree(nodes).query_pairs(r=max_edge_distance,
                                       output_type='ndarray')

    for i, j in pairs:
        i, j = int(i), int(j)
        if symmetric:
            if not checker.check_segment(nodes[i], nodes[j]):
                adjacency[i].append(j)
                adjacency[j].append(i)
            continue
        if not checker.check_segment(nodes[i], nodes[j]):
            adjacency[i].append(j)
        if not checker.check_segment(nodes[j], nodes[i]):
            adjacency[j].append(i)

    for neighbors in adjacency:
        neighbors.sort()

    n_edges = sum(len(nb) for nb in adjacency)
    logger.debug("连边: %d 个候选点对, %d 次可见性检测, %d 条有向边",
                 len(pairs), checker.n_collision_checks - n_before, n_edges)
    return adjacency


# ==================== 最近节点 ====================

def nearest_node(nodes: np.ndarray, query: Any) -> int:
    """线性扫描返回离 query 最近的节点 ID（距离相同取最小 ID）"""
    nodes = np.asarray(nodes, dtype=np.float64).reshape(-1, 2)
    if nodes.shape[0] == 0:
        raise ValueError("路图为空, 无法查询最近节点")
    q = np.asarray(query, dtype=np.float64)
    dists = np.linalg.norm(nodes - q, axis=1)
    return int(np.argmin(dists))


# ==================== 路图构建 ====================

def build_roadmap(
    field: ObstacleField,
    config: Optional[PlannerConfig] = None,
    rng: Optional[np.random.Generator] = None,
    timer: Optional[Timer] = None,
) -> Roadmap:
    """采样 + 连边，构建一张新的路图

    采样与连边共用一个 CollisionChecker，检测总数记入
    Roadmap.n_collision_checks。

    Args:
        field: 障碍物场（本次调用内只读）
        config: 规划参数
        rng: 随机数生成器
        timer: 阶段计时器（可选，记录 sample / connect 耗时）

    Returns:
        Roadmap
    """
    config = config or PlannerConfig()
    config.validate()
    if rng is None:
        rng = np.random.default_rng()
    if timer is None:
        timer = Timer()

    checker = CollisionChecker(
        field, node_clearance=config.node_clearance,
        edge_inflation=config.edge_inflation, radius=config.obstacle_radius)
    centers = field.centers
    with timer.phase("sample"):
        samples = sample_nodes(
            config.node_count, centers, checker.radius, config.node_clearance,
            rng, bounds=config.sampling_bounds, retry_limit=config.retry_limit,
            checker=checker)
    if config.discard_exhausted_nodes and samples.n_exhausted:
        logger.info("丢弃 %d 个重试耗尽的节点", samples.n_exhausted)
        samples = samples.clean()

    with timer.phase("connect"):
        adjacency = connect(
            samples.points, centers, checker.radius, config.max_edge_distance,
            inflation=config.edge_inflation, symmetric=config.symmetric_edges,
            checker=checker)

    roadmap = Roadmap(nodes=samples.points, adjacency=adjacency,
                      exhausted=samples.exhausted,
                      n_collision_checks=checker.n_collision_checks)
    logger.info("路图: %d 节点, %d 条有向边, %d 次碰撞检测",
                roadmap.n_nodes, roadmap.n_edges, roadmap.n_collision_checks)
    return roadmap
