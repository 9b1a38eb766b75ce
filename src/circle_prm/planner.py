"""
circle_prm/planner.py - PRM 主规划器

每次查询重新构建一张路图（不做增量 / 重规划优化）。

算法流程：
1. 对障碍物场取快照（本次调用内只读）
2. 拒绝采样路图节点
3. 距离阈值内的可见节点对连边
4. 起点 / 终点映射到最近路图节点
5. 并查集判断两节点是否同一连通分量，是则一致代价搜索节点序列
6. 组装路径：[start] + 路图节点 + [goal]
7. 无路径时按 max_plan_attempts 重新采样路图
8. 把路图与路径交给调试可视化回调（可选）
"""

import logging
import time
from typing import Any, Callable, List, Optional, Sequence

import numpy as np

from .connectivity import build_union_find
from .models import PlannerConfig, PlannerResult, Roadmap, as_point
from .obstacles import ObstacleField
from .roadmap import build_roadmap, nearest_node
from .search import uniform_cost_search
from .utils.seed import make_rng
from .utils.timing import Timer

logger = logging.getLogger(__name__)

# 调试回调: (nodes, adjacency, path) -> None
DebugSink = Callable[[np.ndarray, List[List[int]], List[np.ndarray]], None]


class PRMPlanner:
    """概率路图路径规划器

    Args:
        field: 圆形障碍物场
        config: 规划参数配置
        debug_sink: 调试可视化回调（单向调用，不使用返回值）

    Example:
        >>> field = ObstacleField([(0.0, 0.0)], radius=2.0)
        >>> planner = PRMPlanner(field, PlannerConfig(node_count=150))
        >>> result = planner.plan((-5.0, 0.0), (5.0, 0.0), seed=42)
        >>> if result.success:
        ...     print(f"路径长度: {result.path_length:.4f}")
    """

    def __init__(
        self,
        field: ObstacleField,
        config: Optional[PlannerConfig] = None,
        debug_sink: Optional[DebugSink] = None,
    ) -> None:
        self.field = field
        self.config = config or PlannerConfig()
        self.config.validate()
        self.debug_sink = debug_sink

    def plan(
        self,
        start: Any,
        goal: Any,
        seed: Optional[int] = None,
    ) -> PlannerResult:
        """执行路径规划

        Args:
            start: 起点 (x, z)
            goal: 终点 (x, z)
            seed: 随机数种子（None 时使用 config.seed）

        Returns:
            PlannerResult；无路径时 success=False 且 path 为空
        """
        t0 = time.time()
        rng = make_rng(self.config.seed if seed is None else seed)
        start = as_point(start)
        goal = as_point(goal)

        field = self.field.snapshot()
        timer = Timer()
        result = PlannerResult(
            collision_radius=(field.radius if self.config.obstacle_radius is None
                              else self.config.obstacle_radius))

        for attempt in range(1, self.config.max_plan_attempts + 1):
            result.n_attempts = attempt
            roadmap = build_roadmap(field, self.config, rng, timer=timer)
            result.roadmap = roadmap
            result.n_collision_checks += roadmap.n_collision_checks
            if self._solve(roadmap, start, goal, timer, result):
                break
            if attempt < self.config.max_plan_attempts:
                logger.info("第 %d 次尝试无路径, 重新采样路图", attempt)

        result.computation_time = time.time() - t0
        result.phase_times = timer.to_dict()
        logger.debug("阶段耗时:\n%s", timer.summary())

        if result.success:
            logger.info("规划成功: %d 个路径点, 长度 %.4f, 尝试 %d 次, 耗时 %.3fs",
                        len(result.path), result.path_length,
                        result.n_attempts, result.computation_time)
        else:
            logger.warning("规划失败: %s (尝试 %d 次)",
                           result.message, result.n_attempts)

        if self.debug_sink is not None and result.roadmap is not None:
            self.debug_sink(result.roadmap.nodes, result.roadmap.adjacency,
                            list(result.path))
        return result

    def _solve(
        self,
        roadmap: Roadmap,
        start: np.ndarray,
        goal: np.ndarray,
        timer: Timer,
        result: PlannerResult,
    ) -> bool:
        """在一张路图上求解，结果写入 result，返回是否成功"""
        if roadmap.n_nodes == 0:
            result.message = "路图为空"
            return False

        start_id = nearest_node(roadmap.nodes, start)
        goal_id = nearest_node(roadmap.nodes, goal)
        result.start_node = start_id
        result.goal_node = goal_id
        logger.debug("start → 节点 %d, goal → 节点 %d", start_id, goal_id)

        result.success = False
        result.path = []
        result.node_path = []
        with timer.phase("search"):
            uf = build_union_find(roadmap.adjacency)
            if not uf.same(start_id, goal_id):
                result.message = (
                    f"路图节点 {start_id} 与 {goal_id} 不在同一连通分量 "
                    f"(分量大小 {uf.size(start_id)} / {uf.size(goal_id)}, "
                    f"共 {uf.n_components()} 个分量)")
                return False
            search = uniform_cost_search(
                roadmap.nodes, roadmap.adjacency, start_id, goal_id)

        if not search.success:
            # 弱连通但单向边阻断
            result.message = f"路图节点 {start_id} 到 {goal_id} 无有向路径"
            return False

        result.success = True
        result.node_path = search.node_ids
        result.path = ([start.copy()]
                       + [roadmap.nodes[i].copy() for i in search.node_ids]
                       + [goal.copy()])
        result.compute_path_length()
        result.message = f"UCS 扩展 {search.n_expanded} 个节点"
        return True


def plan_path(
    centers: Sequence[Any],
    radius: float,
    start: Any,
    goal: Any,
    config: Optional[PlannerConfig] = None,
    seed: Optional[int] = None,
    debug_sink: Optional[DebugSink] = None,
) -> List[np.ndarray]:
    """一次性规划：返回路径点列表，无路径时返回空列表"""
    planner = PRMPlanner(ObstacleField(centers, radius=radius), config,
                         debug_sink=debug_sink)
    return planner.plan(start, goal, seed=seed).path
