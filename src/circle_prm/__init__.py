"""
circle_prm - 圆形障碍物平面上的概率路图 (PRM) 路径规划

核心思路：
1. 在采样区域内拒绝采样无碰撞节点（有界重试）
2. 在距离阈值内连接互相可见的节点对，构建可见性路图
3. 起点 / 终点映射到最近路图节点
4. 一致代价搜索 (UCS) 求最短节点序列，回溯父指针得到路径
5. 路径首尾补上真实起点与终点

每次查询都重新构建路图，调用之间不共享任何可变状态。
"""

from .models import (
    PlannerConfig,
    PlannerResult,
    Roadmap,
    SampleResult,
    SearchResult,
)
from .obstacles import ObstacleField
from .collision import (
    CollisionChecker,
    RayHit,
    clearance,
    point_in_obstacles,
    segment_clear,
    segment_intersects_obstacles,
)
from .roadmap import (
    build_roadmap,
    connect,
    nearest_node,
    sample_free_point,
    sample_nodes,
)
from .search import path_cost, reconstruct_path, uniform_cost_search
from .planner import PRMPlanner, plan_path
from .metrics import PathMetrics, evaluate_result, compute_path_length
from .connectivity import UnionFind, find_components

__version__ = "1.0.0"
__all__ = [
    # 数据模型
    'PlannerConfig',
    'PlannerResult',
    'Roadmap',
    'SampleResult',
    'SearchResult',
    # 场景与碰撞
    'ObstacleField',
    'CollisionChecker',
    'RayHit',
    'clearance',
    'point_in_obstacles',
    'segment_clear',
    'segment_intersects_obstacles',
    # 路图构建
    'build_roadmap',
    'connect',
    'nearest_node',
    'sample_free_point',
    'sample_nodes',
    # 搜索
    'path_cost',
    'reconstruct_path',
    'uniform_cost_search',
    # 规划器
    'PRMPlanner',
    'plan_path',
    # 评价指标
    'PathMetrics',
    'evaluate_result',
    'compute_path_length',
    # 连通性
    'UnionFind',
    'find_components',
]
