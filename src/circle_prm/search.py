"""
circle_prm/search.py - 路图最短路搜索

一致代价搜索 (UCS)，二叉最小堆 (heapq) 作为 fringe，边权为欧氏距离。

"发现即访问" 变体：
    节点在入堆时即标记为已访问并确定父节点，之后不再更新（无 decrease-key），
    即节点第一次被发现时的代价即为最终代价。该变体只在边权非负、
    图在单次调用内静态不变的前提下使用。

visited / parent 均为单次调用的局部状态，不在调用间共享。
"""

import heapq
import logging
from typing import List, Optional, Sequence

import numpy as np

from .models import SearchResult

logger = logging.getLogger(__name__)


def reconstruct_path(
    parent: Sequence[Optional[int]],
    start: int,
    goal: int,
) -> List[int]:
    """从 goal 沿父指针回溯到 start，返回 start → goal（含）的节点序列"""
    seq = [goal]
    cur = goal
    while cur != start:
        cur = parent[cur]
        if cur is None:
            raise ValueError(f"节点 {goal} 的父链未到达起点 {start}")
        seq.append(cur)
    seq.reverse()
    return seq


def path_cost(nodes: np.ndarray, node_ids: Sequence[int]) -> float:
    """节点序列的欧氏路径长度"""
    if len(node_ids) < 2:
        return 0.0
    pts = np.asarray(nodes, dtype=np.float64)[list(node_ids)]
    return float(np.sum(np.linalg.norm(np.diff(pts, axis=0), axis=1)))


def uniform_cost_search(
    nodes: np.ndarray,
    adjacency: Sequence[Sequence[int]],
    start: int,
    goal: int,
) -> SearchResult:
    """在路图上做一致代价搜索

    Args:
        nodes: 节点坐标 (n, 2)
        adjacency: 邻接表
        start: 起点节点 ID
        goal: 终点节点 ID

    Returns:
        SearchResult：到达 goal 时 success=True；fringe 耗尽时
        success=False 且 node_ids 为空（无路径是数据，不是异常）
    """
    nodes = np.asarray(nodes, dtype=np.float64)
    n = len(adjacency)
    for label, nid in (("start", start), ("goal", goal)):
        if not 0 <= nid < n:
            raise IndexError(f"{label} 节点 ID 越界: {nid} (共 {n} 个节点)")

    visited = [False] * n
    parent: List[Optional[int]] = [None] * n

    visited[start] = True
    fringe = [(0.0, start)]
    n_expanded = 0

    while fringe:
        cost, u = heapq.heappop(fringe)
        n_expanded += 1
        if u == goal:
            seq = reconstruct_path(parent, start, goal)
            logger.debug("UCS: 到达目标 %d, 代价 %.4f, 扩展 %d 个节点",
                         goal, cost, n_expanded)
            return SearchResult(success=True, node_ids=seq, cost=cost,
                                n_expanded=n_expanded)
        pu = nodes[u]
        for v in adjacency[u]:
            if visited[v]:
                continue
            visited[v] = True
            parent[v] = u
            w = float(np.linalg.norm(nodes[v] - pu))
            heapq.heappush(fringe, (cost + w, v))

    logger.debug("UCS: fringe 耗尽, %d → %d 无路径 (扩展 %d 个节点)",
                 start, goal, n_expanded)
    return SearchResult(success=False, n_expanded=n_expanded)
