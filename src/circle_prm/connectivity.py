"""
circle_prm/connectivity.py - 路图连通分量

基于 Union-Find 的连通分量检测。节点 ID 为 [0, n) 的连续整数，
父指针与分量大小直接存放在列表中。

规划器在搜索前用它判断起点 / 终点节点是否落在同一弱连通分量：
不在同一分量时必然无路径，可跳过搜索并报告两侧分量大小。
单向边也计入连通（弱连通），因此同一分量不保证存在有向路径。
"""

import logging
from typing import Dict, List, Sequence, Set

logger = logging.getLogger(__name__)


class UnionFind:
    """带路径压缩和按大小合并的并查集，元素为 0..n-1。"""

    __slots__ = ("_parent", "_size")

    def __init__(self, n: int):
        self._parent = list(range(n))
        self._size = [1] * n

    def __len__(self) -> int:
        return len(self._parent)

    def find(self, x: int) -> int:
        root = x
        while self._parent[root] != root:
            root = self._parent[root]
        # 路径压缩
        while self._parent[x] != root:
            self._parent[x], x = root, self._parent[x]
        return root

    def union(self, x: int, y: int) -> bool:
        """合并 x, y 所在集合。返回 True 表示实际合并（原先不同集合）。"""
        rx, ry = self.find(x), self.find(y)
        if rx == ry:
            return False
        if self._size[rx] < self._size[ry]:
            rx, ry = ry, rx
        self._parent[ry] = rx
        self._size[rx] += self._size[ry]
        return True

    def same(self, x: int, y: int) -> bool:
        return self.find(x) == self.find(y)

    def size(self, x: int) -> int:
        """x 所在分量的节点数"""
        return self._size[self.find(x)]

    def n_components(self) -> int:
        return sum(1 for i, p in enumerate(self._parent) if i == p)

    def components(self) -> List[Set[int]]:
        """返回所有连通分量，按大小降序。"""
        groups: Dict[int, Set[int]] = {}
        for k in range(len(self._parent)):
            groups.setdefault(self.find(k), set()).add(k)
        return sorted(groups.values(), key=len, reverse=True)


def build_union_find(adjacency: Sequence[Sequence[int]]) -> UnionFind:
    """由邻接表构建并查集（单向边也视为连通，即弱连通分量）"""
    uf = UnionFind(len(adjacency))
    for i, neighbors in enumerate(adjacency):
        for j in neighbors:
            uf.union(i, j)
    return uf


def find_components(adjacency: Sequence[Sequence[int]]) -> List[Set[int]]:
    """返回路图的弱连通分量列表，按大小降序"""
    comps = build_union_find(adjacency).components()
    logger.debug("路图连通分量: %d 个 (最大 %d 节点)",
                 len(comps), len(comps[0]) if comps else 0)
    return comps
