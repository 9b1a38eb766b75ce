"""
utils/timing.py - 阶段计时器

记录一次规划调用中采样 / 连边 / 搜索各阶段的耗时。
"""

import time
from contextlib import contextmanager
from typing import Dict, Iterator


class Timer:
    """阶段计时器；同名阶段重复进入时耗时累加。"""

    def __init__(self) -> None:
        self.records: Dict[str, float] = {}

    @contextmanager
    def phase(self, name: str) -> Iterator[None]:
        """记录 name 阶段的耗时 (秒)."""
        t0 = time.perf_counter()
        try:
            yield
        finally:
            dt = time.perf_counter() - t0
            self.records[name] = self.records.get(name, 0.0) + dt

    @property
    def total(self) -> float:
        return sum(self.records.values())

    def to_dict(self) -> Dict[str, float]:
        return {**self.records, "total": self.total}

    def summary(self, unit: str = "ms") -> str:
        """返回格式化汇总字符串."""
        mul = 1000.0 if unit == "ms" else 1.0
        lines = []
        for name, sec in self.records.items():
            lines.append(f"  {name:20s}: {sec * mul:8.1f} {unit}")
        lines.append(f"  {'TOTAL':20s}: {self.total * mul:8.1f} {unit}")
        return "\n".join(lines)
