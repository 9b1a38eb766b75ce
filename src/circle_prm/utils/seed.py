"""
utils/seed.py - 随机种子管理

每次规划调用使用独立的 Generator，保证可复现且互不共享状态。
"""

import time
from typing import Optional

import numpy as np


def make_seed(seed: Optional[int] = 0) -> int:
    """seed 为 0 或 None 时用当前时间戳生成; 否则原样返回."""
    if not seed:
        return int(time.time_ns()) % (2**31)
    return int(seed)


def make_rng(seed: Optional[int] = 0) -> np.random.Generator:
    """返回 numpy Generator, seed 为 0/None 时自动分配."""
    return np.random.default_rng(make_seed(seed))
