"""utils - 随机种子与阶段计时工具"""

from .seed import make_rng, make_seed
from .timing import Timer

__all__ = ["make_rng", "make_seed", "Timer"]
