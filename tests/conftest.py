"""tests/conftest.py - 共享 fixtures"""
import os

os.environ.setdefault("MPLBACKEND", "Agg")

import numpy as np
import pytest

from circle_prm.models import PlannerConfig
from circle_prm.obstacles import ObstacleField


# ==================== 障碍物场 ====================

@pytest.fixture
def empty_field():
    """空场景（无障碍物）"""
    return ObstacleField([], radius=0.6)


@pytest.fixture
def single_obstacle_field():
    """原点处一个半径 2 的障碍物"""
    return ObstacleField([(0.0, 0.0)], radius=2.0)


@pytest.fixture
def ring_field():
    """围住原点的一圈障碍物：圆心在半径 3 的圆上，相邻圆互相重叠

    圈内区域与外界完全隔断。
    """
    angles = np.linspace(0.0, 2.0 * np.pi, 24, endpoint=False)
    centers = np.column_stack([3.0 * np.cos(angles), 3.0 * np.sin(angles)])
    return ObstacleField(centers, radius=0.9)


@pytest.fixture
def full_cover_field():
    """单个巨大障碍物完全覆盖 [-8, 8]² 采样区域"""
    return ObstacleField([(0.0, 0.0)], radius=20.0)


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def default_config():
    return PlannerConfig()
