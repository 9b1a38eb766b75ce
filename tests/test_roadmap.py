"""tests/test_roadmap.py - 节点采样、连边与路图构建测试"""
import numpy as np
import pytest

from circle_prm.collision import (
    CollisionChecker,
    point_in_obstacles,
    segment_clear,
)
from circle_prm.models import PlannerConfig
from circle_prm.obstacles import ObstacleField
from circle_prm.roadmap import (
    build_roadmap,
    connect,
    nearest_node,
    sample_free_point,
    sample_nodes,
)
from circle_prm.utils.timing import Timer


BOUNDS = ((-8.0, 8.0), (-8.0, 8.0))


def _random_fields():
    """不同密度、不同种子的随机障碍物场"""
    for n_obs in (5, 20, 60):
        for seed in (1, 7, 42):
            rng = np.random.default_rng(seed)
            yield ObstacleField.random(n_obs, rng, BOUNDS, radius=0.6), rng


class TestSampleNodes:

    def test_empty_field_no_retries(self, empty_field, rng):
        res = sample_nodes(50, empty_field.centers, empty_field.radius, 0.2, rng)
        assert res.n_points == 50
        assert res.n_exhausted == 0
        assert np.all(res.attempts == 0)
        assert np.all(res.points >= -8.0) and np.all(res.points <= 8.0)

    def test_respects_bounds(self, empty_field, rng):
        bounds = ((1.0, 2.0), (-3.0, -2.5))
        res = sample_nodes(30, empty_field.centers, 0.6, 0.2, rng, bounds=bounds)
        assert np.all((res.points[:, 0] >= 1.0) & (res.points[:, 0] <= 2.0))
        assert np.all((res.points[:, 1] >= -3.0) & (res.points[:, 1] <= -2.5))

    def test_clean_nodes_outside_inflated_obstacles(self):
        """随机场景下，未耗尽的节点都不在膨胀障碍物内"""
        for field, rng in _random_fields():
            res = sample_nodes(100, field.centers, field.radius, 0.2, rng)
            for p, exhausted in zip(res.points, res.exhausted):
                if not exhausted:
                    assert not point_in_obstacles(
                        field.centers, field.radius, p, 0.2)

    def test_full_cover_exhausts_every_node(self, full_cover_field, rng):
        res = sample_nodes(5, full_cover_field.centers, full_cover_field.radius,
                           0.2, rng, retry_limit=50)
        assert res.n_points == 5
        assert res.n_exhausted == 5
        np.testing.assert_array_equal(res.attempts, np.full(5, 50))

    def test_zero_retry_limit(self, full_cover_field, rng):
        res = sample_nodes(3, full_cover_field.centers, full_cover_field.radius,
                           0.2, rng, retry_limit=0)
        assert res.n_exhausted == 3
        assert np.all(res.attempts == 0)

    def test_zero_count(self, empty_field, rng):
        res = sample_nodes(0, empty_field.centers, 0.6, 0.2, rng)
        assert res.points.shape == (0, 2)
        assert res.n_exhausted == 0

    def test_negative_count_raises(self, empty_field, rng):
        with pytest.raises(ValueError):
            sample_nodes(-1, empty_field.centers, 0.6, 0.2, rng)

    def test_negative_retry_limit_raises(self, empty_field, rng):
        with pytest.raises(ValueError):
            sample_nodes(3, empty_field.centers, 0.6, 0.2, rng, retry_limit=-1)

    def test_clean_drops_exhausted(self, full_cover_field, rng):
        res = sample_nodes(4, full_cover_field.centers, full_cover_field.radius,
                           0.0, rng, retry_limit=2)
        assert res.clean().n_points == 0

    def test_shared_checker_counts_every_draw(self, full_cover_field, rng):
        """重试耗尽时每个节点检测 1 + retry_limit 次"""
        checker = CollisionChecker(full_cover_field, node_clearance=0.2)
        sample_nodes(4, full_cover_field.centers, full_cover_field.radius,
                     0.2, rng, retry_limit=9, checker=checker)
        assert checker.n_collision_checks == 4 * 10

    def test_checker_radius_takes_precedence(self, rng):
        field = ObstacleField([(0.0, 0.0)], radius=0.1)
        checker = CollisionChecker(field, node_clearance=0.2, radius=3.0)
        res = sample_nodes(100, field.centers, field.radius, 0.2, rng,
                           checker=checker)
        clean = res.points[~res.exhausted]
        assert np.all(np.linalg.norm(clean, axis=1) >= 3.2)

    def test_reproducible(self, single_obstacle_field):
        a = sample_nodes(20, single_obstacle_field.centers, 2.0, 0.2,
                         np.random.default_rng(3))
        b = sample_nodes(20, single_obstacle_field.centers, 2.0, 0.2,
                         np.random.default_rng(3))
        np.testing.assert_array_equal(a.points, b.points)


class TestSampleFreePoint:

    def test_clean_point_is_free(self, single_obstacle_field, rng):
        for _ in range(20):
            p, clean = sample_free_point(single_obstacle_field, rng)
            assert clean
            assert not point_in_obstacles(
                single_obstacle_field.centers, 2.0, p, 0.5)

    def test_full_cover_not_clean(self, full_cover_field, rng):
        p, clean = sample_free_point(full_cover_field, rng, retry_limit=10)
        assert not clean
        assert p.shape == (2,)


class TestConnect:

    def test_blocked_pair_not_connected(self):
        nodes = np.array([[-5.0, 0.0], [5.0, 0.0]])
        adj = connect(nodes, [[0.0, 0.0]], 2.0, 20.0)
        assert adj == [[], []]

    def test_visible_pair_connected_both_ways(self):
        nodes = np.array([[-5.0, 3.0], [5.0, 3.0]])
        adj = connect(nodes, [[0.0, 0.0]], 2.0, 20.0)
        assert adj == [[1], [0]]

    def test_distance_cutoff(self):
        nodes = np.array([[0.0, 0.0], [6.0, 0.0], [0.0, 5.0]])
        adj = connect(nodes, np.empty((0, 2)), 0.6, 5.0)
        # (0, 2) 恰好等于阈值，保留
        assert adj == [[2], [], [0]]

    def test_complete_graph_without_obstacles(self, rng):
        nodes = rng.uniform(-2.0, 2.0, size=(15, 2))
        adj = connect(nodes, np.empty((0, 2)), 0.6, 10.0)
        for i, nb in enumerate(adj):
            assert nb == [j for j in range(15) if j != i]

    def test_neighbor_lists_sorted(self, rng):
        nodes = rng.uniform(-8.0, 8.0, size=(80, 2))
        for nb in connect(nodes, [[0.0, 0.0]], 1.5, 5.0):
            assert nb == sorted(nb)

    def test_edges_are_short_and_clear(self):
        """随机场景下，每条边都满足距离阈值且线段无碰撞"""
        for field, rng in _random_fields():
            res = sample_nodes(80, field.centers, field.radius, 0.2, rng)
            nodes = res.points
            adj = connect(nodes, field.centers, field.radius, 5.0)
            for i, nb in enumerate(adj):
                assert i not in nb
                for j in nb:
                    assert np.linalg.norm(nodes[j] - nodes[i]) <= 5.0
                    assert segment_clear(field.centers, field.radius,
                                         nodes[i], nodes[j])

    def test_symmetric_option(self):
        for field, rng in _random_fields():
            nodes = sample_nodes(60, field.centers, field.radius, 0.2,
                                 rng).points
            adj = connect(nodes, field.centers, field.radius, 5.0,
                          symmetric=True)
            for i, nb in enumerate(adj):
                for j in nb:
                    assert i in adj[j]

    def test_inflation_removes_grazing_edge(self):
        nodes = np.array([[-5.0, 2.3], [5.0, 2.3]])
        assert connect(nodes, [[0.0, 0.0]], 2.0, 20.0) == [[1], [0]]
        assert connect(nodes, [[0.0, 0.0]], 2.0, 20.0,
                       inflation=0.5) == [[], []]

    def test_nearly_coincident_nodes_visible_inside_obstacle(self):
        """重合 / 几乎重合的节点视为互相可见，与 segment_clear 一致"""
        for offset in (0.0, 1e-13):
            nodes = np.array([[0.5, 0.5], [0.5 + offset, 0.5]])
            adj = connect(nodes, [[0.0, 0.0]], 2.0, 5.0)
            assert adj == [[1], [0]]
            assert segment_clear([[0.0, 0.0]], 2.0, nodes[0], nodes[1])

    def test_checker_counts_visibility_tests(self, rng):
        nodes = rng.uniform(-2.0, 2.0, size=(15, 2))
        field = ObstacleField([], radius=0.6)
        per_direction = CollisionChecker(field)
        connect(nodes, [], 0.6, 10.0, checker=per_direction)
        assert per_direction.n_collision_checks == 2 * 105

        symmetric = CollisionChecker(field)
        connect(nodes, [], 0.6, 10.0, symmetric=True, checker=symmetric)
        assert symmetric.n_collision_checks == 105

    def test_single_and_empty(self):
        assert connect(np.empty((0, 2)), [], 0.6, 5.0) == []
        assert connect(np.array([[1.0, 1.0]]), [], 0.6, 5.0) == [[]]

    def test_negative_distance_raises(self):
        with pytest.raises(ValueError):
            connect(np.zeros((2, 2)), [], 0.6, -1.0)


class TestNearestNode:

    def test_node_maps_to_itself(self, rng):
        nodes = rng.uniform(-8.0, 8.0, size=(40, 2))
        for k in range(40):
            assert nearest_node(nodes, nodes[k]) == k

    def test_tie_goes_to_lowest_id(self):
        nodes = np.array([[1.0, 0.0], [-1.0, 0.0], [0.0, 1.0]])
        assert nearest_node(nodes, [0.0, 0.0]) == 0

    def test_simple_query(self):
        nodes = np.array([[0.0, 0.0], [5.0, 5.0], [-3.0, 2.0]])
        assert nearest_node(nodes, [4.0, 4.5]) == 1

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            nearest_node(np.empty((0, 2)), [0.0, 0.0])


class TestBuildRoadmap:

    def test_basic(self, single_obstacle_field, rng):
        config = PlannerConfig(node_count=120)
        rm = build_roadmap(single_obstacle_field, config, rng)
        assert rm.n_nodes == 120
        assert len(rm.adjacency) == 120
        assert rm.exhausted.shape == (120,)
        assert rm.n_edges == len(rm.edges())

    def test_nodes_read_only(self, empty_field, rng):
        rm = build_roadmap(empty_field, PlannerConfig(node_count=10), rng)
        with pytest.raises(ValueError):
            rm.nodes[0, 0] = 100.0

    def test_keeps_exhausted_nodes_by_default(self, full_cover_field, rng):
        config = PlannerConfig(node_count=20, retry_limit=10)
        rm = build_roadmap(full_cover_field, config, rng)
        assert rm.n_nodes == 20
        assert np.all(rm.exhausted)

    def test_discard_exhausted_nodes(self, full_cover_field, rng):
        config = PlannerConfig(node_count=20, retry_limit=10,
                               discard_exhausted_nodes=True)
        rm = build_roadmap(full_cover_field, config, rng)
        assert rm.n_nodes == 0
        assert rm.adjacency == []

    def test_obstacle_radius_override(self, rng):
        field = ObstacleField([(0.0, 0.0)], radius=0.1)
        config = PlannerConfig(node_count=200, obstacle_radius=3.0)
        rm = build_roadmap(field, config, rng)
        clean = rm.nodes[~rm.exhausted]
        assert np.all(np.linalg.norm(clean, axis=1) >= 3.2)

    def test_symmetric_config(self, single_obstacle_field, rng):
        config = PlannerConfig(node_count=100, symmetric_edges=True)
        rm = build_roadmap(single_obstacle_field, config, rng)
        assert rm.asymmetric_edges() == []

    def test_collision_checks_recorded(self, full_cover_field, rng):
        config = PlannerConfig(node_count=20, retry_limit=10,
                               discard_exhausted_nodes=True)
        rm = build_roadmap(full_cover_field, config, rng)
        # 全部节点被丢弃，连边不再检测
        assert rm.n_collision_checks == 20 * 11

    def test_collision_checks_include_connect(self, empty_field, rng):
        rm = build_roadmap(empty_field, PlannerConfig(node_count=30), rng)
        assert rm.n_collision_checks > 30

    def test_timer_phases(self, empty_field, rng):
        timer = Timer()
        build_roadmap(empty_field, PlannerConfig(node_count=30), rng,
                      timer=timer)
        assert set(timer.records) == {"sample", "connect"}

    def test_invalid_config_raises(self, empty_field, rng):
        with pytest.raises(ValueError):
            build_roadmap(empty_field, PlannerConfig(node_count=-5), rng)
