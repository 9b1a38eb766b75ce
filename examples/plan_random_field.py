#!/usr/bin/env python
"""
examples/plan_random_field.py - 随机障碍物场 PRM 规划演示

随机散布圆形障碍物，在自由空间中采样起点 / 终点，
运行 PRM 规划并输出路径质量指标与路图可视化。

输出：
  - 终端日志
  - examples/output/prm_<timestamp>/  目录下的路图 PNG、路径 JSON、配置 JSON

运行：
    python examples/plan_random_field.py
    python examples/plan_random_field.py --seed 123 --n-obs 40
    python examples/plan_random_field.py --nodes 400 --attempts 3 --no-viz
"""

from __future__ import annotations

import argparse
import logging
from datetime import datetime
from pathlib import Path

import numpy as np

from circle_prm import ObstacleField, PlannerConfig, PRMPlanner, evaluate_result
from circle_prm.roadmap import sample_free_point
from circle_prm.utils import make_seed

# ── 日志配置 ──────────────────────────────────────────────
LOG_FMT = "[%(asctime)s] %(levelname)-7s %(name)s: %(message)s"
logging.basicConfig(level=logging.INFO, format=LOG_FMT, datefmt="%H:%M:%S")
logger = logging.getLogger("plan_random_field")


def main():
    parser = argparse.ArgumentParser(
        description="随机障碍物场 PRM 规划演示")
    parser.add_argument("--seed", type=int, default=None,
                        help="随机种子 (默认: 随机)")
    parser.add_argument("--n-obs", type=int, default=30,
                        help="障碍物数量 (默认: 30)")
    parser.add_argument("--radius", type=float, default=0.6,
                        help="障碍物半径 (默认: 0.6)")
    parser.add_argument("--nodes", type=int, default=200,
                        help="路图节点数 (默认: 200)")
    parser.add_argument("--attempts", type=int, default=1,
                        help="无路径时的总尝试次数 (默认: 1)")
    parser.add_argument("--output", type=str, default="examples/output",
                        help="输出根目录 (默认: examples/output)")
    parser.add_argument("--no-viz", action="store_true",
                        help="跳过可视化")
    args = parser.parse_args()

    rng_seed = make_seed(args.seed)
    rng = np.random.default_rng(rng_seed)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = Path(args.output) / f"prm_{timestamp}"
    output_dir.mkdir(parents=True, exist_ok=True)

    logger.info("=" * 60)
    logger.info("  随机障碍物场 PRM 规划演示")
    logger.info("  随机种子: %d", rng_seed)
    logger.info("  输出目录: %s", output_dir)
    logger.info("=" * 60)

    config = PlannerConfig(node_count=args.nodes,
                           max_plan_attempts=args.attempts,
                           seed=rng_seed)
    field = ObstacleField.random(args.n_obs, rng, config.sampling_bounds,
                                 radius=args.radius)

    start, ok_s = sample_free_point(field, rng, config.sampling_bounds)
    goal, ok_g = sample_free_point(field, rng, config.sampling_bounds)
    if not (ok_s and ok_g):
        logger.warning("起点/终点采样重试耗尽, 可能位于障碍物内")
    logger.info("start = (%.3f, %.3f), goal = (%.3f, %.3f)",
                start[0], start[1], goal[0], goal[1])

    sink = None
    if not args.no_viz:
        from circle_prm.viz import RoadmapPlotter
        sink = RoadmapPlotter(field, output_dir=output_dir)

    planner = PRMPlanner(field, config, debug_sink=sink)
    result = planner.plan(start, goal)

    if result.roadmap is not None and result.roadmap.n_nodes:
        comps = result.roadmap.components()
        logger.info("路图连通分量: %d 个, 最大分量 %d 个节点",
                    len(comps), len(comps[0]))

    metrics = evaluate_result(result, field)
    for line in metrics.summary().splitlines():
        logger.info(line)

    config.to_json(output_dir / "config.json")
    field.to_json(str(output_dir / "obstacles.json"))
    path_file = result.save_path(output_dir / "path.json")
    logger.info("路径已保存到 %s", path_file)
    if not result.success:
        logger.warning("未找到路径: %s", result.message)


if __name__ == "__main__":
    main()
