#!/usr/bin/env python3
"""
评估脚本

Usage:
    python scripts/evaluate.py --agent search --games 100
    python scripts/evaluate.py --agent random --games 100 --output result.json
    python scripts/evaluate.py --tournament --games 40
    python scripts/evaluate.py --agent search --config config.json
"""
import argparse
import logging
import sys
from pathlib import Path
import json

# 添加项目根目录到路径
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from core.config import GameConfig
from env import make_env
from evaluation import (
    Evaluator,
    RandomAgent,
    SearchAgent,
    Arena,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Resource Duel Evaluation")

    # 模式
    parser.add_argument("--tournament", action="store_true", help="Run tournament")

    # 评估参数
    parser.add_argument(
        "--agent",
        type=str,
        default="search",
        choices=["random", "search"],
        help="Agent to evaluate against the built-in AI",
    )
    parser.add_argument("--games", type=int, default=100, help="Number of games")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--config", type=str, help="JSON file with game config overrides")

    # 其他
    parser.add_argument("--output", type=str, help="Output file for results")
    parser.add_argument("--verbose", action="store_true", help="Verbose output")

    return parser.parse_args()


def load_config(path):
    """从 JSON 文件加载对局配置 (评估时全部座位由电脑或智能体控制)"""
    data = {}
    if path:
        with open(path) as f:
            data = json.load(f)
    data["human_seat"] = None
    return GameConfig.from_dict(data)


def create_agent(kind: str, name: str, seed=None):
    if kind == "random":
        return RandomAgent(name, seed=seed)
    return SearchAgent(name, seed=seed)


def evaluate_single(args):
    """评估单个智能体 (对手为内置电脑)"""
    logger.info(f"Evaluating agent: {args.agent}")

    agent = create_agent(args.agent, args.agent, args.seed)
    config = load_config(args.config)
    evaluator = Evaluator(env_fn=lambda **kwargs: make_env(config=config, **kwargs))
    result = evaluator.evaluate(
        agent=agent,
        n_games=args.games,
        seed=args.seed,
        verbose=args.verbose,
    )

    logger.info("=" * 50)
    logger.info("Evaluation Results")
    logger.info("=" * 50)
    logger.info(f"Win Rate: {result.win_rate:.2%}")
    logger.info(f"Finish Rate: {result.finish_rate:.2%}")
    logger.info(f"Average Medals: {result.avg_medals:.2f}")
    logger.info(f"Average Rounds: {result.avg_rounds:.1f}")
    logger.info(f"Average Reward: {result.avg_reward:.2f}")
    logger.info(f"Average Length: {result.avg_length:.1f}")
    logger.info("=" * 50)

    if args.output:
        with open(args.output, "w") as f:
            json.dump({
                "agent": args.agent,
                "win_rate": result.win_rate,
                "finish_rate": result.finish_rate,
                "avg_medals": result.avg_medals,
                "avg_rounds": result.avg_rounds,
                "avg_reward": result.avg_reward,
                "avg_length": result.avg_length,
                "games_played": result.games_played,
            }, f, indent=2)
        logger.info(f"Results saved to {args.output}")

    return result


def run_tournament(args):
    """运行锦标赛: 两个搜索智能体对两个随机智能体"""
    logger.info(f"Running tournament with {args.games} games")

    seed = args.seed
    agents = [
        SearchAgent("search_a", seed=seed),
        RandomAgent("random_a", seed=seed),
        SearchAgent("search_b", seed=None if seed is None else seed + 1),
        RandomAgent("random_b", seed=None if seed is None else seed + 1),
    ]

    arena = Arena(load_config(args.config))
    result = arena.tournament(agents, n_games=args.games, seed=seed)

    logger.info("=" * 50)
    logger.info("Tournament Results")
    logger.info("=" * 50)

    ranking = result.get_ranking()
    for i, (name, win_rate) in enumerate(ranking):
        stats = result.standings[name]
        logger.info(f"{i+1}. {name}: {win_rate:.2%} (avg medals {stats.get('avg_medals', 0.0):.2f})")

    logger.info("=" * 50)

    if args.output:
        with open(args.output, "w") as f:
            json.dump({
                "rankings": ranking,
                "standings": result.standings,
                "total_games": result.total_games,
            }, f, indent=2)

    return result


def main():
    args = parse_args()

    if args.games <= 0:
        logger.error("--games must be positive")
        sys.exit(1)

    if args.tournament:
        run_tournament(args)
    else:
        evaluate_single(args)


if __name__ == "__main__":
    main()
