"""
评估器

评估智能体在环境中的表现
"""
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass, field
import logging
import random

import numpy as np

from core.actions import Action
from core.session import ai_action
from core.state import GameState

logger = logging.getLogger(__name__)


@dataclass
class EvalResult:
    """评估结果"""
    win_rate: float
    avg_reward: float
    avg_length: float
    games_played: int
    avg_medals: float = 0.0
    avg_rounds: float = 0.0
    finish_rate: float = 0.0
    extra_stats: Dict[str, float] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"EvalResult(win_rate={self.win_rate:.2%}, "
            f"avg_medals={self.avg_medals:.2f}, "
            f"games={self.games_played})"
        )


class Agent:
    """智能体基类"""

    def __init__(self, name: str = "agent"):
        self.name = name

    def act(
        self,
        obs: Dict[str, Any],
        legal_actions: List[Action],
        state: Optional[GameState] = None,
    ) -> Any:
        """
        选择动作

        Args:
            obs: 观测
            legal_actions: 合法动作列表
            state: 完整状态 (可选，规则型智能体使用)
        """
        raise NotImplementedError

    def reset(self):
        """重置状态"""
        pass


class RandomAgent(Agent):
    """随机智能体"""

    def __init__(self, name: str = "random", seed: Optional[int] = None):
        super().__init__(name)
        self._rng = np.random.default_rng(seed)

    def act(self, obs, legal_actions, state=None) -> Any:
        if not legal_actions:
            return 0
        idx = int(self._rng.integers(len(legal_actions)))
        return legal_actions[idx]


class SearchAgent(Agent):
    """
    搜索智能体 (与内置电脑一致)

    领出阶段按手牌制定规则，出牌阶段出总点数最小的合法牌；
    未提供完整状态时，取合法列表中最便宜的出牌
    """

    def __init__(self, name: str = "search", seed: Optional[int] = None):
        super().__init__(name)
        self._rng = random.Random(seed)

    def act(self, obs, legal_actions, state=None) -> Any:
        if state is not None:
            return ai_action(state, self._rng)
        if not legal_actions:
            return 0

        # 合法列表: PASS 在首位，出牌按总点数升序
        plays = [a for a in legal_actions if not a.is_pass]
        if plays:
            return plays[0]
        return legal_actions[0]


class Evaluator:
    """
    评估器

    智能体轮流坐在每个座位上，其余座位由内置电脑行动
    """

    def __init__(self, env_fn: Callable):
        """
        Args:
            env_fn: 环境工厂，接受 seat 参数
        """
        self.env_fn = env_fn

    def evaluate(
        self,
        agent: Agent,
        n_games: int = 100,
        seed: Optional[int] = None,
        verbose: bool = False,
    ) -> EvalResult:
        """
        评估智能体

        Args:
            agent: 待评估智能体
            n_games: 游戏数量
            seed: 随机种子 (第 i 局使用 seed + i)
            verbose: 是否输出详情

        Returns:
            评估结果
        """
        wins = 0
        finishes = 0
        rewards, lengths, medals, rounds = [], [], [], []

        for game_idx in range(n_games):
            seat = game_idx % 4
            env = self.env_fn(seat=seat)
            game_seed = None if seed is None else seed + game_idx
            obs, info = env.reset(seed=game_seed)
            agent.reset()

            done = info.get("winner") is not None
            episode_reward = 0.0
            episode_length = 0

            while not done:
                legal_actions = env.get_legal_actions()
                action = agent.act(obs, legal_actions, env.state)
                obs, reward, terminated, truncated, info = env.step(action)
                done = terminated or truncated
                episode_reward += reward
                episode_length += 1

            state = env.state
            player_id = state.players[seat].id
            if state.winner_id == player_id:
                wins += 1
            if state.finisher_id == player_id:
                finishes += 1

            rewards.append(episode_reward)
            lengths.append(episode_length)
            medals.append(state.players[seat].medals)
            rounds.append(state.completed_rounds)

            if verbose and (game_idx + 1) % 10 == 0:
                logger.info(f"Game {game_idx + 1}/{n_games}, Win rate: {wins/(game_idx+1):.2%}")

        if n_games == 0:
            return EvalResult(0.0, 0.0, 0.0, 0)

        return EvalResult(
            win_rate=wins / n_games,
            avg_reward=float(np.mean(rewards)),
            avg_length=float(np.mean(lengths)),
            games_played=n_games,
            avg_medals=float(np.mean(medals)),
            avg_rounds=float(np.mean(rounds)),
            finish_rate=finishes / n_games,
        )
