"""
对战竞技场

组织 4 个智能体直接在状态机上对战 (不经过环境)
"""
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass, replace
from collections import defaultdict
import logging
import random

from core.config import GameConfig, PLAYERS_COUNT
from core.state import GameState
from env.observation import ObservationBuilder

from .evaluator import Agent

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    """对局结果"""
    agents: Tuple[str, ...]      # 按座位
    winner: str                  # 奖牌最多的智能体
    finisher: str                # 打空手牌的智能体
    medals: Tuple[int, ...]
    rounds: int
    length: int


@dataclass
class TournamentResult:
    """锦标赛结果"""
    standings: Dict[str, Dict[str, float]]
    total_games: int
    matches: List[MatchResult]

    def get_ranking(self) -> List[Tuple[str, float]]:
        """获取排名"""
        return sorted(
            [(name, stats["win_rate"]) for name, stats in self.standings.items()],
            key=lambda x: x[1],
            reverse=True,
        )

    def __repr__(self) -> str:
        ranking = self.get_ranking()
        lines = [f"Tournament Results ({self.total_games} games):"]
        for i, (name, win_rate) in enumerate(ranking):
            lines.append(f"  {i+1}. {name}: {win_rate:.2%}")
        return "\n".join(lines)


class Arena:
    """
    对战竞技场

    组织智能体之间的对战
    """

    def __init__(self, config: Optional[GameConfig] = None, max_steps: int = 5000):
        """
        Args:
            config: 对局配置 (human_seat 会被忽略)
            max_steps: 单局最多动作数
        """
        base = config or GameConfig()
        self.config = replace(base, human_seat=None)
        self.max_steps = max_steps
        self._obs_builder = ObservationBuilder()

    def play_game(self, agents: List[Agent], seed: Optional[int] = None) -> MatchResult:
        """
        进行一局

        Args:
            agents: 4 个智能体 (按座位)
            seed: 随机种子
        """
        assert len(agents) == PLAYERS_COUNT

        state = GameState.initial(rng=random.Random(seed), config=self.config)
        for agent in agents:
            agent.reset()

        length = 0
        while not state.is_finished:
            if length >= self.max_steps:
                raise RuntimeError(f"Game did not finish within {self.max_steps} steps")

            agent = agents[state.active_index]
            obs = self._obs_builder.build(state).to_dict()
            legal_actions = state.get_legal_actions(self.config.max_legal_actions)
            action = agent.act(obs, legal_actions, state)
            state = state.with_action(action)
            length += 1

        names = tuple(a.name for a in agents)
        winner_seat = state.player_index(state.winner_id)
        finisher_seat = state.player_index(state.finisher_id)
        return MatchResult(
            agents=names,
            winner=names[winner_seat],
            finisher=names[finisher_seat],
            medals=tuple(p.medals for p in state.players),
            rounds=state.completed_rounds,
            length=length,
        )

    def play_match(
        self,
        agents: List[Agent],
        n_games: int = 1,
        seed: Optional[int] = None,
    ) -> List[MatchResult]:
        """
        进行多局，每局座位轮换

        Args:
            agents: 4 个智能体
            n_games: 对局数
            seed: 随机种子 (第 i 局使用 seed + i)

        Returns:
            对局结果列表
        """
        results = []
        for game_idx in range(n_games):
            shift = game_idx % PLAYERS_COUNT
            seated = agents[shift:] + agents[:shift]
            game_seed = None if seed is None else seed + game_idx
            results.append(self.play_game(seated, game_seed))
        return results

    def tournament(
        self,
        agents: List[Agent],
        n_games: int = 100,
        seed: Optional[int] = None,
    ) -> TournamentResult:
        """
        锦标赛

        Args:
            agents: 4 个智能体 (名字需唯一)
            n_games: 对局数
            seed: 随机种子

        Returns:
            锦标赛结果
        """
        matches = self.play_match(agents, n_games, seed)
        standings = {agent.name: defaultdict(float) for agent in agents}

        for result in matches:
            for name, medals in zip(result.agents, result.medals):
                standings[name]["games"] += 1
                standings[name]["medals"] += medals
            standings[result.winner]["wins"] += 1
            standings[result.finisher]["finishes"] += 1

        for name, stats in standings.items():
            if stats["games"] > 0:
                stats["win_rate"] = stats["wins"] / stats["games"]
                stats["avg_medals"] = stats["medals"] / stats["games"]
            else:
                stats["win_rate"] = 0.0

        logger.info(f"Tournament finished: {len(matches)} games")

        return TournamentResult(
            standings={name: dict(stats) for name, stats in standings.items()},
            total_games=len(matches),
            matches=matches,
        )
