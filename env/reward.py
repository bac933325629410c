"""
奖励函数

支持两种奖励设计:
- 终局奖励 (sparse): 游戏结束时排名第一 +1，否则 -1
- 奖牌奖励 (medal): 每赢得一轮 +1，再叠加终局奖励
"""
from dataclasses import dataclass
from typing import Optional
from enum import Enum

from core.state import GameState


class RewardType(Enum):
    """奖励类型"""
    SPARSE = "sparse"    # 仅终局奖励
    MEDAL = "medal"      # 奖牌 + 终局奖励


@dataclass
class RewardConfig:
    """奖励配置"""
    reward_type: RewardType = RewardType.MEDAL
    win_reward: float = 1.0
    lose_reward: float = -1.0
    medal_reward: float = 1.0
    finish_bonus: float = 0.0    # 自己打空手牌的额外奖励


class RewardCalculator:
    """
    奖励计算器

    根据配置计算不同类型的奖励
    """

    def __init__(self, config: Optional[RewardConfig] = None):
        self.config = config or RewardConfig()

    def compute(
        self,
        state: GameState,
        prev_state: Optional[GameState],
        seat: int,
    ) -> float:
        """
        计算奖励

        Args:
            state: 当前状态
            prev_state: 前一状态 (用于奖牌差值)
            seat: 计算奖励的玩家座位

        Returns:
            奖励值
        """
        reward = 0.0

        if self.config.reward_type == RewardType.MEDAL and prev_state is not None:
            gained = state.players[seat].medals - prev_state.players[seat].medals
            reward += gained * self.config.medal_reward

        if state.is_finished:
            reward += self._terminal_reward(state, seat)

        return reward

    def _terminal_reward(self, state: GameState, seat: int) -> float:
        player_id = state.players[seat].id
        reward = self.config.win_reward if state.winner_id == player_id else self.config.lose_reward
        if state.finisher_id == player_id:
            reward += self.config.finish_bonus
        return reward
