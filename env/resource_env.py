"""
资源对战 Gymnasium 环境

遵循标准 Gymnasium API，控制一个座位，其余座位由内置电脑行动
"""
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple, Union
import logging
import random

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from core.actions import Action
from core.cards import cards_to_str
from core.config import GameConfig, PLAYERS_COUNT
from core.session import ai_action
from core.state import GameState, InvalidAction, Phase

from .observation import (
    HAND_DIM,
    PHASE_DIM,
    REQUIREMENT_DIM,
    ObservationBuilder,
)
from .reward import RewardCalculator, RewardConfig, RewardType

logger = logging.getLogger(__name__)


class ResourceDuelEnv(gym.Env):
    """
    资源对战 Gymnasium 环境

    动作:
    - Action 对象: 直接交给状态机
    - 整数: info["legal_actions"] 中的下标

    API:
    - reset() -> observation, info
    - step(action) -> observation, reward, terminated, truncated, info
    """

    metadata = {
        "render_modes": ["human", "ansi"],
        "name": "ResourceDuel-v0",
    }

    def __init__(
        self,
        render_mode: Optional[str] = None,
        seat: int = 0,
        reward_type: str = "medal",
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
    ):
        """
        Args:
            render_mode: 渲染模式 ("human", "ansi", None)
            seat: 智能体控制的座位
            reward_type: 奖励类型 ("sparse", "medal")
            config: 对局配置 (human_seat 会被 seat 覆盖)
            seed: 随机种子
        """
        super().__init__()

        self.render_mode = render_mode
        self.seat = seat
        self._seed = seed

        base = config or GameConfig()
        self.config = replace(base, human_seat=seat)

        self._obs_builder = ObservationBuilder()
        self._reward_calculator = RewardCalculator(
            RewardConfig(reward_type=RewardType(reward_type))
        )

        self._rng = random.Random(seed)
        self._state: Optional[GameState] = None
        self._prev_state: Optional[GameState] = None
        self._legal_actions: List[Action] = []

        self._define_spaces()

    def _define_spaces(self):
        """定义观测和动作空间"""
        self.action_space = spaces.Discrete(self.config.max_legal_actions)

        self.observation_space = spaces.Dict({
            "hand": spaces.Box(0, 8, shape=(HAND_DIM,), dtype=np.float32),
            "table_top": spaces.Box(0, 8, shape=(HAND_DIM,), dtype=np.float32),
            "requirement": spaces.Box(0, 10, shape=(REQUIREMENT_DIM,), dtype=np.float32),
            "last_total": spaces.Box(0, 10, shape=(1,), dtype=np.float32),
            "medals": spaces.Box(0, np.inf, shape=(PLAYERS_COUNT,), dtype=np.float32),
            "cards_left": spaces.Box(0, 1, shape=(PLAYERS_COUNT,), dtype=np.float32),
            "passed": spaces.Box(0, 1, shape=(PLAYERS_COUNT,), dtype=np.float32),
            "position": spaces.Box(0, 1, shape=(PLAYERS_COUNT,), dtype=np.float32),
            "active": spaces.Box(0, 1, shape=(PLAYERS_COUNT,), dtype=np.float32),
            "phase": spaces.Box(0, 1, shape=(PHASE_DIM,), dtype=np.float32),
        })

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        重置环境并让电脑行动到智能体的回合

        Args:
            seed: 随机种子
            options: 额外选项

        Returns:
            (observation, info) 元组
        """
        super().reset(seed=seed)

        if seed is not None:
            self._rng = random.Random(seed)

        self._state = GameState.initial(rng=self._rng, config=self.config)
        self._prev_state = None
        self._run_opponents()

        obs = self._build_observation()
        info = self._build_info()

        if self.render_mode == "human":
            self.render()

        return obs, info

    def step(
        self,
        action: Union[int, Action],
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        执行智能体动作，然后让电脑行动到智能体的下一个回合

        Args:
            action: 动作下标或 Action 对象

        Returns:
            (observation, reward, terminated, truncated, info) 元组
        """
        if self._state is None:
            raise RuntimeError("Environment not reset. Call reset() first.")

        concrete_action = self._decode_action(action)
        next_state = self._try_apply(concrete_action)

        if next_state is None:
            # 非法动作：给予惩罚并保持状态
            obs = self._build_observation()
            info = self._build_info()
            info["error"] = "Invalid action"
            return obs, -1.0, False, False, info

        self._prev_state = self._state
        self._state = next_state
        self._run_opponents()

        obs = self._build_observation()
        reward = self._reward_calculator.compute(self._state, self._prev_state, self.seat)
        terminated = self._state.is_finished
        info = self._build_info()

        if self.render_mode == "human":
            self.render()

        return obs, reward, terminated, False, info

    def _decode_action(self, action: Union[int, Action]) -> Optional[Action]:
        """解码动作，越界下标返回 None"""
        if isinstance(action, Action):
            return action
        if isinstance(action, (int, np.integer)):
            if 0 <= action < len(self._legal_actions):
                return self._legal_actions[int(action)]
            return None
        raise ValueError(f"Invalid action type: {type(action)}")

    def _try_apply(self, action: Optional[Action]) -> Optional[GameState]:
        """应用动作；非法或被拒绝时返回 None"""
        if action is None or self._state.is_finished:
            return None
        if action.player_id != self._state.players[self.seat].id:
            return None
        try:
            state = self._state.with_action(action)
        except InvalidAction as e:
            logger.debug("Rejected invalid action: %s", e)
            return None
        if state.last_rejection is not None:
            return None
        return state

    def _run_opponents(self):
        """电脑行动，直到轮到智能体或游戏结束"""
        while (
            not self._state.is_finished
            and self._state.active_index != self.seat
        ):
            self._state = self._state.with_action(ai_action(self._state, self._rng))

        if self._state.is_finished:
            self._legal_actions = []
        else:
            self._legal_actions = self._state.get_legal_actions(self.config.max_legal_actions)

    def _build_observation(self) -> Dict[str, np.ndarray]:
        """构建观测"""
        obs = self._obs_builder.build(self._state, self.seat)
        return obs.to_dict()

    def _build_info(self) -> Dict[str, Any]:
        """构建 info 字典"""
        mask = np.zeros(self.config.max_legal_actions, dtype=np.float32)
        mask[:len(self._legal_actions)] = 1.0

        info = {
            "current_player": self._state.active_player.id,
            "phase": self._state.phase.value,
            "legal_actions": list(self._legal_actions),
            "legal_action_mask": mask,
            "step_count": self._state.step_count,
            "round_number": self._state.round_number,
            "medals": [p.medals for p in self._state.players],
        }

        if self._state.is_finished:
            info["winner"] = self._state.winner_id
            info["finisher"] = self._state.finisher_id

        return info

    def render(self) -> Optional[str]:
        """渲染环境"""
        if self.render_mode == "ansi" or self.render_mode == "human":
            return self._render_text()
        return None

    def _render_text(self) -> str:
        """文本渲染"""
        state = self._state
        lines = []
        lines.append("=" * 50)
        lines.append(f"Round {state.round_number} | Phase: {state.phase.value}")
        lines.append(f"Dealer: {state.dealer.id} | Active: {state.active_player.id}")
        if state.requirement:
            lines.append(f"Requirement: {state.requirement.description}")

        for i, player in enumerate(state.players):
            flag = " (passed)" if player.passed else ""
            if i == self.seat:
                lines.append(f"{player.id}: {cards_to_str(player.hand)} | medals {player.medals}{flag}")
            else:
                lines.append(f"{player.id}: {len(player.hand)} cards | medals {player.medals}{flag}")

        if state.last_play:
            top = state.last_play
            lines.append(f"Top: {cards_to_str(top.cards)} (= {top.total}) by {top.player_id}")

        if state.phase == Phase.GAME_END:
            lines.append(f"Winner: {state.winner_id} | Finisher: {state.finisher_id}")

        lines.append("=" * 50)

        output = "\n".join(lines)
        if self.render_mode == "human":
            print(output)
        return output

    def close(self):
        """关闭环境"""
        pass

    @property
    def state(self) -> Optional[GameState]:
        """获取当前状态 (用于调试)"""
        return self._state

    def get_legal_actions(self) -> List[Action]:
        """获取当前合法动作"""
        return list(self._legal_actions)

    def sample_action(self) -> int:
        """随机采样一个合法动作下标"""
        if not self._legal_actions:
            return 0
        return int(self.np_random.integers(len(self._legal_actions)))


def make_env(**kwargs) -> ResourceDuelEnv:
    """创建环境"""
    return ResourceDuelEnv(**kwargs)
