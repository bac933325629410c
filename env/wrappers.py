"""
环境包装器

提供常用的环境增强功能
"""
from typing import Dict, Optional, Tuple

import gymnasium as gym
from gymnasium import Wrapper


class TimeLimit(Wrapper):
    """
    时间限制包装器

    限制每局游戏的最大步数
    """

    def __init__(self, env: gym.Env, max_steps: int = 500):
        super().__init__(env)
        self.max_steps = max_steps
        self._step_count = 0

    def reset(self, **kwargs) -> Tuple[Dict, Dict]:
        self._step_count = 0
        return self.env.reset(**kwargs)

    def step(self, action) -> Tuple[Dict, float, bool, bool, Dict]:
        obs, reward, terminated, truncated, info = self.env.step(action)
        self._step_count += 1

        if self._step_count >= self.max_steps:
            truncated = True

        return obs, reward, terminated, truncated, info


class RecordEpisodeStatistics(Wrapper):
    """
    记录回合统计信息
    """

    def __init__(self, env: gym.Env):
        super().__init__(env)
        self._episode_reward = 0.0
        self._episode_length = 0

    def reset(self, **kwargs) -> Tuple[Dict, Dict]:
        obs, info = self.env.reset(**kwargs)
        self._episode_reward = 0.0
        self._episode_length = 0
        return obs, info

    def step(self, action) -> Tuple[Dict, float, bool, bool, Dict]:
        obs, reward, terminated, truncated, info = self.env.step(action)

        self._episode_reward += reward
        self._episode_length += 1

        if terminated or truncated:
            info["episode"] = {
                "r": self._episode_reward,
                "l": self._episode_length,
                "rounds": info.get("round_number", 1) - 1,
                "medals": info.get("medals"),
                "winner": info.get("winner"),
                "finisher": info.get("finisher"),
            }

        return obs, reward, terminated, truncated, info


def wrap_env(
    env: gym.Env,
    record_stats: bool = True,
    time_limit: Optional[int] = None,
) -> gym.Env:
    """
    应用常用包装器组合

    Args:
        env: 基础环境
        record_stats: 是否记录统计
        time_limit: 最大步数

    Returns:
        包装后的环境
    """
    if record_stats:
        env = RecordEpisodeStatistics(env)

    if time_limit is not None:
        env = TimeLimit(env, max_steps=time_limit)

    return env
