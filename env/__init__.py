"""
Environment Layer - Gymnasium 兼容环境

Modules:
    resource_env: 主环境类
    observation: 观测空间构建
    reward: 奖励函数
    wrappers: 环境包装器
"""
from .resource_env import (
    ResourceDuelEnv,
    make_env,
)

from .observation import (
    Observation,
    ObservationBuilder,
)

from .reward import (
    RewardType,
    RewardConfig,
    RewardCalculator,
)

from .wrappers import (
    TimeLimit,
    RecordEpisodeStatistics,
    wrap_env,
)

__all__ = [
    # env
    "ResourceDuelEnv",
    "make_env",
    # observation
    "Observation",
    "ObservationBuilder",
    # reward
    "RewardType",
    "RewardConfig",
    "RewardCalculator",
    # wrappers
    "TimeLimit",
    "RecordEpisodeStatistics",
    "wrap_env",
]
