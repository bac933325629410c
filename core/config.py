"""
游戏配置

定义对局节奏与发牌相关的参数
"""
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .cards import RESOURCE_CONFIG, ResourceType

PLAYERS_COUNT = 4


def _default_ranges() -> Dict[ResourceType, Tuple[int, int]]:
    return {rt: (cfg.min_count, cfg.max_count) for rt, cfg in RESOURCE_CONFIG.items()}


@dataclass
class GameConfig:
    """
    对局配置

    Attributes:
        num_players: 玩家数 (固定为 4)
        human_seat: 人类玩家座位 (None 表示全部为电脑)
        ai_delay: 电脑决策延迟 (秒)
        turn_timeout: 人类回合时限 (秒，None 表示不限时)
        mash_cooldown: 搓牌冷却 (秒)
        resource_ranges: 各资源发牌张数区间
        max_legal_actions: 环境暴露的合法出牌数量上限
    """
    num_players: int = PLAYERS_COUNT
    human_seat: Optional[int] = 0

    # 节奏
    ai_delay: float = 1.2
    turn_timeout: Optional[float] = 30.0
    mash_cooldown: float = 0.5

    # 发牌
    resource_ranges: Dict[ResourceType, Tuple[int, int]] = field(default_factory=_default_ranges)

    # 环境
    max_legal_actions: int = 256

    def __post_init__(self):
        if self.num_players != PLAYERS_COUNT:
            raise ValueError(f"Exactly {PLAYERS_COUNT} players are supported, got {self.num_players}")
        if self.human_seat is not None and not 0 <= self.human_seat < self.num_players:
            raise ValueError(f"Invalid human seat: {self.human_seat}")
        missing = [rt.value for rt in ResourceType if rt not in self.resource_ranges]
        if missing:
            raise ValueError(f"Missing deal range for: {', '.join(missing)}")
        for resource_type, (low, high) in self.resource_ranges.items():
            if low < 0 or high < low:
                raise ValueError(f"Invalid deal range for {resource_type.value}: ({low}, {high})")
        # 每手至少一张牌
        if sum(low for low, _ in self.resource_ranges.values()) < 1:
            raise ValueError("Deal ranges must guarantee at least one card per hand")

    @classmethod
    def from_dict(cls, d: dict) -> 'GameConfig':
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        # JSON 中资源类型以字符串为键, 区间为列表
        if "resource_ranges" in filtered:
            filtered["resource_ranges"] = {
                ResourceType(rt): (int(low), int(high))
                for rt, (low, high) in filtered["resource_ranges"].items()
            }
        return cls(**filtered)
