"""
本轮规则 (Requirement) 与出牌记录

领出者每轮制定一次规则，规定:
- 出牌张数
- 是否限定资源类型
- 是否要求点数严格递增
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple

from .cards import Card, RESOURCE_CONFIG, ResourceType, hand_value


class RequirementKind(Enum):
    """规则类型"""
    SINGLE_FIXED = "single_fixed"          # 单类型 (固定数量)
    SINGLE_ASCENDING = "single_ascending"  # 单类型 (点数递增)
    MIXED_ASCENDING = "mixed_ascending"    # 混合类型 (点数递增)

    @property
    def is_single_type(self) -> bool:
        return self in (RequirementKind.SINGLE_FIXED, RequirementKind.SINGLE_ASCENDING)

    @property
    def is_ascending(self) -> bool:
        return self in (RequirementKind.SINGLE_ASCENDING, RequirementKind.MIXED_ASCENDING)


# 人类领出者可选的最大张数
MAX_REQUIREMENT_COUNT = 5


@dataclass(frozen=True)
class RoundRequirement:
    """
    本轮规则

    Attributes:
        kind: 规则类型
        count: 出牌张数 (>= 1)
        resource_type: 指定资源 (仅单类型规则需要，混合规则必须为 None)
    """
    kind: RequirementKind
    count: int
    resource_type: Optional[ResourceType] = None

    def __post_init__(self):
        if self.count < 1:
            raise ValueError(f"Requirement count must be positive, got {self.count}")
        if self.kind.is_single_type and self.resource_type is None:
            raise ValueError(f"{self.kind.value} requires a resource type")
        if not self.kind.is_single_type and self.resource_type is not None:
            raise ValueError("mixed_ascending must not name a resource type")

    @classmethod
    def single_fixed(cls, resource_type: ResourceType, count: int = 1) -> 'RoundRequirement':
        return cls(RequirementKind.SINGLE_FIXED, count, resource_type)

    @classmethod
    def single_ascending(cls, resource_type: ResourceType, count: int) -> 'RoundRequirement':
        return cls(RequirementKind.SINGLE_ASCENDING, count, resource_type)

    @classmethod
    def mixed_ascending(cls, count: int) -> 'RoundRequirement':
        return cls(RequirementKind.MIXED_ASCENDING, count)

    @property
    def description(self) -> str:
        """可读描述"""
        if self.kind == RequirementKind.SINGLE_FIXED:
            return f"固定: {self.count} 张 {RESOURCE_CONFIG[self.resource_type].label}"
        if self.kind == RequirementKind.SINGLE_ASCENDING:
            return f"递增: {self.count} 张 {RESOURCE_CONFIG[self.resource_type].label}"
        return f"混合递增: 任意 {self.count} 张"

    def accepts_type(self, card: Card) -> bool:
        """牌的资源类型是否满足规则"""
        return not self.kind.is_single_type or card.resource_type == self.resource_type

    def filter_hand(self, hand: Iterable[Card]) -> Tuple[Card, ...]:
        """按资源类型过滤手牌 (混合规则不过滤)"""
        return tuple(c for c in hand if self.accepts_type(c))

    @classmethod
    def infer_from_cards(cls, cards: Sequence[Card]) -> Optional['RoundRequirement']:
        """
        从领出者直接打出的牌推断本轮规则

        - 全部同一资源: 单类型固定数量
        - 混合资源且点数严格递增: 混合递增
        - 混合资源但点数不递增: 无法推断

        Args:
            cards: 打出的牌

        Returns:
            推断出的规则，无法推断时返回 None
        """
        if not cards:
            return None

        types = {c.resource_type for c in cards}
        if len(types) == 1:
            return cls.single_fixed(cards[0].resource_type, len(cards))

        levels = sorted(c.level for c in cards)
        if all(a < b for a, b in zip(levels, levels[1:])):
            return cls.mixed_ascending(len(cards))
        return None

    @classmethod
    def for_timeout(cls, hand: Sequence[Card]) -> 'RoundRequirement':
        """
        超时自动规则: 以点数最低的一张牌的资源为准，单张固定

        Args:
            hand: 领出者手牌 (非空)
        """
        if not hand:
            raise ValueError("Cannot derive a requirement from an empty hand")
        lowest = min(hand, key=lambda c: c.level)
        return cls.single_fixed(lowest.resource_type, 1)


def requirement_menu() -> Tuple[RoundRequirement, ...]:
    """
    人类领出者可选的全部规则 (固定顺序)

    单类型规则: 2 种 × 4 资源 × 1-5 张；混合规则: 1-5 张
    """
    menu = []
    for kind in (RequirementKind.SINGLE_FIXED, RequirementKind.SINGLE_ASCENDING):
        for resource_type in ResourceType:
            for count in range(1, MAX_REQUIREMENT_COUNT + 1):
                menu.append(RoundRequirement(kind, count, resource_type))
    for count in range(1, MAX_REQUIREMENT_COUNT + 1):
        menu.append(RoundRequirement.mixed_ascending(count))
    return tuple(menu)


@dataclass(frozen=True)
class PlayedSet:
    """
    桌面上的一手出牌

    Attributes:
        player_id: 出牌玩家
        cards: 按出牌时选择顺序排列的牌
        sequence_number: 本轮内的序号 (从 0 开始)
    """
    player_id: str
    cards: Tuple[Card, ...]
    sequence_number: int = 0

    @property
    def total(self) -> int:
        return hand_value(self.cards)

    def __len__(self) -> int:
        return len(self.cards)
