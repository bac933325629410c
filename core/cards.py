"""
牌的定义与编码

资源对战使用四种资源牌:
- 士兵 (SOLDIER)、塔防 (TOWER)、农场 (FARM)、矿石 (ORE)
- 每张牌带有 1-7 的点数
- 每位玩家的各类资源张数在配置区间内随机生成
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import random
import string

import numpy as np


class ResourceType(Enum):
    """资源类型 (枚举顺序即规则中的固定顺序)"""
    SOLDIER = "soldier"
    TOWER = "tower"
    FARM = "farm"
    ORE = "ore"


# 固定枚举顺序
RESOURCE_ORDER: Tuple[ResourceType, ...] = tuple(ResourceType)

MIN_LEVEL = 1
MAX_LEVEL = 7


@dataclass(frozen=True)
class ResourceConfig:
    """单类资源的发牌区间与显示信息"""
    min_count: int
    max_count: int
    label: str
    short: str


RESOURCE_CONFIG: Dict[ResourceType, ResourceConfig] = {
    ResourceType.SOLDIER: ResourceConfig(3, 8, "士兵", "S"),
    ResourceType.TOWER: ResourceConfig(2, 6, "塔防", "T"),
    ResourceType.FARM: ResourceConfig(3, 8, "农场", "F"),
    ResourceType.ORE: ResourceConfig(3, 8, "矿石", "O"),
}

SHORT_TO_RESOURCE: Dict[str, ResourceType] = {
    cfg.short: rt for rt, cfg in RESOURCE_CONFIG.items()
}

_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class Card:
    """
    不可变资源牌

    点数只会被搓牌改变，改变时生成同 id、同类型的新对象

    Attributes:
        id: 唯一标识
        resource_type: 资源类型
        level: 点数 (1-7)
    """
    id: str
    resource_type: ResourceType
    level: int

    def __post_init__(self):
        if not MIN_LEVEL <= self.level <= MAX_LEVEL:
            raise ValueError(f"Card level out of range: {self.level}")

    def with_level(self, level: int) -> 'Card':
        """返回点数替换后的同一张牌"""
        return replace(self, level=level)

    @property
    def sort_key(self) -> Tuple[int, int]:
        return RESOURCE_ORDER.index(self.resource_type), self.level

    def __str__(self) -> str:
        return f"{RESOURCE_CONFIG[self.resource_type].short}{self.level}"


def generate_card_id(rng: random.Random, length: int = 9) -> str:
    """生成随机牌 id"""
    return "".join(rng.choice(_ID_ALPHABET) for _ in range(length))


def generate_hand(
    rng: Optional[random.Random] = None,
    ranges: Optional[Dict[ResourceType, Tuple[int, int]]] = None,
    used_ids: Optional[set] = None,
) -> Tuple[Card, ...]:
    """
    生成一手随机牌

    对每类资源先在 [min, max] 中均匀抽取张数，再为每张牌在 [1, 7] 中均匀抽取点数

    Args:
        rng: 随机数源
        ranges: 各资源张数区间 (默认取 RESOURCE_CONFIG)
        used_ids: 已使用的 id 集合 (跨手牌去重，会被原地更新)

    Returns:
        按 (资源, 点数) 排序的手牌
    """
    rng = rng or random.Random()
    used_ids = used_ids if used_ids is not None else set()

    hand: List[Card] = []
    for resource_type in RESOURCE_ORDER:
        if ranges is not None:
            low, high = ranges[resource_type]
        else:
            cfg = RESOURCE_CONFIG[resource_type]
            low, high = cfg.min_count, cfg.max_count
        count = rng.randint(low, high)
        for _ in range(count):
            card_id = generate_card_id(rng)
            while card_id in used_ids:
                card_id = generate_card_id(rng)
            used_ids.add(card_id)
            hand.append(Card(card_id, resource_type, rng.randint(MIN_LEVEL, MAX_LEVEL)))

    return sort_hand(hand)


def sort_hand(cards: Iterable[Card]) -> Tuple[Card, ...]:
    """按 (资源, 点数) 排序"""
    return tuple(sorted(cards, key=lambda c: c.sort_key))


def hand_value(cards: Iterable[Card]) -> int:
    """点数总和"""
    return sum(c.level for c in cards)


def count_by_type(cards: Iterable[Card]) -> Dict[ResourceType, int]:
    """按资源类型统计张数 (包含张数为 0 的类型)"""
    counts = {rt: 0 for rt in RESOURCE_ORDER}
    for card in cards:
        counts[card.resource_type] += 1
    return counts


def cards_to_array(cards: Iterable[Card]) -> np.ndarray:
    """
    将牌列表转换为 28 维计数向量

    编码方式: 4 种资源 × 7 个点数，按资源顺序展开，
    每格为该 (资源, 点数) 的张数

    Args:
        cards: 牌列表

    Returns:
        28 维 numpy 数组
    """
    matrix = np.zeros((len(RESOURCE_ORDER), MAX_LEVEL), dtype=np.float32)
    for card in cards:
        row = RESOURCE_ORDER.index(card.resource_type)
        matrix[row, card.level - 1] += 1
    return matrix.flatten()


def cards_to_str(cards: Sequence[Card]) -> str:
    """
    将牌列表转换为可读字符串

    Returns:
        如 "S3 T5 O7"
    """
    return " ".join(str(c) for c in cards)


def str_to_cards(s: str, rng: Optional[random.Random] = None) -> Tuple[Card, ...]:
    """
    将字符串转换为牌列表 (主要用于测试和调试)

    Args:
        s: 如 "S3 T5"，首字母为资源缩写，其后为点数

    Returns:
        新生成 id 的牌 (按输入顺序)
    """
    rng = rng or random.Random()
    cards = []
    for token in s.split():
        resource_type = SHORT_TO_RESOURCE[token[0].upper()]
        cards.append(Card(generate_card_id(rng), resource_type, int(token[1:])))
    return tuple(cards)
