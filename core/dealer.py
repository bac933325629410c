"""
AI 领出者策略

根据手牌资源分布制定本轮规则
"""
from typing import Optional, Sequence, Tuple
import random

from .cards import Card, RESOURCE_ORDER, ResourceType, count_by_type
from .requirements import RoundRequirement

# 规则模式阈值 (r 为 [0, 1) 均匀随机数)
MIXED_THRESHOLD = 0.8
ASCENDING_THRESHOLD = 0.6


def best_resource(hand: Sequence[Card]) -> Tuple[ResourceType, int]:
    """
    张数最多的资源类型

    张数相同时按固定枚举顺序取先出现者

    Returns:
        (资源类型, 张数)
    """
    counts = count_by_type(hand)
    best_type = RESOURCE_ORDER[0]
    max_count = -1
    for resource_type in RESOURCE_ORDER:
        if counts[resource_type] > max_count:
            best_type, max_count = resource_type, counts[resource_type]
    return best_type, max_count


def choose_requirement(
    hand: Sequence[Card],
    rng: Optional[random.Random] = None,
    roll: Optional[float] = None,
) -> RoundRequirement:
    """
    AI 领出者制定规则

    - r > 0.8 且手牌 >= 3 张: 混合递增 3 张
    - 否则 r > 0.6 且最多资源 >= 2 张: 该资源递增 min(张数, 2) 张
    - 否则: 该资源固定 min(张数, 2) 张

    张数下限为 1。混合递增分支不保证领出者自己能出，
    这是启发式的已知弱点

    Args:
        hand: 领出者手牌
        rng: 随机数源
        roll: 直接指定随机值 (优先于 rng)

    Returns:
        本轮规则
    """
    if roll is None:
        roll = (rng or random.Random()).random()

    best_type, max_count = best_resource(hand)

    if roll > MIXED_THRESHOLD and len(hand) >= 3:
        return RoundRequirement.mixed_ascending(3)
    if roll > ASCENDING_THRESHOLD and max_count >= 2:
        return RoundRequirement.single_ascending(best_type, max(1, min(max_count, 2)))
    return RoundRequirement.single_fixed(best_type, max(1, min(max_count, 2)))
