"""
搓牌

对单张牌进行一次随机点数调整:
- 变好: 点数 +1 (上限 7)
- 变差: 点数 -1 (下限 1)
- 不变
"""
from enum import Enum
from typing import Dict, Optional, Tuple
import random

from .cards import Card, MAX_LEVEL, MIN_LEVEL


class MashOutcome(Enum):
    """搓牌结果"""
    BETTER = "better"
    WORSE = "worse"
    SAME = "same"


MASH_PROBABILITIES: Dict[MashOutcome, float] = {
    MashOutcome.BETTER: 0.15,
    MashOutcome.WORSE: 0.05,
    MashOutcome.SAME: 0.80,
}

assert abs(sum(MASH_PROBABILITIES.values()) - 1.0) < 1e-9


def roll_outcome(roll: float) -> MashOutcome:
    """
    按累积概率确定结果

    区间划分: [0, BETTER) 变好, [BETTER, BETTER+WORSE) 变差, 其余不变

    Args:
        roll: [0, 1) 随机值
    """
    if not 0.0 <= roll < 1.0:
        raise ValueError(f"Mash roll must be in [0, 1), got {roll}")

    better = MASH_PROBABILITIES[MashOutcome.BETTER]
    worse = MASH_PROBABILITIES[MashOutcome.WORSE]
    if roll < better:
        return MashOutcome.BETTER
    if roll < better + worse:
        return MashOutcome.WORSE
    return MashOutcome.SAME


def mash_card(
    card: Card,
    rng: Optional[random.Random] = None,
    roll: Optional[float] = None,
) -> Tuple[Card, MashOutcome]:
    """
    搓牌

    给定 roll 时结果确定；需要可复现时请注入随机源

    Args:
        card: 目标牌
        rng: 随机数源
        roll: 直接指定随机值 (优先于 rng)

    Returns:
        (新牌, 结果)，新牌与原牌 id、资源相同
    """
    if roll is None:
        roll = (rng or random.Random()).random()

    outcome = roll_outcome(roll)
    level = card.level
    if outcome == MashOutcome.BETTER:
        level = min(MAX_LEVEL, level + 1)
    elif outcome == MashOutcome.WORSE:
        level = max(MIN_LEVEL, level - 1)

    return card.with_level(level), outcome
