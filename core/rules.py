"""
规则引擎 - 出牌合法性验证

所有方法都是纯函数，无状态
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from .cards import Card, RESOURCE_CONFIG, hand_value
from .requirements import PlayedSet, RoundRequirement


class RejectReason(Enum):
    """出牌被拒绝的原因 (按检查顺序)"""
    WRONG_COUNT = "WrongCount"
    WRONG_RESOURCE_TYPE = "WrongResourceType"
    NOT_STRICTLY_ASCENDING = "NotStrictlyAscending"
    BELOW_REQUIRED_TOTAL = "BelowRequiredTotal"


@dataclass(frozen=True)
class ValidationResult:
    """验证结果"""
    reason: Optional[RejectReason] = None
    message: str = ""

    @property
    def valid(self) -> bool:
        return self.reason is None

    def __bool__(self) -> bool:
        return self.valid


ACCEPT = ValidationResult()


class RuleEngine:
    """
    资源对战规则引擎

    提供出牌合法性验证等功能
    所有方法都是静态方法，无状态
    """

    @staticmethod
    def is_strictly_ascending(levels: Iterable[int]) -> bool:
        """
        排序后相邻点数是否严格递增 (不允许重复)

        Args:
            levels: 点数列表 (无需预先排序)
        """
        ordered = sorted(levels)
        for i in range(len(ordered) - 1):
            if ordered[i] >= ordered[i + 1]:
                return False
        return True

    @staticmethod
    def validate(
        selected: Sequence[Card],
        last_play: Optional[PlayedSet],
        requirement: RoundRequirement,
    ) -> ValidationResult:
        """
        验证出牌是否合法

        按顺序检查，第一个失败项即为结果:
        1. 张数
        2. 资源类型 (单类型规则)
        3. 点数严格递增 (递增规则)
        4. 总点数 >= 上一手 (允许相等)

        Args:
            selected: 选中的牌
            last_play: 本轮上一手出牌 (None 表示本轮首手)
            requirement: 本轮规则

        Returns:
            ValidationResult
        """
        if len(selected) != requirement.count:
            return ValidationResult(
                RejectReason.WRONG_COUNT,
                f"必须打出 {requirement.count} 张牌。",
            )

        if requirement.kind.is_single_type:
            if any(c.resource_type != requirement.resource_type for c in selected):
                label = RESOURCE_CONFIG[requirement.resource_type].label
                return ValidationResult(
                    RejectReason.WRONG_RESOURCE_TYPE,
                    f"所有牌必须是 {label}。",
                )

        if requirement.kind.is_ascending:
            if not RuleEngine.is_strictly_ascending(c.level for c in selected):
                return ValidationResult(
                    RejectReason.NOT_STRICTLY_ASCENDING,
                    "牌点数必须严格递增 (如 1, 2, 3)。",
                )

        if last_play is not None:
            current_sum = hand_value(selected)
            last_sum = last_play.total
            if current_sum < last_sum:
                return ValidationResult(
                    RejectReason.BELOW_REQUIRED_TOTAL,
                    f"总点数 ({current_sum}) 必须 >= 上一家 ({last_sum})。",
                )

        return ACCEPT

    @staticmethod
    def is_valid_play(
        selected: Sequence[Card],
        last_play: Optional[PlayedSet],
        requirement: RoundRequirement,
    ) -> bool:
        """validate 的布尔形式"""
        return RuleEngine.validate(selected, last_play, requirement).valid

    @staticmethod
    def get_ranking(medals: Sequence[int]) -> List[int]:
        """
        按奖牌数降序排列的玩家下标

        稳定排序: 奖牌相同时座位靠前者在前

        Args:
            medals: 各玩家奖牌数 (按座位)
        """
        return sorted(range(len(medals)), key=lambda i: -medals[i])
