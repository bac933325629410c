"""
动作类型定义与出牌搜索

外部可提交的动作共 4 种:
- 制定规则 / 出牌 / 放弃 / 搓牌
"""
from enum import IntEnum
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple
import itertools

from .cards import Card, hand_value
from .requirements import PlayedSet, RoundRequirement
from .rules import RuleEngine


class ActionType(IntEnum):
    """动作类型"""
    PASS = 0                 # 放弃
    PLAY = 1                 # 出牌
    SUBMIT_REQUIREMENT = 2   # 领出者制定规则
    MASH = 3                 # 搓牌


@dataclass(frozen=True)
class Action:
    """
    不可变动作表示

    Attributes:
        action_type: 动作类型
        player_id: 发起动作的玩家
        card_ids: 出牌 / 搓牌涉及的牌 id (按选择顺序)
        requirement: 制定的规则 (仅 SUBMIT_REQUIREMENT)
        roll: 搓牌随机值 r ∈ [0, 1) (仅 MASH)
        at: 动作时间戳 (秒，用于搓牌冷却)
    """
    action_type: ActionType
    player_id: str
    card_ids: Tuple[str, ...] = ()
    requirement: Optional[RoundRequirement] = None
    roll: float = 0.0
    at: float = 0.0

    @classmethod
    def pass_action(cls, player_id: str) -> 'Action':
        """创建 PASS 动作"""
        return cls(ActionType.PASS, player_id)

    @classmethod
    def play(cls, player_id: str, card_ids: Sequence[str]) -> 'Action':
        """创建出牌动作"""
        return cls(ActionType.PLAY, player_id, card_ids=tuple(card_ids))

    @classmethod
    def play_cards(cls, player_id: str, cards: Sequence[Card]) -> 'Action':
        """从牌对象创建出牌动作"""
        return cls.play(player_id, [c.id for c in cards])

    @classmethod
    def submit_requirement(cls, player_id: str, requirement: RoundRequirement) -> 'Action':
        """创建制定规则动作"""
        return cls(ActionType.SUBMIT_REQUIREMENT, player_id, requirement=requirement)

    @classmethod
    def mash(cls, player_id: str, card_id: str, roll: float, at: float = 0.0) -> 'Action':
        """创建搓牌动作"""
        return cls(ActionType.MASH, player_id, card_ids=(card_id,), roll=roll, at=at)

    @property
    def is_pass(self) -> bool:
        return self.action_type == ActionType.PASS

    def __len__(self) -> int:
        return len(self.card_ids)


class CombinationSearch:
    """
    出牌组合搜索

    根据手牌与本轮规则枚举所有张数符合的组合，
    并挑选总点数最小的合法出牌 (保留大牌到后续轮次)
    """

    def __init__(self, hand: Sequence[Card], requirement: RoundRequirement):
        """
        Args:
            hand: 手牌
            requirement: 本轮规则
        """
        self.hand = tuple(hand)
        self.requirement = requirement
        # 单类型规则先按资源过滤
        self.candidates = requirement.filter_hand(self.hand)

    def gen_combinations(self) -> Iterator[Tuple[Card, ...]]:
        """枚举所有 count 张的组合 (顺序无关，不重复)"""
        return itertools.combinations(self.candidates, self.requirement.count)

    def gen_valid(self, last_play: Optional[PlayedSet]) -> Iterator[Tuple[Card, ...]]:
        """按枚举顺序生成所有合法组合"""
        for combo in self.gen_combinations():
            if RuleEngine.is_valid_play(combo, last_play, self.requirement):
                yield combo

    def search(self, last_play: Optional[PlayedSet]) -> Optional[Tuple[Card, ...]]:
        """
        搜索总点数最小的合法出牌

        点数相同时取枚举顺序中最先出现者；
        有上一手时，总点数等于上一手即为下界，可提前结束

        Args:
            last_play: 本轮上一手出牌

        Returns:
            选中的牌，无合法出牌时返回 None (放弃)
        """
        floor = last_play.total if last_play is not None else None

        best: Optional[Tuple[Card, ...]] = None
        best_sum = 0
        for combo in self.gen_valid(last_play):
            total = hand_value(combo)
            if best is None or total < best_sum:
                best, best_sum = combo, total
                if floor is not None and total == floor:
                    break
        return best

    def distinct_valid(
        self,
        last_play: Optional[PlayedSet],
        limit: Optional[int] = None,
    ) -> List[Tuple[Card, ...]]:
        """
        所有合法出牌 (按 (资源, 点数) 签名去重)，总点数升序

        同签名的组合可互换，只保留枚举顺序中的第一个

        Args:
            last_play: 本轮上一手出牌
            limit: 最多返回数量
        """
        seen = set()
        result = []
        for combo in self.gen_valid(last_play):
            signature = tuple(sorted(c.sort_key for c in combo))
            if signature in seen:
                continue
            seen.add(signature)
            result.append(combo)

        result.sort(key=hand_value)
        if limit is not None:
            result = result[:limit]
        return result


def search_move(
    hand: Sequence[Card],
    last_play: Optional[PlayedSet],
    requirement: RoundRequirement,
) -> Optional[Tuple[Card, ...]]:
    """
    AI 出牌搜索

    Args:
        hand: 手牌
        last_play: 本轮上一手出牌
        requirement: 本轮规则

    Returns:
        总点数最小的合法出牌，或 None 表示放弃
    """
    return CombinationSearch(hand, requirement).search(last_play)
