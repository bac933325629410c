"""电脑领出者策略测试"""
import random

import pytest

from core.cards import ResourceType, str_to_cards
from core.dealer import best_resource, choose_requirement
from core.requirements import RequirementKind, RoundRequirement


class TestBestResource:
    """最多资源测试"""

    def test_highest_count(self):
        assert best_resource(str_to_cards("S1 T1 T2 O3")) == (ResourceType.TOWER, 2)

    def test_tie_uses_enum_order(self):
        assert best_resource(str_to_cards("O1 O2 F1 F2")) == (ResourceType.FARM, 2)

    def test_empty_hand(self):
        assert best_resource(()) == (ResourceType.SOLDIER, 0)


class TestChooseRequirement:
    """规则选择测试"""

    hand = str_to_cards("S1 S2 S3 T4 F5")

    def test_mixed_branch(self):
        assert choose_requirement(self.hand, roll=0.9) == RoundRequirement.mixed_ascending(3)

    def test_mixed_needs_three_cards(self):
        req = choose_requirement(str_to_cards("S1 S2"), roll=0.95)
        assert req.kind == RequirementKind.SINGLE_ASCENDING

    def test_ascending_branch(self):
        req = choose_requirement(self.hand, roll=0.7)
        assert req == RoundRequirement.single_ascending(ResourceType.SOLDIER, 2)

    def test_fixed_branch(self):
        req = choose_requirement(self.hand, roll=0.3)
        assert req == RoundRequirement.single_fixed(ResourceType.SOLDIER, 2)

    def test_thresholds_are_strict(self):
        assert choose_requirement(self.hand, roll=0.8).kind == RequirementKind.SINGLE_ASCENDING
        assert choose_requirement(self.hand, roll=0.6).kind == RequirementKind.SINGLE_FIXED

    def test_single_card_type(self):
        req = choose_requirement(str_to_cards("O4"), roll=0.7)
        assert req == RoundRequirement.single_fixed(ResourceType.ORE, 1)

    def test_rng_injection(self):
        a = choose_requirement(self.hand, rng=random.Random(3))
        b = choose_requirement(self.hand, rng=random.Random(3))
        assert a == b
