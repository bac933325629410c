"""游戏状态测试"""
import random

import pytest

from core.cards import ResourceType, str_to_cards
from core.actions import Action
from core.config import GameConfig
from core.requirements import PlayedSet, RoundRequirement
from core.rules import RejectReason
from core.session import ai_action
from core.state import (
    Phase,
    LogType,
    InvalidAction,
    PlayerState,
    GameState,
    create_players,
    choose_first_dealer,
)


def make_players(*hands, medals=None):
    rng = random.Random(0)
    medals = medals or [0] * len(hands)
    return tuple(
        PlayerState(
            id=f"P{i + 1}",
            name=f"P{i + 1}",
            is_human=i == 0,
            hand=str_to_cards(h, rng),
            medals=medals[i],
        )
        for i, h in enumerate(hands)
    )


def make_state(*hands, **kwargs) -> GameState:
    medals = kwargs.pop("medals", None)
    kwargs.setdefault("phase", Phase.PLAYING)
    return GameState(players=make_players(*hands, medals=medals), **kwargs)


def card_ids(state: GameState, seat: int, *labels) -> list:
    """按标签依次从手牌中取不同的牌 id"""
    ids = []
    for label in labels:
        for card in state.players[seat].hand:
            if str(card) == label and card.id not in ids:
                ids.append(card.id)
                break
    return ids


SOLDIER_1 = RoundRequirement.single_fixed(ResourceType.SOLDIER, 1)


class TestPhaseEnum:
    """Phase 枚举测试"""

    def test_phases(self):
        assert Phase.INIT.value == "init"
        assert Phase.DEALER_SELECTION.value == "dealer_selection"
        assert Phase.PLAYING.value == "playing"
        assert Phase.ROUND_END.value == "round_end"
        assert Phase.GAME_END.value == "game_end"


class TestCreatePlayers:
    """发牌与首轮领出者测试"""

    def test_four_players(self):
        players = create_players(random.Random(1))
        assert [p.id for p in players] == ["P1", "P2", "P3", "P4"]
        assert players[0].is_human
        assert players[0].name == "玩家 1 (你)"
        assert [p.name for p in players[1:]] == ["电脑 1", "电脑 2", "电脑 3"]

    def test_all_ai(self):
        players = create_players(random.Random(1), human_seat=None)
        assert not any(p.is_human for p in players)

    def test_first_dealer_highest_value(self):
        players = make_players("S1", "S7", "S2", "S3")
        assert choose_first_dealer(players) == 1

    def test_first_dealer_tie_keeps_earliest(self):
        players = make_players("S1", "S5", "T5", "S3")
        assert choose_first_dealer(players) == 1


class TestGameStateInitial:
    """GameState 初始化测试"""

    def test_initial_state(self):
        state = GameState.initial(seed=42)
        assert state.phase == Phase.DEALER_SELECTION
        assert state.round_number == 1
        assert state.active_index == state.dealer_index
        assert state.requirement is None
        assert state.table == ()

    def test_dealer_has_highest_value(self):
        state = GameState.initial(seed=42)
        values = [p.hand_value for p in state.players]
        assert values[state.dealer_index] == max(values)

    def test_deterministic_with_seed(self):
        state1 = GameState.initial(seed=123)
        state2 = GameState.initial(seed=123)
        assert state1.players == state2.players

    def test_config_mash_cooldown(self):
        state = GameState.initial(seed=1, config=GameConfig(mash_cooldown=2.0))
        assert state.mash_cooldown == 2.0

    def test_initial_logs(self):
        state = GameState.initial(seed=42)
        assert len(state.logs) == 2
        assert state.logs[1].type == LogType.ACTION


class TestDealerSelection:
    """领出阶段测试"""

    def test_submit_requirement(self):
        state = make_state("S1 S2", "S3", "S4", "S5", phase=Phase.DEALER_SELECTION)
        new_state = state.with_action(Action.submit_requirement("P1", SOLDIER_1))
        assert new_state.phase == Phase.PLAYING
        assert new_state.requirement == SOLDIER_1
        assert new_state.active_index == 0
        assert new_state.turn_count == state.turn_count + 1
        assert new_state.logs[-1].type == LogType.ALERT

    def test_non_dealer_rejected(self):
        state = make_state("S1", "S3", "S4", "S5", phase=Phase.DEALER_SELECTION)
        with pytest.raises(InvalidAction):
            state.with_action(Action.submit_requirement("P2", SOLDIER_1))

    def test_requirement_outside_dealer_selection(self):
        state = make_state("S1", "S3", "S4", "S5", requirement=SOLDIER_1)
        with pytest.raises(InvalidAction):
            state.with_action(Action.submit_requirement("P1", SOLDIER_1))

    def test_pass_during_dealer_selection(self):
        state = make_state("S1", "S3", "S4", "S5", phase=Phase.DEALER_SELECTION)
        with pytest.raises(InvalidAction):
            state.with_action(Action.pass_action("P1"))

    def test_direct_play_same_type(self):
        state = make_state("T2 T5 S1", "S3", "S4", "S5", phase=Phase.DEALER_SELECTION)
        ids = card_ids(state, 0, "T2", "T5")
        new_state = state.with_action(Action.play("P1", ids))

        assert new_state.requirement == RoundRequirement.single_fixed(ResourceType.TOWER, 2)
        assert len(new_state.table) == 1
        assert new_state.table[0].player_id == "P1"
        assert new_state.active_index == 1

    def test_direct_play_mixed_ascending(self):
        state = make_state("S1 T2 O3 F7", "S3", "S4", "S5", phase=Phase.DEALER_SELECTION)
        ids = card_ids(state, 0, "O3", "S1", "T2")
        new_state = state.with_action(Action.play("P1", ids))

        assert new_state.requirement == RoundRequirement.mixed_ascending(3)
        assert [str(c) for c in new_state.table[0].cards] == ["O3", "S1", "T2"]

    def test_direct_play_mixed_not_ascending(self):
        state = make_state("S2 T2 O3", "S3", "S4", "S5", phase=Phase.DEALER_SELECTION)
        ids = card_ids(state, 0, "S2", "T2")
        new_state = state.with_action(Action.play("P1", ids))

        assert new_state.phase == Phase.DEALER_SELECTION
        assert new_state.last_rejection.reason == RejectReason.NOT_STRICTLY_ASCENDING
        assert new_state.players == state.players

    def test_legal_actions_menu(self):
        state = make_state("S1", "S3", "S4", "S5", phase=Phase.DEALER_SELECTION)
        actions = state.get_legal_actions()
        assert len(actions) == 45
        assert all(a.requirement is not None for a in actions)
        assert len(state.get_legal_actions(limit=10)) == 10


class TestPlaying:
    """出牌阶段测试"""

    def test_valid_play(self):
        state = make_state("S2 S4", "S3", "S4", "S5", requirement=SOLDIER_1)
        new_state = state.with_action(Action.play("P1", card_ids(state, 0, "S2")))

        assert [str(c) for c in new_state.players[0].hand] == ["S4"]
        assert new_state.last_play.total == 2
        assert new_state.last_play.sequence_number == 0
        assert new_state.active_index == 1
        assert new_state.step_count == 1

    def test_rejection_keeps_state(self):
        table = (PlayedSet("P4", str_to_cards("S5")),)
        state = make_state("S2 S6", "S3", "S4", "S5", requirement=SOLDIER_1, table=table)
        new_state = state.with_action(Action.play("P1", card_ids(state, 0, "S2")))

        assert new_state.last_rejection.reason == RejectReason.BELOW_REQUIRED_TOTAL
        assert new_state.players == state.players
        assert new_state.table == state.table
        assert new_state.active_index == 0
        assert new_state.logs[-1].type == LogType.ALERT

    def test_successful_play_clears_rejection(self):
        table = (PlayedSet("P4", str_to_cards("S5")),)
        state = make_state("S2 S6", "S3", "S4", "S5", requirement=SOLDIER_1, table=table)
        state = state.with_action(Action.play("P1", card_ids(state, 0, "S2")))
        state = state.with_action(Action.play("P1", card_ids(state, 0, "S6")))
        assert state.last_rejection is None
        assert state.last_play.player_id == "P1"

    def test_wrong_player(self):
        state = make_state("S2", "S3", "S4", "S5", requirement=SOLDIER_1)
        with pytest.raises(InvalidAction):
            state.with_action(Action.play("P2", card_ids(state, 1, "S3")))

    def test_unknown_card(self):
        state = make_state("S2", "S3", "S4", "S5", requirement=SOLDIER_1)
        with pytest.raises(InvalidAction):
            state.with_action(Action.play("P1", ["missing"]))

    def test_duplicate_card(self):
        state = make_state("S2 S3", "S3", "S4", "S5", requirement=SOLDIER_1)
        card_id = card_ids(state, 0, "S2")[0]
        with pytest.raises(InvalidAction):
            state.with_action(Action.play("P1", [card_id, card_id]))

    def test_unknown_player(self):
        state = make_state("S2", "S3", "S4", "S5", requirement=SOLDIER_1)
        with pytest.raises(InvalidAction):
            state.with_action(Action.pass_action("P9"))

    def test_pass_skips_passed_players(self):
        state = make_state("S2 S1", "S3 S1", "S4 S1", "S5 S1", requirement=SOLDIER_1)
        state = state.with_action(Action.play("P1", card_ids(state, 0, "S2")))
        state = state.with_action(Action.pass_action("P2"))
        assert state.active_index == 2
        state = state.with_action(Action.play("P3", card_ids(state, 2, "S4")))
        state = state.with_action(Action.pass_action("P4"))
        assert state.active_index == 0
        # P2 已放弃被跳过，回到栈顶出牌者 P3
        state = state.with_action(Action.pass_action("P1"))
        assert state.phase == Phase.DEALER_SELECTION
        assert state.dealer_index == 2
        assert state.players[2].medals == 1

    def test_legal_actions(self):
        table = (PlayedSet("P4", str_to_cards("S3")),)
        state = make_state("S2 S3 S3 S6 T7", "S3", "S4", "S5", requirement=SOLDIER_1, table=table)
        actions = state.get_legal_actions()
        assert actions[0].is_pass
        labels = [str(state.players[0].find_card(a.card_ids[0])) for a in actions[1:]]
        assert labels == ["S3", "S6"]


class TestRoundEnd:
    """本轮结算测试"""

    def test_everyone_passes_back_to_owner(self):
        state = make_state("S1 S1", "S6 S1", "S2 S1", "S3 S1", requirement=SOLDIER_1, active_index=1)
        state = state.with_action(Action.play("P2", card_ids(state, 1, "S6")))
        state = state.with_action(Action.pass_action("P3"))
        state = state.with_action(Action.pass_action("P4"))
        state = state.with_action(Action.pass_action("P1"))

        assert state.phase == Phase.DEALER_SELECTION
        assert state.players[1].medals == 1
        assert state.dealer_index == 1
        assert state.active_index == 1
        assert state.round_number == 2
        assert state.completed_rounds == 1
        assert state.requirement is None
        assert state.table == ()
        assert not any(p.passed for p in state.players)
        assert state.logs[-1].type == LogType.SUCCESS

    def test_medals_equal_completed_rounds(self):
        state = GameState.initial(seed=5, config=GameConfig(human_seat=None))
        rng = random.Random(5)
        steps = 0
        while not state.is_finished and steps < 5000:
            state = state.with_action(ai_action(state, rng))
            assert sum(p.medals for p in state.players) == state.completed_rounds
            steps += 1
        assert state.is_finished


class TestAbandonedRound:
    """退化情况测试"""

    def test_all_pass_on_empty_table(self):
        req = RoundRequirement.mixed_ascending(3)
        state = make_state("S1 T1", "S2", "S3", "S4", requirement=req, dealer_index=0)
        for pid in ("P1", "P2", "P3"):
            state = state.with_action(Action.pass_action(pid))
        new_state = state.with_action(Action.pass_action("P4"))

        assert new_state.phase == Phase.DEALER_SELECTION
        assert new_state.dealer_index == 1
        assert new_state.active_index == 1
        assert sum(p.medals for p in new_state.players) == 0
        assert new_state.completed_rounds == 0
        assert new_state.round_number == state.round_number
        assert new_state.logs[-1].type == LogType.ALERT

    def test_next_dealer_rotates(self):
        req = RoundRequirement.mixed_ascending(3)
        state = make_state("S1", "S2", "S3", "S4", requirement=req, active_index=2, dealer_index=2)
        for pid in ("P3", "P4", "P1", "P2"):
            state = state.with_action(Action.pass_action(pid))
        assert state.phase == Phase.DEALER_SELECTION
        assert state.dealer_index == 3


class TestGameEnd:
    """游戏结束测试"""

    def test_empty_hand_ends_game(self):
        state = make_state(
            "S1", "S6 S1", "S2 S1", "S3 S1",
            requirement=SOLDIER_1,
            medals=[0, 2, 0, 0],
        )
        state = state.with_action(Action.play("P1", card_ids(state, 0, "S1")))

        assert state.phase == Phase.GAME_END
        assert state.is_finished
        assert state.finisher_id == "P1"
        assert state.winner_id == "P2"
        assert state.completed_rounds == 0

    def test_winner_tie_uses_seat_order(self):
        state = make_state("S1 S1", "S1", "S2", "S3", requirement=SOLDIER_1, active_index=1,
                           medals=[1, 0, 1, 0])
        state = state.with_action(Action.play("P2", card_ids(state, 1, "S1")))
        assert state.finisher_id == "P2"
        assert state.winner_id == "P1"

    def test_no_actions_after_end(self):
        state = make_state("S1", "S1", "S2", "S3", requirement=SOLDIER_1)
        state = state.with_action(Action.play("P1", card_ids(state, 0, "S1")))
        assert state.get_legal_actions() == []
        with pytest.raises(InvalidAction):
            state.with_action(Action.pass_action("P2"))


class TestMash:
    """搓牌测试"""

    def test_mash_better(self):
        state = make_state("S3 T1", "S3", "S4", "S5", requirement=SOLDIER_1)
        card_id = card_ids(state, 0, "S3")[0]
        new_state = state.with_action(Action.mash("P1", card_id, roll=0.0, at=1.0))

        card = new_state.players[0].find_card(card_id)
        assert card.level == 4
        assert new_state.players[0].last_mash_at == 1.0
        assert new_state.logs[-1].type == LogType.SUCCESS
        assert new_state.turn_key == state.turn_key

    def test_mash_out_of_turn(self):
        state = make_state("S3", "S3", "S4", "S5", requirement=SOLDIER_1)
        card_id = card_ids(state, 2, "S4")[0]
        new_state = state.with_action(Action.mash("P3", card_id, roll=0.5))
        assert new_state.players[2].find_card(card_id).level == 4
        assert new_state.active_index == 0

    def test_mash_cooldown(self):
        state = make_state("S3 S5", "S3", "S4", "S5", requirement=SOLDIER_1, mash_cooldown=0.5)
        first, second = card_ids(state, 0, "S3", "S5")
        state = state.with_action(Action.mash("P1", first, roll=0.0, at=1.0))
        blocked = state.with_action(Action.mash("P1", second, roll=0.0, at=1.2))

        assert blocked.players == state.players
        assert blocked.logs[-1].type == LogType.ALERT

        allowed = state.with_action(Action.mash("P1", second, roll=0.0, at=1.5))
        assert allowed.players[0].find_card(second).level == 6

    def test_mash_keeps_hand_sorted(self):
        state = make_state("S3 S4", "S3", "S4", "S5", requirement=SOLDIER_1)
        card_id = card_ids(state, 0, "S4")[0]
        new_state = state.with_action(Action.mash("P1", card_id, roll=0.16))
        assert [str(c) for c in new_state.players[0].hand] == ["S3", "S3"]

    def test_mash_at_max_level(self):
        state = make_state("O7", "S3", "S4", "S5", requirement=SOLDIER_1)
        card_id = card_ids(state, 0, "O7")[0]
        new_state = state.with_action(Action.mash("P1", card_id, roll=0.01))
        assert new_state.players[0].find_card(card_id).level == 7
        assert new_state.logs[-1].type == LogType.INFO

    def test_mash_unknown_card(self):
        state = make_state("S3", "S3", "S4", "S5", requirement=SOLDIER_1)
        with pytest.raises(InvalidAction):
            state.with_action(Action.mash("P1", "missing", roll=0.5))

    def test_mash_after_game_end(self):
        state = make_state("S1", "S3", "S4", "S5", requirement=SOLDIER_1)
        card_id = card_ids(state, 1, "S3")[0]
        state = state.with_action(Action.play("P1", card_ids(state, 0, "S1")))
        with pytest.raises(InvalidAction):
            state.with_action(Action.mash("P2", card_id, roll=0.5))


class TestSnapshot:
    """快照测试"""

    def test_snapshot(self):
        state = GameState.initial(seed=42)
        snap = state.snapshot()
        assert snap["phase"] == "dealer_selection"
        assert len(snap["players"]) == 4
        assert snap["table"] == []
        assert snap["winner"] is None
