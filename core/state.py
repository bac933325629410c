"""
游戏状态定义

使用不可变数据结构，每个动作通过纯函数
(state, action) -> state' 推进，支持:
- 确定性回放 (随机性全部由外部注入)
- 线程安全
- 无 UI 的测试
"""
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple
from enum import Enum
import logging
import random

from .cards import Card, ResourceType, cards_to_str, generate_hand, hand_value, sort_hand
from .actions import Action, ActionType, CombinationSearch
from .config import GameConfig, PLAYERS_COUNT
from .mash import MashOutcome, mash_card
from .requirements import PlayedSet, RoundRequirement, requirement_menu
from .rules import RejectReason, RuleEngine, ValidationResult

logger = logging.getLogger(__name__)


class Phase(Enum):
    """游戏阶段"""
    INIT = "init"                          # 发牌
    DEALER_SELECTION = "dealer_selection"  # 领出者制定规则
    PLAYING = "playing"                    # 出牌阶段
    ROUND_END = "round_end"                # 本轮结算
    GAME_END = "game_end"                  # 游戏结束


class LogType(Enum):
    """日志类型"""
    INFO = "info"
    ACTION = "action"
    ALERT = "alert"
    SUCCESS = "success"


@dataclass(frozen=True)
class LogEntry:
    """一条可读事件日志"""
    text: str
    type: LogType = LogType.INFO


class InvalidAction(ValueError):
    """动作与当前阶段或行动玩家不符 (调用方编程错误)"""


@dataclass(frozen=True)
class PlayerState:
    """
    玩家状态

    Attributes:
        id: 玩家 id (P1-P4)
        name: 显示名
        is_human: 是否人类玩家
        hand: 手牌 (按资源、点数排序)
        medals: 奖牌数
        passed: 本轮是否已放弃
        last_mash_at: 上次成功搓牌的时间戳
    """
    id: str
    name: str
    is_human: bool
    hand: Tuple[Card, ...]
    medals: int = 0
    passed: bool = False
    last_mash_at: Optional[float] = None

    def find_card(self, card_id: str) -> Optional[Card]:
        for card in self.hand:
            if card.id == card_id:
                return card
        return None

    @property
    def hand_value(self) -> int:
        return hand_value(self.hand)


def create_players(
    rng: Optional[random.Random] = None,
    human_seat: Optional[int] = 0,
    ranges: Optional[Dict[ResourceType, Tuple[int, int]]] = None,
) -> Tuple[PlayerState, ...]:
    """
    创建 4 名玩家并发牌

    Args:
        rng: 随机数源
        human_seat: 人类玩家座位 (None 表示全部为电脑)
        ranges: 各资源发牌张数区间

    Returns:
        按座位排列的玩家
    """
    rng = rng or random.Random()
    used_ids: set = set()
    players = []
    ai_number = 0
    for i in range(PLAYERS_COUNT):
        is_human = i == human_seat
        if is_human:
            name = f"玩家 {i + 1} (你)"
        else:
            ai_number += 1
            name = f"电脑 {ai_number}"
        players.append(PlayerState(
            id=f"P{i + 1}",
            name=name,
            is_human=is_human,
            hand=generate_hand(rng, ranges, used_ids),
        ))
    return tuple(players)


def choose_first_dealer(players: Sequence[PlayerState]) -> int:
    """
    首轮领出者: 手牌点数总和最大者

    线性扫描且使用严格大于比较，平局时座位靠前者胜出
    """
    best_index = 0
    best_value = -1
    for i, player in enumerate(players):
        if player.hand_value > best_value:
            best_index, best_value = i, player.hand_value
    return best_index


@dataclass(frozen=True)
class GameState:
    """
    不可变游戏状态

    Attributes:
        players: 4 名玩家 (按座位)
        phase: 游戏阶段
        active_index: 当前行动玩家座位
        dealer_index: 领出者座位
        requirement: 本轮规则
        table: 本轮桌面出牌 (按出牌顺序)
        round_number: 当前轮次 (从 1 开始)
        completed_rounds: 已结算轮数
        turn_count: 回合计数 (行动玩家或阶段变化时递增，搓牌不计)
        step_count: 已应用动作数
        logs: 事件日志 (只追加)
        last_rejection: 最近一次被拒绝的出牌结果
        finisher_id: 打空手牌、结束游戏的玩家
        winner_id: 游戏结束时奖牌最多的玩家
        mash_cooldown: 搓牌冷却 (秒)
    """
    players: Tuple[PlayerState, ...]
    phase: Phase
    active_index: int = 0
    dealer_index: int = 0
    requirement: Optional[RoundRequirement] = None
    table: Tuple[PlayedSet, ...] = ()
    round_number: int = 1
    completed_rounds: int = 0
    turn_count: int = 0
    step_count: int = 0
    logs: Tuple[LogEntry, ...] = ()
    last_rejection: Optional[ValidationResult] = None
    finisher_id: Optional[str] = None
    winner_id: Optional[str] = None
    mash_cooldown: float = 0.5

    # ------------------------------------------------------------------
    # 创建
    # ------------------------------------------------------------------

    @classmethod
    def initial(
        cls,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        config: Optional[GameConfig] = None,
    ) -> 'GameState':
        """
        创建初始游戏状态: 发牌、确定首轮领出者

        Args:
            seed: 随机种子 (未提供 rng 时使用)
            rng: 随机数源
            config: 对局配置

        Returns:
            初始状态 (领出者制定规则阶段)
        """
        config = config or GameConfig()
        rng = rng or random.Random(seed)

        players = create_players(rng, config.human_seat, config.resource_ranges)
        state = cls(players=players, phase=Phase.INIT, mash_cooldown=config.mash_cooldown)
        return state._dealt()

    def _dealt(self) -> 'GameState':
        """INIT -> DEALER_SELECTION"""
        if self.phase != Phase.INIT:
            raise InvalidAction("Hands can only be dealt during init")

        dealer = choose_first_dealer(self.players)
        return replace(
            self,
            phase=Phase.DEALER_SELECTION,
            dealer_index=dealer,
            active_index=dealer,
            logs=self.logs + (
                LogEntry("游戏初始化完成，已发牌。", LogType.INFO),
                LogEntry(f"{self.players[dealer].name} 资源最多，成为首轮领出者。", LogType.ACTION),
            ),
        )

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    @property
    def active_player(self) -> PlayerState:
        return self.players[self.active_index]

    @property
    def dealer(self) -> PlayerState:
        return self.players[self.dealer_index]

    @property
    def last_play(self) -> Optional[PlayedSet]:
        """本轮最近一手出牌 (栈顶)"""
        return self.table[-1] if self.table else None

    @property
    def is_finished(self) -> bool:
        return self.phase == Phase.GAME_END

    @property
    def turn_key(self) -> Tuple[Phase, int, int]:
        """延迟动作的绑定键: 键变化后尚未执行的延迟动作作废"""
        return self.phase, self.active_index, self.turn_count

    def player_index(self, player_id: str) -> int:
        for i, player in enumerate(self.players):
            if player.id == player_id:
                return i
        raise InvalidAction(f"Unknown player: {player_id}")

    def get_player(self, player_id: str) -> PlayerState:
        return self.players[self.player_index(player_id)]

    def ranking(self) -> List[PlayerState]:
        """按奖牌数降序排列 (平局时座位靠前者在前)"""
        order = RuleEngine.get_ranking([p.medals for p in self.players])
        return [self.players[i] for i in order]

    def get_legal_actions(self, limit: Optional[int] = None) -> List[Action]:
        """
        获取当前行动玩家的合法动作

        Returns:
            领出阶段: 所有可选规则
            出牌阶段: PASS + 去重后的合法出牌 (总点数升序)
        """
        player = self.active_player

        if self.phase == Phase.DEALER_SELECTION:
            menu = requirement_menu()[:limit]
            return [Action.submit_requirement(player.id, req) for req in menu]

        if self.phase == Phase.PLAYING:
            actions = [Action.pass_action(player.id)]
            search = CombinationSearch(player.hand, self.requirement)
            max_plays = None if limit is None else max(0, limit - 1)
            for combo in search.distinct_valid(self.last_play, max_plays):
                actions.append(Action.play_cards(player.id, combo))
            return actions

        return []

    # ------------------------------------------------------------------
    # 状态推进
    # ------------------------------------------------------------------

    def with_action(self, action: Action) -> 'GameState':
        """
        执行动作后的新状态

        Args:
            action: 动作

        Returns:
            新状态

        Raises:
            InvalidAction: 阶段或玩家不符
        """
        if action.action_type == ActionType.SUBMIT_REQUIREMENT:
            return self.with_requirement(action)
        if action.action_type == ActionType.PLAY:
            return self.with_play(action)
        if action.action_type == ActionType.PASS:
            return self.with_pass(action)
        if action.action_type == ActionType.MASH:
            return self.with_mash(action)
        raise InvalidAction(f"Unknown action type: {action.action_type}")

    def with_requirement(self, action: Action) -> 'GameState':
        """领出者制定规则: DEALER_SELECTION -> PLAYING"""
        if self.phase != Phase.DEALER_SELECTION:
            raise InvalidAction("Requirements can only be submitted during dealer selection")
        self._check_actor(action.player_id, self.dealer_index)
        if action.requirement is None:
            raise InvalidAction("Missing requirement")

        return self._begin_round(action.requirement)

    def with_play(self, action: Action) -> 'GameState':
        """
        出牌

        出牌阶段: 验证后入栈并推进回合
        领出阶段: 领出者直接出牌，由出牌推断本轮规则
        """
        if self.phase not in (Phase.PLAYING, Phase.DEALER_SELECTION):
            raise InvalidAction(f"Cannot play cards during {self.phase.value}")
        self._check_actor(action.player_id, self.active_index)

        cards = self._resolve_cards(self.active_player, action.card_ids)

        state = self
        if self.phase == Phase.DEALER_SELECTION:
            requirement = RoundRequirement.infer_from_cards(cards)
            if requirement is None:
                return self._rejected(ValidationResult(
                    RejectReason.NOT_STRICTLY_ASCENDING,
                    "混合出牌时点数必须严格递增，无法推断本轮规则。",
                ))
            state = self._begin_round(requirement)

        result = RuleEngine.validate(cards, state.last_play, state.requirement)
        if not result.valid:
            return state._rejected(result)

        return state._apply_play(cards)

    def with_pass(self, action: Action) -> 'GameState':
        """放弃本轮"""
        if self.phase != Phase.PLAYING:
            raise InvalidAction(f"Cannot pass during {self.phase.value}")
        self._check_actor(action.player_id, self.active_index)

        player = self.active_player
        state = self._with_player(self.active_index, replace(player, passed=True))
        state = replace(
            state,
            step_count=self.step_count + 1,
            last_rejection=None,
            logs=self.logs + (LogEntry(f"{player.name} 选择放弃 (Pass)。", LogType.INFO),),
        )
        return state._advance_turn()

    def with_mash(self, action: Action) -> 'GameState':
        """
        搓牌

        冷却期内的搓牌请求直接忽略 (不排队)，只记录提示
        """
        if self.phase not in (Phase.DEALER_SELECTION, Phase.PLAYING):
            raise InvalidAction(f"Cannot mash during {self.phase.value}")
        if len(action.card_ids) != 1:
            raise InvalidAction("Mash targets exactly one card")

        index = self.player_index(action.player_id)
        player = self.players[index]
        card = player.find_card(action.card_ids[0])
        if card is None:
            raise InvalidAction(f"Card {action.card_ids[0]} is not in {player.id}'s hand")

        if player.last_mash_at is not None and action.at - player.last_mash_at < self.mash_cooldown:
            return replace(
                self,
                logs=self.logs + (LogEntry("搓牌冷却中，请稍候。", LogType.ALERT),),
            )

        new_card, outcome = mash_card(card, roll=action.roll)
        hand = sort_hand(new_card if c.id == card.id else c for c in player.hand)
        state = self._with_player(index, replace(player, hand=hand, last_mash_at=action.at))

        if outcome == MashOutcome.BETTER and new_card.level > card.level:
            entry = LogEntry("搓牌成功！点数升级！", LogType.SUCCESS)
        elif outcome == MashOutcome.WORSE and new_card.level < card.level:
            entry = LogEntry("搓牌失败！点数下降...", LogType.ALERT)
        else:
            entry = LogEntry("搓牌完成，点数不变。", LogType.INFO)

        return replace(state, step_count=self.step_count + 1, logs=self.logs + (entry,))

    # ------------------------------------------------------------------
    # 内部转换
    # ------------------------------------------------------------------

    def _check_actor(self, player_id: str, expected_index: int):
        index = self.player_index(player_id)
        if index != expected_index:
            raise InvalidAction(
                f"It is not {player_id}'s turn (expected {self.players[expected_index].id})"
            )

    @staticmethod
    def _resolve_cards(player: PlayerState, card_ids: Sequence[str]) -> Tuple[Card, ...]:
        """按选择顺序取出手牌中的牌"""
        if not card_ids:
            raise InvalidAction("No cards selected")
        if len(set(card_ids)) != len(card_ids):
            raise InvalidAction("Duplicate card ids in selection")

        cards = []
        for card_id in card_ids:
            card = player.find_card(card_id)
            if card is None:
                raise InvalidAction(f"Card {card_id} is not in {player.id}'s hand")
            cards.append(card)
        return tuple(cards)

    def _with_player(self, index: int, player: PlayerState) -> 'GameState':
        players = list(self.players)
        players[index] = player
        return replace(self, players=tuple(players))

    def _reset_passes(self) -> Tuple[PlayerState, ...]:
        return tuple(replace(p, passed=False) for p in self.players)

    def _rejected(self, result: ValidationResult) -> 'GameState':
        """出牌被拒绝: 状态不变，仅记录原因"""
        return replace(
            self,
            last_rejection=result,
            logs=self.logs + (LogEntry(f"出牌无效: {result.message}", LogType.ALERT),),
        )

    def _begin_round(self, requirement: RoundRequirement) -> 'GameState':
        """DEALER_SELECTION -> PLAYING: 清空桌面并重置放弃标记"""
        return replace(
            self,
            phase=Phase.PLAYING,
            requirement=requirement,
            table=(),
            players=self._reset_passes(),
            active_index=self.dealer_index,
            turn_count=self.turn_count + 1,
            step_count=self.step_count + 1,
            last_rejection=None,
            logs=self.logs + (
                LogEntry(f"{self.dealer.name} 制定规则: {requirement.description}", LogType.ALERT),
            ),
        )

    def _apply_play(self, cards: Tuple[Card, ...]) -> 'GameState':
        """出牌入栈，检查是否打空手牌，否则推进回合"""
        player = self.active_player
        played_ids = {c.id for c in cards}
        new_hand = tuple(c for c in player.hand if c.id not in played_ids)

        played = PlayedSet(player.id, cards, sequence_number=len(self.table))
        state = self._with_player(self.active_index, replace(player, hand=new_hand))
        state = replace(
            state,
            table=self.table + (played,),
            step_count=self.step_count + 1,
            last_rejection=None,
            logs=self.logs + (
                LogEntry(
                    f"{player.name} 打出了 {len(cards)} 张牌 ({cards_to_str(cards)})。",
                    LogType.ACTION,
                ),
            ),
        )

        if not new_hand:
            return state._end_game(self.active_index)
        return state._advance_turn()

    def _advance_turn(self) -> 'GameState':
        """
        推进回合

        从下一位开始最多扫描一圈:
        - 扫描到栈顶出牌者: 其余玩家均已放弃，该玩家赢得本轮
        - 扫描到未放弃的玩家: 轮到该玩家
        - 扫描一圈均未命中 (桌面为空且全部放弃): 退化情况，重新选择领出者
        """
        top = self.last_play
        n = len(self.players)

        for offset in range(1, n + 1):
            index = (self.active_index + offset) % n
            player = self.players[index]

            if top is not None and player.id == top.player_id:
                return self._end_round(index)

            if not player.passed:
                return replace(self, active_index=index, turn_count=self.turn_count + 1)

        return self._abandon_round()

    def _end_round(self, winner_index: int) -> 'GameState':
        """
        本轮结算 (ROUND_END) 后立即进入下一轮的 DEALER_SELECTION

        胜者获得奖牌，并成为下一轮领出者
        """
        winner = self.players[winner_index]
        players = list(self._reset_passes())
        players[winner_index] = replace(players[winner_index], medals=winner.medals + 1)

        settled = replace(
            self,
            phase=Phase.ROUND_END,
            players=tuple(players),
            completed_rounds=self.completed_rounds + 1,
            logs=self.logs + (
                LogEntry(f"第 {self.round_number} 轮结束！获胜者: {winner.name}", LogType.SUCCESS),
            ),
        )
        return replace(
            settled,
            phase=Phase.DEALER_SELECTION,
            dealer_index=winner_index,
            active_index=winner_index,
            round_number=self.round_number + 1,
            requirement=None,
            table=(),
            turn_count=self.turn_count + 1,
        )

    def _abandon_round(self) -> 'GameState':
        """退化情况: 桌面为空且所有人都已放弃，不颁发奖牌，由领出者的下家重新制定规则"""
        next_dealer = (self.dealer_index + 1) % len(self.players)
        logger.warning(
            "Round %d: every player passed on an empty table, reopening dealer selection",
            self.round_number,
        )
        return replace(
            self,
            phase=Phase.DEALER_SELECTION,
            dealer_index=next_dealer,
            active_index=next_dealer,
            requirement=None,
            table=(),
            players=self._reset_passes(),
            turn_count=self.turn_count + 1,
            logs=self.logs + (
                LogEntry(
                    f"所有人都放弃了，本轮作废。由 {self.players[next_dealer].name} 重新制定规则。",
                    LogType.ALERT,
                ),
            ),
        )

    def _end_game(self, finisher_index: int) -> 'GameState':
        """有玩家打空手牌: 立即结束游戏 (即使本轮未结束)"""
        finisher = self.players[finisher_index]
        state = replace(self, phase=Phase.GAME_END, requirement=None)
        winner = state.ranking()[0]
        return replace(
            state,
            finisher_id=finisher.id,
            winner_id=winner.id,
            turn_count=self.turn_count + 1,
            logs=self.logs + (
                LogEntry(f"{finisher.name} 打空了手牌！", LogType.ALERT),
                LogEntry(f"游戏结束！最终赢家: {winner.name}", LogType.SUCCESS),
            ),
        )

    # ------------------------------------------------------------------
    # 观测
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """供展示层渲染的状态快照"""
        top = self.last_play
        return {
            "phase": self.phase.value,
            "round_number": self.round_number,
            "active_player": self.active_player.id,
            "dealer": self.dealer.id,
            "players": [
                {
                    "id": p.id,
                    "name": p.name,
                    "is_human": p.is_human,
                    "medals": p.medals,
                    "hand_size": len(p.hand),
                    "passed": p.passed,
                }
                for p in self.players
            ],
            "requirement": self.requirement.description if self.requirement else None,
            "table": [
                {
                    "player_id": s.player_id,
                    "cards": cards_to_str(s.cards),
                    "total": s.total,
                    "sequence_number": s.sequence_number,
                }
                for s in self.table
            ],
            "last_play_total": top.total if top else None,
            "logs": [(e.type.value, e.text) for e in self.logs],
            "winner": self.winner_id,
            "finisher": self.finisher_id,
        }
