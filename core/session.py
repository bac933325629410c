"""
对局会话 (编排器)

单线程协作式调度:
- 同一时刻只有一个动作在执行，共享状态只由编排器修改
- 电脑决策与人类超时均为延迟动作，绑定到创建时的回合键
- 回合键变化后，尚未执行的延迟动作直接作废，不会被应用
"""
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple
import heapq
import itertools
import logging
import random
import time

from .actions import Action, search_move
from .config import GameConfig
from .dealer import choose_requirement
from .requirements import RoundRequirement
from .state import GameState, Phase

logger = logging.getLogger(__name__)

AI_TASK = "ai"
TIMEOUT_TASK = "timeout"


def ai_action(state: GameState, rng: Optional[random.Random] = None) -> Action:
    """
    电脑玩家的决策

    领出阶段: 按手牌制定规则
    出牌阶段: 搜索总点数最小的合法出牌，找不到则放弃
    """
    player = state.active_player
    if state.phase == Phase.DEALER_SELECTION:
        return Action.submit_requirement(player.id, choose_requirement(player.hand, rng))
    if state.phase == Phase.PLAYING:
        return _search_or_pass(state)
    raise ValueError(f"No decision to make during {state.phase.value}")


def timeout_action(state: GameState) -> Action:
    """
    人类超时的自动动作

    领出阶段: 以点数最低的牌制定单张固定规则
    出牌阶段: 与电脑相同，出最小合法牌或放弃
    """
    player = state.active_player
    if state.phase == Phase.DEALER_SELECTION:
        return Action.submit_requirement(player.id, RoundRequirement.for_timeout(player.hand))
    if state.phase == Phase.PLAYING:
        return _search_or_pass(state)
    raise ValueError(f"No decision to make during {state.phase.value}")


def _search_or_pass(state: GameState) -> Action:
    player = state.active_player
    move = search_move(player.hand, state.last_play, state.requirement)
    if move is None:
        return Action.pass_action(player.id)
    return Action.play_cards(player.id, move)


@dataclass(order=True)
class ScheduledAction:
    """
    延迟动作

    Attributes:
        due: 触发时间
        seq: 创建序号 (同时触发时先创建者先执行)
        key: 创建时的回合键
        kind: "ai" 或 "timeout"
    """
    due: float
    seq: int
    key: Tuple = field(compare=False)
    kind: str = field(compare=False)


class ActionScheduler:
    """
    按触发时间排序的延迟动作队列

    不负责判断动作是否过期，只提供按键清理
    """

    def __init__(self):
        self._queue: List[ScheduledAction] = []
        self._seq = itertools.count()

    def schedule(self, due: float, key: Tuple, kind: str) -> ScheduledAction:
        task = ScheduledAction(due, next(self._seq), key, kind)
        heapq.heappush(self._queue, task)
        return task

    def pop_due(self, now: float) -> Optional[ScheduledAction]:
        """弹出一个已到期的动作"""
        if self._queue and self._queue[0].due <= now:
            return heapq.heappop(self._queue)
        return None

    def pop_next(self) -> Optional[ScheduledAction]:
        """弹出最早的动作 (无论是否到期)"""
        if self._queue:
            return heapq.heappop(self._queue)
        return None

    def discard_stale(self, key: Tuple) -> int:
        """丢弃所有键不匹配的动作，返回丢弃数量"""
        kept = [t for t in self._queue if t.key == key]
        dropped = len(self._queue) - len(kept)
        if dropped:
            heapq.heapify(kept)
            self._queue = kept
        return dropped

    @property
    def next_due(self) -> Optional[float]:
        return self._queue[0].due if self._queue else None

    def pending(self) -> List[ScheduledAction]:
        return sorted(self._queue)

    def __len__(self) -> int:
        return len(self._queue)


class GameSession:
    """
    对局会话

    持有当前状态、随机源与延迟动作队列；
    人类动作通过 submit 系列方法提交，电脑与超时动作通过 poll 触发

    Example:
        session = GameSession(seed=7)
        session.poll()            # 执行已到期的电脑 / 超时动作
        session.play("P1", ids)   # 人类出牌
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            config: 对局配置
            seed: 随机种子 (未提供 rng 时使用)
            rng: 随机数源 (发牌、电脑规则、搓牌共用)
            clock: 时钟 (秒)
        """
        self.config = config or GameConfig()
        self.rng = rng or random.Random(seed)
        self.clock = clock
        self.scheduler = ActionScheduler()

        self.state = GameState.initial(rng=self.rng, config=self.config)
        self._schedule_turn(self.clock())

    # ------------------------------------------------------------------
    # 人类动作
    # ------------------------------------------------------------------

    def submit(self, action: Action, now: Optional[float] = None) -> GameState:
        """
        提交动作并立即应用

        Raises:
            InvalidAction: 阶段或玩家不符
        """
        return self._apply(action, self._now(now))

    def submit_requirement(self, player_id: str, requirement: RoundRequirement,
                           now: Optional[float] = None) -> GameState:
        return self.submit(Action.submit_requirement(player_id, requirement), now)

    def play(self, player_id: str, card_ids: Sequence[str], now: Optional[float] = None) -> GameState:
        return self.submit(Action.play(player_id, card_ids), now)

    def pass_turn(self, player_id: str, now: Optional[float] = None) -> GameState:
        return self.submit(Action.pass_action(player_id), now)

    def mash(self, player_id: str, card_id: str, now: Optional[float] = None) -> GameState:
        """搓牌: 随机值由会话的随机源抽取"""
        now = self._now(now)
        return self.submit(Action.mash(player_id, card_id, self.rng.random(), at=now), now)

    # ------------------------------------------------------------------
    # 延迟动作
    # ------------------------------------------------------------------

    def poll(self, now: Optional[float] = None) -> int:
        """
        执行所有已到期的延迟动作

        Args:
            now: 当前时间 (默认读取时钟)

        Returns:
            实际应用的动作数
        """
        now = self._now(now)
        applied = 0
        while True:
            task = self.scheduler.pop_due(now)
            if task is None:
                break
            if self._fire(task, now):
                applied += 1
        return applied

    def fast_forward(self) -> bool:
        """
        立即执行下一个延迟动作 (以其触发时间为当前时间)

        Returns:
            是否应用了动作
        """
        while True:
            task = self.scheduler.pop_next()
            if task is None:
                return False
            if self._fire(task, task.due):
                return True

    def run(self, max_steps: int = 10000) -> GameState:
        """
        连续快进，直到游戏结束或需要人类操作 (不限时)

        Args:
            max_steps: 最多执行的延迟动作数
        """
        for _ in range(max_steps):
            if self.state.is_finished or not self.fast_forward():
                break
        return self.state

    @property
    def is_finished(self) -> bool:
        return self.state.is_finished

    # ------------------------------------------------------------------
    # 内部
    # ------------------------------------------------------------------

    def _now(self, now: Optional[float]) -> float:
        return self.clock() if now is None else now

    def _fire(self, task: ScheduledAction, now: float) -> bool:
        """执行一个延迟动作；回合键不匹配时丢弃"""
        if task.key != self.state.turn_key:
            logger.debug("Discarding stale %s action scheduled for %s", task.kind, task.key)
            return False

        if task.kind == AI_TASK:
            action = ai_action(self.state, self.rng)
        else:
            action = timeout_action(self.state)
            logger.debug("Turn timeout for %s", self.state.active_player.id)

        logger.debug("%s -> %s %s", action.player_id, action.action_type.name, action.card_ids)
        self._apply(action, now)
        return True

    def _apply(self, action: Action, now: float) -> GameState:
        previous_key = self.state.turn_key
        self.state = self.state.with_action(action)

        if self.state.turn_key != previous_key:
            dropped = self.scheduler.discard_stale(self.state.turn_key)
            if dropped:
                logger.debug("Dropped %d pending action(s) after turn change", dropped)
            self._schedule_turn(now)
        return self.state

    def _schedule_turn(self, now: float):
        """为当前行动玩家安排延迟动作"""
        if self.state.phase not in (Phase.DEALER_SELECTION, Phase.PLAYING):
            return

        key = self.state.turn_key
        if not self.state.active_player.is_human:
            self.scheduler.schedule(now + self.config.ai_delay, key, AI_TASK)
        elif self.config.turn_timeout is not None:
            self.scheduler.schedule(now + self.config.turn_timeout, key, TIMEOUT_TASK)
