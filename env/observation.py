"""
观察空间编码

将游戏状态转换为定长数值特征
"""
from dataclasses import dataclass
from typing import Dict, Optional
import numpy as np

from core.cards import RESOURCE_ORDER, MAX_LEVEL, cards_to_array
from core.config import PLAYERS_COUNT
from core.requirements import MAX_REQUIREMENT_COUNT, RequirementKind
from core.state import GameState, Phase

HAND_DIM = len(RESOURCE_ORDER) * MAX_LEVEL               # 28
REQUIREMENT_DIM = len(RequirementKind) + len(RESOURCE_ORDER) + 1  # 8
PHASE_DIM = len(Phase)

# 归一化常数
MAX_HAND_SIZE = 30
MAX_PLAY_TOTAL = MAX_LEVEL * MAX_REQUIREMENT_COUNT


@dataclass
class Observation:
    """
    结构化观测

    Attributes:
        hand: 自己的手牌计数 (28,)
        table_top: 栈顶出牌计数 (28,)
        requirement: 本轮规则编码 (8,): 类型 one-hot + 资源 one-hot + 张数
        last_total: 栈顶总点数 (1,)
        medals: 各玩家奖牌数 (4,)
        cards_left: 各玩家剩余牌数 (4,)
        passed: 各玩家本轮是否放弃 (4,)
        position: 自己的座位 one-hot (4,)
        active: 当前行动玩家 one-hot (4,)
        phase: 阶段 one-hot (5,)
    """
    hand: np.ndarray
    table_top: np.ndarray
    requirement: np.ndarray
    last_total: np.ndarray
    medals: np.ndarray
    cards_left: np.ndarray
    passed: np.ndarray
    position: np.ndarray
    active: np.ndarray
    phase: np.ndarray

    def to_dict(self) -> Dict[str, np.ndarray]:
        """转换为字典格式"""
        return {
            "hand": self.hand,
            "table_top": self.table_top,
            "requirement": self.requirement,
            "last_total": self.last_total,
            "medals": self.medals,
            "cards_left": self.cards_left,
            "passed": self.passed,
            "position": self.position,
            "active": self.active,
            "phase": self.phase,
        }

    def to_flat_array(self) -> np.ndarray:
        """展平为单一向量"""
        return np.concatenate([v.ravel() for v in self.to_dict().values()])


class ObservationBuilder:
    """
    观测构建器

    负责将 GameState 转换为 Observation
    """

    def build(self, state: GameState, perspective: Optional[int] = None) -> Observation:
        """
        从游戏状态构建观测

        Args:
            state: 游戏状态
            perspective: 视角玩家座位 (默认为当前行动玩家)

        Returns:
            Observation 对象
        """
        if perspective is None:
            perspective = state.active_index

        top = state.last_play

        return Observation(
            hand=cards_to_array(state.players[perspective].hand),
            table_top=cards_to_array(top.cards if top else ()),
            requirement=self._encode_requirement(state),
            last_total=np.array([top.total / MAX_PLAY_TOTAL if top else 0.0], dtype=np.float32),
            medals=np.array([p.medals for p in state.players], dtype=np.float32),
            cards_left=np.array(
                [len(p.hand) / MAX_HAND_SIZE for p in state.players], dtype=np.float32
            ),
            passed=np.array([float(p.passed) for p in state.players], dtype=np.float32),
            position=self._one_hot(perspective, PLAYERS_COUNT),
            active=self._one_hot(state.active_index, PLAYERS_COUNT),
            phase=self._one_hot(list(Phase).index(state.phase), PHASE_DIM),
        )

    @staticmethod
    def _one_hot(index: int, size: int) -> np.ndarray:
        vec = np.zeros(size, dtype=np.float32)
        vec[index] = 1.0
        return vec

    @staticmethod
    def _encode_requirement(state: GameState) -> np.ndarray:
        """规则编码: 未制定规则时全零"""
        vec = np.zeros(REQUIREMENT_DIM, dtype=np.float32)
        req = state.requirement
        if req is None:
            return vec

        kinds = list(RequirementKind)
        vec[kinds.index(req.kind)] = 1.0
        if req.resource_type is not None:
            vec[len(kinds) + RESOURCE_ORDER.index(req.resource_type)] = 1.0
        vec[-1] = req.count / MAX_REQUIREMENT_COUNT
        return vec
