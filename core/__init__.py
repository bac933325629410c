"""
Core Layer - 纯游戏逻辑 (无 UI 依赖)

Modules:
    cards: 资源牌定义、发牌与编码
    requirements: 本轮规则与桌面出牌
    rules: 出牌验证
    actions: 动作类型与出牌搜索
    dealer: 电脑领出者策略
    mash: 搓牌
    state: 游戏状态与状态机
    session: 对局编排与延迟动作调度
    config: 对局配置
"""
from .cards import (
    ResourceType,
    Card,
    RESOURCE_ORDER,
    RESOURCE_CONFIG,
    MIN_LEVEL,
    MAX_LEVEL,
    generate_hand,
    hand_value,
    count_by_type,
    cards_to_array,
    cards_to_str,
    str_to_cards,
)

from .requirements import (
    RequirementKind,
    RoundRequirement,
    PlayedSet,
    requirement_menu,
)

from .rules import (
    RejectReason,
    ValidationResult,
    RuleEngine,
)

from .actions import (
    ActionType,
    Action,
    CombinationSearch,
    search_move,
)

from .dealer import choose_requirement

from .mash import (
    MashOutcome,
    MASH_PROBABILITIES,
    mash_card,
)

from .config import GameConfig, PLAYERS_COUNT

from .state import (
    Phase,
    LogType,
    LogEntry,
    InvalidAction,
    PlayerState,
    GameState,
    create_players,
    choose_first_dealer,
)

from .session import (
    ScheduledAction,
    ActionScheduler,
    GameSession,
    ai_action,
    timeout_action,
)

__all__ = [
    # cards
    "ResourceType",
    "Card",
    "RESOURCE_ORDER",
    "RESOURCE_CONFIG",
    "MIN_LEVEL",
    "MAX_LEVEL",
    "generate_hand",
    "hand_value",
    "count_by_type",
    "cards_to_array",
    "cards_to_str",
    "str_to_cards",
    # requirements
    "RequirementKind",
    "RoundRequirement",
    "PlayedSet",
    "requirement_menu",
    # rules
    "RejectReason",
    "ValidationResult",
    "RuleEngine",
    # actions
    "ActionType",
    "Action",
    "CombinationSearch",
    "search_move",
    # dealer
    "choose_requirement",
    # mash
    "MashOutcome",
    "MASH_PROBABILITIES",
    "mash_card",
    # config
    "GameConfig",
    "PLAYERS_COUNT",
    # state
    "Phase",
    "LogType",
    "LogEntry",
    "InvalidAction",
    "PlayerState",
    "GameState",
    "create_players",
    "choose_first_dealer",
    # session
    "ScheduledAction",
    "ActionScheduler",
    "GameSession",
    "ai_action",
    "timeout_action",
]
