"""
Evaluation Layer - 评估框架

Modules:
    evaluator: 评估器和智能体
    arena: 对战竞技场
"""
from .evaluator import (
    EvalResult,
    Agent,
    RandomAgent,
    SearchAgent,
    Evaluator,
)
from .arena import (
    MatchResult,
    TournamentResult,
    Arena,
)

__all__ = [
    # evaluator
    "EvalResult",
    "Agent",
    "RandomAgent",
    "SearchAgent",
    "Evaluator",
    # arena
    "MatchResult",
    "TournamentResult",
    "Arena",
]
