#!/usr/bin/env python3
"""
对战脚本

Usage:
    python scripts/play.py --mode watch  # 观看电脑对战
    python scripts/play.py --mode play   # 与电脑对战
    python scripts/play.py --mode watch --opponent random --seed 7
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List
import time

# 添加项目根目录到路径
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from core.actions import Action, ActionType
from core.cards import cards_to_str
from core.config import GameConfig, PLAYERS_COUNT
from core.session import GameSession
from core.state import GameState, InvalidAction, Phase
from env.observation import ObservationBuilder
from evaluation import RandomAgent, SearchAgent

logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)

MAX_SHOWN_ACTIONS = 20


def parse_args():
    parser = argparse.ArgumentParser(description="Resource Duel Play")

    parser.add_argument(
        "--mode",
        type=str,
        default="watch",
        choices=["watch", "play"],
        help="Mode: watch AI or play against AI",
    )
    parser.add_argument(
        "--opponent",
        type=str,
        default="search",
        choices=["random", "search"],
        help="Agent type used in watch mode",
    )
    parser.add_argument("--delay", type=float, default=0.5, help="Delay between moves")
    parser.add_argument("--games", type=int, default=1, help="Number of games")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")

    return parser.parse_args()


def action_to_str(state: GameState, action: Action) -> str:
    """动作转字符串"""
    if action.action_type == ActionType.PASS:
        return "Pass"
    if action.action_type == ActionType.SUBMIT_REQUIREMENT:
        return f"规则: {action.requirement.description}"
    player = state.get_player(action.player_id)
    cards = [player.find_card(card_id) for card_id in action.card_ids]
    return cards_to_str([c for c in cards if c is not None])


def print_game_state(state: GameState, viewer_index: int = -1):
    """打印游戏状态"""
    print("\n" + "=" * 60)
    print(f"第 {state.round_number} 轮  阶段: {state.phase.value}")
    if state.requirement is not None:
        print(f"本轮规则: {state.requirement.description}")
    top = state.last_play
    if top is not None:
        print(f"桌面: {state.get_player(top.player_id).name} {cards_to_str(top.cards)} (总点数 {top.total})")
    print("-" * 60)

    for i, player in enumerate(state.players):
        marker = ">" if i == state.active_index else " "
        status = " [已放弃]" if player.passed else ""
        if i == viewer_index:
            print(f"{marker}[{player.name}] 奖牌 {player.medals}{status}")
            print(f"   手牌 ({len(player.hand)}): {cards_to_str(player.hand)}")
        else:
            print(f"{marker} {player.name}  奖牌 {player.medals}  手牌数 {len(player.hand)}{status}")

    print("=" * 60)


def print_new_logs(state: GameState, seen: int) -> int:
    """打印新增事件日志，返回已打印数量"""
    for entry in state.logs[seen:]:
        print(f"  [{entry.type.value}] {entry.text}")
    return len(state.logs)


def print_result(state: GameState):
    print("\n" + "=" * 60)
    print(f"游戏结束! 赢家: {state.get_player(state.winner_id).name}")
    print(f"打空手牌: {state.get_player(state.finisher_id).name}")
    for rank, player in enumerate(state.ranking(), 1):
        print(f"  {rank}. {player.name}: {player.medals} 枚奖牌")
    print("=" * 60)


def create_agents(args) -> List:
    """创建智能体"""
    agents = []
    for i in range(PLAYERS_COUNT):
        seed = None if args.seed is None else args.seed + i
        if args.opponent == "random":
            agents.append(RandomAgent(f"Random_{i}", seed=seed))
        else:
            agents.append(SearchAgent(f"Search_{i}", seed=seed))
    return agents


def watch_game(args):
    """观看电脑对战"""
    config = GameConfig(human_seat=None)
    agents = create_agents(args)
    obs_builder = ObservationBuilder()

    for game_idx in range(args.games):
        print(f"\n{'='*60}")
        print(f"Game {game_idx + 1}/{args.games}")
        print("=" * 60)

        seed = None if args.seed is None else args.seed + game_idx
        state = GameState.initial(seed=seed, config=config)
        seen = print_new_logs(state, 0)
        step = 0

        while not state.is_finished:
            print_game_state(state)

            agent = agents[state.active_index]
            legal_actions = state.get_legal_actions(config.max_legal_actions)
            obs = obs_builder.build(state).to_dict()
            action = agent.act(obs, legal_actions, state)

            print(f"\n{agent.name} 行动: {action_to_str(state, action)}")
            state = state.with_action(action)
            seen = print_new_logs(state, seen)
            step += 1

            time.sleep(args.delay)

        print_result(state)
        print(f"总步数: {step}")


def read_human_action(session: GameSession, seat: int):
    """
    读取人类输入

    Returns:
        Action、("mash", card_id) 或 None (退出)
    """
    state = session.state
    player = state.players[seat]
    legal_actions = state.get_legal_actions(session.config.max_legal_actions)

    print("\n可选动作:")
    for i, action in enumerate(legal_actions[:MAX_SHOWN_ACTIONS]):
        print(f"  {i}: {action_to_str(state, action)}")
    if len(legal_actions) > MAX_SHOWN_ACTIONS:
        print(f"  ... 还有 {len(legal_actions) - MAX_SHOWN_ACTIONS} 个动作")
    print("  输入编号选择动作；'p S3 T4' 直接出牌；'m S3' 搓牌；'q' 退出")

    labels = {str(card): card.id for card in reversed(player.hand)}

    while True:
        choice = input("\n> ").strip()
        if choice.lower() == "q":
            return None

        parts = choice.split()
        if parts and parts[0] in ("p", "m"):
            ids = [labels.get(label.upper()) for label in parts[1:]]
            if not ids or None in ids:
                print("找不到对应的手牌，请重试")
                continue
            if parts[0] == "m":
                return ("mash", ids[0])
            return Action.play(player.id, ids)

        try:
            idx = int(choice)
        except ValueError:
            print("请输入数字")
            continue
        if 0 <= idx < len(legal_actions):
            return legal_actions[idx]
        print("无效选择，请重试")


def play_game(args):
    """与电脑对战 (座位 0)"""
    seat = 0
    config = GameConfig(human_seat=seat, turn_timeout=None)

    for game_idx in range(args.games):
        print(f"\n{'='*60}")
        print(f"Game {game_idx + 1}/{args.games}")
        print("=" * 60)

        seed = None if args.seed is None else args.seed + game_idx
        session = GameSession(config=config, seed=seed)
        seen = print_new_logs(session.state, 0)

        while not session.is_finished:
            while not session.is_finished and session.state.active_index != seat:
                if not session.fast_forward():
                    break
                seen = print_new_logs(session.state, seen)
                time.sleep(args.delay)

            if session.is_finished:
                break

            state = session.state
            print_game_state(state, viewer_index=seat)
            if state.phase == Phase.DEALER_SELECTION:
                print("你是领出者，请制定本轮规则或直接出牌")

            choice = read_human_action(session, seat)
            if choice is None:
                print("退出游戏")
                return

            try:
                if isinstance(choice, tuple):
                    session.mash(state.players[seat].id, choice[1])
                else:
                    session.submit(choice)
            except InvalidAction as e:
                print(f"无效操作: {e}")

            seen = print_new_logs(session.state, seen)

        print_result(session.state)


def main():
    args = parse_args()

    print("=" * 60)
    print("资源对战")
    print("=" * 60)

    if args.mode == "watch":
        watch_game(args)
    elif args.mode == "play":
        play_game(args)


if __name__ == "__main__":
    main()
