"""环境层测试"""
import pytest
import numpy as np

from core.actions import Action
from core.cards import ResourceType
from core.requirements import RoundRequirement
from core.state import Phase, GameState


class TestObservationBuilder:
    """ObservationBuilder 测试"""

    def test_build_dealer_phase(self):
        from env.observation import ObservationBuilder

        builder = ObservationBuilder()
        state = GameState.initial(seed=42)
        obs = builder.build(state)

        assert obs.hand.shape == (28,)
        assert obs.hand.sum() == len(state.active_player.hand)
        assert obs.requirement.sum() == 0
        assert obs.position.sum() == 1  # one-hot
        assert obs.phase[list(Phase).index(Phase.DEALER_SELECTION)] == 1

    def test_build_playing_phase(self):
        from env.observation import ObservationBuilder

        state = GameState.initial(seed=42)
        req = RoundRequirement.single_fixed(ResourceType.ORE, 2)
        state = state.with_action(Action.submit_requirement(state.active_player.id, req))
        obs = ObservationBuilder().build(state, perspective=0)

        assert obs.requirement.shape == (8,)
        assert obs.requirement[0] == 1  # SINGLE_FIXED
        assert obs.requirement[3 + 3] == 1  # ORE
        assert obs.position[0] == 1

    def test_to_flat_array(self):
        from env.observation import ObservationBuilder

        obs = ObservationBuilder().build(GameState.initial(seed=42))
        flat = obs.to_flat_array()

        assert isinstance(flat, np.ndarray)
        assert flat.ndim == 1
        assert flat.shape[0] == 28 * 2 + 8 + 1 + 4 * 5 + 5


class TestRewardCalculator:
    """RewardCalculator 测试"""

    def test_not_finished(self):
        from env.reward import RewardCalculator

        state = GameState.initial(seed=42)
        assert RewardCalculator().compute(state, state, seat=0) == 0.0

    def test_sparse_ignores_medals(self):
        from env.reward import RewardCalculator, RewardConfig, RewardType
        from dataclasses import replace

        calc = RewardCalculator(RewardConfig(reward_type=RewardType.SPARSE))
        prev = GameState.initial(seed=42)
        players = list(prev.players)
        players[0] = replace(players[0], medals=1)
        state = replace(prev, players=tuple(players))

        assert calc.compute(state, prev, seat=0) == 0.0

    def test_medal_reward(self):
        from env.reward import RewardCalculator
        from dataclasses import replace

        prev = GameState.initial(seed=42)
        players = list(prev.players)
        players[2] = replace(players[2], medals=1)
        state = replace(prev, players=tuple(players))

        assert RewardCalculator().compute(state, prev, seat=2) == 1.0
        assert RewardCalculator().compute(state, prev, seat=0) == 0.0

    def test_terminal_reward(self):
        from env.reward import RewardCalculator
        from dataclasses import replace

        state = replace(
            GameState.initial(seed=42),
            phase=Phase.GAME_END,
            winner_id="P2",
            finisher_id="P3",
        )
        calc = RewardCalculator()
        assert calc.compute(state, state, seat=1) == 1.0
        assert calc.compute(state, state, seat=2) == -1.0


class TestResourceDuelEnv:
    """ResourceDuelEnv 测试"""

    def test_reset(self):
        from env import ResourceDuelEnv

        env = ResourceDuelEnv()
        obs, info = env.reset(seed=42)

        assert "hand" in obs
        assert "current_player" in info
        assert info["current_player"] == "P1" or "winner" in info
        assert env.observation_space.contains(obs)

    def test_reset_deterministic(self):
        from env import ResourceDuelEnv

        env = ResourceDuelEnv()
        env.reset(seed=3)
        first = env.state
        env.reset(seed=3)
        assert env.state.players == first.players

    def test_legal_action_mask(self):
        from env import ResourceDuelEnv

        env = ResourceDuelEnv()
        _, info = env.reset(seed=42)

        mask = info["legal_action_mask"]
        assert mask.shape == (env.action_space.n,)
        assert mask.sum() == len(info["legal_actions"])

    def test_step_by_index(self):
        from env import ResourceDuelEnv

        env = ResourceDuelEnv(seed=1)
        env.reset(seed=1)
        before = env.state.step_count

        obs, reward, terminated, truncated, info = env.step(0)

        assert "error" not in info
        assert env.state.step_count > before
        assert not truncated

    def test_invalid_index(self):
        from env import ResourceDuelEnv

        env = ResourceDuelEnv()
        env.reset(seed=42)
        state = env.state

        obs, reward, terminated, truncated, info = env.step(env.action_space.n + 1000)

        assert reward == -1.0
        assert info["error"] == "Invalid action"
        assert env.state is state

    def test_other_player_action_rejected(self):
        from env import ResourceDuelEnv

        env = ResourceDuelEnv(seat=0)
        env.reset(seed=42)

        obs, reward, terminated, truncated, info = env.step(Action.pass_action("P2"))
        assert info["error"] == "Invalid action"

    def test_step_before_reset(self):
        from env import ResourceDuelEnv

        with pytest.raises(RuntimeError):
            ResourceDuelEnv().step(0)

    def test_full_game(self):
        from env import ResourceDuelEnv

        env = ResourceDuelEnv(seat=2)
        obs, info = env.reset(seed=42)

        done = "winner" in info
        steps = 0
        max_steps = 2000

        while not done and steps < max_steps:
            action = env.sample_action()
            obs, reward, terminated, truncated, info = env.step(action)
            done = terminated or truncated
            steps += 1

        assert done
        assert info["winner"] in ("P1", "P2", "P3", "P4")
        assert info["finisher"] in ("P1", "P2", "P3", "P4")

    def test_render_ansi(self):
        from env import ResourceDuelEnv

        env = ResourceDuelEnv(render_mode="ansi")
        env.reset(seed=42)

        output = env.render()
        assert isinstance(output, str)
        assert "Round 1" in output


class TestWrappers:
    """环境包装器测试"""

    def test_record_episode_statistics(self):
        from env import ResourceDuelEnv
        from env.wrappers import RecordEpisodeStatistics

        env = RecordEpisodeStatistics(ResourceDuelEnv())
        _, info = env.reset(seed=42)

        done = "winner" in info
        steps = 0
        while not done and steps < 2000:
            action = env.unwrapped.sample_action()
            _, _, terminated, truncated, info = env.step(action)
            done = terminated or truncated
            steps += 1

        if done and steps > 0:
            assert "episode" in info
            assert "r" in info["episode"]
            assert "l" in info["episode"]
            assert info["episode"]["winner"] == info["winner"]

    def test_time_limit(self):
        from env import ResourceDuelEnv
        from env.wrappers import TimeLimit

        env = TimeLimit(ResourceDuelEnv(), max_steps=3)
        env.reset(seed=42)

        truncated = terminated = False
        for _ in range(5):
            action = env.unwrapped.sample_action()
            _, _, terminated, truncated, _ = env.step(action)
            if terminated or truncated:
                break

        assert truncated or terminated

    def test_wrap_env(self):
        from env import ResourceDuelEnv
        from env.wrappers import wrap_env, TimeLimit

        env = wrap_env(ResourceDuelEnv(), record_stats=True, time_limit=100)
        assert isinstance(env, TimeLimit)
        obs, info = env.reset(seed=42)
        assert "legal_actions" in info


class TestMakeEnv:
    """make_env 工厂函数测试"""

    def test_make_env(self):
        from env import make_env

        env = make_env(seat=1, reward_type="sparse")
        assert env.seat == 1
        obs, _ = env.reset(seed=42)
        assert obs["position"][1] == 1
