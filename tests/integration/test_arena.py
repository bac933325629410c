"""竞技场 / 整局对战测试"""
import pytest

from core.config import GameConfig


class TestArena:
    """Arena 测试"""

    def test_play_game(self):
        from evaluation import Arena, SearchAgent

        arena = Arena()
        agents = [SearchAgent(f"agent{i}", seed=i) for i in range(4)]

        result = arena.play_game(agents, seed=1)

        assert result.agents == ("agent0", "agent1", "agent2", "agent3")
        assert result.winner in result.agents
        assert result.finisher in result.agents
        assert sum(result.medals) == result.rounds
        assert result.length > 0

    def test_winner_has_most_medals(self):
        from evaluation import Arena, SearchAgent

        agents = [SearchAgent(f"agent{i}", seed=i) for i in range(4)]
        result = Arena().play_game(agents, seed=2)

        winner_seat = result.agents.index(result.winner)
        assert result.medals[winner_seat] == max(result.medals)

    def test_deterministic(self):
        from evaluation import Arena, SearchAgent

        def play():
            agents = [SearchAgent(f"agent{i}", seed=i) for i in range(4)]
            return Arena().play_game(agents, seed=3)

        assert play() == play()

    def test_play_match_rotates_seats(self):
        from evaluation import Arena, SearchAgent

        arena = Arena()
        agents = [SearchAgent(f"agent{i}", seed=i) for i in range(4)]

        results = arena.play_match(agents, n_games=2, seed=0)

        assert len(results) == 2
        assert results[0].agents[0] == "agent0"
        assert results[1].agents[0] == "agent1"

    def test_mixed_agents(self):
        from evaluation import Arena, RandomAgent, SearchAgent

        agents = [
            SearchAgent("search0", seed=0),
            RandomAgent("random0", seed=0),
            SearchAgent("search1", seed=1),
            RandomAgent("random1", seed=1),
        ]
        result = Arena().play_game(agents, seed=4)
        assert result.winner in result.agents

    def test_requires_four_agents(self):
        from evaluation import Arena, SearchAgent

        with pytest.raises(AssertionError):
            Arena().play_game([SearchAgent()], seed=0)

    def test_ignores_human_seat(self):
        from evaluation import Arena

        arena = Arena(GameConfig(human_seat=2))
        assert arena.config.human_seat is None

    def test_tournament(self):
        from evaluation import Arena, RandomAgent, SearchAgent

        agents = [
            SearchAgent("search0", seed=0),
            RandomAgent("random0", seed=0),
            SearchAgent("search1", seed=1),
            RandomAgent("random1", seed=1),
        ]
        result = Arena().tournament(agents, n_games=4, seed=0)

        assert result.total_games == 4
        for name in ("search0", "random0", "search1", "random1"):
            assert name in result.standings
            assert result.standings[name]["games"] == 4
        assert sum(s.get("wins", 0) for s in result.standings.values()) == 4


class TestSessionGame:
    """会话整局测试"""

    def test_full_ai_session(self):
        from core.session import GameSession

        session = GameSession(config=GameConfig(human_seat=None), seed=11, clock=lambda: 0.0)
        state = session.run()

        assert state.is_finished
        assert sum(p.medals for p in state.players) == state.completed_rounds
        assert state.get_player(state.finisher_id).hand == ()

    def test_human_with_timeouts(self):
        from core.session import GameSession

        session = GameSession(config=GameConfig(human_seat=0, turn_timeout=5.0), seed=12, clock=lambda: 0.0)
        state = session.run()

        assert state.is_finished
