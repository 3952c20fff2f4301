"""Tests for adventure_race.game (turn order, boss override, match end)."""

import random

import pytest

from adventure_race.board import LadderLink
from adventure_race.boss import BossAnswer
from adventure_race.game import (
    ListObserver,
    Match,
    MatchNotActiveError,
    MatchPhase,
    compute_winner,
)
from adventure_race.movement import DiceRoll
from adventure_race.players import PlayerState
from adventure_race.settings import MatchSettings


class FakeResponder:
    """Answers every boss question right (or wrong) and counts the calls."""

    def __init__(self, correct: bool = True):
        self.correct = correct
        self.calls = 0

    def respond(self, player, challenge):
        self.calls += 1
        if self.correct:
            return BossAnswer(text=str(challenge.answer), elapsed=1.0)
        return BossAnswer(text="not a number", elapsed=1.0)


def _match(names=("A", "B"), responder=None, boss_nodes=(), ladders=()) -> Match:
    """Started match on a predictable board: every cell but 1 pays 1 point."""
    match = Match(list(names), rng=random.Random(0), responder=responder)
    match.start()
    match.board.tile_points = [0, 0] + [1] * 63
    match.board.boss_nodes = frozenset(boss_nodes)
    match.board.ladder_links = list(ladders)
    return match


def _place(player: PlayerState, *cells: int) -> None:
    for cell in cells:
        player.history.push(cell)
        player.position = cell


def _player(match: Match, name: str) -> PlayerState:
    return next(p for p in match.players if p.name == name)


# ── start ────────────────────────────────────────────────────────────

def test_start_seats_players_and_first_turn():
    match = _match(("A", "B", "C"))
    assert match.phase is MatchPhase.AWAITING_ROLL
    assert match.current_player.name == "A"
    assert [p.name for p in match.queue] == ["B", "C"]
    assert all(p.position == 1 and len(p.history) == 1 for p in match.players)


def test_phase_follows_match_lifecycle():
    match = Match(["A", "B"], rng=random.Random(0))
    assert match.phase is MatchPhase.NOT_STARTED
    match.start()
    assert match.phase is MatchPhase.AWAITING_ROLL
    _place(_player(match, "A"), 63)
    match.play_turn(DiceRoll(1))
    assert match.phase is MatchPhase.ENDED


def test_play_before_start_raises():
    match = Match(["A", "B"])
    with pytest.raises(MatchNotActiveError):
        match.play_turn(DiceRoll(3))


def test_start_narrates_board():
    observer = ListObserver()
    match = Match(["A", "B"], rng=random.Random(0), observer=observer)
    match.start()
    kinds = observer.kinds()
    assert kinds[0] == "match_start"
    assert "boss_nodes" in kinds
    assert "ladders" in kinds
    assert kinds[-1] == "first_turn"


def test_settings_take_effect_at_next_start():
    settings = MatchSettings(boss_nodes=frozenset({8}))
    match = Match(["A", "B"], settings=settings, rng=random.Random(0))
    match.start()
    settings.boss_nodes = frozenset({9})
    assert match.board.boss_nodes == frozenset({8})
    match.start()
    assert match.board.boss_nodes == frozenset({9})


def test_restart_rebuilds_everything():
    match = _match()
    match.play_turn(DiceRoll(4))  # A lands on 5, takes the star
    assert match.board.stars_claimed[5]
    match.start()
    assert not any(match.board.stars_claimed)
    assert all(p.position == 1 and p.score == 0 and p.stars == 0 for p in match.players)
    assert match.turn_number == 0


# ── rotation ─────────────────────────────────────────────────────────

def test_plain_turn_rotates():
    match = _match()
    turn = match.play_turn(DiceRoll(2))
    assert turn.final_position == 3
    assert turn.outcome == "normal"
    assert turn.next_player == "B"
    assert match.current_player.name == "B"
    assert [p.name for p in match.queue] == ["A"]


def test_star_on_final_cell_keeps_turn():
    match = _match()
    turn = match.play_turn(DiceRoll(4))
    assert turn.final_position == 5
    assert turn.extra_turn
    assert turn.outcome == "extra_turn"
    assert match.current_player.name == "A"

    turn = match.play_turn(DiceRoll(1))
    assert not turn.extra_turn
    assert match.current_player.name == "B"


def test_claimed_star_gives_no_extra_turn():
    match = _match()
    match.play_turn(DiceRoll(4))  # A claims 5
    match.play_turn(DiceRoll(1))  # A to 6, rotate
    turn = match.play_turn(DiceRoll(4))  # B lands on 5
    assert not turn.landing.star_awarded
    assert match.current_player.name == "A"


def test_worked_ladder_scenario():
    match = _match(ladders=[LadderLink(9, 20)])
    a = _player(match, "A")
    _place(a, 7)

    turn = match.play_turn(DiceRoll(3))

    assert turn.move.path == [7, 8, 9, 20, 21]
    assert turn.final_position == 21
    assert turn.points_awarded == 2  # ladder top + final cell
    assert turn.stars_awarded == 0
    assert not match.board.stars_claimed[20]
    assert a.score == 2


def test_backward_turn_replays_history():
    match = _match()
    a = _player(match, "A")
    _place(a, 8, 9, 20)
    turn = match.play_turn(DiceRoll(2, forward=False))
    assert turn.move.path == [20, 9, 8]
    assert a.position == 8


def test_finished_players_are_never_requeued():
    match = _match(("A", "B", "C"))
    _place(_player(match, "A"), 63)

    turn = match.play_turn(DiceRoll(1))
    assert turn.outcome == "finish"
    assert _player(match, "A").finished
    assert match.phase is MatchPhase.AWAITING_ROLL

    seen = []
    for _ in range(6):
        seen.append(match.current_player.name)
        match.play_turn(DiceRoll(1))
    assert "A" not in seen
    assert seen == ["B", "C", "B", "C", "B", "C"]


# ── boss ─────────────────────────────────────────────────────────────

def test_boss_win_then_star_extra_turn():
    responder = FakeResponder(correct=True)
    match = _match(responder=responder, boss_nodes={10})
    a = _player(match, "A")
    _place(a, 4)

    turn = match.play_turn(DiceRoll(6))

    assert responder.calls == 1
    assert turn.boss.success
    assert turn.outcome == "boss_win"
    assert a.position == 10
    assert (a.score, a.stars) == (1 + 10, 1 + 2)
    assert turn.extra_turn
    assert match.current_player is a


def test_boss_failure_overrides_extra_turn():
    responder = FakeResponder(correct=False)
    match = _match(responder=responder, boss_nodes={10})
    a = _player(match, "A")
    _place(a, 4)

    turn = match.play_turn(DiceRoll(6))

    assert turn.landing.star_awarded
    assert not turn.boss.success
    assert turn.outcome == "boss_fail"
    assert not turn.extra_turn
    assert a.position == 9
    assert turn.final_position == 9
    assert (a.score, a.stars) == (0, 0)
    assert match.current_player.name == "B"
    assert [p.name for p in match.queue] == ["A"]


def test_boss_only_on_final_cell():
    responder = FakeResponder()
    match = _match(responder=responder, boss_nodes={4})
    match.play_turn(DiceRoll(6))  # passes 4, lands on 7
    assert responder.calls == 0


def test_no_responder_counts_as_failure():
    match = _match(boss_nodes={3})
    turn = match.play_turn(DiceRoll(2))
    assert not turn.boss.success
    assert turn.final_position == 2


def test_roll_during_turn_is_ignored():
    class ReentrantResponder(FakeResponder):
        inner = "unset"

        def respond(self, player, challenge):
            self.inner = self.match.play_turn(DiceRoll(1))
            return super().respond(player, challenge)

    responder = ReentrantResponder()
    match = _match(responder=responder, boss_nodes={3})
    responder.match = match

    turn = match.play_turn(DiceRoll(2))

    assert responder.inner is None
    assert turn.turn_number == 1
    assert match.turn_number == 1
    assert "roll_rejected" in match.observer.kinds()


# ── match end ────────────────────────────────────────────────────────

def test_early_termination_two_players():
    match = _match()
    a, b = _player(match, "A"), _player(match, "B")
    _place(a, 62)

    turn = match.play_turn(DiceRoll(2))

    assert turn.outcome == "match_end"
    assert match.phase is MatchPhase.ENDED
    assert not b.finished
    result = turn.match_result
    assert result is match.result
    assert result.winner == "A"
    assert result.turns == 1
    assert [s.name for s in result.standings] == ["A", "B"]
    assert result.standings[0].total == 1
    assert [t.outcome for t in result.turn_log] == ["match_end"]
    with pytest.raises(MatchNotActiveError):
        match.play_turn(DiceRoll(1))


def test_winner_is_not_necessarily_the_finisher():
    match = _match()
    a, b = _player(match, "A"), _player(match, "B")
    _place(a, 63)
    b.score, b.stars = 3, 2

    turn = match.play_turn(DiceRoll(1))

    assert turn.match_result.winner == "B"


def test_empty_queue_surfaces_waiting_state():
    match = _match(("A", "B", "C"))
    _place(_player(match, "A"), 63)
    match.queue.clear()

    turn = match.play_turn(DiceRoll(1))

    assert turn.outcome == "finish"
    assert turn.next_player is None
    assert match.phase is MatchPhase.WAITING
    assert match.current_player is None
    assert "waiting" in match.observer.kinds()
    with pytest.raises(MatchNotActiveError):
        match.play_turn(DiceRoll(1))


def test_compute_winner_highest_total():
    players = [
        PlayerState(name="X", score=10, stars=0),
        PlayerState(name="Y", score=12, stars=1),
    ]
    assert compute_winner(players).name == "Y"


def test_compute_winner_tie_goes_to_more_stars():
    players = [
        PlayerState(name="X", score=10, stars=0),
        PlayerState(name="Y", score=5, stars=1),
    ]
    assert compute_winner(players).name == "Y"


def test_compute_winner_full_tie_keeps_first():
    """Ambiguous rule: with equal totals and stars, seat order decides."""
    players = [
        PlayerState(name="X", score=5, stars=1),
        PlayerState(name="Y", score=5, stars=1),
    ]
    assert compute_winner(players).name == "X"
    assert compute_winner(list(reversed(players))).name == "Y"


def test_compute_winner_no_players():
    assert compute_winner([]) is None
