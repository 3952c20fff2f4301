"""Tests for dice, forward walks with prime-gated ladders, and backward replay."""

import random

import pytest

from adventure_race.board import BoardConfig, LadderLink
from adventure_race.movement import (
    LAND,
    STEP,
    TELEPORT,
    DiceRoll,
    WalkState,
    move_player,
    next_move,
    roll_dice,
    walk_backward,
    walk_forward,
)
from adventure_race.players import PlayerState


def _board(*links: LadderLink) -> BoardConfig:
    return BoardConfig(
        ladder_links=list(links),
        tile_points=[0, 0] + [2] * 63,
    )


def _player_at(*cells: int) -> PlayerState:
    """Player whose history is [1, *cells], standing on the last one."""
    p = PlayerState(name="Ada")
    for cell in cells:
        p.history.push(cell)
        p.position = cell
    return p


# ── dice ─────────────────────────────────────────────────────────────

def test_dice_roll_rejects_bad_face():
    with pytest.raises(ValueError):
        DiceRoll(0)
    with pytest.raises(ValueError):
        DiceRoll(7)


def test_roll_dice_faces_and_direction_mix():
    rng = random.Random(42)
    rolls = [roll_dice(rng) for _ in range(400)]
    assert {r.value for r in rolls} == {1, 2, 3, 4, 5, 6}
    forward = sum(r.forward for r in rolls)
    assert 250 < forward < 350


# ── forward ──────────────────────────────────────────────────────────

def test_prime_start_ladder_mid_walk():
    """7 is prime; 7→8→9, ladder 9→20, then one more step to 21."""
    board = _board(LadderLink(9, 20))
    p = _player_at(7)

    result = walk_forward(p, board, 3)

    assert result.path == [7, 8, 9, 20, 21]
    assert result.end == 21 == p.position
    assert result.teleports == [LadderLink(9, 20)]
    assert result.steps_taken == 3
    # Ladder top paid tile points but no star: a step was still left.
    assert len(result.stops) == 1
    assert result.stops[0].points_awarded == 2
    assert not result.stops[0].star_awarded
    assert not board.stars_claimed[20]
    assert p.score == 2


def test_non_prime_start_never_teleports():
    board = _board(LadderLink(9, 20))
    p = _player_at(8)

    result = walk_forward(p, board, 3)

    assert result.path == [8, 9, 10, 11]
    assert result.teleports == []
    assert p.position == 11


def test_ladder_on_last_step_does_not_fire():
    board = _board(LadderLink(9, 20))
    p = _player_at(7)

    result = walk_forward(p, board, 2)

    assert result.teleports == []
    assert p.position == 9


def test_ladder_foot_as_start_cell_does_not_fire():
    board = _board(LadderLink(11, 30))
    p = _player_at(11)  # prime, and the ladder foot itself

    result = walk_forward(p, board, 2)

    assert result.teleports == []
    assert p.position == 13


def test_two_ladders_in_one_walk():
    board = _board(LadderLink(6, 12), LadderLink(13, 40))
    p = _player_at(5)

    result = walk_forward(p, board, 3)

    assert result.path == [5, 6, 12, 13, 40, 41]
    assert p.position == 41


def test_forward_clamps_at_finish():
    p = _player_at(62)
    result = walk_forward(p, _board(), 6)
    assert p.position == 64
    assert result.steps_taken == 2


def test_forward_pushes_history():
    board = _board(LadderLink(9, 20))
    p = _player_at(7)
    walk_forward(p, board, 3)
    # [1, 7, 8, 9, 20, 21]
    assert p.history.pop() == 20
    assert p.history.pop() == 9


# ── next_move ────────────────────────────────────────────────────────

def test_next_move_is_pure():
    board = _board(LadderLink(9, 20))
    state = WalkState(position=9, remaining=1, started_on_prime=True, just_stepped=True)
    first = next_move(state, board)
    second = next_move(state, board)
    assert first == second
    assert first.kind == TELEPORT
    assert first.state.position == 20
    assert first.state.remaining == 1
    assert state.position == 9


def test_next_move_lands_when_out_of_steps():
    state = WalkState(position=30, remaining=0, started_on_prime=True)
    assert next_move(state, _board()).kind == LAND


def test_next_move_steps():
    move = next_move(WalkState(position=30, remaining=2, started_on_prime=False), _board())
    assert move.kind == STEP
    assert move.state.position == 31
    assert move.state.remaining == 1


def test_next_move_refuses_backward():
    with pytest.raises(ValueError):
        next_move(WalkState(position=30, remaining=2, started_on_prime=False, forward=False), _board())


# ── backward ─────────────────────────────────────────────────────────

def test_backward_retraces_ladder():
    p = _player_at(8, 9, 20)
    result = walk_backward(p, 2)
    assert result.path == [20, 9, 8]
    assert p.position == 8
    assert not result.truncated


def test_backward_truncates_to_history():
    p = _player_at(5)
    result = walk_backward(p, 4)
    assert p.position == 1
    assert result.steps_taken == 1
    assert result.truncated


def test_backward_with_no_history_stays_put():
    p = PlayerState(name="Ada")
    result = walk_backward(p, 3)
    assert p.position == 1
    assert result.steps_taken == 0
    assert result.path == [1]


def test_backward_never_pushes():
    p = _player_at(4, 5, 6)
    walk_backward(p, 1)
    assert len(p.history) == 3


def test_move_player_dispatches_on_direction():
    board = _board()
    p = _player_at(10)
    move_player(p, board, DiceRoll(3, forward=True))
    assert p.position == 13
    move_player(p, board, DiceRoll(2, forward=False))
    assert p.position == 11


def test_position_stays_on_board_for_random_play():
    board = _board(LadderLink(9, 20), LadderLink(23, 47))
    rng = random.Random(2024)
    p = PlayerState(name="Ada")
    for _ in range(500):
        move_player(p, board, roll_dice(rng))
        assert 1 <= p.position <= 64
        if p.position == 64:
            p.reset()
