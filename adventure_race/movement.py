"""Dice and movement rules.

Forward moves walk one cell at a time and may be lifted by a ladder; the
walk itself is a small state machine (``next_move``) so a ladder jump can
interrupt the stepping and hand the remaining steps back afterwards.
Backward moves never step down the track: they retrace the player's own
movement history, ladder jumps included.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field, replace

from adventure_race.board import FINISH_CELL, BoardConfig, LadderLink, is_prime
from adventure_race.landing import LandingResult, resolve_landing
from adventure_race.players import PlayerState

DIE_FACES = 6
FORWARD_PROBABILITY = 0.75

STEP = "step"
TELEPORT = "teleport"
LAND = "land"


@dataclass(frozen=True)
class DiceRoll:
    value: int
    forward: bool = True

    def __post_init__(self) -> None:
        if not 1 <= self.value <= DIE_FACES:
            raise ValueError(f"die face must be 1..{DIE_FACES}, got {self.value}")

    def __str__(self) -> str:
        return f"{self.value} ({'FORWARD' if self.forward else 'BACKWARD'})"


def roll_dice(rng: random.Random) -> DiceRoll:
    value = rng.randint(1, DIE_FACES)
    forward = rng.random() < FORWARD_PROBABILITY
    return DiceRoll(value=value, forward=forward)


# ── Forward walk state machine ───────────────────────────────────────

@dataclass(frozen=True)
class WalkState:
    position: int
    remaining: int
    started_on_prime: bool
    forward: bool = True
    # True when *position* was reached by an ordinary step, the only
    # kind of arrival that can fire a ladder.
    just_stepped: bool = False


@dataclass(frozen=True)
class WalkMove:
    kind: str  # STEP | TELEPORT | LAND
    state: WalkState
    link: LadderLink | None = None


def next_move(state: WalkState, board: BoardConfig) -> WalkMove:
    """Compute the next transition of a forward walk. Pure; mutates nothing."""
    if not state.forward:
        raise ValueError("backward moves replay history; they have no walk")

    if state.just_stepped and state.started_on_prime and state.remaining > 0:
        link = board.ladder_from(state.position)
        if link is not None:
            jumped = replace(state, position=link.end, just_stepped=False)
            return WalkMove(TELEPORT, jumped, link)

    if state.remaining <= 0 or state.position >= FINISH_CELL:
        return WalkMove(LAND, replace(state, just_stepped=False))

    stepped = replace(
        state,
        position=min(FINISH_CELL, state.position + 1),
        remaining=state.remaining - 1,
        just_stepped=True,
    )
    return WalkMove(STEP, stepped)


# ── Move results ─────────────────────────────────────────────────────

@dataclass
class MoveResult:
    """Everything that happened while a piece moved, before final landing."""

    start: int
    end: int
    forward: bool = True
    started_on_prime: bool = False
    moves: list[WalkMove] = field(default_factory=list)
    # Tile-point stops at ladder tops that were not the final cell.
    stops: list[LandingResult] = field(default_factory=list)
    steps_taken: int = 0
    truncated: bool = False

    @property
    def path(self) -> list[int]:
        return [self.start] + [m.state.position for m in self.moves]

    @property
    def teleports(self) -> list[LadderLink]:
        return [m.link for m in self.moves if m.kind == TELEPORT and m.link is not None]


def walk_forward(player: PlayerState, board: BoardConfig, steps: int) -> MoveResult:
    """Walk *player* forward, pushing every cell reached onto their history.

    Ladders fire only when the turn started on a prime cell and at least
    one step is still left after the step that reached the ladder foot.
    The jump costs no steps.
    """
    start = player.position
    state = WalkState(
        position=start,
        remaining=steps,
        started_on_prime=is_prime(start),
        forward=True,
    )
    result = MoveResult(start=start, end=start, started_on_prime=state.started_on_prime)

    while True:
        move = next_move(state, board)
        if move.kind == LAND:
            break
        state = move.state
        player.move_to(state.position)
        player.history.push(state.position)
        result.moves.append(move)
        if move.kind == STEP:
            result.steps_taken += 1
        elif state.remaining > 0:
            # With steps left the ladder top is just a stop on the way.
            result.stops.append(resolve_landing(player, board, state.position, final=False))

    result.end = player.position
    return result


def walk_backward(player: PlayerState, steps: int) -> MoveResult:
    """Retrace up to *steps* entries of *player*'s history.

    Silently stops early when only the seed entry is left.
    """
    start = player.position
    result = MoveResult(start=start, end=start, forward=False)
    while result.steps_taken < steps and player.history.can_pop():
        cell = player.move_to(player.history.pop())
        result.steps_taken += 1
        state = WalkState(cell, steps - result.steps_taken, started_on_prime=False, forward=False)
        result.moves.append(WalkMove(STEP, state))
    result.truncated = result.steps_taken < steps
    result.end = player.position
    return result


def move_player(player: PlayerState, board: BoardConfig, roll: DiceRoll) -> MoveResult:
    if roll.forward:
        return walk_forward(player, board, roll.value)
    return walk_backward(player, roll.value)
