"""Boss encounters: a timed arithmetic question on a boss node."""

from __future__ import annotations

import random
import re
from dataclasses import dataclass

from adventure_race.board import BoardConfig
from adventure_race.players import PlayerState

DEFAULT_TIME_LIMIT = 10.0

_INTEGER = re.compile(r"[+-]?[0-9]+")

CHALLENGE_KINDS = ("addition", "multiplication", "logarithm", "perimeter", "area")


@dataclass(frozen=True)
class BossChallenge:
    kind: str
    question: str
    answer: int
    time_limit: float = DEFAULT_TIME_LIMIT


@dataclass(frozen=True)
class BossAnswer:
    """The player's reply, as handed back by whoever asked the question.

    ``text`` is ``None`` when the prompt was cancelled. ``elapsed`` is the
    number of seconds the player took, if the asker measured it.
    """

    text: str | None = None
    elapsed: float | None = None
    timed_out: bool = False

    @classmethod
    def timeout(cls) -> BossAnswer:
        return cls(text=None, timed_out=True)

    @classmethod
    def cancelled(cls) -> BossAnswer:
        return cls(text=None)


@dataclass
class BossOutcome:
    cell: int
    success: bool
    points_delta: int
    stars_delta: int
    returned_to: int | None = None


def generate_challenge(rng: random.Random, time_limit: float = DEFAULT_TIME_LIMIT) -> BossChallenge:
    kind = rng.choice(CHALLENGE_KINDS)

    if kind == "addition":
        a, b = rng.randint(10, 59), rng.randint(10, 59)
        question, answer = f"{a} + {b} = ?", a + b
    elif kind == "multiplication":
        a, b = rng.randint(3, 14), rng.randint(3, 14)
        question, answer = f"{a} × {b} = ?", a * b
    elif kind == "logarithm":
        base = rng.choice((2, 10))
        exponent = rng.randint(1, 4)
        question, answer = f"log{base}({base ** exponent}) = ?", exponent
    elif kind == "perimeter":
        a, b, c = (rng.randint(3, 8) for _ in range(3))
        question = f"Perimeter of a triangle with sides {a}, {b}, {c} = ?"
        answer = a + b + c
    else:
        base, height = rng.randint(4, 11), rng.randint(4, 11)
        question = f"Area of a right triangle with base {base} and height {height} (integer) = ?"
        answer = base * height // 2

    return BossChallenge(kind=kind, question=question, answer=answer, time_limit=time_limit)


def check_answer(challenge: BossChallenge, answer: BossAnswer) -> bool:
    """Exact integer match within the time limit.

    Timeouts, cancelled prompts and non-numeric text are wrong answers.
    """
    if answer.timed_out or answer.text is None:
        return False
    if answer.elapsed is not None and answer.elapsed > challenge.time_limit:
        return False
    text = answer.text.strip()
    if not _INTEGER.fullmatch(text):
        return False
    return int(text) == challenge.answer


def apply_boss_result(
    player: PlayerState,
    board: BoardConfig,
    landed_cell: int,
    success: bool,
) -> BossOutcome:
    """Apply the reward or penalty for a finished encounter.

    A loss also knocks the player back one cell. The history is left alone.
    """
    if success:
        player.add_score(board.boss_win_points)
        unit = 1 if board.boss_win_stars >= 0 else -1
        for _ in range(abs(board.boss_win_stars)):
            player.add_stars(unit)
        return BossOutcome(
            cell=landed_cell,
            success=True,
            points_delta=board.boss_win_points,
            stars_delta=board.boss_win_stars,
        )

    player.add_score(board.boss_lose_points)
    player.add_stars(board.boss_lose_stars)
    returned_to = player.move_to(max(1, landed_cell - 1))
    return BossOutcome(
        cell=landed_cell,
        success=False,
        points_delta=board.boss_lose_points,
        stars_delta=board.boss_lose_stars,
        returned_to=returned_to,
    )
