"""Board configuration: ladders, tile points, stars and boss nodes."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field

from adventure_race.settings import BOARD_CELLS, MatchSettings

logger = logging.getLogger(__name__)

START_CELL = 1
FINISH_CELL = BOARD_CELLS
ROW_WIDTH = 8
STAR_INTERVAL = 5
STAR_TO_POINT = 5  # 1 star = 5 points at match end

LADDER_TARGET = 5
LADDER_MAX_ATTEMPTS = 2000
LADDER_LOW = 6
LADDER_HIGH = 59
LADDER_MIN_SPAN = 3

TILE_POINTS_MIN = 1
TILE_POINTS_MAX = 10


def is_prime(n: int) -> bool:
    if n <= 1:
        return False
    if n <= 3:
        return True
    if n % 2 == 0 or n % 3 == 0:
        return False
    i = 5
    while i * i <= n:
        if n % i == 0 or n % (i + 2) == 0:
            return False
        i += 6
    return True


def is_star_cell(cell: int) -> bool:
    return START_CELL <= cell <= FINISH_CELL and cell % STAR_INTERVAL == 0


def row_of(cell: int) -> int:
    """Row index of *cell* on an 8-wide board drawn from the top down."""
    return (BOARD_CELLS - cell) // ROW_WIDTH


def clamp_cell(cell: int) -> int:
    return max(START_CELL, min(FINISH_CELL, cell))


# ── Ladders ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class LadderLink:
    start: int
    end: int

    def __str__(self) -> str:
        return f"{self.start}->{self.end}"


@dataclass
class LadderPlan:
    """Result of one ladder generation run."""

    links: list[LadderLink] = field(default_factory=list)
    attempts: int = 0
    target: int = LADDER_TARGET

    @property
    def complete(self) -> bool:
        return len(self.links) >= self.target

    def summary(self) -> str:
        return " ".join(str(link) for link in self.links)


def _crosses(a: int, b: int, ef: int, et: int) -> bool:
    return (a < ef < b < et) or (ef < a < et < b)


def _conflicts(start: int, end: int, links: list[LadderLink]) -> bool:
    for link in links:
        if _crosses(start, end, link.start, link.end):
            return True
        if {start, end} & {link.start, link.end}:
            return True
    return False


def generate_ladders(
    rng: random.Random,
    target: int = LADDER_TARGET,
    max_attempts: int = LADDER_MAX_ATTEMPTS,
) -> LadderPlan:
    """Place up to *target* non-crossing, non-horizontal ladders.

    Endpoints are drawn from 6..59. Running out of attempts before the
    target is reached is not an error; the plan just holds fewer links.
    """
    plan = LadderPlan(target=target)
    used: set[int] = set()

    while len(plan.links) < target and plan.attempts < max_attempts:
        plan.attempts += 1
        a = rng.randint(LADDER_LOW, LADDER_HIGH)
        b = rng.randint(LADDER_LOW, LADDER_HIGH)
        if a == b:
            continue
        start, end = min(a, b), max(a, b)

        if end - start < LADDER_MIN_SPAN:
            continue
        if start in used or end in used:
            continue
        if row_of(start) == row_of(end):
            continue
        if _conflicts(start, end, plan.links):
            continue

        plan.links.append(LadderLink(start, end))
        used.update((start, end))

    if plan.complete:
        logger.info("Placed ladders: %s", plan.summary())
    else:
        logger.warning(
            "Could only place %d of %d ladders (attempts: %d)",
            len(plan.links), target, plan.attempts,
        )
    return plan


# ── Per-match configuration ──────────────────────────────────────────

def roll_tile_points(rng: random.Random) -> list[int]:
    """Points for cells 1..N. Index 0 is unused; the start cell is worth 0."""
    points = [0] * (BOARD_CELLS + 1)
    for cell in range(START_CELL + 1, BOARD_CELLS + 1):
        points[cell] = rng.randint(TILE_POINTS_MIN, TILE_POINTS_MAX)
    return points


@dataclass
class BoardConfig:
    """Everything about the board that lives for exactly one match.

    Owned by the match; every rules function receives it explicitly.
    """

    boss_nodes: frozenset[int] = field(default_factory=frozenset)
    boss_win_points: int = 10
    boss_win_stars: int = 2
    boss_lose_points: int = -5
    boss_lose_stars: int = -1
    boss_time_limit: float = 10.0
    tile_points: list[int] = field(default_factory=lambda: [0] * (BOARD_CELLS + 1))
    stars_claimed: list[bool] = field(default_factory=lambda: [False] * (BOARD_CELLS + 1))
    ladder_links: list[LadderLink] = field(default_factory=list)

    def ladder_from(self, cell: int) -> LadderLink | None:
        for link in self.ladder_links:
            if link.start == cell:
                return link
        return None

    def is_boss_node(self, cell: int) -> bool:
        return cell in self.boss_nodes

    def star_available(self, cell: int) -> bool:
        return is_star_cell(cell) and not self.stars_claimed[cell]

    def points_at(self, cell: int) -> int:
        return self.tile_points[cell]


def build_board(
    settings: MatchSettings,
    rng: random.Random,
    ladders: LadderPlan | None = None,
) -> BoardConfig:
    """Fresh board for a new match: new ladders, new tile points, no stars claimed."""
    if ladders is None:
        ladders = generate_ladders(rng)
    return BoardConfig(
        boss_nodes=frozenset(settings.boss_nodes),
        boss_win_points=settings.boss_win_points,
        boss_win_stars=settings.boss_win_stars,
        boss_lose_points=settings.boss_lose_points,
        boss_lose_stars=settings.boss_lose_stars,
        boss_time_limit=settings.boss_time_limit,
        tile_points=roll_tile_points(rng),
        ladder_links=list(ladders.links),
    )
