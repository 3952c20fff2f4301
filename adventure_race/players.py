"""Per-player match state and the movement history used for backward moves."""

from __future__ import annotations

from dataclasses import dataclass, field

from adventure_race.board import START_CELL, STAR_TO_POINT, clamp_cell

# Token colours, handed out in seat order.
PALETTE: list[str] = [
    "#FFA078",
    "#78C8B4",
    "#DCA0E6",
    "#FFDC8C",
    "#A0C8FF",
    "#C8F0B4",
]

MIN_PLAYERS = 2
MAX_PLAYERS = 6


class MatchSetupError(ValueError):
    """Raised for an unusable player list."""


class MovementHistory:
    """LIFO record of the cells a player has stood on.

    Seeded with the start cell. Forward steps and ladder teleports push;
    backward moves pop. The seed entry is never popped, so the history is
    never empty.
    """

    def __init__(self, seed: int = START_CELL):
        self._cells: list[int] = [seed]

    def push(self, cell: int) -> None:
        self._cells.append(cell)

    def pop(self) -> int:
        """Drop the newest entry and return the cell now on top."""
        if not self.can_pop(1):
            raise IndexError("cannot pop the seed entry of a movement history")
        self._cells.pop()
        return self._cells[-1]

    def can_pop(self, n: int = 1) -> bool:
        return len(self._cells) - 1 >= n

    def __len__(self) -> int:
        return len(self._cells)

    def __repr__(self) -> str:
        return f"MovementHistory(size={len(self._cells)})"


@dataclass
class PlayerState:
    """Mutable per-match record for one player."""

    name: str
    color: str = PALETTE[0]
    position: int = START_CELL
    score: int = 0
    stars: int = 0
    finished: bool = False
    history: MovementHistory = field(default_factory=MovementHistory, repr=False)

    @property
    def total(self) -> int:
        """Points plus stars converted at STAR_TO_POINT."""
        return self.score + self.stars * STAR_TO_POINT

    def add_score(self, delta: int) -> None:
        self.score = max(0, self.score + delta)

    def add_stars(self, delta: int) -> None:
        self.stars = max(0, self.stars + delta)

    def move_to(self, cell: int) -> int:
        self.position = clamp_cell(cell)
        return self.position

    def reset(self) -> None:
        self.position = START_CELL
        self.score = 0
        self.stars = 0
        self.finished = False
        self.history = MovementHistory()


def make_players(names: list[str]) -> list[PlayerState]:
    """Build seated players from raw names.

    Blank names become ``"Player <n>"``. Raises ``MatchSetupError`` on a bad
    player count or a duplicate name, since the name keys the score store.
    """
    if not MIN_PLAYERS <= len(names) <= MAX_PLAYERS:
        raise MatchSetupError(f"need {MIN_PLAYERS}-{MAX_PLAYERS} players, got {len(names)}")

    players: list[PlayerState] = []
    seen: set[str] = set()
    for seat, raw in enumerate(names):
        name = (raw or "").strip() or f"Player {seat + 1}"
        if name in seen:
            raise MatchSetupError(f"duplicate player name: {name!r}")
        seen.add(name)
        players.append(PlayerState(name=name, color=PALETTE[seat]))
    return players
