"""Landing effects: stars, tile points and boss detection."""

from __future__ import annotations

from dataclasses import dataclass

from adventure_race.board import BoardConfig
from adventure_race.players import PlayerState


@dataclass
class LandingResult:
    """What a resting point gave the player."""

    cell: int
    final: bool = True
    star_awarded: bool = False
    points_awarded: int = 0
    boss_triggered: bool = False

    @property
    def extra_turn(self) -> bool:
        # Only a star on the turn's final cell grants another roll.
        return self.final and self.star_awarded


def award_star(player: PlayerState, board: BoardConfig, cell: int) -> bool:
    """Give *player* the star on *cell* if it is still unclaimed this match."""
    if not board.star_available(cell):
        return False
    board.stars_claimed[cell] = True
    player.add_stars(1)
    return True


def award_tile_points(player: PlayerState, board: BoardConfig, cell: int) -> int:
    """Add the cell's fixed point value. Repeats on every landing."""
    points = board.points_at(cell)
    if points:
        player.add_score(points)
    return points


def resolve_landing(
    player: PlayerState,
    board: BoardConfig,
    cell: int,
    final: bool = True,
) -> LandingResult:
    """Apply awards for a resting point.

    Intermediate ladder stops (``final=False``) pay tile points only: no
    star and no boss.
    """
    result = LandingResult(cell=cell, final=final)
    if final:
        result.star_awarded = award_star(player, board, cell)
    result.points_awarded = award_tile_points(player, board, cell)
    if final:
        result.boss_triggered = board.is_boss_node(cell)
    return result
