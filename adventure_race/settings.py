"""Match configuration and boundary validation.

Anything typed by a user (CLI flags, prompts) is parsed here into plain
integers before it reaches the game core.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

BOARD_CELLS = 64

DEFAULT_BOSS_NODES: frozenset[int] = frozenset({8, 15, 23, 31, 42, 55})


class SettingsError(ValueError):
    """Raised when configuration input cannot be used."""


@dataclass
class MatchSettings:
    """Boss configuration. Read once per match, at ``Match.start()``."""

    boss_nodes: frozenset[int] = field(default_factory=lambda: DEFAULT_BOSS_NODES)
    boss_win_points: int = 10
    boss_win_stars: int = 2
    boss_lose_points: int = -5
    boss_lose_stars: int = -1
    boss_time_limit: float = 10.0

    def snapshot(self) -> MatchSettings:
        return replace(self, boss_nodes=frozenset(self.boss_nodes))


def parse_int(text: str, field_name: str) -> int:
    try:
        return int(str(text).strip())
    except ValueError:
        raise SettingsError(f"{field_name} must be an integer, got {text!r}") from None


def parse_boss_nodes(text: str) -> frozenset[int]:
    """Parse a comma-separated list like ``"8, 15,23"``. Blank items are skipped."""
    nodes: set[int] = set()
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        cell = parse_int(part, "boss node")
        if not 1 <= cell <= BOARD_CELLS:
            raise SettingsError(f"boss node {cell} is outside 1..{BOARD_CELLS}")
        nodes.add(cell)
    return frozenset(nodes)


def settings_from_strings(
    boss_nodes: str | None = None,
    boss_win_points: str | None = None,
    boss_win_stars: str | None = None,
    boss_lose_points: str | None = None,
    boss_lose_stars: str | None = None,
) -> MatchSettings:
    """Build settings from raw text fields; ``None`` keeps the default."""
    settings = MatchSettings()
    if boss_nodes is not None:
        settings.boss_nodes = parse_boss_nodes(boss_nodes)
    if boss_win_points is not None:
        settings.boss_win_points = parse_int(boss_win_points, "boss win points")
    if boss_win_stars is not None:
        settings.boss_win_stars = parse_int(boss_win_stars, "boss win stars")
    if boss_lose_points is not None:
        settings.boss_lose_points = parse_int(boss_lose_points, "boss lose points")
    if boss_lose_stars is not None:
        settings.boss_lose_stars = parse_int(boss_lose_stars, "boss lose stars")
    return settings
