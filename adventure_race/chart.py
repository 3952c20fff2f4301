"""Generate a leaderboard bar chart from score records."""

from __future__ import annotations

from typing import TYPE_CHECKING

import matplotlib
matplotlib.use("Agg")  # non-interactive backend

import matplotlib.pyplot as plt

if TYPE_CHECKING:
    from adventure_race.persistence import ScoreRecord


def make_leaderboard_chart(
    records: list[ScoreRecord],
    output_path: str = "leaderboard.png",
    title: str = "Adventure Race Leaderboard",
) -> str:
    """Two horizontal bar panels: wins and total points, one bar per player.

    Players are ordered by wins, then points. Returns the path to the saved PNG.
    """
    ordered = sorted(records, key=lambda r: (r.wins, r.total_score), reverse=True)
    names = [r.name for r in ordered]
    wins = [r.wins for r in ordered]
    points = [r.total_score for r in ordered]

    fig, (ax_wins, ax_points) = plt.subplots(
        1, 2, figsize=(12, max(3, len(names) * 0.7)), sharey=True,
    )
    win_bars = ax_wins.barh(names, wins, color="#4A90D9", edgecolor="white")
    point_bars = ax_points.barh(names, points, color="#E8A33D", edgecolor="white")

    for ax, bars, values in ((ax_wins, win_bars, wins), (ax_points, point_bars, points)):
        for bar, value in zip(bars, values):
            ax.text(
                bar.get_width(), bar.get_y() + bar.get_height() / 2,
                f" {value}",
                va="center", fontsize=11, fontweight="bold",
            )
        ax.set_xlim(left=0, right=max(values + [1]) * 1.15)

    ax_wins.set_xlabel("Wins")
    ax_points.set_xlabel("Total points")
    ax_wins.invert_yaxis()  # leader on top
    fig.suptitle(title, fontsize=14, fontweight="bold")

    plt.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path
