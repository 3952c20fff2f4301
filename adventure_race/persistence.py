"""SQLite score store.

Per-name records (wins, games played, total stars, total score) persist
across matches and are only written at match boundaries. Each finished
match is also kept with its final standings and turn log.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adventure_race.game import MatchResult


@dataclass
class ScoreRecord:
    name: str
    wins: int = 0
    games_played: int = 0
    total_stars: int = 0
    total_score: int = 0

    def summary(self) -> str:
        return f"W:{self.wins} G:{self.games_played} S:{self.total_stars} P:{self.total_score}"


@dataclass
class MatchRow:
    id: int
    winner: str | None
    reason: str
    turns: int
    created_at: str


class ScoreStore:
    """Thin wrapper around a SQLite database of score records and matches."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self.path)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._create_tables()

    def _create_tables(self) -> None:
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS players (
                name            TEXT PRIMARY KEY,
                wins            INTEGER NOT NULL DEFAULT 0,
                games_played    INTEGER NOT NULL DEFAULT 0,
                total_stars     INTEGER NOT NULL DEFAULT 0,
                total_score     INTEGER NOT NULL DEFAULT 0
            );
            CREATE TABLE IF NOT EXISTS matches (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                winner      TEXT,
                reason      TEXT NOT NULL,
                turns       INTEGER NOT NULL,
                created_at  TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
            CREATE TABLE IF NOT EXISTS match_players (
                match_id        INTEGER NOT NULL REFERENCES matches(id),
                seat            INTEGER NOT NULL,
                name            TEXT NOT NULL,
                final_position  INTEGER NOT NULL,
                score           INTEGER NOT NULL,
                stars           INTEGER NOT NULL,
                total           INTEGER NOT NULL,
                finished        INTEGER NOT NULL,
                UNIQUE(match_id, seat)
            );
            CREATE TABLE IF NOT EXISTS turns (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                match_id        INTEGER NOT NULL REFERENCES matches(id),
                turn_number     INTEGER NOT NULL,
                player          TEXT NOT NULL,
                start_position  INTEGER NOT NULL,
                end_position    INTEGER NOT NULL,
                die_value       INTEGER NOT NULL,
                forward         INTEGER NOT NULL,
                outcome         TEXT NOT NULL,
                UNIQUE(match_id, turn_number)
            );
        """)
        self._conn.commit()

    # ── Score records ────────────────────────────────────────────────

    def ensure_player(self, name: str) -> ScoreRecord:
        """Create an empty record for *name* if missing. Returns the record."""
        self._conn.execute("INSERT OR IGNORE INTO players (name) VALUES (?)", (name,))
        self._conn.commit()
        record = self.get_record(name)
        assert record is not None
        return record

    def get_record(self, name: str) -> ScoreRecord | None:
        row = self._conn.execute(
            "SELECT name, wins, games_played, total_stars, total_score FROM players WHERE name = ?",
            (name,),
        ).fetchone()
        return ScoreRecord(*row) if row else None

    def leaderboard(self) -> list[ScoreRecord]:
        """All records, most wins first, then most points."""
        rows = self._conn.execute(
            "SELECT name, wins, games_played, total_stars, total_score FROM players "
            "ORDER BY wins DESC, total_score DESC, name"
        ).fetchall()
        return [ScoreRecord(*r) for r in rows]

    # ── Matches ──────────────────────────────────────────────────────

    def record_match(self, result: MatchResult) -> int:
        """Store a finished match and fold it into everyone's score record.

        Every participant gets one games-played increment plus their stars
        and score; the winner also gets one win. All in one transaction.
        """
        with self._conn:
            cur = self._conn.execute(
                "INSERT INTO matches (winner, reason, turns) VALUES (?, ?, ?)",
                (result.winner, result.reason, result.turns),
            )
            match_id = cur.lastrowid

            for s in result.standings:
                self._conn.execute(
                    "INSERT INTO match_players (match_id, seat, name, final_position, "
                    "score, stars, total, finished) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (match_id, s.seat, s.name, s.position, s.score, s.stars,
                     s.total, int(s.finished)),
                )
                self._conn.execute("INSERT OR IGNORE INTO players (name) VALUES (?)", (s.name,))
                self._conn.execute(
                    "UPDATE players SET games_played = games_played + 1, "
                    "total_stars = total_stars + ?, total_score = total_score + ? "
                    "WHERE name = ?",
                    (s.stars, s.score, s.name),
                )

            if result.winner is not None:
                self._conn.execute(
                    "UPDATE players SET wins = wins + 1 WHERE name = ?", (result.winner,)
                )

            for t in result.turn_log:
                self._conn.execute(
                    "INSERT INTO turns (match_id, turn_number, player, start_position, "
                    "end_position, die_value, forward, outcome) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (match_id, t.turn_number, t.player, t.start_position,
                     t.end_position, t.die_value, int(t.forward), t.outcome),
                )
        return match_id  # type: ignore[return-value]

    def list_matches(self) -> list[MatchRow]:
        rows = self._conn.execute(
            "SELECT id, winner, reason, turns, created_at FROM matches ORDER BY id"
        ).fetchall()
        return [MatchRow(*r) for r in rows]

    def list_standings(self, match_id: int) -> list[dict]:
        rows = self._conn.execute(
            "SELECT seat, name, final_position, score, stars, total, finished "
            "FROM match_players WHERE match_id = ? ORDER BY seat",
            (match_id,),
        ).fetchall()
        keys = ("seat", "name", "final_position", "score", "stars", "total", "finished")
        standings = [dict(zip(keys, r)) for r in rows]
        for s in standings:
            s["finished"] = bool(s["finished"])
        return standings

    def list_turns(self, match_id: int) -> list[dict]:
        rows = self._conn.execute(
            "SELECT turn_number, player, start_position, end_position, die_value, "
            "forward, outcome FROM turns WHERE match_id = ? ORDER BY turn_number",
            (match_id,),
        ).fetchall()
        keys = ("turn_number", "player", "start_position", "end_position",
                "die_value", "forward", "outcome")
        turns = [dict(zip(keys, r)) for r in rows]
        for t in turns:
            t["forward"] = bool(t["forward"])
        return turns

    def close(self) -> None:
        self._conn.close()
