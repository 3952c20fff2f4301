"""Export score records and match logs to JSON, with optional S3-compatible upload."""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)


def export_leaderboard(db_path: Path | str) -> list[dict]:
    """Read every score record, most wins first."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    rows = conn.execute(
        "SELECT name, wins, games_played, total_stars, total_score "
        "FROM players ORDER BY wins DESC, total_score DESC, name"
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]


def export_matches(db_path: Path | str) -> list[dict]:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    rows = conn.execute(
        "SELECT id, winner, reason, turns, created_at FROM matches ORDER BY id"
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]


def export_match_events(db_path: Path | str, match_id: int) -> dict | None:
    """Export one match: metadata, final standings and turn log.

    Returns ``None`` if the match does not exist.
    """
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row

    match_row = conn.execute(
        "SELECT id, winner, reason, turns, created_at FROM matches WHERE id = ?",
        (match_id,),
    ).fetchone()
    if match_row is None:
        conn.close()
        return None

    standing_rows = conn.execute(
        "SELECT seat, name, final_position, score, stars, total, finished "
        "FROM match_players WHERE match_id = ? ORDER BY seat",
        (match_id,),
    ).fetchall()
    turn_rows = conn.execute(
        "SELECT turn_number, player, start_position, end_position, die_value, "
        "forward, outcome FROM turns WHERE match_id = ? ORDER BY turn_number",
        (match_id,),
    ).fetchall()
    conn.close()

    standings = []
    for r in standing_rows:
        s = dict(r)
        s["finished"] = bool(s["finished"])
        standings.append(s)

    turns = []
    for r in turn_rows:
        t = dict(r)
        t["forward"] = bool(t["forward"])
        t["type"] = "turn"
        turns.append(t)

    return {"match": dict(match_row), "standings": standings, "turns": turns}


def generate_all(db_path: Path | str, output_dir: Path) -> list[Path]:
    """Write leaderboard.json, matches.json and events/<id>.json.

    Returns a list of all generated file paths.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    events_dir = output_dir / "events"
    events_dir.mkdir(exist_ok=True)

    generated: list[Path] = []

    board_path = output_dir / "leaderboard.json"
    board_path.write_text(json.dumps(export_leaderboard(db_path), indent=2))
    generated.append(board_path)

    matches = export_matches(db_path)
    matches_path = output_dir / "matches.json"
    matches_path.write_text(json.dumps(matches, indent=2))
    generated.append(matches_path)

    for match in matches:
        data = export_match_events(db_path, match["id"])
        if data is None:
            continue
        event_path = events_dir / f"{match['id']}.json"
        event_path.write_text(json.dumps(data, indent=2))
        generated.append(event_path)

    return generated


def upload_to_s3(
    files: dict[str, bytes],
    bucket_name: str,
    endpoint_url: str,
    key_id: str,
    app_key: str,
) -> None:
    """Publish exported JSON to a bucket behind any S3-compatible endpoint.

    Keys are object names under the bucket; each body is stored as JSON.
    """
    import boto3  # type: ignore[import-untyped]

    s3 = boto3.client(
        "s3",
        endpoint_url=endpoint_url,
        aws_access_key_id=key_id,
        aws_secret_access_key=app_key,
    )

    for key in sorted(files):
        s3.put_object(Bucket=bucket_name, Key=key, Body=files[key], ContentType="application/json")
        logger.info("Uploaded %s to %s", key, bucket_name)
