"""CLI entry point: python -m adventure_race {play,leaderboard,chart,export}."""

from __future__ import annotations

import argparse
import logging
import random
import sys
import time
from pathlib import Path
from typing import Callable

from adventure_race.boss import BossAnswer, BossChallenge
from adventure_race.chart import make_leaderboard_chart
from adventure_race.export import generate_all
from adventure_race.game import Match, MatchPhase, NarrationEvent
from adventure_race.persistence import ScoreStore
from adventure_race.players import MAX_PLAYERS, MIN_PLAYERS, MatchSetupError, PlayerState
from adventure_race.settings import SettingsError, settings_from_strings

RESULTS_DIR = Path("results")
DB_PATH = RESULTS_DIR / "scores.db"

InputFn = Callable[[str], str]


def _open_store(path: Path | str | None = None) -> ScoreStore:
    return ScoreStore(path or DB_PATH)


# ── terminal collaborators ───────────────────────────────────────────

class PrintObserver:
    """Prints every narration line as it happens."""

    def on_event(self, event: NarrationEvent) -> None:
        print(event.message)


class TerminalResponder:
    """Asks boss questions at the prompt and times the reply."""

    def __init__(self, input_fn: InputFn = input, clock: Callable[[], float] = time.monotonic):
        self.input_fn = input_fn
        self.clock = clock

    def respond(self, player: PlayerState, challenge: BossChallenge) -> BossAnswer:
        print(f"  {player.name}, solve to defeat the Boss ({challenge.time_limit:.0f}s):")
        t0 = self.clock()
        try:
            text = self.input_fn(f"  {challenge.question} ")
        except EOFError:
            return BossAnswer.cancelled()
        elapsed = self.clock() - t0
        if elapsed > challenge.time_limit:
            print(f"  Too slow! ({elapsed:.1f}s)")
            return BossAnswer(text=text, elapsed=elapsed, timed_out=True)
        return BossAnswer(text=text, elapsed=elapsed)


def _prompt_names(input_fn: InputFn, count: int | None) -> list[str]:
    while count is None:
        raw = input_fn(f"How many players? ({MIN_PLAYERS}-{MAX_PLAYERS}) ").strip()
        try:
            value = int(raw)
        except ValueError:
            print("Please enter a valid number.")
            continue
        if MIN_PLAYERS <= value <= MAX_PLAYERS:
            count = value
        else:
            print(f"Please enter {MIN_PLAYERS}-{MAX_PLAYERS} players.")
    return [input_fn(f"Enter name for Player {i + 1}: ") for i in range(count)]


# ── play ─────────────────────────────────────────────────────────────

def cmd_play(args: argparse.Namespace, input_fn: InputFn = input) -> int:
    """Play one interactive match in the terminal."""
    try:
        settings = settings_from_strings(
            boss_nodes=args.boss_nodes,
            boss_win_points=args.boss_win_points,
            boss_win_stars=args.boss_win_stars,
            boss_lose_points=args.boss_lose_points,
            boss_lose_stars=args.boss_lose_stars,
        )
    except SettingsError as exc:
        print(f"Invalid settings input: {exc}", file=sys.stderr)
        return 1

    try:
        names = args.names or _prompt_names(input_fn, args.players)
    except EOFError:
        print("\nMatch abandoned.")
        return 1
    store = _open_store(args.db)
    match = Match(
        names,
        settings=settings,
        rng=random.Random(args.seed),
        responder=TerminalResponder(input_fn),
        observer=PrintObserver(),
        store=store,
    )
    try:
        match.start()
    except MatchSetupError as exc:
        print(f"Invalid players: {exc}", file=sys.stderr)
        store.close()
        return 1

    try:
        while match.phase is MatchPhase.AWAITING_ROLL:
            assert match.current_player is not None
            try:
                input_fn(f"[{match.current_player.name}] Press Enter to roll...")
            except EOFError:
                print("\nMatch abandoned.")
                return 1
            match.play_turn()
    finally:
        store.close()

    if match.phase is MatchPhase.WAITING:
        print("Match is waiting: no player can take a turn.", file=sys.stderr)
        return 1
    return 0


# ── leaderboard ──────────────────────────────────────────────────────

def cmd_leaderboard(args: argparse.Namespace) -> int:
    db_path = Path(args.db or DB_PATH)
    if not db_path.exists():
        print(f"No database found at {db_path}. Play some matches first.", file=sys.stderr)
        return 1

    store = _open_store(db_path)
    records = store.leaderboard()
    store.close()

    if not records:
        print("No players yet.", file=sys.stderr)
        return 1

    print("\nLeaderboard")
    print("=" * 56)
    print(f"  {'Name':24s} {'Wins':>5s} {'Games':>6s} {'Stars':>6s} {'Points':>7s}")
    for r in records:
        print(f"  {r.name:24s} {r.wins:5d} {r.games_played:6d} {r.total_stars:6d} {r.total_score:7d}")
    return 0


# ── chart ────────────────────────────────────────────────────────────

def cmd_chart(args: argparse.Namespace) -> int:
    db_path = Path(args.db or DB_PATH)
    if not db_path.exists():
        print(f"No database found at {db_path}. Play some matches first.", file=sys.stderr)
        return 1

    store = _open_store(db_path)
    records = store.leaderboard()
    store.close()

    if not records:
        print("No players yet.", file=sys.stderr)
        return 1

    out = args.output or "leaderboard.png"
    make_leaderboard_chart(records, output_path=out)
    print(f"Chart saved to {out}")
    return 0


# ── export ───────────────────────────────────────────────────────────

def cmd_export(args: argparse.Namespace) -> int:
    db_path = Path(args.db or DB_PATH)
    if not db_path.exists():
        print(f"No database found at {db_path}. Play some matches first.", file=sys.stderr)
        return 1

    generated = generate_all(db_path, Path(args.output))
    print(f"Generated {len(generated)} JSON files in {args.output}")
    return 0


# ── main ─────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="adventure_race",
        description="Adventure race board game",
    )
    parser.add_argument("--db", help=f"Score database path (default {DB_PATH})")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log at INFO level")
    sub = parser.add_subparsers(dest="command")

    p_play = sub.add_parser("play", help="Play a match in the terminal")
    p_play.add_argument("--players", type=int, help="Number of players (2-6)")
    p_play.add_argument("--names", nargs="*", help="Player names, in seat order")
    p_play.add_argument("--seed", type=int, help="Random seed")
    # Kept as text so bad values are reported by the settings parser.
    p_play.add_argument("--boss-nodes", help="Comma-separated boss cells, e.g. 8,15,23")
    p_play.add_argument("--boss-win-points")
    p_play.add_argument("--boss-win-stars")
    p_play.add_argument("--boss-lose-points")
    p_play.add_argument("--boss-lose-stars")

    sub.add_parser("leaderboard", help="Print score records")

    p_chart = sub.add_parser("chart", help="Generate leaderboard chart")
    p_chart.add_argument("--output", "-o", help="Output PNG path")

    p_export = sub.add_parser("export", help="Export scores and matches to JSON")
    p_export.add_argument("--output", "-o", default=str(RESULTS_DIR / "export"),
                          help="Output directory")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO if args.verbose else logging.WARNING,
    )

    if args.command == "play":
        code = cmd_play(args)
    elif args.command == "leaderboard":
        code = cmd_leaderboard(args)
    elif args.command == "chart":
        code = cmd_chart(args)
    elif args.command == "export":
        code = cmd_export(args)
    else:
        parser.print_help()
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
