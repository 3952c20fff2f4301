"""Match runner: turn order, turn completion and end of match."""

from __future__ import annotations

import logging
import random
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from adventure_race.board import (
    FINISH_CELL,
    STAR_TO_POINT,
    BoardConfig,
    LadderPlan,
    build_board,
    generate_ladders,
    is_prime,
)
from adventure_race.boss import (
    BossAnswer,
    BossChallenge,
    BossOutcome,
    apply_boss_result,
    check_answer,
    generate_challenge,
)
from adventure_race.landing import LandingResult, resolve_landing
from adventure_race.movement import TELEPORT, DiceRoll, MoveResult, move_player, roll_dice
from adventure_race.players import PlayerState, make_players
from adventure_race.settings import MatchSettings

if TYPE_CHECKING:
    from adventure_race.persistence import ScoreRecord

logger = logging.getLogger(__name__)


class MatchNotActiveError(RuntimeError):
    """Raised when a roll is requested and no player can take it."""


class MatchPhase(str, Enum):
    NOT_STARTED = "not_started"
    AWAITING_ROLL = "awaiting_roll"
    WAITING = "waiting"  # queue ran dry without a match-end condition
    ENDED = "ended"


# ── Collaborator interfaces ──────────────────────────────────────────

@runtime_checkable
class BossResponder(Protocol):
    """Asks the current player a boss question and reports the reply."""

    def respond(self, player: PlayerState, challenge: BossChallenge) -> BossAnswer: ...


class ScoreRecorder(Protocol):
    """Persistent per-name score records, touched only at match boundaries."""

    def ensure_player(self, name: str) -> ScoreRecord: ...

    def record_match(self, result: MatchResult) -> int: ...


# ── Structured types ────────────────────────────────────────────────

@dataclass
class NarrationEvent:
    """One human-readable line of match commentary."""

    kind: str
    message: str
    player: str | None = None
    data: dict = field(default_factory=dict)


class MatchObserver(Protocol):
    def on_event(self, event: NarrationEvent) -> None: ...


@dataclass
class ListObserver:
    """Default observer — collects events into a list."""

    events: list[NarrationEvent] = field(default_factory=list)

    def on_event(self, event: NarrationEvent) -> None:
        self.events.append(event)

    def kinds(self) -> list[str]:
        return [e.kind for e in self.events]


@dataclass
class TurnRecord:
    """Compact per-turn log row, as persisted."""

    turn_number: int
    player: str
    start_position: int
    end_position: int
    die_value: int
    forward: bool
    outcome: str  # normal | extra_turn | boss_win | boss_fail | finish | match_end


@dataclass
class Standing:
    seat: int
    name: str
    position: int
    score: int
    stars: int
    finished: bool

    @property
    def total(self) -> int:
        return self.score + self.stars * STAR_TO_POINT


@dataclass
class MatchResult:
    winner: str | None
    reason: str
    turns: int
    standings: list[Standing] = field(default_factory=list)
    turn_log: list[TurnRecord] = field(default_factory=list)


@dataclass
class TurnResult:
    """Summary of one turn for UI refresh and persistence triggers."""

    turn_number: int
    player: str
    roll: DiceRoll
    start_position: int
    final_position: int
    move: MoveResult
    landing: LandingResult
    outcome: str
    boss: BossOutcome | None = None
    extra_turn: bool = False
    next_player: str | None = None
    match_result: MatchResult | None = None

    @property
    def stars_awarded(self) -> int:
        return int(self.landing.star_awarded) + sum(s.star_awarded for s in self.move.stops)

    @property
    def points_awarded(self) -> int:
        return self.landing.points_awarded + sum(s.points_awarded for s in self.move.stops)


# ── Winner ───────────────────────────────────────────────────────────

def compute_winner(players: list[PlayerState]) -> PlayerState | None:
    """Highest ``score + stars * STAR_TO_POINT``.

    Equal totals go to the player with more stars; a tie on both keeps
    whoever came first in *players*.
    """
    best: PlayerState | None = None
    for player in players:
        if best is None or player.total > best.total:
            best = player
        elif player.total == best.total and player.stars > best.stars:
            best = player
    return best


# ── Runner ───────────────────────────────────────────────────────────

class Match:
    """One match between 2–6 players, played a turn at a time.

    ``start()`` (re)builds the board and the players; ``play_turn()`` plays
    the current player's turn to completion, boss question included.
    """

    def __init__(
        self,
        names: list[str],
        settings: MatchSettings | None = None,
        rng: random.Random | None = None,
        responder: BossResponder | None = None,
        observer: MatchObserver | None = None,
        store: ScoreRecorder | None = None,
    ):
        self.names = list(names)
        self.settings = settings or MatchSettings()
        self.rng = rng or random.Random()
        self.responder = responder
        self.observer = observer or ListObserver()
        self.store = store

        self.players: list[PlayerState] = []
        self.board = BoardConfig()
        self.ladder_plan = LadderPlan()
        self.queue: deque[PlayerState] = deque()
        self.current_player: PlayerState | None = None
        self.phase = MatchPhase.NOT_STARTED
        self.turn_number = 0
        self.turn_log: list[TurnRecord] = []
        self.result: MatchResult | None = None
        self._turn_in_progress = False

    # ── lifecycle ──

    def start(self) -> PlayerState:
        """Begin a new match, discarding any previous one. Returns the first player."""
        if self._turn_in_progress:
            raise MatchNotActiveError("cannot restart while a turn is in progress")

        settings = self.settings.snapshot()
        self.players = make_players(self.names)
        summaries = {}
        if self.store is not None:
            for p in self.players:
                summaries[p.name] = self.store.ensure_player(p.name).summary()

        self.ladder_plan = generate_ladders(self.rng)
        self.board = build_board(settings, self.rng, ladders=self.ladder_plan)

        self.queue = deque(self.players)
        self.current_player = self.queue.popleft()
        self.phase = MatchPhase.AWAITING_ROLL
        self.turn_number = 0
        self.turn_log = []
        self.result = None

        self._narrate("match_start", "════ GAME STARTED — ADVENTURE ════")
        for p in self.players:
            summary = summaries.get(p.name)
            line = f"  • {p.name}" + (f" ({summary})" if summary else "")
            self._narrate("player", line, player=p.name)
        self._narrate(
            "boss_nodes",
            f"Boss nodes: {sorted(self.board.boss_nodes)}",
            nodes=sorted(self.board.boss_nodes),
        )
        if self.ladder_plan.complete:
            self._narrate("ladders", f"Random ladders: {self.ladder_plan.summary()}")
        else:
            self._narrate(
                "ladders",
                f"[Ladders] Could only place {len(self.ladder_plan.links)} ladders "
                f"(attempts: {self.ladder_plan.attempts}).",
                shortfall=self.ladder_plan.target - len(self.ladder_plan.links),
            )
        self._narrate("first_turn", f"First turn: {self.current_player.name}",
                      player=self.current_player.name)
        logger.info("Match started with %d players", len(self.players))
        return self.current_player

    # ── turns ──

    def play_turn(self, roll: DiceRoll | None = None) -> TurnResult | None:
        """Play the current player's turn.

        Returns ``None`` (and changes nothing) when a turn is already in
        flight, e.g. a responder trying to roll from inside a boss prompt.
        """
        if self._turn_in_progress:
            logger.warning("Roll ignored: a turn is already in progress")
            self._narrate("roll_rejected", "Roll ignored — a turn is already in progress.")
            return None
        if self.phase is not MatchPhase.AWAITING_ROLL or self.current_player is None:
            raise MatchNotActiveError(f"no turn can be played while the match is {self.phase.value}")

        self._turn_in_progress = True
        try:
            return self._run_turn(roll or roll_dice(self.rng))
        finally:
            self._turn_in_progress = False

    def _run_turn(self, roll: DiceRoll) -> TurnResult:
        player = self.current_player
        assert player is not None
        self.turn_number += 1
        start = player.position

        prime_note = (
            " (PRIME) — eligible for ladders."
            if roll.forward and is_prime(start)
            else " — ladders disabled this turn."
        )
        self._narrate("turn_start", f"┌ {player.name} on Node {start}{prime_note}", player=player.name)
        self._narrate("dice", f"│ Dice: {roll}", player=player.name, value=roll.value, forward=roll.forward)

        move = move_player(player, self.board, roll)
        self._narrate_move(player, move)

        landing = resolve_landing(player, self.board, player.position, final=True)
        self._narrate_landing(player, landing)

        turn = TurnResult(
            turn_number=self.turn_number,
            player=player.name,
            roll=roll,
            start_position=start,
            final_position=player.position,
            move=move,
            landing=landing,
            outcome="normal",
            extra_turn=landing.extra_turn,
        )

        if landing.boss_triggered:
            turn.boss = self._run_boss(player, landing.cell)
            if not turn.boss.success:
                # A lost fight ends the turn, extra turn or not.
                turn.final_position = player.position
                turn.extra_turn = False
                turn.outcome = "boss_fail"
                self.queue.append(player)
                self._advance(turn)
                return self._close_turn(turn)
            turn.outcome = "boss_win"

        return self._complete_turn(player, turn)

    def _complete_turn(self, player: PlayerState, turn: TurnResult) -> TurnResult:
        final_position = turn.final_position
        self._narrate("final", f"│ Final: Node {final_position}", player=player.name)

        if final_position == FINISH_CELL:
            player.finished = True
            turn.extra_turn = False
            self._narrate("finish", f"│ 🎉 {player.name} reached FINISH!", player=player.name)
            not_finished = sum(1 for p in self.players if not p.finished)
            if not_finished <= 1:
                turn.outcome = "match_end"
                turn.match_result = self._end_match(not_finished)
                return self._close_turn(turn)
            turn.outcome = "finish"
            self._narrate(
                "finish",
                f"│ {player.name} finished — {not_finished} player(s) remaining.",
                player=player.name,
            )
            self._advance(turn)
            return self._close_turn(turn)

        if turn.extra_turn:
            if turn.outcome == "normal":
                turn.outcome = "extra_turn"
            turn.next_player = player.name
            self._narrate("extra_turn", f"│ ➜ Extra turn for {player.name} (keeps turn)", player=player.name)
            return self._close_turn(turn)

        self.queue.append(player)
        self._advance(turn)
        return self._close_turn(turn)

    def _advance(self, turn: TurnResult) -> None:
        self.current_player = self._poll_next_active()
        if self.current_player is None:
            self.phase = MatchPhase.WAITING
            logger.warning("No active player left in the queue; match is waiting")
            self._narrate("waiting", "Waiting... no active player left in the turn queue.")
        else:
            turn.next_player = self.current_player.name
            self._narrate("next", f"Next: {self.current_player.name}", player=self.current_player.name)

    def _poll_next_active(self) -> PlayerState | None:
        # Finished players are dropped, never requeued.
        while self.queue:
            candidate = self.queue.popleft()
            if not candidate.finished:
                return candidate
        return None

    def _close_turn(self, turn: TurnResult) -> TurnResult:
        record = TurnRecord(
            turn_number=turn.turn_number,
            player=turn.player,
            start_position=turn.start_position,
            end_position=turn.final_position,
            die_value=turn.roll.value,
            forward=turn.roll.forward,
            outcome=turn.outcome,
        )
        self.turn_log.append(record)
        if turn.match_result is not None:
            turn.match_result.turn_log = list(self.turn_log)
            if self.store is not None:
                self.store.record_match(turn.match_result)
        return turn

    # ── boss ──

    def _run_boss(self, player: PlayerState, cell: int) -> BossOutcome:
        self._narrate("boss", f"│ 👾 Boss is present at Node {cell} — triggering encounter.",
                      player=player.name, cell=cell)
        challenge = generate_challenge(self.rng, self.board.boss_time_limit)
        if self.responder is None:
            answer = BossAnswer.cancelled()
        else:
            answer = self.responder.respond(player, challenge)
        success = check_answer(challenge, answer)
        outcome = apply_boss_result(player, self.board, cell, success)
        if success:
            self._narrate(
                "boss_win",
                f"│ ✅ {player.name} defeated the boss! +{outcome.points_delta} pts, "
                f"+{outcome.stars_delta} stars",
                player=player.name,
            )
        else:
            self._narrate(
                "boss_fail",
                f"│ ❌ {player.name} failed the boss ({outcome.points_delta} pts, "
                f"{outcome.stars_delta} stars) and is returned to Node {outcome.returned_to}. Turn ends.",
                player=player.name,
                answer=challenge.answer,
            )
        return outcome

    # ── match end ──

    def _end_match(self, not_finished: int) -> MatchResult:
        winner = compute_winner(self.players)
        self._narrate(
            "match_end",
            f"│ Ending match — only {not_finished} player(s) still not finished.",
        )
        self._narrate("summary", f"Final summary (points + stars*{STAR_TO_POINT}):")
        for p in self.players:
            self._narrate(
                "summary",
                f" • {p.name} — Points: {p.score} • Stars: {p.stars} • Total: {p.total}",
                player=p.name,
            )
        self._narrate("winner", f"Winner: {winner.name if winner else 'NONE'}",
                      player=winner.name if winner else None)

        self.result = MatchResult(
            winner=winner.name if winner else None,
            reason="finish",
            turns=self.turn_number,
            standings=[
                Standing(
                    seat=seat,
                    name=p.name,
                    position=p.position,
                    score=p.score,
                    stars=p.stars,
                    finished=p.finished,
                )
                for seat, p in enumerate(self.players)
            ],
        )
        self.phase = MatchPhase.ENDED
        self.current_player = None
        self.queue.clear()
        logger.info("Match ended after %d turns; winner: %s", self.turn_number, self.result.winner)
        return self.result

    # ── narration ──

    def _narrate_move(self, player: PlayerState, move: MoveResult) -> None:
        if not move.forward and move.truncated:
            self._narrate(
                "history_short",
                f"│ Only {move.steps_taken} step(s) of history to retrace.",
                player=player.name,
            )
        stops = iter(move.stops)
        for i, step in enumerate(move.moves, start=1):
            if step.kind == TELEPORT and step.link is not None:
                self._narrate("teleport", "│ ✦ PRIME: Auto-using LADDER!", player=player.name)
                self._narrate(
                    "teleport",
                    f"│ Teleporting: {step.link.start} → {step.link.end}",
                    player=player.name,
                    start=step.link.start,
                    end=step.link.end,
                )
                if step.state.remaining > 0:
                    self._narrate_awards(player, next(stops))
                continue
            self._narrate(
                "step",
                f"│ Step {i}: Node {step.state.position} (left: {step.state.remaining})",
                player=player.name,
                cell=step.state.position,
            )

    def _narrate_landing(self, player: PlayerState, landing: LandingResult) -> None:
        self._narrate("landed", f"│ Landed: Node {landing.cell}", player=player.name, cell=landing.cell)
        self._narrate_awards(player, landing)

    def _narrate_awards(self, player: PlayerState, landing: LandingResult) -> None:
        if landing.star_awarded:
            self._narrate("star", f"│ ⭐ {player.name} collected star at Node {landing.cell}!",
                          player=player.name, cell=landing.cell)
        elif landing.final and landing.cell % 5 == 0:
            self._narrate("star_claimed", f"│ ✖ Star at Node {landing.cell} already claimed.",
                          player=player.name, cell=landing.cell)
        if landing.points_awarded:
            self._narrate(
                "points",
                f"│ ➕ {player.name} received {landing.points_awarded} pts for landing on "
                f"Node {landing.cell} (tile points).",
                player=player.name,
                points=landing.points_awarded,
            )

    def _narrate(self, kind: str, message: str, player: str | None = None, **data) -> None:
        self.observer.on_event(NarrationEvent(kind=kind, message=message, player=player, data=data))
