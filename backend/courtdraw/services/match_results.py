"""
Result reporting: the report -> standings -> advance chain.

report_match_result() is the only path that completes a played match. It runs
under the tournament lock so two reports on the same tournament cannot
interleave their read-decide-write steps.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from courtdraw.models.match import Match, MatchSet, MatchStatus
from courtdraw.models.standing import Standing
from courtdraw.models.tournament import Tournament, TournamentStatus
from courtdraw.services.advancement_service import advance_completed_match, resolve_all_advancements
from courtdraw.services.errors import ResultValidationError, StateConflictError
from courtdraw.services.score_parser import SetScore
from courtdraw.services.standings_service import record_result, tally_sets
from courtdraw.services.store import BracketStore
from courtdraw.services.tournament_locks import tournament_lock

logger = logging.getLogger(__name__)

__all__ = [
    "MatchResultOutcome",
    "SetScore",
    "decisive_sets",
    "determine_winner",
    "report_match_result",
    "rerun_advancement",
    "resolve_tournament",
    "start_match",
]


@dataclass
class MatchResultOutcome:
    match: Match
    sets: List[MatchSet] = field(default_factory=list)
    standings: List[Standing] = field(default_factory=list)
    advanced_count: int = 0


def decisive_sets(sets: Sequence[SetScore]) -> List[SetScore]:
    """Drop unplayed 0-0 sets. Negative scores are rejected."""
    kept: List[SetScore] = []
    for s in sets:
        if s.team1_score < 0 or s.team2_score < 0:
            raise ResultValidationError(f"Set scores cannot be negative: {s.team1_score}-{s.team2_score}")
        if s.team1_score == 0 and s.team2_score == 0:
            continue
        kept.append(s)
    return kept


def determine_winner(match: Match, sets: Sequence[SetScore], winner_id: Optional[int] = None) -> int:
    """
    Winner of *match* given its played sets.

    The team with more sets wins. On equal set counts an explicit *winner_id*
    is required; when given it must be one of the two teams and must not
    contradict a clear set count.
    """
    if match.team1_id is None or match.team2_id is None:
        raise ResultValidationError(f"Match {match.id} does not have both teams yet")
    if winner_id is not None and winner_id not in (match.team1_id, match.team2_id):
        raise ResultValidationError(f"Team {winner_id} is not playing match {match.id}")
    if not sets:
        raise ResultValidationError("At least one played set is required")

    tally = tally_sets(sets)
    if tally.team1_sets > tally.team2_sets:
        by_sets: Optional[int] = match.team1_id
    elif tally.team2_sets > tally.team1_sets:
        by_sets = match.team2_id
    else:
        by_sets = None

    if by_sets is None:
        if winner_id is None:
            raise ResultValidationError("Sets are tied; winner_id is required")
        return winner_id
    if winner_id is not None and winner_id != by_sets:
        raise ResultValidationError(f"winner_id {winner_id} contradicts the set scores")
    return by_sets


def _load_match(store: BracketStore, tournament: Tournament, match_id: int) -> Match:
    match = store.get_match(match_id)
    if match is None or match.tournament_id != tournament.id:
        raise ResultValidationError(f"Match {match_id} not found in tournament {tournament.id}")
    return match


def _require_in_progress(tournament: Tournament) -> None:
    if tournament.status != TournamentStatus.in_progress.value:
        raise StateConflictError(f"Tournament {tournament.id} is {tournament.status}, not in_progress")


def report_match_result(
    store: BracketStore,
    tournament: Tournament,
    match_id: int,
    sets: Sequence[SetScore],
    winner_id: Optional[int] = None,
) -> MatchResultOutcome:
    """
    Complete a match with its set scores, update standings and advance.

    Raises:
        StateConflictError: tournament not in progress, or match already completed.
        ResultValidationError: unknown match, missing teams, bad scores.
    """
    _require_in_progress(tournament)

    with tournament_lock(tournament.id):
        match = _load_match(store, tournament, match_id)
        if match.status == MatchStatus.completed.value:
            raise StateConflictError(f"Match {match_id} is already completed")

        played = decisive_sets(sets)
        max_sets = tournament.get_settings().sets_per_match
        if len(played) > max_sets:
            raise ResultValidationError(f"At most {max_sets} sets per match, got {len(played)}")
        winner = determine_winner(match, played, winner_id)

        saved_sets = store.save_match_sets(match.id, [(s.team1_score, s.team2_score) for s in played])
        match = store.update_match(match.id, {"winner_id": winner, "status": MatchStatus.completed.value})
        standings = record_result(store, tournament, match, played)
        advanced = advance_completed_match(store, tournament, match)

    logger.info(
        "Match %s of tournament %s completed: winner %s, %d sets, %d slots advanced",
        match.id,
        tournament.id,
        winner,
        len(played),
        advanced,
    )
    return MatchResultOutcome(match=match, sets=saved_sets, standings=standings, advanced_count=advanced)


def start_match(store: BracketStore, tournament: Tournament, match_id: int) -> Match:
    """Mark a scheduled match with both teams as in_progress."""
    _require_in_progress(tournament)
    with tournament_lock(tournament.id):
        match = _load_match(store, tournament, match_id)
        if match.status != MatchStatus.scheduled.value:
            raise StateConflictError(f"Match {match_id} is {match.status}, not scheduled")
        if match.team1_id is None or match.team2_id is None:
            raise StateConflictError(f"Match {match_id} does not have both teams yet")
        return store.update_match(match.id, {"status": MatchStatus.in_progress.value})


def rerun_advancement(store: BracketStore, tournament: Tournament, match_id: int) -> int:
    """Manually re-run advancement for a completed match (repair tool). Idempotent."""
    with tournament_lock(tournament.id):
        match = _load_match(store, tournament, match_id)
        if match.status != MatchStatus.completed.value or match.winner_id is None:
            raise StateConflictError(f"Match {match_id} must be completed with a winner to advance")
        return advance_completed_match(store, tournament, match)


def resolve_tournament(store: BracketStore, tournament: Tournament) -> Dict[str, int]:
    with tournament_lock(tournament.id):
        return resolve_all_advancements(store, tournament)
