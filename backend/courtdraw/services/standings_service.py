"""
Standings: cumulative per-team counters and ranked tables.

record_result() accumulates in place and must run exactly once per completed
match; the result service guarantees that by refusing already-completed
matches.

Two ordering policies live here on purpose:
- rank(): points desc, then game differential (games_won - games_lost) desc.
- QUALIFICATION_ORDER (group stage -> elimination): points desc, then raw
  games_won desc, then persisted order.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from courtdraw.models.match import Match
from courtdraw.models.standing import Standing
from courtdraw.models.tournament import Tournament
from courtdraw.services.errors import ResultValidationError
from courtdraw.services.score_parser import SetScore
from courtdraw.services.store import BracketStore

logger = logging.getLogger(__name__)

QUALIFICATION_ORDER = (("points", True), ("games_won", True))


@dataclass
class SetTally:
    team1_sets: int
    team2_sets: int
    team1_games: int
    team2_games: int


@dataclass
class RankedStanding:
    position: int
    standing: Standing


def tally_sets(sets: Sequence[SetScore]) -> SetTally:
    """A set goes to whoever scored more games in it; games are summed across sets."""
    return SetTally(
        team1_sets=sum(1 for s in sets if s.team1_score > s.team2_score),
        team2_sets=sum(1 for s in sets if s.team2_score > s.team1_score),
        team1_games=sum(s.team1_score for s in sets),
        team2_games=sum(s.team2_score for s in sets),
    )


def record_result(store: BracketStore, tournament: Tournament, match: Match, sets: Sequence[SetScore]) -> List[Standing]:
    """
    Add one completed match to both teams' standings.

    Requires both team ids, a winner among them and at least one set. Returns
    the updated standing rows (a team without a standing row is skipped).
    """
    if match.team1_id is None or match.team2_id is None:
        raise ResultValidationError(f"Match {match.id} needs both teams to record a result")
    if match.winner_id not in (match.team1_id, match.team2_id):
        raise ResultValidationError(f"Match {match.id} winner must be one of its teams")
    if not sets:
        raise ResultValidationError(f"Match {match.id} needs at least one set to record a result")

    settings = tournament.get_settings()
    tally = tally_sets(sets)
    team1_won = match.winner_id == match.team1_id

    sides = (
        (match.team1_id, team1_won, tally.team1_sets, tally.team2_sets, tally.team1_games, tally.team2_games),
        (match.team2_id, not team1_won, tally.team2_sets, tally.team1_sets, tally.team2_games, tally.team1_games),
    )

    updated: List[Standing] = []
    for team_id, won, sets_won, sets_lost, games_won, games_lost in sides:
        rows = store.query_standings(tournament.id, team_id=team_id)
        if not rows:
            logger.warning("No standing row for team %s in tournament %s; result not counted", team_id, tournament.id)
            continue
        current = rows[0]
        updated.append(
            store.update_standing(
                current.id,
                {
                    "matches_played": current.matches_played + 1,
                    "wins": current.wins + (1 if won else 0),
                    "losses": current.losses + (0 if won else 1),
                    "sets_won": current.sets_won + sets_won,
                    "sets_lost": current.sets_lost + sets_lost,
                    "games_won": current.games_won + games_won,
                    "games_lost": current.games_lost + games_lost,
                    "points": current.points + (settings.points_win if won else settings.points_loss),
                },
            )
        )
    return updated


def rank_sort_key(standing: Standing):
    return (-standing.points, -(standing.games_won - standing.games_lost))


def rank(standings: Sequence[Standing], group_id: Optional[int] = None) -> List[RankedStanding]:
    """Rank *standings*, optionally only those of one group. Positions start at 1."""
    scoped = [s for s in standings if group_id is None or s.group_id == group_id]
    ordered = sorted(scoped, key=rank_sort_key)
    return [RankedStanding(position=i, standing=s) for i, s in enumerate(ordered, start=1)]


def get_standings(store: BracketStore, tournament_id: int, group_id: Optional[int] = None) -> List[RankedStanding]:
    return rank(store.query_standings(tournament_id, group_id=group_id), group_id=group_id)
