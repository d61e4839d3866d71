"""
Advancement: when a match completes, fill downstream team slots.

- Elimination matches push their winner to round + 1, position // 2 (team1 for
  even positions, team2 for odd). Targets are overwritten, never incremented,
  so re-running is safe.
- With a third-place match, semifinal losers go to the final round's
  bracket_position 1 using the same even/odd rule.
- In groups_elimination, the completion of the last group match populates the
  first elimination round from the group standings, exactly once.
- round_robin and americano have nothing to advance.

A match without a winner or a missing target is a StateConflictError inside
this module and a silent no-op at the public entry points.
"""

import logging
from typing import Dict, List, Optional

from courtdraw.models.match import Match, MatchStatus
from courtdraw.models.tournament import Tournament, TournamentFormat
from courtdraw.services.errors import StateConflictError
from courtdraw.services.standings_service import QUALIFICATION_ORDER
from courtdraw.services.store import BracketStore
from courtdraw.utils.bracket_shape import (
    TEAM1_SLOT,
    TEAM2_SLOT,
    THIRD_PLACE_POSITION,
    bye_winner,
    loser_of,
    next_slot,
)
from courtdraw.utils.seeding import bracket_slots, cross_seed

logger = logging.getLogger(__name__)

DEFAULT_QUALIFY_PER_GROUP = 2


def _require_winner(match: Match) -> int:
    if match.status != MatchStatus.completed.value or match.winner_id is None:
        raise StateConflictError(f"Match {match.id} is not completed with a winner")
    return match.winner_id


def _single_elimination_match(store: BracketStore, tournament_id: int, round_num: int, position: int) -> Match:
    rows = store.query_matches(tournament_id, round=round_num, bracket_position=position, group_is_null=True)
    if len(rows) != 1:
        raise StateConflictError(f"Expected one match at round {round_num} position {position}, found {len(rows)}")
    return rows[0]


def _set_slot(store: BracketStore, target: Match, side: str, team_id: int) -> int:
    """Write *team_id* into *side* of *target*. Returns 1 if the row changed."""
    if getattr(target, side) == team_id:
        return 0
    store.update_match(target.id, {side: team_id})
    return 1


def _fill_next_round(store: BracketStore, match: Match, winner_id: int) -> int:
    position, side = next_slot(match.bracket_position)
    target = _single_elimination_match(store, match.tournament_id, match.round + 1, position)
    return _set_slot(store, target, side, winner_id)


def _route_loser_to_third_place(store: BracketStore, match: Match) -> int:
    elimination = store.query_matches(match.tournament_id, group_is_null=True)
    if not elimination:
        raise StateConflictError(f"Tournament {match.tournament_id} has no elimination matches")
    final_round = max(m.round for m in elimination)
    if match.round != final_round - 1:
        return 0

    loser_id = loser_of(match.team1_id, match.team2_id, match.winner_id)
    if loser_id is None:
        # Bye: nobody lost
        return 0

    third_place = [m for m in elimination if m.round == final_round and m.bracket_position == THIRD_PLACE_POSITION]
    if len(third_place) != 1:
        raise StateConflictError(f"Tournament {match.tournament_id} has no third-place match")
    side = TEAM1_SLOT if match.bracket_position % 2 == 0 else TEAM2_SLOT
    return _set_slot(store, third_place[0], side, loser_id)


def propagate_winner(store: BracketStore, tournament: Tournament, match: Match) -> int:
    """
    Push an elimination match's winner (and, for semifinals with a third-place
    match, its loser) into the next round. Returns count of match rows changed.
    """
    try:
        winner_id = _require_winner(match)
    except StateConflictError as exc:
        logger.debug("Skipping advancement: %s", exc)
        return 0

    updated = 0
    try:
        updated += _fill_next_round(store, match, winner_id)
    except StateConflictError as exc:
        logger.debug("No next-round target for match %s: %s", match.id, exc)

    if tournament.get_settings().third_place_match:
        try:
            updated += _route_loser_to_third_place(store, match)
        except StateConflictError as exc:
            logger.debug("No third-place target for match %s: %s", match.id, exc)

    return updated


# =============================================================================
# Groups -> elimination
# =============================================================================


def qualified_team_ids(store: BracketStore, tournament: Tournament) -> List[int]:
    """
    Cross-seeded elimination seed list: top qualify_per_group of each group by
    points, then games_won, then persisted order.
    """
    settings = tournament.get_settings()
    qualify = settings.qualify_per_group if settings.qualify_per_group is not None else DEFAULT_QUALIFY_PER_GROUP

    per_group: List[List[int]] = []
    for group in store.query_groups(tournament.id):
        standings = store.query_standings(tournament.id, group_id=group.id, order_by=QUALIFICATION_ORDER)
        per_group.append([s.team_id for s in standings[:qualify]])
    return cross_seed(per_group)


def populate_elimination_from_groups(store: BracketStore, tournament: Tournament) -> int:
    """
    Fill the first elimination round from the group standings.

    Seeds are placed with the standard seeded slot positions; in each pairing
    the better-placed qualifier is team1. Single-occupant pairings complete as
    byes and advance right away. Terminal once any first-round slot is set.
    """
    elimination = store.query_matches(tournament.id, group_is_null=True)
    if not elimination:
        return 0

    first_round = min(m.round for m in elimination)
    first_matches = sorted((m for m in elimination if m.round == first_round), key=lambda m: m.bracket_position)
    if any(m.team1_id is not None or m.team2_id is not None or m.winner_id is not None for m in first_matches):
        logger.debug("Elimination phase of tournament %s already populated", tournament.id)
        return 0

    seeds = qualified_team_ids(store, tournament)
    slot_count = len(first_matches) * 2
    slots = bracket_slots(seeds[:slot_count], slot_count)
    seed_rank: Dict[int, int] = {team_id: i for i, team_id in enumerate(seeds)}

    updated = 0
    for match in first_matches:
        team1_id: Optional[int] = slots[match.bracket_position * 2]
        team2_id: Optional[int] = slots[match.bracket_position * 2 + 1]
        if team1_id is not None and team2_id is not None and seed_rank[team2_id] < seed_rank[team1_id]:
            team1_id, team2_id = team2_id, team1_id

        fields = {"team1_id": team1_id, "team2_id": team2_id}
        winner = bye_winner(team1_id, team2_id)
        if winner is not None:
            fields["winner_id"] = winner
            fields["status"] = MatchStatus.completed.value
        populated = store.update_match(match.id, fields)
        updated += 1
        if winner is not None:
            updated += propagate_winner(store, tournament, populated)

    logger.info(
        "Populated elimination round %d of tournament %s with %d qualifiers",
        first_round,
        tournament.id,
        min(len(seeds), slot_count),
    )
    return updated


def populate_elimination_if_groups_complete(store: BracketStore, tournament: Tournament, group_id: int) -> int:
    """Populate the elimination phase once every group match of every group is completed."""
    completed = MatchStatus.completed.value
    group_matches = store.query_matches(tournament.id, group_id=group_id)
    if not all(m.status == completed for m in group_matches):
        return 0

    all_group_matches = store.query_matches(tournament.id, group_is_null=False)
    if not all(m.status == completed for m in all_group_matches):
        return 0

    return populate_elimination_from_groups(store, tournament)


# =============================================================================
# Entry points
# =============================================================================


def advance_completed_match(store: BracketStore, tournament: Tournament, match: Match) -> int:
    """
    Apply advancement for one completed match. Returns count of match rows changed.
    Idempotent: calling twice leaves the same match state as calling once.
    """
    try:
        _require_winner(match)
    except StateConflictError as exc:
        logger.debug("Skipping advancement: %s", exc)
        return 0

    if tournament.format == TournamentFormat.single_elimination:
        return propagate_winner(store, tournament, match)
    if tournament.format == TournamentFormat.groups_elimination:
        if match.group_id is not None:
            return populate_elimination_if_groups_complete(store, tournament, match.group_id)
        return propagate_winner(store, tournament, match)
    return 0


def resolve_all_advancements(store: BracketStore, tournament: Tournament) -> Dict[str, int]:
    """
    Re-run advancement for every completed match, in round then match_number order.

    Useful after an interrupted report. Returns:
        - matches_processed: completed matches visited
        - teams_advanced: team slots filled downstream
        - unknown_before / unknown_after: matches with an unfilled team slot
    """
    matches = store.query_matches(tournament.id)
    unknown_before = sum(1 for m in matches if m.team1_id is None or m.team2_id is None)

    processed = 0
    filled = 0
    for match in matches:
        if match.status != MatchStatus.completed.value or match.winner_id is None:
            continue
        # Re-read: earlier iterations may have changed this row
        fresh = store.get_match(match.id)
        filled += advance_completed_match(store, tournament, fresh)
        processed += 1

    after = store.query_matches(tournament.id)
    unknown_after = sum(1 for m in after if m.team1_id is None or m.team2_id is None)
    return {
        "matches_processed": processed,
        "teams_advanced": filled,
        "unknown_before": unknown_before,
        "unknown_after": unknown_after,
    }
