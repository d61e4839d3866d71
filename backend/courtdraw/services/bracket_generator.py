"""
Bracket generation.

generate_bracket() is the single entry point. It dispatches on the tournament
format to a pure planner that turns (settings, teams) into a BracketPlan, then
persists the plan in a fixed order:

    groups -> memberships -> matches -> bye propagation -> standings

Each stage commits on its own. A failure part-way leaves the earlier stages in
place; a tournament in that state cannot be regenerated and has to be
recreated (see tournament_service.start_tournament).
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from courtdraw.models.group import Group
from courtdraw.models.match import Match, MatchStatus
from courtdraw.models.standing import Standing
from courtdraw.models.team import Team
from courtdraw.models.tournament import Tournament, TournamentFormat, TournamentSettings
from courtdraw.services.advancement_service import propagate_winner
from courtdraw.services.errors import ConfigurationError
from courtdraw.services.store import BracketStore
from courtdraw.utils import americano, round_robin
from courtdraw.utils.bracket_shape import (
    THIRD_PLACE_POSITION,
    bye_winner,
    elimination_round_count,
    matches_per_round,
)
from courtdraw.utils.seeding import bracket_slots, next_power_of_two, seed_order, snake_distribute

logger = logging.getLogger(__name__)

DEFAULT_GROUPS_COUNT = 2
DEFAULT_QUALIFY_PER_GROUP = 2


@dataclass
class MatchDraft:
    round: int
    match_number: int
    bracket_position: int
    team1_id: Optional[int] = None
    team2_id: Optional[int] = None
    winner_id: Optional[int] = None
    status: str = MatchStatus.scheduled.value
    group_order: Optional[int] = None  # resolved to group_id once groups are persisted


@dataclass
class GroupDraft:
    order: int
    name: str
    team_ids: List[int] = field(default_factory=list)


@dataclass
class StandingDraft:
    team_id: int
    group_order: Optional[int] = None


@dataclass
class BracketPlan:
    format: TournamentFormat
    matches: List[MatchDraft] = field(default_factory=list)
    groups: List[GroupDraft] = field(default_factory=list)
    standings: List[StandingDraft] = field(default_factory=list)


@dataclass
class BracketGenerationResult:
    matches: List[Match]
    groups: List[Group] = field(default_factory=list)
    standings: List[Standing] = field(default_factory=list)


def parse_format(value: str) -> TournamentFormat:
    try:
        return TournamentFormat(value)
    except ValueError:
        raise ConfigurationError(f"Unknown tournament format: {value!r}") from None


def group_name(index: int) -> str:
    """0 -> 'Group A', 1 -> 'Group B', ... past Z falls back to numbers."""
    if index < 26:
        return f"Group {chr(ord('A') + index)}"
    return f"Group {index + 1}"


# =============================================================================
# Planners (pure)
# =============================================================================


def _elimination_drafts(slot_count: int, round_offset: int, first_number: int) -> List[MatchDraft]:
    """Empty elimination matches, one per bracket position per round, round-major."""
    drafts: List[MatchDraft] = []
    number = first_number
    for round_index, count in enumerate(matches_per_round(slot_count), start=1):
        for position in range(count):
            drafts.append(
                MatchDraft(round=round_offset + round_index, match_number=number, bracket_position=position)
            )
            number += 1
    return drafts


def plan_single_elimination(teams: Sequence[Team], settings: TournamentSettings) -> BracketPlan:
    ordered = seed_order(teams)
    slot_count = next_power_of_two(len(ordered))
    slots = bracket_slots(ordered, slot_count)

    matches = _elimination_drafts(slot_count, round_offset=0, first_number=1)
    for draft in matches:
        if draft.round != 1:
            continue
        team1 = slots[draft.bracket_position * 2]
        team2 = slots[draft.bracket_position * 2 + 1]
        draft.team1_id = team1.id if team1 is not None else None
        draft.team2_id = team2.id if team2 is not None else None
        winner = bye_winner(draft.team1_id, draft.team2_id)
        if winner is not None:
            draft.winner_id = winner
            draft.status = MatchStatus.completed.value

    rounds = elimination_round_count(slot_count)
    if settings.third_place_match and rounds >= 2:
        matches.append(
            MatchDraft(round=rounds, match_number=len(matches) + 1, bracket_position=THIRD_PLACE_POSITION)
        )

    return BracketPlan(
        format=TournamentFormat.single_elimination,
        matches=matches,
        standings=[StandingDraft(team_id=t.id) for t in teams],
    )


def _round_robin_drafts(teams: Sequence[Team], group_order: Optional[int] = None) -> List[MatchDraft]:
    drafts: List[MatchDraft] = []
    for number, pairing in enumerate(round_robin.schedule(teams), start=1):
        drafts.append(
            MatchDraft(
                round=pairing.round,
                match_number=number,
                bracket_position=pairing.slot_index,
                team1_id=pairing.team1.id,
                team2_id=pairing.team2.id,
                group_order=group_order,
            )
        )
    return drafts


def plan_round_robin(teams: Sequence[Team], settings: TournamentSettings) -> BracketPlan:
    return BracketPlan(
        format=TournamentFormat.round_robin,
        matches=_round_robin_drafts(teams),
        standings=[StandingDraft(team_id=t.id) for t in teams],
    )


def plan_groups_elimination(teams: Sequence[Team], settings: TournamentSettings) -> BracketPlan:
    groups_count = settings.groups_count if settings.groups_count is not None else DEFAULT_GROUPS_COUNT
    qualify = settings.qualify_per_group if settings.qualify_per_group is not None else DEFAULT_QUALIFY_PER_GROUP

    if groups_count < 1:
        raise ConfigurationError(f"groups_count must be >= 1, got {groups_count}")
    if groups_count * 2 > len(teams):
        raise ConfigurationError(f"{len(teams)} teams cannot fill {groups_count} groups with at least 2 teams each")
    if qualify < 1:
        raise ConfigurationError(f"qualify_per_group must be >= 1, got {qualify}")
    elimination_slots = next_power_of_two(qualify * groups_count)
    if elimination_slots < 2:
        raise ConfigurationError("the elimination phase needs at least 2 qualifiers")

    buckets = snake_distribute(seed_order(teams), groups_count)
    smallest = min(len(bucket) for bucket in buckets)
    if qualify > smallest:
        raise ConfigurationError(
            f"qualify_per_group ({qualify}) exceeds the smallest group size ({smallest})"
        )
    groups = [
        GroupDraft(order=index + 1, name=group_name(index), team_ids=[t.id for t in bucket])
        for index, bucket in enumerate(buckets)
    ]

    matches: List[MatchDraft] = []
    for group, bucket in zip(groups, buckets):
        matches.extend(_round_robin_drafts(bucket, group_order=group.order))
    # match_number runs across all groups
    for number, draft in enumerate(matches, start=1):
        draft.match_number = number

    group_rounds = max((d.round for d in matches), default=0)
    matches.extend(_elimination_drafts(elimination_slots, round_offset=group_rounds, first_number=len(matches) + 1))

    order_by_team: Dict[int, int] = {team_id: g.order for g in groups for team_id in g.team_ids}
    return BracketPlan(
        format=TournamentFormat.groups_elimination,
        matches=matches,
        groups=groups,
        standings=[StandingDraft(team_id=t.id, group_order=order_by_team[t.id]) for t in teams],
    )


def plan_americano(teams: Sequence[Team], settings: TournamentSettings) -> BracketPlan:
    rounds = settings.americano_rounds
    if rounds is None:
        rounds = americano.default_round_count(len(teams))
    if rounds < 1:
        raise ConfigurationError(f"americano_rounds must be >= 1, got {rounds}")

    matches = [
        MatchDraft(
            round=pairing.round,
            match_number=number,
            bracket_position=pairing.position,
            team1_id=pairing.team1.id,
            team2_id=pairing.team2.id,
        )
        for number, pairing in enumerate(americano.schedule(teams, rounds), start=1)
    ]
    return BracketPlan(
        format=TournamentFormat.americano,
        matches=matches,
        standings=[StandingDraft(team_id=t.id) for t in teams],
    )


_PLANNERS: Dict[TournamentFormat, Callable[[Sequence[Team], TournamentSettings], BracketPlan]] = {
    TournamentFormat.single_elimination: plan_single_elimination,
    TournamentFormat.round_robin: plan_round_robin,
    TournamentFormat.groups_elimination: plan_groups_elimination,
    TournamentFormat.americano: plan_americano,
}


def plan_bracket(tournament_format: str, settings: TournamentSettings, teams: Sequence[Team]) -> BracketPlan:
    """Pure planning step. Raises ConfigurationError for unknown formats, too few teams or bad settings."""
    fmt = parse_format(tournament_format)
    if len(teams) < 2:
        raise ConfigurationError(f"At least 2 teams are required to generate a bracket, got {len(teams)}")
    return _PLANNERS[fmt](list(teams), settings)


# =============================================================================
# Persistence pipeline
# =============================================================================


def generate_bracket(store: BracketStore, tournament: Tournament, teams: Sequence[Team]) -> BracketGenerationResult:
    """
    Generate and persist the full initial bracket for *tournament*.

    Teams are taken in the order given (insertion order); seeding reorders
    them where the format uses seeds. Nothing is written when planning fails.
    """
    plan = plan_bracket(tournament.format, tournament.get_settings(), teams)
    logger.info(
        "Generating %s bracket for tournament %s: %d teams, %d groups, %d matches",
        plan.format.value,
        tournament.id,
        len(teams),
        len(plan.groups),
        len(plan.matches),
    )

    groups: List[Group] = []
    group_ids: Dict[int, int] = {}
    if plan.groups:
        groups = store.insert_groups(
            tournament.id,
            [Group(tournament_id=tournament.id, name=g.name, order=g.order) for g in plan.groups],
        )
        group_ids = {g.order: g.id for g in groups}
        store.insert_group_memberships(
            [(group_ids[g.order], team_id) for g in plan.groups for team_id in g.team_ids]
        )

    matches = store.insert_matches(
        tournament.id,
        [
            Match(
                tournament_id=tournament.id,
                round=d.round,
                match_number=d.match_number,
                bracket_position=d.bracket_position,
                group_id=group_ids[d.group_order] if d.group_order is not None else None,
                team1_id=d.team1_id,
                team2_id=d.team2_id,
                winner_id=d.winner_id,
                status=d.status,
            )
            for d in plan.matches
        ],
    )

    if plan.format == TournamentFormat.single_elimination:
        byes = [m for m in matches if m.round == 1 and m.status == MatchStatus.completed.value]
        for bye in byes:
            propagate_winner(store, tournament, bye)
        if byes:
            logger.info("Propagated %d round-1 byes for tournament %s", len(byes), tournament.id)

    standings = store.insert_standings(
        [
            Standing(
                tournament_id=tournament.id,
                team_id=s.team_id,
                group_id=group_ids[s.group_order] if s.group_order is not None else None,
            )
            for s in plan.standings
        ]
    )

    return BracketGenerationResult(
        matches=store.query_matches(tournament.id),
        groups=groups,
        standings=standings,
    )
