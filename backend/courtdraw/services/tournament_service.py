"""
Tournament lifecycle: settings, team registration, status transitions and
bracket generation.

Status flow:

    draft <-> registration -> (start) -> in_progress -> completed

Any non-terminal status may move to cancelled. in_progress is only reachable
through start_tournament(), which generates the bracket. completed and
cancelled are terminal.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from courtdraw.models.match import Match
from courtdraw.models.team import Team
from courtdraw.models.tournament import Tournament, TournamentSettings, TournamentStatus
from courtdraw.services.bracket_generator import BracketGenerationResult, generate_bracket, parse_format
from courtdraw.services.errors import ConfigurationError, StateConflictError
from courtdraw.services.store import SqlStore
from courtdraw.services.tournament_locks import forget_tournament, tournament_lock

logger = logging.getLogger(__name__)

_OPEN_STATUSES = (TournamentStatus.draft.value, TournamentStatus.registration.value)
_TERMINAL_STATUSES = (TournamentStatus.completed.value, TournamentStatus.cancelled.value)

# Transitions allowed through update_status(); in_progress is set by start_tournament()
_ALLOWED_TRANSITIONS = {
    TournamentStatus.draft.value: {TournamentStatus.registration.value, TournamentStatus.cancelled.value},
    TournamentStatus.registration.value: {TournamentStatus.draft.value, TournamentStatus.cancelled.value},
    TournamentStatus.in_progress.value: {TournamentStatus.completed.value, TournamentStatus.cancelled.value},
}


def default_settings() -> Dict[str, Any]:
    return TournamentSettings().model_dump()


def merge_settings(partial: Optional[Dict[str, Any]], base: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Overlay *partial* on *base* (or the defaults) and validate the result."""
    merged = dict(base if base is not None else default_settings())
    merged.update(partial or {})
    try:
        return TournamentSettings(**merged).model_dump()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid tournament settings: {exc}") from exc


def create_tournament(
    session: Session,
    name: str,
    tournament_format: str,
    settings: Optional[Dict[str, Any]] = None,
    **fields: Any,
) -> Tournament:
    parse_format(tournament_format)
    tournament = Tournament(name=name, format=tournament_format, settings=merge_settings(settings), **fields)
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    logger.info("Created %s tournament %s (%s)", tournament.format, tournament.id, tournament.name)
    return tournament


def bracket_exists(session: Session, tournament_id: int) -> bool:
    count = session.exec(select(func.count()).select_from(Match).where(Match.tournament_id == tournament_id)).one()
    return count > 0


def update_settings(session: Session, tournament: Tournament, partial: Dict[str, Any]) -> Tournament:
    # Serialized with start_tournament
    with tournament_lock(tournament.id):
        if bracket_exists(session, tournament.id):
            raise StateConflictError("Settings are frozen once the bracket has been generated")
        tournament.settings = merge_settings(partial, base=tournament.settings)
        tournament.updated_at = datetime.utcnow()
        session.add(tournament)
        session.commit()
        session.refresh(tournament)
    return tournament


def update_details(session: Session, tournament: Tournament, fields: Dict[str, Any]) -> Tournament:
    """Apply descriptive field changes (name, dates, max_teams, ...)."""
    with tournament_lock(tournament.id):
        if "max_teams" in fields:
            max_teams = fields["max_teams"]
            if max_teams is None or max_teams < 2:
                raise ConfigurationError("max_teams must be >= 2")
            registered = len(list_teams(session, tournament.id))
            if max_teams < registered:
                raise StateConflictError(f"max_teams ({max_teams}) is below the {registered} registered teams")

        for field, value in fields.items():
            setattr(tournament, field, value)
        tournament.updated_at = datetime.utcnow()
        session.add(tournament)
        session.commit()
        session.refresh(tournament)
    return tournament


def update_status(session: Session, tournament: Tournament, new_status: str) -> Tournament:
    try:
        TournamentStatus(new_status)
    except ValueError:
        raise ConfigurationError(f"Unknown tournament status: {new_status!r}") from None

    current = tournament.status
    if current in _TERMINAL_STATUSES:
        raise StateConflictError(f"Tournament is {current}; status is terminal")
    if new_status == TournamentStatus.in_progress.value:
        raise StateConflictError("Use start to move a tournament to in_progress")
    if new_status not in _ALLOWED_TRANSITIONS.get(current, set()):
        raise StateConflictError(f"Cannot change status from {current} to {new_status}")

    tournament.status = new_status
    tournament.updated_at = datetime.utcnow()
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    logger.info("Tournament %s status %s -> %s", tournament.id, current, new_status)
    return tournament


# =============================================================================
# Teams
# =============================================================================


def list_teams(session: Session, tournament_id: int) -> List[Team]:
    """Teams in registration order."""
    return list(session.exec(select(Team).where(Team.tournament_id == tournament_id).order_by(Team.id)).all())


def register_team(session: Session, tournament: Tournament, name: str, seed: Optional[int] = None) -> Team:
    if tournament.status not in _OPEN_STATUSES:
        raise StateConflictError(f"Registration is closed (tournament is {tournament.status})")
    if seed is not None and seed < 1:
        raise ConfigurationError("seed must be >= 1")
    if len(list_teams(session, tournament.id)) >= tournament.max_teams:
        raise StateConflictError(f"Tournament is full ({tournament.max_teams} teams)")

    team = Team(tournament_id=tournament.id, name=name.strip(), seed=seed)
    session.add(team)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise StateConflictError("A team with this name or seed is already registered") from None
    session.refresh(team)
    return team


def remove_team(session: Session, tournament: Tournament, team_id: int) -> None:
    team = session.get(Team, team_id)
    if team is None or team.tournament_id != tournament.id:
        raise LookupError(f"Team {team_id} not found in tournament {tournament.id}")
    if bracket_exists(session, tournament.id):
        raise StateConflictError("Teams cannot be removed once the bracket has been generated")
    session.delete(team)
    session.commit()


# =============================================================================
# Start / delete
# =============================================================================


def start_tournament(session: Session, tournament: Tournament) -> BracketGenerationResult:
    """
    Generate the bracket and move the tournament to in_progress.

    Refused when a bracket (even a partial one from a failed run) already
    exists. ConfigurationError leaves nothing persisted and the status unchanged.
    """
    with tournament_lock(tournament.id):
        if tournament.status not in _OPEN_STATUSES:
            raise StateConflictError(f"Tournament is {tournament.status}; only draft or registration can start")
        if bracket_exists(session, tournament.id):
            raise StateConflictError("Bracket already generated for this tournament")

        result = generate_bracket(SqlStore(session), tournament, list_teams(session, tournament.id))

        tournament.status = TournamentStatus.in_progress.value
        tournament.updated_at = datetime.utcnow()
        session.add(tournament)
        session.commit()
        session.refresh(tournament)

    logger.info("Tournament %s started with %d matches", tournament.id, len(result.matches))
    return result


def delete_tournament(session: Session, tournament: Tournament) -> None:
    tournament_id = tournament.id
    with tournament_lock(tournament_id):
        session.delete(tournament)
        session.commit()
    forget_tournament(tournament_id)
