"""
Persistence boundary for the bracket engine.

The generator, advancement engine and standings tracker only talk to a
BracketStore. SqlStore is the SQLModel implementation; every call commits as
one unit and surfaces failures as StoreError. There are no retries here.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from courtdraw.models.group import Group, GroupTeam
from courtdraw.models.match import Match, MatchSet
from courtdraw.models.standing import Standing
from courtdraw.services.errors import StoreError

# (field name, descending)
SortSpec = Sequence[Tuple[str, bool]]


class BracketStore(Protocol):
    def insert_matches(self, tournament_id: int, records: Sequence[Match]) -> List[Match]: ...

    def update_match(self, match_id: int, fields: Dict[str, Any]) -> Match: ...

    def get_match(self, match_id: int) -> Optional[Match]: ...

    def query_matches(
        self,
        tournament_id: int,
        round: Optional[int] = None,
        group_id: Optional[int] = None,
        group_is_null: Optional[bool] = None,
        bracket_position: Optional[int] = None,
    ) -> List[Match]: ...

    def insert_groups(self, tournament_id: int, records: Sequence[Group]) -> List[Group]: ...

    def query_groups(self, tournament_id: int) -> List[Group]: ...

    def insert_group_memberships(self, pairs: Sequence[Tuple[int, int]]) -> List[GroupTeam]: ...

    def insert_standings(self, records: Sequence[Standing]) -> List[Standing]: ...

    def update_standing(self, standing_id: int, counters: Dict[str, int]) -> Standing: ...

    def query_standings(
        self,
        tournament_id: int,
        group_id: Optional[int] = None,
        team_id: Optional[int] = None,
        order_by: SortSpec = (),
    ) -> List[Standing]: ...

    def save_match_sets(self, match_id: int, scores: Sequence[Tuple[int, int]]) -> List[MatchSet]: ...

    def query_match_sets(self, match_id: int) -> List[MatchSet]: ...


class SqlStore:
    """BracketStore backed by a SQLModel session."""

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _unit(self, operation: str) -> Iterator[None]:
        try:
            yield
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError(f"{operation} failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------

    def insert_matches(self, tournament_id: int, records: Sequence[Match]) -> List[Match]:
        records = list(records)
        with self._unit("insert_matches"):
            for record in records:
                record.tournament_id = tournament_id
                self.session.add(record)
        for record in records:
            self.session.refresh(record)
        return records

    def update_match(self, match_id: int, fields: Dict[str, Any]) -> Match:
        with self._unit("update_match"):
            match = self.session.get(Match, match_id)
            if match is None:
                raise StoreError(f"Match {match_id} not found")
            for name, value in fields.items():
                setattr(match, name, value)
            self.session.add(match)
        self.session.refresh(match)
        return match

    def get_match(self, match_id: int) -> Optional[Match]:
        return self.session.get(Match, match_id)

    def query_matches(
        self,
        tournament_id: int,
        round: Optional[int] = None,
        group_id: Optional[int] = None,
        group_is_null: Optional[bool] = None,
        bracket_position: Optional[int] = None,
    ) -> List[Match]:
        query = select(Match).where(Match.tournament_id == tournament_id)
        if round is not None:
            query = query.where(Match.round == round)
        if group_id is not None:
            query = query.where(Match.group_id == group_id)
        if group_is_null is True:
            query = query.where(Match.group_id.is_(None))
        elif group_is_null is False:
            query = query.where(Match.group_id.is_not(None))
        if bracket_position is not None:
            query = query.where(Match.bracket_position == bracket_position)
        query = query.order_by(Match.round, Match.match_number)
        try:
            return list(self.session.exec(query).all())
        except SQLAlchemyError as exc:
            raise StoreError(f"query_matches failed: {exc}") from exc

    def save_match_sets(self, match_id: int, scores: Sequence[Tuple[int, int]]) -> List[MatchSet]:
        """Upsert sets 1..len(scores) for a match; sets beyond that are removed."""
        with self._unit("save_match_sets"):
            existing = {
                s.set_number: s for s in self.session.exec(select(MatchSet).where(MatchSet.match_id == match_id)).all()
            }
            for set_number, (team1_score, team2_score) in enumerate(scores, start=1):
                match_set = existing.pop(set_number, None)
                if match_set is None:
                    match_set = MatchSet(match_id=match_id, set_number=set_number)
                match_set.team1_score = team1_score
                match_set.team2_score = team2_score
                self.session.add(match_set)
            for stale in existing.values():
                self.session.delete(stale)
        return self.query_match_sets(match_id)

    def query_match_sets(self, match_id: int) -> List[MatchSet]:
        query = select(MatchSet).where(MatchSet.match_id == match_id).order_by(MatchSet.set_number)
        try:
            return list(self.session.exec(query).all())
        except SQLAlchemyError as exc:
            raise StoreError(f"query_match_sets failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def insert_groups(self, tournament_id: int, records: Sequence[Group]) -> List[Group]:
        records = list(records)
        with self._unit("insert_groups"):
            for record in records:
                record.tournament_id = tournament_id
                self.session.add(record)
        for record in records:
            self.session.refresh(record)
        return records

    def query_groups(self, tournament_id: int) -> List[Group]:
        query = select(Group).where(Group.tournament_id == tournament_id).order_by(Group.order)
        try:
            return list(self.session.exec(query).all())
        except SQLAlchemyError as exc:
            raise StoreError(f"query_groups failed: {exc}") from exc

    def insert_group_memberships(self, pairs: Sequence[Tuple[int, int]]) -> List[GroupTeam]:
        memberships = [GroupTeam(group_id=group_id, team_id=team_id) for group_id, team_id in pairs]
        with self._unit("insert_group_memberships"):
            self.session.add_all(memberships)
        for membership in memberships:
            self.session.refresh(membership)
        return memberships

    # ------------------------------------------------------------------
    # Standings
    # ------------------------------------------------------------------

    def insert_standings(self, records: Sequence[Standing]) -> List[Standing]:
        records = list(records)
        with self._unit("insert_standings"):
            self.session.add_all(records)
        for record in records:
            self.session.refresh(record)
        return records

    def update_standing(self, standing_id: int, counters: Dict[str, int]) -> Standing:
        with self._unit("update_standing"):
            standing = self.session.get(Standing, standing_id)
            if standing is None:
                raise StoreError(f"Standing {standing_id} not found")
            for name, value in counters.items():
                setattr(standing, name, value)
            self.session.add(standing)
        self.session.refresh(standing)
        return standing

    def query_standings(
        self,
        tournament_id: int,
        group_id: Optional[int] = None,
        team_id: Optional[int] = None,
        order_by: SortSpec = (),
    ) -> List[Standing]:
        """Standings filtered by group/team, sorted by *order_by* then by insertion order."""
        query = select(Standing).where(Standing.tournament_id == tournament_id)
        if group_id is not None:
            query = query.where(Standing.group_id == group_id)
        if team_id is not None:
            query = query.where(Standing.team_id == team_id)
        for field_name, descending in order_by:
            column = getattr(Standing, field_name)
            query = query.order_by(column.desc() if descending else column.asc())
        query = query.order_by(Standing.id)
        try:
            return list(self.session.exec(query).all())
        except SQLAlchemyError as exc:
            raise StoreError(f"query_standings failed: {exc}") from exc
