from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from courtdraw.models.tournament import Tournament


class Group(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "order", name="uq_tournament_group_order"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    name: str
    order: int  # 1..N, drives cross-seeding into the elimination phase
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="groups")
    memberships: List["GroupTeam"] = Relationship(
        back_populates="group", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )


class GroupTeam(SQLModel, table=True):
    """Group membership. Association only: removing it never removes the team."""

    __table_args__ = (SAUniqueConstraint("group_id", "team_id", name="uq_group_team"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: int = Field(foreign_key="group.id", index=True)
    team_id: int = Field(foreign_key="team.id", index=True)

    group: "Group" = Relationship(back_populates="memberships")
