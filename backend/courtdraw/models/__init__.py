from courtdraw.models.group import Group, GroupTeam
from courtdraw.models.match import Match, MatchSet, MatchStatus
from courtdraw.models.standing import Standing
from courtdraw.models.team import Team
from courtdraw.models.tournament import Tournament, TournamentFormat, TournamentSettings, TournamentStatus

__all__ = [
    "Tournament",
    "TournamentFormat",
    "TournamentSettings",
    "TournamentStatus",
    "Team",
    "Group",
    "GroupTeam",
    "Match",
    "MatchSet",
    "MatchStatus",
    "Standing",
]
