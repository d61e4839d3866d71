# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from courtdraw.models.group import Group, GroupTeam  # noqa: F401
from courtdraw.models.match import Match, MatchSet  # noqa: F401
from courtdraw.models.standing import Standing  # noqa: F401
from courtdraw.models.team import Team  # noqa: F401
from courtdraw.models.tournament import Tournament  # noqa: F401
