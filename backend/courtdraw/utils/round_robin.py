"""
Round robin pairings (circle method).

Index 0 stays fixed while every other index rotates one step per round. Odd
fields get a BYE placeholder; pairings against it are dropped, so a team
simply sits out that round.
"""

from dataclasses import dataclass
from typing import Generic, List, Sequence, Tuple, TypeVar

T = TypeVar("T")

_BYE = object()


@dataclass(frozen=True)
class RoundRobinPairing(Generic[T]):
    round: int  # 1-based
    slot_index: int  # pairing index i within the round (kept even when an earlier pairing was a bye)
    team1: T
    team2: T


def rr_round_count(team_count: int) -> int:
    """
    Number of rounds for a field of *team_count*.
    Even n: n-1 rounds. Odd n: n rounds (with BYE).
    """
    if team_count < 2:
        return 0
    if team_count % 2 == 0:
        return team_count - 1
    return team_count


def rr_match_count(team_count: int) -> int:
    """C(n, 2) = n*(n-1)/2, bye pairings excluded."""
    return (team_count * (team_count - 1)) // 2


def rotate(indices: Tuple[int, ...]) -> Tuple[int, ...]:
    """Keep index 0, move the last index to position 1, shift the rest right."""
    if len(indices) <= 2:
        return indices
    return (indices[0], indices[-1]) + indices[1:-1]


def schedule(teams: Sequence[T]) -> List[RoundRobinPairing[T]]:
    """
    Full round robin for *teams* in round-major order.

    Round r pairs position i with position n-1-i for i in [0, n/2), where n is
    the field size after BYE padding.
    """
    participants: List[object] = list(teams)
    if len(participants) % 2 == 1:
        participants.append(_BYE)

    n = len(participants)
    if n < 2:
        return []

    half = n // 2
    indices: Tuple[int, ...] = tuple(range(n))
    result: List[RoundRobinPairing[T]] = []

    for round_num in range(1, n):
        for i in range(half):
            team1 = participants[indices[i]]
            team2 = participants[indices[n - 1 - i]]
            if team1 is _BYE or team2 is _BYE:
                continue
            result.append(RoundRobinPairing(round=round_num, slot_index=i, team1=team1, team2=team2))
        indices = rotate(indices)

    return result
