"""
Americano rotating pairings.

Greedy per round: take the first unpaired team and pair it with the first
remaining team it has not met yet. If it has met every remaining team, pair it
with the first remaining one anyway (a repeat). With an odd field the last
team left over sits the round out; no bye match is emitted.

This is a heuristic, not an optimal 1-factorization: repeats can appear before
every pairing has been used once.
"""

from dataclasses import dataclass
from typing import Generic, List, Optional, Sequence, Set, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class AmericanoPairing(Generic[T]):
    round: int  # 1-based
    position: int  # index within the round's pairing list
    team1: T
    team2: T


def pair_key(a_id, b_id) -> Tuple:
    """Order-independent key for a match-up."""
    return tuple(sorted((a_id, b_id)))


def default_round_count(team_count: int) -> int:
    return max(team_count - 1, 0)


def schedule(teams: Sequence[T], round_count: Optional[int] = None) -> List[AmericanoPairing[T]]:
    """
    Pair *teams* (objects exposing ``id``) over *round_count* rounds.

    round_count defaults to len(teams) - 1.
    """
    if round_count is None:
        round_count = default_round_count(len(teams))

    played: Set[Tuple] = set()
    result: List[AmericanoPairing[T]] = []

    for round_num in range(1, round_count + 1):
        available = list(teams)
        position = 0
        while len(available) >= 2:
            team1 = available.pop(0)
            pick = 0
            for j, candidate in enumerate(available):
                if pair_key(team1.id, candidate.id) not in played:
                    pick = j
                    break
            team2 = available.pop(pick)
            played.add(pair_key(team1.id, team2.id))
            result.append(AmericanoPairing(round=round_num, position=position, team1=team1, team2=team2))
            position += 1

    return result
