"""
Elimination bracket shape conventions shared by generation and advancement.

A bracket of S slots (S a power of two) has log2(S) rounds; round r holds
S / 2**r matches at bracket_position 0..n-1. The winner of position p feeds
position p // 2 of the next round, into team1 when p is even and team2 when p
is odd. A third-place match, when present, sits in the final round at
bracket_position 1.
"""

import math
from typing import List, Optional, Tuple

TEAM1_SLOT = "team1_id"
TEAM2_SLOT = "team2_id"

FINAL_POSITION = 0
THIRD_PLACE_POSITION = 1


def elimination_round_count(slot_count: int) -> int:
    if slot_count < 2:
        return 0
    return int(math.log2(slot_count))


def matches_per_round(slot_count: int) -> List[int]:
    """Match count of each round, first round first: 8 slots -> [4, 2, 1]."""
    return [slot_count // (2**r) for r in range(1, elimination_round_count(slot_count) + 1)]


def next_slot(bracket_position: int) -> Tuple[int, str]:
    """(next bracket_position, team slot field) fed by the match at *bracket_position*."""
    side = TEAM1_SLOT if bracket_position % 2 == 0 else TEAM2_SLOT
    return bracket_position // 2, side


def bye_winner(team1_id: Optional[int], team2_id: Optional[int]) -> Optional[int]:
    """The lone occupant of a pairing with exactly one team, else None."""
    if team1_id is not None and team2_id is None:
        return team1_id
    if team1_id is None and team2_id is not None:
        return team2_id
    return None


def loser_of(team1_id: Optional[int], team2_id: Optional[int], winner_id: Optional[int]) -> Optional[int]:
    if winner_id is None:
        return None
    if winner_id == team1_id:
        return team2_id
    if winner_id == team2_id:
        return team1_id
    return None
