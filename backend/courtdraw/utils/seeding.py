"""
Seeding: order teams by seed and place them into bracket slots or groups.

All helpers are pure and work on any object exposing ``seed`` (teams) or on
plain ids (cross-seeding).
"""

from typing import List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


def seed_sort_key(team) -> Tuple[int, ...]:
    """
    Sort key for seed order. Seeded teams come first (ascending seed), unseeded
    teams after every seeded team. The absent seed is its own bucket rather
    than a large sentinel number, so no real seed can collide with it.
    """
    if team.seed is None:
        return (1,)
    return (0, team.seed)


def seed_order(teams: Sequence[T]) -> List[T]:
    """Stable sort by seed; unseeded teams keep their input order."""
    return sorted(teams, key=seed_sort_key)


def next_power_of_two(n: int) -> int:
    p = 1
    while p < n:
        p *= 2
    return p


def is_power_of_two(n: int) -> bool:
    return n >= 1 and (n & (n - 1)) == 0


def seeded_positions(size: int) -> List[int]:
    """
    Slot index for each seed in a bracket of *size* slots.

    positions[i] is the slot of the team with seed order i. Built from [0, 1];
    each doubling keeps slot p and adds its mirror 2*group_size - 1 - p:
      2 -> [0, 1]
      4 -> [0, 3, 1, 2]
      8 -> [0, 7, 3, 4, 1, 6, 2, 5]
    Seeds 1 and 2 land in opposite halves, seeds 1 and 3 in opposite quarters.
    """
    if size == 1:
        return [0]

    positions = [0, 1]
    group_size = 2
    while group_size < size:
        expanded: List[int] = []
        for p in positions:
            expanded.append(p)
            expanded.append(2 * group_size - 1 - p)
        positions = expanded
        group_size *= 2
    return positions


def bracket_slots(ordered_teams: Sequence[T], slot_count: int) -> List[Optional[T]]:
    """
    Place teams (already in seed order) into *slot_count* bracket slots.

    Returns a list indexed by slot; None marks an empty slot (a bye for the
    opponent in that pairing).
    """
    if not is_power_of_two(slot_count):
        raise ValueError(f"slot_count must be a power of two, got {slot_count}")
    if len(ordered_teams) > slot_count:
        raise ValueError(f"{len(ordered_teams)} teams do not fit in {slot_count} slots")

    slots: List[Optional[T]] = [None] * slot_count
    positions = seeded_positions(slot_count)
    for seed_index, team in enumerate(ordered_teams):
        slots[positions[seed_index]] = team
    return slots


def snake_distribute(ordered_teams: Sequence[T], group_count: int) -> List[List[T]]:
    """
    Serpentine draft into *group_count* groups.

    Pass 0 fills groups left to right, pass 1 right to left, and so on, so
    group strength stays balanced and sizes differ by at most one.
    """
    if group_count < 1:
        raise ValueError(f"group_count must be >= 1, got {group_count}")

    groups: List[List[T]] = [[] for _ in range(group_count)]
    for i, team in enumerate(ordered_teams):
        pass_index = i // group_count
        offset = i % group_count
        group_index = offset if pass_index % 2 == 0 else group_count - 1 - offset
        groups[group_index].append(team)
    return groups


def cross_seed(qualifiers_by_group: Sequence[Sequence[T]]) -> List[T]:
    """
    Build the elimination seed list from per-group qualifiers.

    *qualifiers_by_group* is ordered by group order; each inner list holds the
    group's qualifiers best first. Group winners come first in group order,
    runners-up in reversed group order, third places in group order again,
    alternating by finishing position.
    """
    depth = max((len(q) for q in qualifiers_by_group), default=0)
    seeds: List[T] = []
    for position in range(depth):
        at_position = [q[position] for q in qualifiers_by_group if len(q) > position]
        if position % 2 == 1:
            at_position.reverse()
        seeds.extend(at_position)
    return seeds
