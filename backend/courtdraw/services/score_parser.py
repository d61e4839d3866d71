"""
Minimal score parser for padel/tennis-style score strings.

Supports formats like:
  "6-4"           → 1 set
  "6-3 4-6 10-7"  → 3 sets
  "6-3, 4-6, 10-7" → comma-separated variant
  {"sets": [{"team1": 6, "team2": 3}, ...]} → structured sets

Returns None on parse failure (non-fatal; callers decide how to report it).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union


@dataclass
class SetScore:
    team1_score: int
    team2_score: int


def parse_score(score: Optional[Union[str, Dict[str, Any]]]) -> Optional[List[SetScore]]:
    """Parse a score string or structured blob into per-set scores."""
    if not score:
        return None

    raw: Optional[str] = None
    if isinstance(score, str):
        raw = score
    elif isinstance(score, dict):
        if "sets" in score and isinstance(score["sets"], list):
            return _parse_structured_sets(score["sets"])
        raw = str(score.get("display") or score.get("score") or "")
    if not raw or not raw.strip():
        return None

    return _parse_score_string(raw.strip())


def _parse_structured_sets(sets_list: list) -> Optional[List[SetScore]]:
    sets: List[SetScore] = []
    for s in sets_list:
        if not isinstance(s, dict):
            return None
        try:
            a = int(s.get("team1", 0))
            b = int(s.get("team2", 0))
        except (TypeError, ValueError):
            return None
        if a < 0 or b < 0:
            return None
        sets.append(SetScore(team1_score=a, team2_score=b))
    return sets or None


def _parse_score_string(raw: str) -> Optional[List[SetScore]]:
    """Parse strings like '6-4', '6-3 4-6 10-7', '6-3, 4-6, 10-7'."""
    # Normalize: replace commas with spaces, collapse whitespace
    normalized = raw.replace(",", " ").strip()
    parts = normalized.split()

    sets: List[SetScore] = []
    for part in parts:
        pair = part.split("-")
        if len(pair) != 2:
            return None
        try:
            a = int(pair[0])
            b = int(pair[1])
        except ValueError:
            return None
        sets.append(SetScore(team1_score=a, team2_score=b))

    if not sets:
        return None
    return sets
