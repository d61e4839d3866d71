"""Result reporting: validation, winner determination and the report -> standings -> advance chain."""
from types import SimpleNamespace

import pytest
from sqlmodel import Session

from courtdraw.services.bracket_generator import generate_bracket
from courtdraw.services.errors import ResultValidationError, StateConflictError
from courtdraw.services.match_results import (
    decisive_sets,
    determine_winner,
    report_match_result,
    rerun_advancement,
    resolve_tournament,
    start_match,
)
from courtdraw.services.score_parser import SetScore
from courtdraw.services.store import SqlStore

MATCH = SimpleNamespace(id=1, team1_id=10, team2_id=20)


@pytest.fixture
def bracket(session: Session, make_tournament):
    tournament, teams = make_tournament("single_elimination", 4, status="in_progress")
    store = SqlStore(session)
    generate_bracket(store, tournament, teams)
    return store, tournament


def test_decisive_sets_drops_unplayed_sets():
    assert decisive_sets([SetScore(6, 4), SetScore(0, 0)]) == [SetScore(6, 4)]


def test_decisive_sets_rejects_negative_scores():
    with pytest.raises(ResultValidationError):
        decisive_sets([SetScore(-1, 6)])


def test_determine_winner_by_sets():
    assert determine_winner(MATCH, [SetScore(6, 4), SetScore(4, 6), SetScore(6, 2)]) == 10
    assert determine_winner(MATCH, [SetScore(1, 6)]) == 20


def test_determine_winner_tied_sets_need_explicit_winner():
    sets = [SetScore(6, 4), SetScore(4, 6)]
    with pytest.raises(ResultValidationError):
        determine_winner(MATCH, sets)
    assert determine_winner(MATCH, sets, winner_id=20) == 20


def test_determine_winner_rejects_bad_explicit_winner():
    with pytest.raises(ResultValidationError):
        determine_winner(MATCH, [SetScore(6, 4)], winner_id=99)
    with pytest.raises(ResultValidationError):
        determine_winner(MATCH, [SetScore(6, 4)], winner_id=20)


def test_determine_winner_requires_sets_and_teams():
    with pytest.raises(ResultValidationError):
        determine_winner(MATCH, [])
    with pytest.raises(ResultValidationError):
        determine_winner(SimpleNamespace(id=2, team1_id=10, team2_id=None), [SetScore(6, 0)])


def test_report_persists_sets_standings_and_advances(bracket):
    store, tournament = bracket
    semi = store.query_matches(tournament.id, round=1)[0]

    outcome = report_match_result(store, tournament, semi.id, [SetScore(6, 3), SetScore(0, 0), SetScore(7, 5)])

    assert outcome.match.status == "completed"
    assert outcome.match.winner_id == semi.team1_id
    assert [(s.set_number, s.team1_score, s.team2_score) for s in outcome.sets] == [(1, 6, 3), (2, 7, 5)]
    assert {s.team_id for s in outcome.standings} == {semi.team1_id, semi.team2_id}
    assert outcome.advanced_count == 1
    assert store.query_matches(tournament.id, round=2)[0].team1_id == semi.team1_id


def test_report_twice_is_a_state_conflict(bracket):
    store, tournament = bracket
    semi = store.query_matches(tournament.id, round=1)[0]
    report_match_result(store, tournament, semi.id, [SetScore(6, 3)])
    with pytest.raises(StateConflictError):
        report_match_result(store, tournament, semi.id, [SetScore(6, 3)])

    winner = store.query_standings(tournament.id, team_id=semi.team1_id)[0]
    assert winner.matches_played == 1


def test_report_rejects_too_many_sets(bracket):
    store, tournament = bracket
    semi = store.query_matches(tournament.id, round=1)[0]
    with pytest.raises(ResultValidationError):
        report_match_result(store, tournament, semi.id, [SetScore(6, 3)] * 4)
    assert store.get_match(semi.id).status == "scheduled"


def test_report_needs_both_teams(bracket):
    store, tournament = bracket
    final = store.query_matches(tournament.id, round=2)[0]
    with pytest.raises(ResultValidationError):
        report_match_result(store, tournament, final.id, [SetScore(6, 3)])


def test_report_requires_tournament_in_progress(session: Session, make_tournament):
    tournament, teams = make_tournament("round_robin", 2, status="registration")
    store = SqlStore(session)
    generate_bracket(store, tournament, teams)
    match = store.query_matches(tournament.id)[0]
    with pytest.raises(StateConflictError):
        report_match_result(store, tournament, match.id, [SetScore(6, 3)])


def test_report_unknown_match(bracket):
    store, tournament = bracket
    with pytest.raises(ResultValidationError):
        report_match_result(store, tournament, 999999, [SetScore(6, 3)])


def test_start_match_then_report(bracket):
    store, tournament = bracket
    semi = store.query_matches(tournament.id, round=1)[0]
    started = start_match(store, tournament, semi.id)
    assert started.status == "in_progress"
    with pytest.raises(StateConflictError):
        start_match(store, tournament, semi.id)

    outcome = report_match_result(store, tournament, semi.id, [SetScore(2, 6), SetScore(3, 6)])
    assert outcome.match.winner_id == semi.team2_id


def test_start_match_without_teams_is_a_conflict(bracket):
    store, tournament = bracket
    final = store.query_matches(tournament.id, round=2)[0]
    with pytest.raises(StateConflictError):
        start_match(store, tournament, final.id)


def test_rerun_advancement(bracket):
    store, tournament = bracket
    semi0, semi1 = store.query_matches(tournament.id, round=1)
    with pytest.raises(StateConflictError):
        rerun_advancement(store, tournament, semi0.id)

    report_match_result(store, tournament, semi0.id, [SetScore(6, 1)])
    assert rerun_advancement(store, tournament, semi0.id) == 0

    report_match_result(store, tournament, semi1.id, [SetScore(6, 1)])
    summary = resolve_tournament(store, tournament)
    assert summary["matches_processed"] == 2
    assert summary["unknown_after"] == 0
