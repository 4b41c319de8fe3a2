import pytest
from gazetteer_recon import reconcile_logic
from gazetteer_recon.extract_from_query import decode_body
from gazetteer_recon.reconcile_logic import (
    DEFAULT_LIMIT,
    reconcile_single_query,
    run_reconciliation,
)
from gazetteer_recon.reconcile_record import Entity

CITIES = [
    Entity(id="c1", name="Toronto", province="Ontario"),
    Entity(id="c2", name="Montreal", province="Quebec"),
    Entity(id="c3", name="Ottawa", province="Ontario"),
    Entity(id="c4", name="Calgary", province="Alberta"),
    Entity(id="c5", name="Vancouver", province="British Columbia"),
    Entity(id="c6", name="Halifax", province="Nova Scotia"),
    Entity(id="c7", name="Regina", province="Saskatchewan"),
]

def fixed_scores(monkeypatch, scores):
    monkeypatch.setattr(reconcile_logic, "name_similarity", lambda q, name: scores[name])

#examples
def test_exact_name_ranks_first():
    result = reconcile_single_query("Toronto", CITIES[:2])
    assert result[0].name == "Toronto"
    assert result[0].id == "c1"
    assert result[0].score == 100
    assert result[0].match is True

def test_case_different_prefix_is_a_match():
    result = reconcile_single_query("ottaw", CITIES)
    assert result[0].name == "Ottawa"
    assert result[0].score == 100
    assert result[0].match is True

def test_candidate_carries_city_type():
    result = reconcile_single_query("Calgary", CITIES, limit=1)
    assert [t.model_dump() for t in result[0].type] == [{"id": "city", "name": "City"}]

#empty queries never reach the scorer
@pytest.mark.parametrize("query", ["", "   ", "\t\n"])
def test_empty_query_returns_nothing(monkeypatch, query):
    def fail(*args):
        raise AssertionError("scorer called")
    monkeypatch.setattr(reconcile_logic, "name_similarity", fail)

    assert reconcile_single_query(query, CITIES) == []

#limits
def test_default_limit():
    assert DEFAULT_LIMIT == 5
    assert len(reconcile_single_query("a", CITIES)) == 5

def test_explicit_limit():
    assert len(reconcile_single_query("a", CITIES, limit=2)) == 2
    assert len(reconcile_single_query("a", CITIES, limit=50)) == len(CITIES)

def test_zero_limit_returns_nothing():
    assert reconcile_single_query("Toronto", CITIES, limit=0) == []

#ordering and filtering
def test_results_are_sorted_by_score():
    result = reconcile_single_query("on", CITIES, limit=len(CITIES))
    scores = [c.score for c in result]
    assert scores == sorted(scores, reverse=True)

def test_ties_keep_store_order():
    entities = [
        Entity(id="london-on", name="London", province="Ontario"),
        Entity(id="paris-on", name="Paris", province="Ontario"),
        Entity(id="london-2", name="London", province="Ontario"),
    ]
    result = reconcile_single_query("London", entities)
    assert [c.id for c in result[:2]] == ["london-on", "london-2"]

def test_low_scores_are_dropped(monkeypatch):
    fixed_scores(monkeypatch, {"Toronto": 10, "Montreal": 11, "Ottawa": 0})
    result = reconcile_single_query("x", CITIES[:3])
    assert [c.name for c in result] == ["Montreal"]

def test_match_flag_threshold(monkeypatch):
    fixed_scores(monkeypatch, {"Toronto": 85, "Montreal": 86})
    result = {c.name: c.match for c in reconcile_single_query("x", CITIES[:2])}
    assert result == {"Toronto": False, "Montreal": True}

def test_ranking_is_idempotent():
    first = reconcile_single_query("Mont", CITIES)
    second = reconcile_single_query("Mont", CITIES)
    assert first == second

def test_empty_store_returns_nothing():
    assert reconcile_single_query("Toronto", []) == []

#batches
def test_batch_keys_are_independent():
    queries = decode_body({"queries": {"a": {"query": "Calgary", "limit": 1}, "b": {"query": ""}}})
    response = run_reconciliation(queries, CITIES)

    assert set(response) == {"a", "b"}
    assert len(response["a"].result) <= 1
    assert response["a"].result[0].name == "Calgary"
    assert response["b"].result == []

def test_batch_query_text_is_trimmed():
    queries = decode_body({"queries": {"q0": {"query": "  Regina  "}}})
    response = run_reconciliation(queries, CITIES)
    assert response["q0"].result[0].score == 100

def test_candidate_type_follows_entity_type():
    entities = [Entity(id="p1", name="Ontario", type="Province")]
    result = reconcile_single_query("Ontario", entities)
    assert [t.model_dump() for t in result[0].type] == [{"id": "province", "name": "Province"}]
