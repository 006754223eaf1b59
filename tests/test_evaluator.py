from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import (
    BODY_STRUCTURE,
    CARDIOVASCULAR_DISORDER,
    CARDIOVASCULAR_FINDING,
    CARDIOVASCULAR_STRUCTURE,
    CLINICAL_FINDING,
    DISEASE,
    FINDING_SITE,
    HEART_STRUCTURE,
    MYOCARDIAL_INFARCTION,
    MYOCARDIUM_STRUCTURE,
    ROOT,
)
from snomed_query.concept_index import Concept, InMemoryConceptIndex
from snomed_query.ecl import ComparisonOperator, Refinement, Relation, StructuredQuery, parse_query
from snomed_query.errors import ConceptNotFoundError
from snomed_query.evaluator import ConceptResult, QueryEvaluator, matches_refinement


def ids(evaluator: QueryEvaluator, text: str):
    return [result.id for result in evaluator.evaluate(parse_query(text))]


@pytest.fixture
def evaluator(index) -> QueryEvaluator:
    return QueryEvaluator(index)


def test_self_returns_focus_only(evaluator) -> None:
    results = evaluator.evaluate(StructuredQuery(MYOCARDIAL_INFARCTION))
    assert results == [ConceptResult(MYOCARDIAL_INFARCTION, "Myocardial infarction (disorder)")]


def test_descendants_in_index_order(evaluator) -> None:
    assert ids(evaluator, f"<{CLINICAL_FINDING}") == [
        DISEASE,
        CARDIOVASCULAR_FINDING,
        CARDIOVASCULAR_DISORDER,
        MYOCARDIAL_INFARCTION,
    ]


def test_descendant_or_self_puts_focus_first(evaluator) -> None:
    assert ids(evaluator, f"<<{BODY_STRUCTURE}") == [BODY_STRUCTURE, HEART_STRUCTURE]


def test_multiple_inheritance_concept_reported_once(evaluator) -> None:
    found = ids(evaluator, f"<{CLINICAL_FINDING}")
    assert found.count(CARDIOVASCULAR_DISORDER) == 1
    assert found.count(MYOCARDIAL_INFARCTION) == 1


def test_ancestors_sorted_by_id(evaluator) -> None:
    expected = sorted(
        [CARDIOVASCULAR_DISORDER, DISEASE, CARDIOVASCULAR_FINDING, CLINICAL_FINDING, ROOT]
    )
    assert ids(evaluator, f">{MYOCARDIAL_INFARCTION}") == expected
    assert ids(evaluator, f">>{MYOCARDIAL_INFARCTION}") == [MYOCARDIAL_INFARCTION] + expected


def test_leaf_and_root_edges(evaluator) -> None:
    assert ids(evaluator, f"<{MYOCARDIAL_INFARCTION}") == []
    assert ids(evaluator, f">{ROOT}") == []
    assert ids(evaluator, f">>{ROOT}") == [ROOT]


def test_wildcard_matches_every_concept(evaluator, index) -> None:
    found = ids(evaluator, "*")
    assert found[0] == ROOT
    assert sorted(found) == sorted(concept.id for concept in index)
    assert ids(evaluator, "<*") == found


def test_hierarchy_relations_agree_with_ancestor_sets(evaluator, index) -> None:
    for concept in index:
        x = concept.id
        below = set(ids(evaluator, f"<{x}"))
        assert x not in below
        assert below == {c.id for c in index if x in c.ancestors}
        assert set(ids(evaluator, f"<<{x}")) == below | {x}
        above = set(ids(evaluator, f">{x}"))
        assert above == set(concept.ancestors)
        assert set(ids(evaluator, f">>{x}")) == above | {x}


@pytest.mark.parametrize(
    "text, expected",
    [
        (f"<{CLINICAL_FINDING}:{FINDING_SITE}={HEART_STRUCTURE}", [MYOCARDIAL_INFARCTION]),
        (f"<{CLINICAL_FINDING}:{FINDING_SITE}={MYOCARDIUM_STRUCTURE}", [MYOCARDIAL_INFARCTION]),
        (
            f"<{CLINICAL_FINDING}:{FINDING_SITE}!={HEART_STRUCTURE}",
            [CARDIOVASCULAR_DISORDER, MYOCARDIAL_INFARCTION],
        ),
        (f"<{CLINICAL_FINDING}:{FINDING_SITE}!={CARDIOVASCULAR_STRUCTURE}", [MYOCARDIAL_INFARCTION]),
        (f"<{CLINICAL_FINDING}:116676008=1", []),
        (f"<{CLINICAL_FINDING}:116676008!=1", []),
        (f"*:{FINDING_SITE}={HEART_STRUCTURE}", [MYOCARDIAL_INFARCTION]),
        (f"{MYOCARDIAL_INFARCTION}:{FINDING_SITE}={HEART_STRUCTURE}", [MYOCARDIAL_INFARCTION]),
        (f"{MYOCARDIAL_INFARCTION}:{FINDING_SITE}=1", []),
        (f">>{MYOCARDIAL_INFARCTION}:{FINDING_SITE}={CARDIOVASCULAR_STRUCTURE}", [CARDIOVASCULAR_DISORDER]),
    ],
)
def test_refinement_filters_results(evaluator, text: str, expected) -> None:
    assert ids(evaluator, text) == expected


def test_refinement_results_are_subset_of_unrefined(evaluator) -> None:
    unrefined = set(ids(evaluator, f"<<{CLINICAL_FINDING}"))
    refined = set(ids(evaluator, f"<<{CLINICAL_FINDING}:{FINDING_SITE}!={HEART_STRUCTURE}"))
    assert refined <= unrefined


def test_matches_refinement_without_values() -> None:
    concept = Concept(id=1, fully_specified_name="x")
    refinement = Refinement("2", ComparisonOperator.NOT_EQUALS, "3")
    assert not matches_refinement(concept, refinement)
    assert matches_refinement(concept, None)


def test_unknown_focus_raises_not_found(evaluator) -> None:
    with pytest.raises(ConceptNotFoundError) as excinfo:
        evaluator.evaluate(StructuredQuery(999999999, Relation.DESCENDANT_OF))
    assert excinfo.value.concept_id == 999999999
    assert str(excinfo.value) == "Concept with id 999999999 could not be found."


def test_missing_ancestor_raises_not_found() -> None:
    orphan = Concept(id=1, fully_specified_name="orphan", parents=frozenset({42}), ancestors=frozenset({42}))
    evaluator = QueryEvaluator(InMemoryConceptIndex([orphan], root_id=1))
    assert evaluator.evaluate(StructuredQuery(1)) == [ConceptResult(1, "orphan")]
    with pytest.raises(ConceptNotFoundError) as excinfo:
        evaluator.evaluate(StructuredQuery(1, Relation.ANCESTOR_OF))
    assert excinfo.value.concept_id == 42


def test_concurrent_evaluation_is_consistent(evaluator) -> None:
    query = parse_query(f"<<{CLINICAL_FINDING}")
    expected = evaluator.evaluate(query)
    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda _: evaluator.evaluate(query), range(16)))
    assert all(result == expected for result in results)
