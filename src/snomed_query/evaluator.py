"""Evaluate structured queries against a concept index."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .concept_index import Concept, ConceptIndex
from .errors import ConceptNotFoundError
from .ecl.query import Refinement, StructuredQuery

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConceptResult:
    """Externally visible projection of a concept."""

    id: int
    fsn: str

    def to_dict(self) -> Dict[str, object]:
        return {"id": self.id, "fsn": self.fsn}


def project_concept(concept: Concept) -> ConceptResult:
    return ConceptResult(id=concept.id, fsn=concept.fully_specified_name or "")


def matches_refinement(concept: Concept, refinement: Optional[Refinement]) -> bool:
    """Whether ``concept`` passes the attribute filter.

    A concept with no value for the attribute never passes. Otherwise it
    passes when at least one stored value satisfies the operator, so
    ``!=`` means "some value differs", not "every value differs".
    """

    if refinement is None:
        return True
    values = concept.attribute_values(refinement.attribute_name)
    return any(refinement.operator.matches(value, refinement.value) for value in values)


class QueryEvaluator:
    """Applies hierarchy relations and the refinement filter.

    Holds no per-query state; one instance can serve concurrent callers as
    long as the index is not mutated.
    """

    def __init__(self, index: ConceptIndex):
        self.index = index

    @property
    def root_id(self) -> int:
        return self.index.root_id

    def evaluate(self, query: StructuredQuery) -> List[ConceptResult]:
        results: List[ConceptResult] = []
        refinement = query.refinement

        if query.is_focus_wildcard:
            root = self.index.lookup_by_id(self.root_id)
            if root is not None:
                self._conditional_add(root, results, refinement)
            self._add_descendants(self.root_id, results, refinement)
        else:
            focus = self._require(query.focus_id)
            relation = query.relation
            if relation.includes_self:
                self._conditional_add(focus, results, refinement)
            if relation.is_descendant:
                self._add_descendants(focus.id, results, refinement)
            elif relation.is_ancestor:
                self._add_ancestors(focus, results, refinement)

        logger.debug(f"Evaluated {query} -> {len(results)} concepts")
        return results

    def _require(self, concept_id: int) -> Concept:
        concept = self.index.lookup_by_id(concept_id)
        if concept is None:
            raise ConceptNotFoundError(concept_id)
        return concept

    def _add_descendants(
        self, concept_id: int, results: List[ConceptResult], refinement: Optional[Refinement]
    ) -> None:
        for concept in self.index.lookup_by_ancestor(concept_id):
            self._conditional_add(concept, results, refinement)

    def _add_ancestors(
        self, concept: Concept, results: List[ConceptResult], refinement: Optional[Refinement]
    ) -> None:
        for ancestor_id in sorted(concept.ancestors):
            self._conditional_add(self._require(ancestor_id), results, refinement)

    @staticmethod
    def _conditional_add(
        concept: Concept, results: List[ConceptResult], refinement: Optional[Refinement]
    ) -> None:
        if matches_refinement(concept, refinement):
            results.append(project_concept(concept))
