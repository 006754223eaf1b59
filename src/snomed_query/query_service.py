"""Caller-facing entry point for concept queries."""

from __future__ import annotations

import logging
from itertools import islice
from pathlib import Path
from typing import List, Optional

from .concept_index import InMemoryConceptIndex, build_concept_index
from .ecl import Relation, StructuredQuery, parse_query
from .evaluator import ConceptResult, QueryEvaluator, project_concept
from .errors import ConceptNotFoundError
from .snapshot_loader import load_snapshot

logger = logging.getLogger(__name__)


class ConceptQueryService:
    """Answers expression constraint queries over one immutable index."""

    def __init__(self, index: InMemoryConceptIndex):
        self.index = index
        self.evaluator = QueryEvaluator(index)

    @classmethod
    def from_snapshot(cls, path: Path, root_id: Optional[int] = None) -> "ConceptQueryService":
        snapshot = load_snapshot(path)
        if root_id is None:
            root_id = snapshot.root_id
        return cls(build_concept_index(snapshot.records, root_id=root_id))

    @property
    def root_id(self) -> int:
        return self.index.root_id

    def count_concepts(self) -> int:
        return self.index.count()

    def parse(self, ec_query: str) -> StructuredQuery:
        return parse_query(ec_query)

    def evaluate(self, ec_query: Optional[str]) -> List[ConceptResult]:
        """Run an expression constraint; an empty expression matches nothing."""

        if not ec_query or not ec_query.strip():
            return []
        query = parse_query(ec_query)
        results = self.evaluator.evaluate(query)
        logger.info(f"Query {ec_query!r} matched {len(results)} concepts")
        return results

    def retrieve_concept(self, concept_id: int) -> ConceptResult:
        concept = self.index.lookup_by_id(concept_id)
        if concept is None:
            raise ConceptNotFoundError(concept_id)
        return project_concept(concept)

    def retrieve_ancestors(self, concept_id: int) -> List[ConceptResult]:
        return self.evaluator.evaluate(StructuredQuery(concept_id, Relation.ANCESTOR_OF))

    def retrieve_descendants(self, concept_id: int) -> List[ConceptResult]:
        return self.evaluator.evaluate(StructuredQuery(concept_id, Relation.DESCENDANT_OF))

    def retrieve_concepts(self, limit: int) -> List[ConceptResult]:
        """First ``limit`` concepts in index order."""
        if limit < 0:
            raise ValueError("limit must be non-negative")
        return [project_concept(concept) for concept in islice(self.index, limit)]
