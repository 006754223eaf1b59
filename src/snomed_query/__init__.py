"""Expression constraint queries over a SNOMED CT style concept hierarchy."""

from .snapshot_loader import ConceptRecord, ConceptSnapshot, load_snapshot, parse_snapshot_payload
from .concept_index import (
    Concept,
    ConceptIndex,
    InMemoryConceptIndex,
    build_concept_index,
    summarize_index,
)
from .ecl import Relation, StructuredQuery, parse_query
from .errors import ConceptNotFoundError, ExpressionSyntaxError, QueryError, UnsupportedFeatureError
from .evaluator import ConceptResult, QueryEvaluator
from .query_service import ConceptQueryService
from .exporter import export_index

__all__ = [
    "ConceptRecord",
    "ConceptSnapshot",
    "load_snapshot",
    "parse_snapshot_payload",
    "Concept",
    "ConceptIndex",
    "InMemoryConceptIndex",
    "build_concept_index",
    "summarize_index",
    "Relation",
    "StructuredQuery",
    "parse_query",
    "ConceptNotFoundError",
    "ExpressionSyntaxError",
    "QueryError",
    "UnsupportedFeatureError",
    "ConceptResult",
    "QueryEvaluator",
    "ConceptQueryService",
    "export_index",
]
