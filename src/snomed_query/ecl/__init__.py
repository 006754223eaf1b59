"""Expression constraint language: tokenizer, parser and query builder."""

from .builder import BuildOutcome, build_query, parse_query
from .parser import ExpressionParser, parse_expression
from .query import ComparisonOperator, Refinement, Relation, StructuredQuery

__all__ = [
    "BuildOutcome",
    "build_query",
    "parse_query",
    "ExpressionParser",
    "parse_expression",
    "ComparisonOperator",
    "Refinement",
    "Relation",
    "StructuredQuery",
]
