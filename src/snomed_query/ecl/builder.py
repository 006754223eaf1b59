"""Fold a syntax tree into a ``StructuredQuery``.

The tree is walked once. Each step takes the immutable draft built so far
and returns either the next draft or the first error met, which ends the
walk. Nothing is raised mid-walk; ``BuildOutcome.unwrap`` raises at the end.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional, Union

from ..errors import ExpressionSyntaxError, QueryError, UnsupportedFeatureError
from . import syntax
from .parser import parse_expression
from .query import (
    CONSTRAINT_OPERATOR_RELATIONS,
    ComparisonOperator,
    Refinement,
    Relation,
    StructuredQuery,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Draft:
    focus_set: bool = False
    focus_id: Optional[int] = None
    wildcard: bool = False
    relation: Optional[Relation] = None
    refinement: Optional[Refinement] = None


_Step = Union[_Draft, QueryError]


@dataclass(frozen=True)
class BuildOutcome:
    """Either a query or the error that stopped the build."""

    query: Optional[StructuredQuery] = None
    error: Optional[QueryError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> StructuredQuery:
        if self.error is not None:
            raise self.error
        assert self.query is not None
        return self.query


def build_query(tree: syntax.ExpressionConstraint) -> BuildOutcome:
    step = _fold_expression(tree, _Draft())
    if isinstance(step, QueryError):
        logger.info(f"Rejected expression: {step}")
        return BuildOutcome(error=step)
    return _finish(step)


def parse_query(text: str) -> StructuredQuery:
    """Parse and validate ``text``; raises the first ``QueryError`` found."""
    query = build_query(parse_expression(text)).unwrap()
    logger.debug(f"Parsed {text!r} as {query!r}")
    return query


def _finish(draft: _Draft) -> BuildOutcome:
    if draft.wildcard:
        if draft.relation not in (None, Relation.DESCENDANT_OR_SELF_OF):
            logger.debug(f"Normalized wildcard relation {draft.relation.value} to descendantOrSelfOf")
        query = StructuredQuery(
            focus_id=None,
            relation=Relation.DESCENDANT_OR_SELF_OF,
            refinement=draft.refinement,
        )
    else:
        query = StructuredQuery(
            focus_id=draft.focus_id,
            relation=draft.relation or Relation.SELF,
            refinement=draft.refinement,
        )
    return BuildOutcome(query=query)


def _fold_expression(node: syntax.ExpressionConstraint, draft: _Draft) -> _Step:
    body = node.body
    if isinstance(body, syntax.SubExpressionConstraint):
        return _fold_subexpression(body, draft)
    if isinstance(body, syntax.RefinedConstraint):
        return _fold_refined(body, draft)
    # memberOf is named wherever it appears, whatever joins the operands.
    for operand in body.operands:
        subject = operand.subject if isinstance(operand, syntax.RefinedConstraint) else operand
        if subject.member_of is not None:
            return UnsupportedFeatureError("memberOf")
    if not body.is_juxtaposition:
        return UnsupportedFeatureError()
    # Operands written side by side report their own constructs first.
    for operand in body.operands:
        step = _fold_operand(operand, _Draft())
        if isinstance(step, QueryError):
            return step
    return UnsupportedFeatureError()


def _fold_operand(operand: syntax.Operand, draft: _Draft) -> _Step:
    if isinstance(operand, syntax.RefinedConstraint):
        return _fold_refined(operand, draft)
    return _fold_subexpression(operand, draft)


def _fold_refined(node: syntax.RefinedConstraint, draft: _Draft) -> _Step:
    step = _fold_subexpression(node.subject, draft)
    if isinstance(step, QueryError):
        return step
    return _fold_refinement(node.refinement, step)


def _fold_subexpression(node: syntax.SubExpressionConstraint, draft: _Draft) -> _Step:
    if node.member_of is not None:
        return UnsupportedFeatureError("memberOf")

    relation = CONSTRAINT_OPERATOR_RELATIONS[node.operator.symbol] if node.operator else None
    focus = node.focus

    if isinstance(focus, syntax.ExpressionConstraint):
        inner = _fold_expression(focus, draft)
        if isinstance(inner, QueryError) or relation is None:
            return inner
        # "(X)" and "(*)" behave like X and *
        if inner.refinement is not None or inner.relation not in (None, Relation.SELF):
            return UnsupportedFeatureError()
        return replace(inner, relation=relation)

    if draft.focus_set:
        return UnsupportedFeatureError()
    if isinstance(focus, syntax.Wildcard):
        return replace(draft, focus_set=True, wildcard=True, relation=relation)

    concept_id = _concept_id(focus)
    if isinstance(concept_id, QueryError):
        return concept_id
    return replace(draft, focus_set=True, focus_id=concept_id, relation=relation)


def _fold_refinement(node: syntax.Refinement, draft: _Draft) -> _Step:
    if node.connector is syntax.SetConnector.CONJUNCTION:
        return UnsupportedFeatureError("conjunctionRefinementSet")
    if node.connector is syntax.SetConnector.DISJUNCTION:
        return UnsupportedFeatureError("disjunctionRefinementSet")

    item = node.items[0]
    if isinstance(item, syntax.AttributeGroup):
        return UnsupportedFeatureError("attributeGroup")
    if isinstance(item, syntax.Refinement):
        return _fold_refinement(item, draft)
    return _fold_attribute_set(item, draft)


def _fold_attribute_set(node: syntax.AttributeSet, draft: _Draft) -> _Step:
    if node.connector is syntax.SetConnector.CONJUNCTION:
        return UnsupportedFeatureError("conjunctionAttributeSet")
    if node.connector is syntax.SetConnector.DISJUNCTION:
        return UnsupportedFeatureError("disjunctionAttributeSet")
    return _fold_attribute(node.attributes[0], draft)


def _fold_attribute(node: syntax.Attribute, draft: _Draft) -> _Step:
    if draft.refinement is not None:
        # a refined constraint refined again
        return UnsupportedFeatureError("conjunctionRefinementSet")

    attribute_id = _concept_id(node.name)
    if isinstance(attribute_id, QueryError):
        return attribute_id

    operator = node.operator
    if operator is None or node.value is None:
        return ExpressionSyntaxError("Expected comparison operator", node.name.concept_id, node.position)
    if operator.kind is syntax.ComparisonKind.STRING:
        return UnsupportedFeatureError("stringComparisonOperator")
    if operator.kind is syntax.ComparisonKind.NUMERIC:
        return UnsupportedFeatureError("numericComparisonOperator")

    value = node.value
    if not isinstance(value, syntax.SubExpressionConstraint):
        return UnsupportedFeatureError()
    if value.member_of is not None:
        return UnsupportedFeatureError("memberOf")
    if value.operator is not None or not isinstance(value.focus, syntax.ConceptReference):
        return UnsupportedFeatureError()

    value_id = _concept_id(value.focus)
    if isinstance(value_id, QueryError):
        return value_id

    comparison = ComparisonOperator.EQUALS if operator.symbol == "=" else ComparisonOperator.NOT_EQUALS
    refinement = Refinement(attribute_name=str(attribute_id), operator=comparison, value=str(value_id))
    return replace(draft, refinement=refinement)


def _concept_id(reference: syntax.ConceptReference) -> Union[int, ExpressionSyntaxError]:
    text = reference.concept_id
    if not (text.isascii() and text.isdigit()):
        return ExpressionSyntaxError("Invalid concept id", text, reference.position)
    return int(text)
