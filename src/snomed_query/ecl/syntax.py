"""Concrete syntax tree produced by the expression constraint parser.

The tree keeps every production the parser recognizes, including the ones
the query builder later rejects, so rejection can name the exact construct.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class ConceptReference:
    """A concept id literal as written, with its optional ``|term|``."""

    concept_id: str
    position: int
    term: Optional[str] = None


@dataclass(frozen=True)
class Wildcard:
    position: int


@dataclass(frozen=True)
class ConstraintOperator:
    """One of ``<``, ``<<``, ``>``, ``>>``."""

    symbol: str
    position: int


@dataclass(frozen=True)
class MemberOf:
    position: int


@dataclass(frozen=True)
class SubExpressionConstraint:
    focus: Union[ConceptReference, Wildcard, "ExpressionConstraint"]
    position: int
    operator: Optional[ConstraintOperator] = None
    member_of: Optional[MemberOf] = None


class ComparisonKind(Enum):
    EXPRESSION = "expression"
    STRING = "string"
    NUMERIC = "numeric"


@dataclass(frozen=True)
class ComparisonOperator:
    kind: ComparisonKind
    symbol: str
    position: int


@dataclass(frozen=True)
class StringValue:
    text: str
    position: int


@dataclass(frozen=True)
class NumericValue:
    text: str
    position: int


AttributeValue = Union[SubExpressionConstraint, StringValue, NumericValue]


@dataclass(frozen=True)
class Attribute:
    name: ConceptReference
    position: int
    operator: Optional[ComparisonOperator] = None
    value: Optional[AttributeValue] = None


class SetConnector(Enum):
    CONJUNCTION = "conjunction"
    DISJUNCTION = "disjunction"


@dataclass(frozen=True)
class AttributeSet:
    attributes: Tuple[Attribute, ...]
    position: int
    connector: Optional[SetConnector] = None


@dataclass(frozen=True)
class AttributeGroup:
    refinement: "Refinement"
    position: int


SubRefinement = Union[AttributeSet, AttributeGroup, "Refinement"]


@dataclass(frozen=True)
class Refinement:
    items: Tuple[SubRefinement, ...]
    position: int
    connector: Optional[SetConnector] = None


@dataclass(frozen=True)
class RefinedConstraint:
    subject: SubExpressionConstraint
    refinement: Refinement
    position: int


Operand = Union[SubExpressionConstraint, RefinedConstraint]


@dataclass(frozen=True)
class CompoundConstraint:
    """Operands joined by ``AND``, ``OR``, ``MINUS`` or ``,``.

    ``operators[i]`` joins ``operands[i]`` and ``operands[i + 1]``; it is
    ``None`` where two operands follow each other with no operator at all.
    """

    operands: Tuple[Operand, ...]
    operators: Tuple[Optional[str], ...]
    position: int

    @property
    def is_juxtaposition(self) -> bool:
        return all(op is None for op in self.operators)


ConstraintBody = Union[SubExpressionConstraint, RefinedConstraint, CompoundConstraint]


@dataclass(frozen=True)
class ExpressionConstraint:
    body: ConstraintBody
    position: int
