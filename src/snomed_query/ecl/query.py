"""Validated, structured form of an expression constraint."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Relation(Enum):
    """Hierarchy relation between the focus concept and the results."""

    SELF = "self"
    DESCENDANT_OF = "descendantOf"
    DESCENDANT_OR_SELF_OF = "descendantOrSelfOf"
    ANCESTOR_OF = "ancestorOf"
    ANCESTOR_OR_SELF_OF = "ancestorOrSelfOf"

    @property
    def includes_self(self) -> bool:
        return self in (Relation.SELF, Relation.DESCENDANT_OR_SELF_OF, Relation.ANCESTOR_OR_SELF_OF)

    @property
    def is_descendant(self) -> bool:
        return self in (Relation.DESCENDANT_OF, Relation.DESCENDANT_OR_SELF_OF)

    @property
    def is_ancestor(self) -> bool:
        return self in (Relation.ANCESTOR_OF, Relation.ANCESTOR_OR_SELF_OF)


CONSTRAINT_OPERATOR_RELATIONS = {
    "<": Relation.DESCENDANT_OF,
    "<<": Relation.DESCENDANT_OR_SELF_OF,
    ">": Relation.ANCESTOR_OF,
    ">>": Relation.ANCESTOR_OR_SELF_OF,
}


class ComparisonOperator(Enum):
    EQUALS = "="
    NOT_EQUALS = "!="

    def matches(self, stored_value: str, expected_value: str) -> bool:
        equal = stored_value == expected_value
        return equal if self is ComparisonOperator.EQUALS else not equal


@dataclass(frozen=True)
class Refinement:
    """Single ``attribute operator value`` filter."""

    attribute_name: str
    operator: ComparisonOperator
    value: str

    def __str__(self) -> str:
        return f"{self.attribute_name}{self.operator.value}{self.value}"


@dataclass(frozen=True)
class StructuredQuery:
    """Parsed query.

    ``focus_id`` is ``None`` when the focus is the ``*`` wildcard, in which
    case ``relation`` is always ``DESCENDANT_OR_SELF_OF``.
    """

    focus_id: Optional[int]
    relation: Relation = Relation.SELF
    refinement: Optional[Refinement] = None

    def __post_init__(self) -> None:
        if self.focus_id is None and self.relation is not Relation.DESCENDANT_OR_SELF_OF:
            raise ValueError("A wildcard focus requires the descendantOrSelfOf relation")

    @property
    def is_focus_wildcard(self) -> bool:
        return self.focus_id is None

    def __str__(self) -> str:
        prefix = {v: k for k, v in CONSTRAINT_OPERATOR_RELATIONS.items()}.get(self.relation, "")
        text = "*" if self.is_focus_wildcard else f"{prefix}{self.focus_id}"
        if self.refinement is not None:
            text += f":{self.refinement}"
        return text
