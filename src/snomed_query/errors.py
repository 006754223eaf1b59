"""Error types raised while parsing and evaluating expression constraints.

All three are terminal for the query in progress: nothing is retried and no
partial result is returned next to an error.
"""

from __future__ import annotations

from typing import Optional

GENERIC_UNSUPPORTED_MESSAGE = (
    "This expression is not currently supported, please use a simpleExpressionConstraint."
)


class QueryError(Exception):
    """Base class for query failures."""


class ExpressionSyntaxError(QueryError, ValueError):
    """Malformed expression: bad token stream or invalid concept id literal."""

    def __init__(self, message: str, fragment: str = "", position: Optional[int] = None):
        self.fragment = fragment
        self.position = position
        if position is not None:
            message = f"{message} at position {position}"
        if fragment:
            message = f"{message}: {fragment!r}"
        super().__init__(message)


class UnsupportedFeatureError(QueryError):
    """Well-formed expression using a construct outside the supported subset.

    ``feature`` is ``None`` for nested or compound expressions that have no
    single grammar production to name.
    """

    def __init__(self, feature: Optional[str] = None):
        self.feature = feature
        if feature is None:
            message = GENERIC_UNSUPPORTED_MESSAGE
        else:
            message = f"{feature} is not currently supported."
        super().__init__(message)


class ConceptNotFoundError(QueryError, LookupError):
    """A focus or ancestor concept id is absent from the index."""

    def __init__(self, concept_id: int):
        self.concept_id = concept_id
        super().__init__(f"Concept with id {concept_id} could not be found.")
