"""Recursive-descent parser for expression constraints.

Grammar (``[]`` optional, ``*`` repeated)::

    expressionConstraint := constraint EOF
    constraint           := operand ( [binaryOperator] operand )*
    binaryOperator       := "AND" | "OR" | "MINUS" | ","
    operand              := subExpression [ ":" refinement ]
    subExpression        := [constraintOperator] ["^"] focus
    constraintOperator   := "<" | "<<" | ">" | ">>"
    focus                := conceptReference | "*" | "(" constraint ")"
    conceptReference     := conceptId ["|" term "|"]
    refinement           := subRefinement ( connector subRefinement )*
    subRefinement        := attributeSet | "{" refinement "}" | "(" refinement ")"
    attributeSet         := attribute ( connector attribute )*
    connector            := "AND" | "," | "OR"
    attribute            := conceptReference [comparisonOperator attributeValue]
    comparisonOperator   := "=" | "!=" | "<" | "<=" | ">" | ">="
    attributeValue       := subExpression | '"' string '"' | "#" number

Constructs the query builder does not support are still parsed, so that
"malformed" and "well-formed but unsupported" stay distinguishable.
"""

from __future__ import annotations

from typing import List, Optional

from ..errors import ExpressionSyntaxError
from .lexer import Token, TokenKind, tokenize
from .syntax import (
    Attribute,
    AttributeGroup,
    AttributeSet,
    AttributeValue,
    ComparisonKind,
    ComparisonOperator,
    CompoundConstraint,
    ConceptReference,
    ConstraintBody,
    ConstraintOperator,
    ExpressionConstraint,
    MemberOf,
    NumericValue,
    Operand,
    RefinedConstraint,
    Refinement,
    SetConnector,
    StringValue,
    SubExpressionConstraint,
    SubRefinement,
    Wildcard,
)

_CONSTRAINT_OPERATORS = {
    TokenKind.LT,
    TokenKind.DOUBLE_LT,
    TokenKind.GT,
    TokenKind.DOUBLE_GT,
}
_BINARY_OPERATORS = {TokenKind.AND, TokenKind.OR, TokenKind.MINUS, TokenKind.COMMA}
_SUBEXPRESSION_START = _CONSTRAINT_OPERATORS | {
    TokenKind.CARET,
    TokenKind.WORD,
    TokenKind.STAR,
    TokenKind.LPAREN,
}
_COMPARISON_OPERATORS = {
    TokenKind.EQ: ComparisonKind.EXPRESSION,
    TokenKind.NEQ: ComparisonKind.EXPRESSION,
    TokenKind.LT: ComparisonKind.NUMERIC,
    TokenKind.LTE: ComparisonKind.NUMERIC,
    TokenKind.GT: ComparisonKind.NUMERIC,
    TokenKind.GTE: ComparisonKind.NUMERIC,
}
_CONNECTORS = {
    TokenKind.AND: SetConnector.CONJUNCTION,
    TokenKind.COMMA: SetConnector.CONJUNCTION,
    TokenKind.OR: SetConnector.DISJUNCTION,
}


class ExpressionParser:
    """Parses one expression string; create a new instance per string."""

    def __init__(self, text: str):
        self.text = text
        self.tokens: List[Token] = tokenize(text)
        self.index = 0

    def parse(self) -> ExpressionConstraint:
        body = self._parse_constraint()
        self._expect(TokenKind.EOF, "end of expression")
        return ExpressionConstraint(body=body, position=0)

    # -- token helpers -------------------------------------------------

    def _peek(self, offset: int = 0) -> Token:
        return self.tokens[min(self.index + offset, len(self.tokens) - 1)]

    def _advance(self) -> Token:
        token = self._peek()
        if token.kind is not TokenKind.EOF:
            self.index += 1
        return token

    def _expect(self, kind: TokenKind, what: str) -> Token:
        token = self._peek()
        if token.kind is not kind:
            raise self._error(f"Expected {what}", token)
        return self._advance()

    @staticmethod
    def _error(message: str, token: Token) -> ExpressionSyntaxError:
        found = token.text or token.kind.value
        return ExpressionSyntaxError(message, found, token.position)

    # -- expression level ----------------------------------------------

    def _parse_constraint(self) -> ConstraintBody:
        start = self._peek()
        operands: List[Operand] = [self._parse_operand()]
        operators: List[Optional[str]] = []
        while True:
            token = self._peek()
            if token.kind in _BINARY_OPERATORS:
                self._advance()
                operators.append(token.text.upper())
            elif token.kind in _SUBEXPRESSION_START:
                operators.append(None)
            else:
                break
            operands.append(self._parse_operand())

        if len(operands) == 1:
            return operands[0]
        self._check_not_mixed([op for op in operators if op is not None], start)
        return CompoundConstraint(
            operands=tuple(operands), operators=tuple(operators), position=start.position
        )

    def _check_not_mixed(self, operators: List[str], start: Token) -> None:
        # "," and AND are both conjunction
        kinds = {"AND" if op == "," else op for op in operators}
        if len(kinds) > 1:
            raise self._error("Mixed operators require parentheses", start)

    def _parse_operand(self) -> Operand:
        subject = self._parse_subexpression()
        if self._peek().kind is not TokenKind.COLON:
            return subject
        colon = self._advance()
        refinement = self._parse_refinement()
        return RefinedConstraint(subject=subject, refinement=refinement, position=colon.position)

    def _parse_subexpression(self) -> SubExpressionConstraint:
        start = self._peek()
        operator = None
        member_of = None
        if start.kind in _CONSTRAINT_OPERATORS:
            token = self._advance()
            operator = ConstraintOperator(symbol=token.text, position=token.position)
        if self._peek().kind is TokenKind.CARET:
            token = self._advance()
            member_of = MemberOf(position=token.position)

        token = self._peek()
        if token.kind is TokenKind.STAR:
            self._advance()
            focus = Wildcard(position=token.position)
        elif token.kind is TokenKind.WORD:
            focus = self._parse_concept_reference()
        elif token.kind is TokenKind.LPAREN:
            self._advance()
            inner = self._parse_constraint()
            self._expect(TokenKind.RPAREN, "')'")
            focus = ExpressionConstraint(body=inner, position=token.position)
        else:
            raise self._error("Expected focus concept", token)

        return SubExpressionConstraint(
            focus=focus, position=start.position, operator=operator, member_of=member_of
        )

    def _parse_concept_reference(self) -> ConceptReference:
        token = self._expect(TokenKind.WORD, "concept id")
        term = None
        if self._peek().kind is TokenKind.TERM:
            term = self._advance().text[1:-1].strip()
        return ConceptReference(concept_id=token.text, position=token.position, term=term)

    # -- refinement level ----------------------------------------------

    def _connector_ahead(self, follow: set) -> Optional[SetConnector]:
        """Connector at the cursor, if the token after it is in ``follow``."""
        connector = _CONNECTORS.get(self._peek().kind)
        if connector is not None and self._peek(1).kind in follow:
            return connector
        return None

    def _parse_refinement(self) -> Refinement:
        start = self._peek()
        items: List[SubRefinement] = [self._parse_sub_refinement()]
        connector = None
        follow = {TokenKind.WORD, TokenKind.LBRACE, TokenKind.LPAREN}
        while True:
            next_connector = self._connector_ahead(follow)
            if next_connector is None:
                break
            if connector is not None and next_connector is not connector:
                raise self._error("Mixed refinement operators require parentheses", self._peek())
            connector = next_connector
            self._advance()
            items.append(self._parse_sub_refinement())
        return Refinement(items=tuple(items), position=start.position, connector=connector)

    def _parse_sub_refinement(self) -> SubRefinement:
        token = self._peek()
        if token.kind is TokenKind.LBRACE:
            self._advance()
            inner = self._parse_refinement()
            self._expect(TokenKind.RBRACE, "'}'")
            return AttributeGroup(refinement=inner, position=token.position)
        if token.kind is TokenKind.LPAREN:
            self._advance()
            inner = self._parse_refinement()
            self._expect(TokenKind.RPAREN, "')'")
            return inner
        return self._parse_attribute_set()

    def _parse_attribute_set(self) -> AttributeSet:
        start = self._peek()
        attributes: List[Attribute] = [self._parse_attribute()]
        connector = None
        while True:
            next_connector = self._connector_ahead({TokenKind.WORD})
            if next_connector is None:
                break
            if connector is not None and next_connector is not connector:
                raise self._error("Mixed attribute operators require parentheses", self._peek())
            connector = next_connector
            self._advance()
            attributes.append(self._parse_attribute())

        if len(attributes) == 1 and attributes[0].operator is None:
            raise self._error("Expected comparison operator", self._peek())
        return AttributeSet(attributes=tuple(attributes), position=start.position, connector=connector)

    def _parse_attribute(self) -> Attribute:
        name = self._parse_concept_reference()
        token = self._peek()
        kind = _COMPARISON_OPERATORS.get(token.kind)
        if kind is None:
            return Attribute(name=name, position=name.position)

        self._advance()
        value = self._parse_attribute_value()
        if isinstance(value, StringValue):
            kind = ComparisonKind.STRING
        elif isinstance(value, NumericValue):
            kind = ComparisonKind.NUMERIC
        operator = ComparisonOperator(kind=kind, symbol=token.text, position=token.position)
        return Attribute(name=name, position=name.position, operator=operator, value=value)

    def _parse_attribute_value(self) -> AttributeValue:
        token = self._peek()
        if token.kind is TokenKind.STRING:
            self._advance()
            return StringValue(text=token.text[1:-1], position=token.position)
        if token.kind is TokenKind.NUMBER:
            self._advance()
            return NumericValue(text=token.text[1:], position=token.position)
        if token.kind in _SUBEXPRESSION_START:
            return self._parse_subexpression()
        raise self._error("Expected attribute value", token)


def parse_expression(text: str) -> ExpressionConstraint:
    """Parse ``text`` into a syntax tree or raise ``ExpressionSyntaxError``."""
    return ExpressionParser(text).parse()
