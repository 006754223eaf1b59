"""Tokenizer for the expression constraint language."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List

from ..errors import ExpressionSyntaxError


class TokenKind(Enum):
    DOUBLE_LT = "<<"
    LT = "<"
    LTE = "<="
    DOUBLE_GT = ">>"
    GT = ">"
    GTE = ">="
    EQ = "="
    NEQ = "!="
    CARET = "^"
    STAR = "*"
    COLON = ":"
    COMMA = ","
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    TERM = "term"
    STRING = "string"
    NUMBER = "number"
    WORD = "word"
    AND = "AND"
    OR = "OR"
    MINUS = "MINUS"
    EOF = "end of input"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: int


# Order matters: two-character operators before their one-character prefixes.
_TOKEN_PATTERNS = [
    ("WS", r"\s+"),
    ("COMMENT", r"/\*.*?\*/"),
    ("TERM", r"\|[^|]*\|"),
    ("STRING", r'"(?:[^"\\]|\\.)*"'),
    ("NUMBER", r"#[+-]?\d+(?:\.\d+)?"),
    ("DOUBLE_LT", r"<<"),
    ("LTE", r"<="),
    ("LT", r"<"),
    ("DOUBLE_GT", r">>"),
    ("GTE", r">="),
    ("GT", r">"),
    ("NEQ", r"!="),
    ("EQ", r"="),
    ("CARET", r"\^"),
    ("STAR", r"\*"),
    ("COLON", r":"),
    ("COMMA", r","),
    ("LPAREN", r"\("),
    ("RPAREN", r"\)"),
    ("LBRACE", r"\{"),
    ("RBRACE", r"\}"),
    ("WORD", r"[A-Za-z0-9_.\-]+"),
]
_MASTER_PATTERN = re.compile(
    "|".join(f"(?P<{name}>{pattern})" for name, pattern in _TOKEN_PATTERNS),
    re.DOTALL,
)
_KEYWORDS = {"AND": TokenKind.AND, "OR": TokenKind.OR, "MINUS": TokenKind.MINUS}
_SKIPPED = {"WS", "COMMENT"}


def tokenize(text: str) -> List[Token]:
    """Split an expression into tokens, always ending with an EOF token."""

    tokens: List[Token] = []
    pos = 0
    while pos < len(text):
        match = _MASTER_PATTERN.match(text, pos)
        if match is None:
            raise ExpressionSyntaxError("Unexpected character", text[pos:pos + 10], pos)
        group = match.lastgroup
        value = match.group()
        if group not in _SKIPPED:
            if group == "WORD" and value.upper() in _KEYWORDS:
                kind = _KEYWORDS[value.upper()]
            else:
                kind = TokenKind[group]
            tokens.append(Token(kind, value, pos))
        pos = match.end()
    tokens.append(Token(TokenKind.EOF, "", len(text)))
    return tokens
