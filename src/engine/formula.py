"""Arithmetic formulas over record fields.

A formula such as ``{weight} / ({height} * {height})`` is evaluated per
record in three stages:

1. Substitute: each ``{field}`` becomes the record's value rendered as a
   decimal string, or ``null`` when the value is missing.
2. Validate: with ``null`` removed, the text must consist only of digits,
   ``+ - * / ( ) .`` and spaces.
3. Evaluate: tokenize and parse with a recursive-descent grammar

       expr   := term (('+' | '-') term)*
       term   := factor (('*' | '/') factor)*
       factor := ('+' | '-') factor | NUMBER | 'null' | '(' expr ')'

A ``null`` operand counts as 0. Any failure (rejected characters, syntax
error, division by zero, non-finite result) yields ``""`` for that record.
Results are rounded half away from zero.
No general-purpose interpreter is ever invoked.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum

from src.models.dataset import CaseRecord
from src.quality.values import is_missing, render_value

FIELD_PATTERN = re.compile(r"\{([a-zA-Z_][a-zA-Z0-9_]*)\}")
_ALLOWED = re.compile(r"[0-9+\-*/(). ]+")
_NUMBER = re.compile(r"[0-9]+\.?[0-9]*|\.[0-9]+")

NULL_TOKEN = "null"
MAX_DEPTH = 64
DEFAULT_DECIMALS = 2
# Floats at or above 2**52 carry no fractional digits.
_INTEGRAL_FLOAT = 2.0**52


class FormulaError(ValueError):
    """Raised when an expression cannot be tokenized, parsed or evaluated."""


class TokenKind(StrEnum):
    NUMBER = "NUMBER"
    NULL = "NULL"
    OP = "OP"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: int


# ---------------------------------------------------------------------------
# Stage 1 + 2: substitution and character validation
# ---------------------------------------------------------------------------


def referenced_fields(formula: str) -> list[str]:
    """Field names referenced by ``{name}`` tokens, in order of appearance."""
    return FIELD_PATTERN.findall(formula)


def substitute_fields(record: CaseRecord, formula: str) -> str:
    """Replace ``{field}`` tokens with record values (``null`` if missing)."""

    def _replace(match: re.Match[str]) -> str:
        value = record.get(match.group(1))
        if is_missing(value):
            return NULL_TOKEN
        return render_value(value).strip()

    return FIELD_PATTERN.sub(_replace, formula)


def is_arithmetic(expression: str) -> bool:
    """True when only arithmetic characters remain once nulls are removed."""
    return _ALLOWED.fullmatch(expression.replace(NULL_TOKEN, "")) is not None


# ---------------------------------------------------------------------------
# Stage 3: tokenizer and parser
# ---------------------------------------------------------------------------


def tokenize(expression: str) -> list[Token]:
    """Split an arithmetic expression into tokens."""
    tokens: list[Token] = []
    pos = 0
    while pos < len(expression):
        char = expression[pos]
        if char.isspace():
            pos += 1
            continue
        if expression.startswith(NULL_TOKEN, pos):
            tokens.append(Token(TokenKind.NULL, NULL_TOKEN, pos))
            pos += len(NULL_TOKEN)
            continue
        if char in "+-*/":
            tokens.append(Token(TokenKind.OP, char, pos))
            pos += 1
            continue
        if char == "(":
            tokens.append(Token(TokenKind.LPAREN, char, pos))
            pos += 1
            continue
        if char == ")":
            tokens.append(Token(TokenKind.RPAREN, char, pos))
            pos += 1
            continue
        match = _NUMBER.match(expression, pos)
        if match is None:
            msg = f"Unexpected character {char!r} at position {pos}"
            raise FormulaError(msg)
        tokens.append(Token(TokenKind.NUMBER, match.group(), pos))
        pos = match.end()
    return tokens


class _Parser:
    """Recursive-descent evaluator over a token list.

    Evaluates while parsing. ``null`` evaluates to 0.
    """

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._pos = 0
        self._depth = 0

    def parse(self) -> float:
        if not self._tokens:
            msg = "Empty expression"
            raise FormulaError(msg)
        value = self._expr()
        if self._pos != len(self._tokens):
            token = self._tokens[self._pos]
            msg = f"Unexpected {token.text!r} at position {token.position}"
            raise FormulaError(msg)
        return value

    def _peek(self) -> Token | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _advance(self) -> Token:
        token = self._peek()
        if token is None:
            msg = "Unexpected end of expression"
            raise FormulaError(msg)
        self._pos += 1
        return token

    def _expr(self) -> float:
        value = self._term()
        while (token := self._peek()) is not None and token.text in ("+", "-"):
            self._advance()
            right = self._term()
            value = _apply(token.text, value, right)
        return value

    def _term(self) -> float:
        value = self._factor()
        while (token := self._peek()) is not None and token.text in ("*", "/"):
            self._advance()
            right = self._factor()
            value = _apply(token.text, value, right)
        return value

    def _factor(self) -> float:
        self._depth += 1
        if self._depth > MAX_DEPTH:
            msg = "Expression nested too deeply"
            raise FormulaError(msg)
        try:
            token = self._advance()
            # Signs stack: a negative value substituted after "-" evaluates
            # ("5 - -3" is 8) instead of being a syntax error.
            if token.kind == TokenKind.OP and token.text in ("+", "-"):
                operand = self._factor()
                return -operand if token.text == "-" else operand
            if token.kind == TokenKind.NUMBER:
                return float(token.text)
            if token.kind == TokenKind.NULL:
                return 0.0
            if token.kind == TokenKind.LPAREN:
                value = self._expr()
                closing = self._advance()
                if closing.kind != TokenKind.RPAREN:
                    msg = f"Expected ')' at position {closing.position}"
                    raise FormulaError(msg)
                return value
            msg = f"Unexpected {token.text!r} at position {token.position}"
            raise FormulaError(msg)
        finally:
            self._depth -= 1


def _apply(op: str, left: float, right: float) -> float:
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if right == 0:
        msg = "Division by zero"
        raise FormulaError(msg)
    return left / right


def evaluate_expression(expression: str) -> float:
    """Evaluate an arithmetic expression; ``null`` counts as 0.

    Raises
    ------
    FormulaError
        On characters outside the arithmetic subset, syntax errors or
        division by zero.
    """
    return _Parser(tokenize(expression)).parse()


# ---------------------------------------------------------------------------
# Per-record evaluation
# ---------------------------------------------------------------------------


def round_half_up(value: float, decimals: int) -> float:
    """Round to *decimals* places with ties away from zero (0.125 -> 0.13)."""
    if abs(value) >= _INTEGRAL_FLOAT:
        return value
    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def evaluate_formula(
    record: CaseRecord,
    formula: str,
    decimals: int = DEFAULT_DECIMALS,
) -> float | str:
    """Evaluate *formula* against *record*.

    Returns the result rounded to *decimals* places, or ``""`` when the
    formula cannot produce a finite number for this record.
    """
    expression = substitute_fields(record, formula)
    if not is_arithmetic(expression):
        return ""
    try:
        result = evaluate_expression(expression)
    except (FormulaError, OverflowError):
        return ""
    if not math.isfinite(result):
        return ""
    return round_half_up(result, decimals)
