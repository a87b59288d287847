"""Four-function calculator.

Expressions are evaluated by a small recursive-descent parser that only
understands numbers, unary signs and ``+ - * /`` (the keypad's ``×`` and
``÷`` are accepted as aliases). Anything else is a ``CalculatorError``.

    expr   := term (('+' | '-') term)*
    term   := factor (('*' | '/') factor)*
    factor := ('+' | '-') factor | NUMBER
"""

from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import List, Optional, Union

Number = Union[int, float]

KEYPAD = [
    ["7", "8", "9", "+"],
    ["4", "5", "6", "×"],
    ["1", "2", "3", "-"],
    ["0", "C", "=", "÷"],
]

OPERATOR_ALIASES = {"×": "*", "÷": "/"}

_TOKEN_RE = re.compile(r"\s*(?:(\d+(?:\.\d*)?|\.\d+)|(.))")


class CalculatorError(ValueError):
    pass


def tokenize(expr: str) -> List[str]:
    for alias, op in OPERATOR_ALIASES.items():
        expr = expr.replace(alias, op)
    tokens: List[str] = []
    pos = 0
    while pos < len(expr):
        m = _TOKEN_RE.match(expr, pos)
        if m is None:
            # only trailing whitespace is left
            break
        number, other = m.group(1), m.group(2)
        if number is not None:
            tokens.append(number)
        elif other in "+-*/":
            tokens.append(other)
        else:
            raise CalculatorError(f"unexpected character {other!r}")
        pos = m.end()
    return tokens


class _Parser:
    def __init__(self, tokens: List[str]) -> None:
        self.tokens = tokens
        self.pos = 0

    def peek(self) -> Optional[str]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def take(self) -> str:
        tok = self.peek()
        if tok is None:
            raise CalculatorError("unexpected end of expression")
        self.pos += 1
        return tok

    def parse(self) -> Number:
        if not self.tokens:
            raise CalculatorError("empty expression")
        value = self.expr()
        if self.peek() is not None:
            raise CalculatorError(f"unexpected token {self.peek()!r}")
        return value

    def expr(self) -> Number:
        value = self.term()
        while self.peek() in ("+", "-"):
            if self.take() == "+":
                value = value + self.term()
            else:
                value = value - self.term()
        return value

    def term(self) -> Number:
        value = self.factor()
        while self.peek() in ("*", "/"):
            op = self.take()
            rhs = self.factor()
            if op == "*":
                value = value * rhs
            elif rhs == 0:
                raise CalculatorError("division by zero")
            else:
                value = value / rhs
        return value

    def factor(self) -> Number:
        tok = self.take()
        if tok == "+":
            return self.factor()
        if tok == "-":
            return -self.factor()
        if tok in ("*", "/"):
            raise CalculatorError(f"operator {tok!r} without left operand")
        if "." in tok:
            return float(tok)
        return int(tok)


def evaluate(expr: str) -> Number:
    try:
        value = _Parser(tokenize(expr)).parse()
    except CalculatorError:
        raise
    except (OverflowError, ValueError) as exc:
        # huge ints: float conversion overflow or the int/str digit limit
        raise CalculatorError(str(exc)) from exc
    if isinstance(value, float) and not math.isfinite(value):
        raise CalculatorError("result out of range")
    return value


def format_number(value: Number) -> str:
    """Render a result so that it tokenizes again: no exponent, no trailing ``.0``."""
    try:
        if isinstance(value, float):
            if value.is_integer():
                return str(int(value))
            return format(Decimal(repr(value)), "f")
        return str(value)
    except ValueError as exc:
        raise CalculatorError(str(exc)) from exc


class Calculator:
    """Keypad state: an expression string edited one button at a time."""

    def __init__(self) -> None:
        self.expression = ""

    def press(self, button: str) -> str:
        if button == "C":
            self.expression = ""
        elif button == "=":
            if self.expression:
                try:
                    self.expression = format_number(evaluate(self.expression))
                except CalculatorError:
                    self.expression = ""
        else:
            self.expression += button
        return self.expression
