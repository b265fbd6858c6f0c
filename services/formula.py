"""Compile and evaluate lm-sensors ``compute`` expressions.

Expressions use ``@`` for the raw reading, decimal literals, the binary
operators ``+ - * / ^``, unary minus and parentheses. They are compiled once
into postfix order with the shunting-yard algorithm and evaluated against a
value stack for every reading. An expression that starts with a binary
operator reads as if ``@`` preceded it, so ``*0.5`` halves the input.
"""

from __future__ import annotations

import operator
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple, Union

VARIABLE = "@"
_NEGATE = "neg"

_TOKEN_RE = re.compile(
    r"\s*(?:(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)|(?P<symbol>[-+*/^()@]))"
)

_BINARY: Dict[str, Callable[[float, float], float]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "^": operator.pow,
}
_PRECEDENCE = {"+": 1, "-": 1, "*": 2, "/": 2, _NEGATE: 3, "^": 4}
_RIGHT_ASSOCIATIVE = {"^", _NEGATE}

PostfixToken = Union[float, str]


class FormulaError(ValueError):
    """Raised when an expression cannot be compiled or evaluated."""


@dataclass(frozen=True)
class CompiledFormula:
    source: str
    postfix: Tuple[PostfixToken, ...]

    def evaluate(self, value: float) -> float:
        stack: List[float] = []
        try:
            for token in self.postfix:
                if isinstance(token, float):
                    stack.append(token)
                elif token == VARIABLE:
                    stack.append(value)
                elif token == _NEGATE:
                    stack.append(-stack.pop())
                else:
                    right = stack.pop()
                    left = stack.pop()
                    stack.append(_BINARY[token](left, right))
        except (ZeroDivisionError, OverflowError) as exc:
            raise FormulaError(f"Cannot evaluate {self.source!r}: {exc}") from exc

        result = stack.pop()
        if isinstance(result, complex):
            raise FormulaError(f"Expression {self.source!r} has no real result.")
        return float(result)


def _tokenize(text: str) -> List[str]:
    tokens: List[str] = []
    position = 0
    stripped = text.rstrip()
    while position < len(stripped):
        match = _TOKEN_RE.match(stripped, position)
        if match is None:
            raise FormulaError(
                f"Unexpected character {stripped[position:].lstrip()[:1]!r} in {text!r}."
            )
        tokens.append(match.group("number") or match.group("symbol"))
        position = match.end()
    return tokens


def compile_formula(text: str) -> CompiledFormula:
    """Compile ``text`` into postfix form, raising ``FormulaError`` if malformed."""
    tokens = _tokenize(text)
    if not tokens:
        raise FormulaError("Expression is empty.")

    output: List[PostfixToken] = []
    pending: List[str] = []
    expect_operand = True

    if tokens[0] in _BINARY and tokens[0] != "-":
        output.append(VARIABLE)
        expect_operand = False

    for token in tokens:
        if expect_operand:
            if token == VARIABLE:
                output.append(VARIABLE)
                expect_operand = False
            elif token == "(":
                pending.append(token)
            elif token == "-":
                pending.append(_NEGATE)
            elif token == "+":
                continue
            elif token in _BINARY or token == ")":
                raise FormulaError(f"Operand expected before {token!r} in {text!r}.")
            else:
                output.append(float(token))
                expect_operand = False
            continue

        if token in _BINARY:
            precedence = _PRECEDENCE[token]
            while pending and pending[-1] != "(":
                top = _PRECEDENCE[pending[-1]]
                if top > precedence or (top == precedence and token not in _RIGHT_ASSOCIATIVE):
                    output.append(pending.pop())
                else:
                    break
            pending.append(token)
            expect_operand = True
        elif token == ")":
            while pending and pending[-1] != "(":
                output.append(pending.pop())
            if not pending:
                raise FormulaError(f"Unbalanced ')' in {text!r}.")
            pending.pop()
        else:
            raise FormulaError(f"Operator expected before {token!r} in {text!r}.")

    if expect_operand:
        raise FormulaError(f"Expression {text!r} ends without an operand.")
    while pending:
        token = pending.pop()
        if token == "(":
            raise FormulaError(f"Unbalanced '(' in {text!r}.")
        output.append(token)

    return CompiledFormula(source=text.strip(), postfix=tuple(output))
