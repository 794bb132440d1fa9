"""
Rule Condition Expressions for the Loan Decision Engine.

Rule conditions are small boolean expressions over a fixed set of loan
fields, for example::

    credit_score < 650 && (loan_amount > 50000 || !employment_verified)

Expressions are tokenized, parsed into a tagged AST and interpreted against
a field map. Nothing is ever executed as code: the only names an expression
can reference are the fields it is evaluated against and the literals
``true``, ``false`` and ``null``.

Grammar (lowest to highest precedence)::

    or         := and ("||" and)*
    and        := not ("&&" not)*
    not        := "!" not | comparison
    comparison := additive (("<" | "<=" | ">" | ">=" | "==" | "!=") additive)?
    additive   := term (("+" | "-") term)*
    term       := unary (("*" | "/") unary)*
    unary      := "-" unary | primary
    primary    := NUMBER | STRING | IDENT | "(" or ")"
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, List, Mapping, Union

from loan_decision_engine.domain.exceptions import RuleEvaluationException


# =============================================================================
# Tokens
# =============================================================================

_TOKEN_PATTERN = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<number>\d+\.\d*|\.\d+|\d+)
  | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
  | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<op>===|!==|&&|\|\||<=|>=|==|!=|<|>|!|\+|-|\*|/)
  | (?P<lparen>\()
  | (?P<rparen>\))
    """,
    re.VERBOSE,
)

# JavaScript-style strict operators are accepted as plain equality.
_OPERATOR_ALIASES = {"===": "==", "!==": "!="}

_KEYWORDS = {"true": True, "false": False, "null": None}


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    position: int


def tokenize(expression: str) -> List[Token]:
    """Split an expression into tokens, raising on any unexpected character."""
    tokens = []
    position = 0

    while position < len(expression):
        match = _TOKEN_PATTERN.match(expression, position)
        if match is None:
            raise RuleEvaluationException(
                f"Unexpected character {expression[position]!r} at position {position}",
                condition=expression,
            )

        kind = match.lastgroup
        text = match.group()
        if kind == "op":
            text = _OPERATOR_ALIASES.get(text, text)
        if kind != "ws":
            tokens.append(Token(kind=kind, text=text, position=position))
        position = match.end()

    tokens.append(Token(kind="end", text="", position=len(expression)))
    return tokens


# =============================================================================
# AST
# =============================================================================

@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class Field:
    name: str


@dataclass(frozen=True)
class Unary:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class Binary:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Logical:
    op: str
    left: "Node"
    right: "Node"


Node = Union[Literal, Field, Unary, Binary, Logical]

_COMPARISON_OPS = {"<", "<=", ">", ">=", "==", "!="}


class _Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, expression: str):
        self._expression = expression
        self._tokens = tokenize(expression)
        self._index = 0

    def parse(self) -> Node:
        node = self._or()
        if self._peek().kind != "end":
            self._fail(f"Unexpected token {self._peek().text!r}")
        return node

    def _peek(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def _match_op(self, *ops: str) -> str | None:
        token = self._peek()
        if token.kind == "op" and token.text in ops:
            self._index += 1
            return token.text
        return None

    def _fail(self, message: str) -> None:
        token = self._peek()
        raise RuleEvaluationException(
            f"{message} at position {token.position}",
            condition=self._expression,
        )

    def _or(self) -> Node:
        node = self._and()
        while self._match_op("||"):
            node = Logical("||", node, self._and())
        return node

    def _and(self) -> Node:
        node = self._not()
        while self._match_op("&&"):
            node = Logical("&&", node, self._not())
        return node

    def _not(self) -> Node:
        if self._match_op("!"):
            return Unary("!", self._not())
        return self._comparison()

    def _comparison(self) -> Node:
        node = self._additive()
        op = self._match_op(*_COMPARISON_OPS)
        if op:
            node = Binary(op, node, self._additive())
            if self._peek().kind == "op" and self._peek().text in _COMPARISON_OPS:
                self._fail("Chained comparisons are not supported")
        return node

    def _additive(self) -> Node:
        node = self._term()
        while True:
            op = self._match_op("+", "-")
            if not op:
                return node
            node = Binary(op, node, self._term())

    def _term(self) -> Node:
        node = self._unary()
        while True:
            op = self._match_op("*", "/")
            if not op:
                return node
            node = Binary(op, node, self._unary())

    def _unary(self) -> Node:
        if self._match_op("-"):
            return Unary("-", self._unary())
        return self._primary()

    def _primary(self) -> Node:
        token = self._advance()

        if token.kind == "number":
            text = token.text
            return Literal(float(text) if "." in text else int(text))

        if token.kind == "string":
            body = token.text[1:-1]
            return Literal(re.sub(r"\\(.)", r"\1", body))

        if token.kind == "ident":
            if token.text in _KEYWORDS:
                return Literal(_KEYWORDS[token.text])
            if self._peek().kind == "lparen":
                self._fail(f"Function calls are not allowed: {token.text}")
            return Field(token.text)

        if token.kind == "lparen":
            node = self._or()
            if self._advance().kind != "rparen":
                self._index -= 1
                self._fail("Expected ')'")
            return node

        self._index -= 1
        if token.kind == "end":
            self._fail("Unexpected end of expression")
        self._fail(f"Unexpected token {token.text!r}")


@lru_cache(maxsize=512)
def parse(expression: str) -> Node:
    """
    Parse a condition expression into an AST.

    Raises:
        RuleEvaluationException: If the expression is malformed
    """
    if not expression or not expression.strip():
        raise RuleEvaluationException("Empty condition", condition=expression)
    return _Parser(expression).parse()


# =============================================================================
# Interpreter
# =============================================================================

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _equals(left: Any, right: Any) -> bool:
    if _is_number(left) and _is_number(right):
        return left == right
    if type(left) is not type(right):
        return False
    return left == right


def _evaluate(node: Node, fields: Mapping[str, Any], expression: str) -> Any:
    def fail(message: str) -> None:
        raise RuleEvaluationException(message, condition=expression)

    if isinstance(node, Literal):
        return node.value

    if isinstance(node, Field):
        if node.name not in fields:
            fail(f"Unknown field: {node.name}")
        return fields[node.name]

    if isinstance(node, Logical):
        left = _evaluate(node.left, fields, expression)
        if not isinstance(left, bool):
            fail(f"Operand of {node.op} must be boolean, got {left!r}")
        # Short-circuit
        if node.op == "&&" and not left:
            return False
        if node.op == "||" and left:
            return True
        right = _evaluate(node.right, fields, expression)
        if not isinstance(right, bool):
            fail(f"Operand of {node.op} must be boolean, got {right!r}")
        return right

    if isinstance(node, Unary):
        operand = _evaluate(node.operand, fields, expression)
        if node.op == "!":
            if not isinstance(operand, bool):
                fail(f"Operand of ! must be boolean, got {operand!r}")
            return not operand
        if not _is_number(operand):
            fail(f"Operand of unary - must be numeric, got {operand!r}")
        return -operand

    left = _evaluate(node.left, fields, expression)
    right = _evaluate(node.right, fields, expression)
    op = node.op

    if op == "==":
        return _equals(left, right)
    if op == "!=":
        return not _equals(left, right)

    if op in ("<", "<=", ">", ">="):
        comparable = (_is_number(left) and _is_number(right)) or (
            isinstance(left, str) and isinstance(right, str)
        )
        if not comparable:
            fail(f"Cannot compare {left!r} {op} {right!r}")
        if op == "<":
            return left < right
        if op == "<=":
            return left <= right
        if op == ">":
            return left > right
        return left >= right

    if not (_is_number(left) and _is_number(right)):
        fail(f"Arithmetic requires numbers, got {left!r} {op} {right!r}")
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if right == 0:
        fail("Division by zero")
    return left / right


def evaluate_condition(expression: str, fields: Mapping[str, Any]) -> bool:
    """
    Evaluate a boolean condition against a field map.

    Args:
        expression: Condition source, e.g. ``"credit_score >= 700"``
        fields: Values for every field the expression may reference;
            None values behave as the ``null`` literal

    Returns:
        The boolean result of the condition

    Raises:
        RuleEvaluationException: If the expression is malformed, references
            an unknown field, mixes incompatible types, or is not boolean
    """
    result = _evaluate(parse(expression), fields, expression)
    if not isinstance(result, bool):
        raise RuleEvaluationException(
            f"Condition must evaluate to a boolean, got {result!r}",
            condition=expression,
        )
    return result
