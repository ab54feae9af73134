"""
Interpreter for the subset of CloudWatch metric math used by expression alarms.

Supported syntax:
- numbers and metric ids (``m1``, ``e1``)
- ``+ - * /`` and unary minus
- comparisons ``> >= < <= == !=`` yielding 1 or 0
- ``AND`` / ``OR``
- ``IF(condition, then, else)``

A period in which any referenced series has no datapoint evaluates to None,
as does division by zero.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from .exceptions import ExpressionError

if TYPE_CHECKING:
    from .models import MetricDataQuery

_TOKEN_RE = re.compile(
    r"\s*(?:"
    r"(?P<number>\d+(?:\.\d*)?|\.\d+)"
    r"|(?P<name>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<op>>=|<=|==|!=|[-+*/(),<>])"
    r")"
)

_COMPARISONS = {
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
}

_KEYWORDS = {"IF", "AND", "OR"}


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class MetricRef:
    id: str


@dataclass(frozen=True)
class Negate:
    operand: "Node"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Conditional:
    condition: "Node"
    then: "Node"
    otherwise: "Node"


Node = Union[Number, MetricRef, Negate, BinaryOp, Conditional]


def _tokenize(expression: str) -> List[Tuple[str, str]]:
    tokens = []
    pos = 0
    stripped = expression.rstrip()
    while pos < len(stripped):
        match = _TOKEN_RE.match(stripped, pos)
        if not match or match.end() == pos:
            raise ExpressionError(f"unexpected character at {pos} in '{expression}'")
        kind = match.lastgroup
        tokens.append((kind, match.group(kind)))
        pos = match.end()
    return tokens


class _Parser:
    """Recursive-descent parser, lowest precedence first."""

    def __init__(self, expression: str):
        self.expression = expression
        self.tokens = _tokenize(expression)
        self.pos = 0

    def _peek(self) -> Optional[Tuple[str, str]]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _accept(self, text: str) -> bool:
        token = self._peek()
        if token is not None and token[1] == text:
            self.pos += 1
            return True
        return False

    def _expect(self, text: str) -> None:
        if not self._accept(text):
            token = self._peek()
            found = token[1] if token else "end of expression"
            raise ExpressionError(f"expected '{text}' but found '{found}' in '{self.expression}'")

    def parse(self) -> Node:
        if not self.tokens:
            raise ExpressionError("empty expression")
        node = self._or()
        if self._peek() is not None:
            raise ExpressionError(f"unexpected '{self._peek()[1]}' in '{self.expression}'")
        return node

    def _or(self) -> Node:
        node = self._and()
        while self._accept("OR"):
            node = BinaryOp("OR", node, self._and())
        return node

    def _and(self) -> Node:
        node = self._comparison()
        while self._accept("AND"):
            node = BinaryOp("AND", node, self._comparison())
        return node

    def _comparison(self) -> Node:
        node = self._additive()
        token = self._peek()
        if token is not None and token[1] in _COMPARISONS:
            self.pos += 1
            node = BinaryOp(token[1], node, self._additive())
        return node

    def _additive(self) -> Node:
        node = self._term()
        while True:
            token = self._peek()
            if token is None or token[1] not in ("+", "-"):
                return node
            self.pos += 1
            node = BinaryOp(token[1], node, self._term())

    def _term(self) -> Node:
        node = self._unary()
        while True:
            token = self._peek()
            if token is None or token[1] not in ("*", "/"):
                return node
            self.pos += 1
            node = BinaryOp(token[1], node, self._unary())

    def _unary(self) -> Node:
        if self._accept("-"):
            return Negate(self._unary())
        return self._primary()

    def _primary(self) -> Node:
        token = self._peek()
        if token is None:
            raise ExpressionError(f"unexpected end of '{self.expression}'")
        kind, text = token
        self.pos += 1

        if kind == "number":
            return Number(float(text))
        if text == "(":
            node = self._or()
            self._expect(")")
            return node
        if text == "IF":
            self._expect("(")
            condition = self._or()
            self._expect(",")
            then = self._or()
            self._expect(",")
            otherwise = self._or()
            self._expect(")")
            return Conditional(condition, then, otherwise)
        if kind == "name" and text not in _KEYWORDS:
            if text[0].isupper():
                raise ExpressionError(f"unsupported function '{text}' in '{self.expression}'")
            return MetricRef(text)
        raise ExpressionError(f"unexpected '{text}' in '{self.expression}'")


@lru_cache(maxsize=256)
def parse(expression: str) -> Node:
    """Parse a metric-math expression into a syntax tree."""
    return _Parser(expression).parse()


def _collect_ids(node: Node, found: Set[str]) -> None:
    if isinstance(node, MetricRef):
        found.add(node.id)
    elif isinstance(node, Negate):
        _collect_ids(node.operand, found)
    elif isinstance(node, BinaryOp):
        _collect_ids(node.left, found)
        _collect_ids(node.right, found)
    elif isinstance(node, Conditional):
        _collect_ids(node.condition, found)
        _collect_ids(node.then, found)
        _collect_ids(node.otherwise, found)


def referenced_ids(expression: str) -> Set[str]:
    """Return the metric ids an expression reads."""
    found: Set[str] = set()
    _collect_ids(parse(expression), found)
    return found


def _eval(node: Node, values: Mapping[str, Optional[float]]) -> Optional[float]:
    if isinstance(node, Number):
        return node.value
    if isinstance(node, MetricRef):
        if node.id not in values:
            raise ExpressionError(f"no series named '{node.id}'")
        value = values[node.id]
        return None if value is None else float(value)
    if isinstance(node, Negate):
        operand = _eval(node.operand, values)
        return None if operand is None else -operand
    if isinstance(node, Conditional):
        condition = _eval(node.condition, values)
        if condition is None:
            return None
        return _eval(node.then if condition != 0 else node.otherwise, values)

    left = _eval(node.left, values)
    right = _eval(node.right, values)
    if left is None or right is None:
        return None
    if node.op in _COMPARISONS:
        return 1.0 if _COMPARISONS[node.op](left, right) else 0.0
    if node.op == "AND":
        return 1.0 if left != 0 and right != 0 else 0.0
    if node.op == "OR":
        return 1.0 if left != 0 or right != 0 else 0.0
    if node.op == "+":
        return left + right
    if node.op == "-":
        return left - right
    if node.op == "*":
        return left * right
    if right == 0:
        return None
    return left / right


def evaluate(expression: str, values: Mapping[str, Optional[float]]) -> Optional[float]:
    """
    Evaluate an expression for a single period.

    Args:
        expression: Metric-math expression, e.g. ``IF((m1-m2) > 100,1,0)``
        values: Datapoint per metric id for the period (None when absent)

    Returns:
        The expression value, or None when the period has no result.
    """
    return _eval(parse(expression), values)


def evaluate_queries(
    queries: Iterable["MetricDataQuery"],
    samples: Mapping[str, Optional[float]],
) -> Optional[float]:
    """
    Evaluate an alarm's query set for one period and return the driving value.

    Raw metric queries take their value from ``samples``; expressions are
    evaluated in dependency order so one expression may read another.
    """
    queries = list(queries)
    values: Dict[str, Optional[float]] = {
        query.id: samples.get(query.id) for query in queries if query.metric_stat is not None
    }
    pending = [query for query in queries if query.expression is not None]

    while pending:
        ready = [q for q in pending if referenced_ids(q.expression) <= set(values)]
        if not ready:
            raise ExpressionError(
                f"circular or undefined references among: {', '.join(q.id for q in pending)}"
            )
        for query in ready:
            values[query.id] = evaluate(query.expression, values)
            pending.remove(query)

    driving = [query.id for query in queries if query.return_data]
    if len(driving) != 1:
        raise ExpressionError(f"expected one driving query, got {len(driving)}")
    return values[driving[0]]
