"""Parse whitespace separated arithmetic tokens into a precedence tree.

The parser reads a term/operator chain left to right, then hooks each operator
into the tree built from everything to its right with `compose`, rotating that
subtree when the new operator binds tighter than its root. Only groups recurse.

Equal precedence operators nest to the *right*: `a - b - c` is
`Operation(-, a, Operation(-, b, c))`. Consumers that evaluate the tree must be
aware of this convention for `-` and `/`.
"""
from __future__ import annotations

import enum
import logging
import os
import re
from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

MAX_DEPTH = int(os.getenv("PRECEDENCE_TREE_MAX_DEPTH", 200))

OPEN, CLOSE = "(", ")"


def tokenize(s):
    return s.split()


class Op(NamedTuple):
    name: str
    symbol: str
    prec: int

    def __repr__(self):
        return f"op({self.symbol!r:})"

    def binds_tighter(self, other):
        return self.prec > other.prec


OP_GROUPS = """
Add+ Sub-
Mul* Div/
Exp^
""".strip()
OPS = {
    o: Op(name, o, 10 ** (rank + 1))
    for rank, op_groups in enumerate(OP_GROUPS.split("\n"))
    for [(name, o)] in map(re.compile(r"^(\w+)(\W)$").findall, op_groups.split())
}


def lookup(symbol) -> Optional[Op]:
    return OPS.get(symbol)


def precedence(op: Op) -> int:
    return op.prec


class TokenKind(enum.Enum):
    OPERATOR = "operator"
    OPEN = "open"
    CLOSE = "close"
    TERM = "term"


def classify(token) -> TokenKind:
    if token in OPS:
        return TokenKind.OPERATOR
    if token == OPEN:
        return TokenKind.OPEN
    if token == CLOSE:
        return TokenKind.CLOSE
    return TokenKind.TERM


class ErrorKind(enum.Enum):
    EMPTY_STREAM = "EmptyStream"
    LEADING_OPERATOR = "LeadingOperator"
    UNMATCHED_CLOSE = "UnmatchedClose"
    UNMATCHED_OPEN = "UnmatchedOpen"
    EXPECTED_OPERATOR = "ExpectedOperator"
    TOO_DEEP = "TooDeep"


class ParseError(ValueError):
    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind

    def __repr__(self):
        return f"ParseError({self.kind.value}, {str(self)!r})"


@dataclass(frozen=True)
class Leaf:
    name: str


@dataclass(frozen=True)
class Operation:
    op: Op
    left: Node
    right: Node


@dataclass(frozen=True)
class Group:
    inner: Node


Node = Union[Leaf, Operation, Group]


def match_group(tokens: Sequence[str]) -> Tuple[Sequence[str], Sequence[str]]:
    """Split the tokens following an opening paren at its matching close.

    Returns `(inner, after)`; the closing paren itself belongs to neither.

    >>> match_group(["a", "*", "(", "b", ")", ")", "+", "c"])
    (['a', '*', '(', 'b', ')'], ['+', 'c'])
    """
    depth = 1
    for i, tok in enumerate(tokens):
        kind = classify(tok)
        if kind is TokenKind.OPEN:
            depth += 1
        elif kind is TokenKind.CLOSE:
            depth -= 1
            if depth == 0:
                logger.debug("group closes at offset %d of %d", i, len(tokens))
                return tokens[:i], tokens[i + 1 :]
    raise ParseError(
        ErrorKind.UNMATCHED_OPEN, f"{depth} unclosed {OPEN!r} at end of input"
    )


def compose(op: Op, left: Node, into: Node) -> Node:
    """Attach `op` with operand `left` to the already parsed right side `into`.

    If `op` binds tighter than the root of `into`, the operation sinks into the
    root's left operand (everything between `left` and the root operator in
    source order), recursively.
    """
    if isinstance(into, (Leaf, Group)):
        return Operation(op, left, into)
    if not isinstance(into, Operation):
        raise TypeError(f"Not a tree node: {into!r}")
    if not op.binds_tighter(into.op):
        return Operation(op, left, into)
    logger.debug("rotating %r below %r", op, into.op)
    return Operation(into.op, compose(op, left, into.left), into.right)


def parse(tokens: Sequence[str], max_depth: Optional[int] = None) -> Node:
    """Parse `tokens` into a tree, raising `ParseError` on malformed input.

    Operator chains are read in a loop and folded right to left with
    `compose`, so only parenthesized groups recurse. `max_depth` bounds how
    deeply groups may nest; it defaults to `MAX_DEPTH`. Nesting that the
    interpreter's stack cannot hold is reported as `TOO_DEEP` as well.
    """
    max_depth = MAX_DEPTH if max_depth is None else max_depth
    try:
        return _parse(tokens, 0, max_depth)
    except RecursionError as e:
        raise ParseError(
            ErrorKind.TOO_DEEP, "groups nested deeper than the interpreter stack"
        ) from e


def _parse(tokens, depth, max_depth):
    if depth > max_depth:
        raise ParseError(
            ErrorKind.TOO_DEEP, f"groups nested deeper than {max_depth}"
        )
    pending = []
    while True:
        left, remaining = _term(tokens, depth, max_depth)
        if not remaining:
            break
        if (op := lookup(remaining[0])) is None:
            raise ParseError(
                ErrorKind.EXPECTED_OPERATOR,
                f"expected an operator after a term, got {remaining[0]!r}",
            )
        if not (tokens := remaining[1:]):
            raise ParseError(
                ErrorKind.EMPTY_STREAM, f"operator {op.symbol!r} has no right operand"
            )
        pending.append((left, op))
    for prev, op in reversed(pending):
        left = compose(op, prev, left)
    return left


def _term(tokens, depth, max_depth):
    if not tokens:
        raise ParseError(ErrorKind.EMPTY_STREAM, "expected a term, got nothing")
    first, rest = tokens[0], tokens[1:]
    kind = classify(first)
    if kind is TokenKind.OPERATOR:
        raise ParseError(
            ErrorKind.LEADING_OPERATOR,
            f"operator {first!r} where a term was expected; "
            "unary operators are not supported",
        )
    if kind is TokenKind.CLOSE:
        raise ParseError(
            ErrorKind.UNMATCHED_CLOSE, f"{first!r} where a term was expected"
        )
    if kind is TokenKind.OPEN:
        inner, after = match_group(rest)
        return Group(_parse(inner, depth + 1, max_depth)), after
    return Leaf(first), rest


def to_ast(x, max_depth=None):
    return parse(tokenize(x), max_depth)
