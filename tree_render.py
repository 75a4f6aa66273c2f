"""Turn precedence trees back into text: infix, S-expressions and a small CLI.

The parser itself never prints anything; this module is what a user of the
command line (or a debugging session) sees.
"""
import argparse
import logging
import os
import sys

from tree_parser import Group, Leaf, Operation, ParseError, tokenize, parse

logger = logging.getLogger(__name__)

DEBUG = bool(os.getenv("DEBUG", False))


def _infix(x):
    if type(x) is Group:
        return [("(", False), (x.inner, True), (")", False)]
    return [(x.left, True), (x.op.symbol, False), (x.right, True)]


def _sexpr(x):
    if type(x) is Group:
        return [("(group ", False), (x.inner, True), (")", False)]
    return [
        (f"({x.op.symbol} ", False),
        (x.left, True),
        (" ", False),
        (x.right, True),
        (")", False),
    ]


def _walk(expr, layout):
    """Yield the leaves of `expr` interleaved with the text `layout` puts around
    each group and operation, in order.

    Uses an explicit stack: right nested operator chains are as deep as they
    are long.
    """
    stack = [(expr, True)]
    while stack:
        x, is_node = stack.pop()
        if not is_node or type(x) is Leaf:
            yield x
        elif type(x) is Group or type(x) is Operation:
            stack.extend(reversed(layout(x)))
        else:
            raise TypeError(f"Not a tree node: {x!r}")


def leaves(expr):
    """Return the terms in `expr`, in source order.

    >>> leaves(parse(tokenize("( a + b ) * c")))
    ('a', 'b', 'c')
    """
    return tuple(x.name for x in _walk(expr, _infix) if type(x) is Leaf)


def unparse(expr):
    """Print `expr` as infix text that parses back to the same tree.

    No parentheses are invented: they appear exactly where `Group` nodes are.

    >>> unparse(parse(tokenize("( a + b )  * c")))
    '( a + b ) * c'

    Tokens are never split, so `(a+b)` is a single term rather than a group:

    >>> leaves(parse(tokenize("(a+b) * c")))
    ('(a+b)', 'c')
    """
    return " ".join(x.name if type(x) is Leaf else x for x in _walk(expr, _infix))


def show(expr):
    """S-expression view of `expr`, which makes the tree shape visible.

    >>> show(parse(tokenize("a + b * c")))
    '(+ a (* b c))'
    >>> show(parse(tokenize("( a - b ) ^ c")))
    '(^ (group (- a b)) c)'
    """
    return "".join(x.name if type(x) is Leaf else x for x in _walk(expr, _sexpr))


def main(argv=None):
    p = argparse.ArgumentParser(
        prog="precedence-tree",
        description="Parse a space separated arithmetic expression and print its tree",
    )
    p.add_argument(
        "tokens", nargs="*", help="Expression tokens (read from stdin if omitted)"
    )
    p.add_argument(
        "--infix", action="store_true", help="Print the tree as infix text instead"
    )
    p.add_argument("--max-depth", type=int, help="Maximum nesting depth")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug or DEBUG else logging.WARNING,
        format="%(name)s: %(message)s",
    )
    text = " ".join(args.tokens) if args.tokens else sys.stdin.read()
    logger.debug("tokens: %s", tokenize(text))
    try:
        tree = parse(tokenize(text), max_depth=args.max_depth)
    except ParseError as e:
        print(f"error: {e.kind.value}: {e}", file=sys.stderr)
        return 1
    print(unparse(tree) if args.infix else show(tree))
    return 0


if __name__ == "__main__":
    sys.exit(main())
