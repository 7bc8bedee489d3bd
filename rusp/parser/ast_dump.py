"""
Renders rusp AST nodes as S-expression text using the 'sexpdata' library.
Used for diagnostics (the `expression` of runtime errors), `--dump-ast`
and the REPL's `/ast` mode.
"""
import logging
from typing import Any, List

from sexpdata import Symbol, dumps

from rusp.parser.ast_nodes import (
    Node, Literal, Identifier, Let, Assign, Block, If, While,
    FunctionLiteral, Call, BinaryOp, BuiltinCall,
)

logger = logging.getLogger(__name__)


def to_sexp(node: Node) -> Any:
    """Converts a node into nested lists of sexpdata Symbols and atoms."""
    if isinstance(node, Literal):
        if isinstance(node.value, bool):
            return Symbol("true" if node.value else "false")
        return node.value
    if isinstance(node, Identifier):
        return Symbol(node.name)
    if isinstance(node, Let):
        return [Symbol("let"), Symbol(node.name), to_sexp(node.init)]
    if isinstance(node, Assign):
        return [Symbol("set!"), Symbol(node.name), to_sexp(node.value)]
    if isinstance(node, Block):
        return [Symbol("block")] + [to_sexp(expr) for expr in node.body]
    if isinstance(node, If):
        form = [Symbol("if"), to_sexp(node.condition), to_sexp(node.then_branch)]
        if node.else_branch is not None:
            form.append(to_sexp(node.else_branch))
        return form
    if isinstance(node, While):
        return [Symbol("while"), to_sexp(node.condition), to_sexp(node.body)]
    if isinstance(node, FunctionLiteral):
        form: List[Any] = [Symbol("fn")]
        if node.name is not None:
            form.append(Symbol(node.name))
        form.append([Symbol(p) for p in node.params])
        form.append(to_sexp(node.body))
        return form
    if isinstance(node, Call):
        return [to_sexp(node.callee)] + [to_sexp(arg) for arg in node.args]
    if isinstance(node, BinaryOp):
        return [Symbol(node.op), to_sexp(node.left), to_sexp(node.right)]
    if isinstance(node, BuiltinCall):
        return [Symbol(node.name)] + [to_sexp(arg) for arg in node.args]
    raise TypeError(f"Cannot render unknown node type {type(node).__name__}")


def dump_node(node: Node) -> str:
    """Returns the S-expression text for a single node."""
    return dumps(to_sexp(node))


def dump_program(nodes: List[Node]) -> str:
    """Returns one S-expression per top-level node, newline separated."""
    logger.debug(f"Dumping {len(nodes)} top-level node(s) as S-expressions")
    return "\n".join(dump_node(node) for node in nodes)
