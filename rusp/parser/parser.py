"""
Parser turning rusp source text into AST nodes.

The surface grammar lives in `rusp.lark` and is parsed by lark's LALR
parser; `RuspTransformer` builds the pydantic nodes from the parse tree.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from lark import Lark, Token, v_args
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken, VisitError
from lark.visitors import Transformer_NonRecursive

from rusp.evaluator.values import INT_MIN, INT_MAX
from rusp.parser.ast_nodes import (
    Node, Literal, Identifier, Let, Assign, Block, If, While,
    FunctionLiteral, Call, BinaryOp, BuiltinCall,
    ARITHMETIC_OPERATORS, LOGICAL_OPERATORS,
)
from rusp.system.errors import RuspSyntaxError

logger = logging.getLogger(__name__)

_GRAMMAR_PATH = Path(__file__).with_name("rusp.lark")

# Operators that fold any number (>= 2) of operands; the rest take exactly two.
VARIADIC_OPERATORS = ARITHMETIC_OPERATORS + LOGICAL_OPERATORS

BUILTIN_TERMINALS = frozenset({"PRINT", "PRINTLN", "EPRINT", "EPRINTLN", "DBG", "INPUT"})

ESCAPES = {'"': '"', "\\": "\\", "n": "\n", "t": "\t", "r": "\r"}

# How an expected terminal is named in "Expected ..." messages.
EXPECTED_NAMES = {
    "IDENT": "an identifier",
    "EQUALS": "'='",
    "_LPAR": "'('",
    "_RPAR": "')'",
}

OPENING_BRACKETS = {"_LPAR": "(", "_LBRACE": "{"}


@lru_cache(maxsize=None)
def load_rusp_parser() -> Lark:
    """Builds the LALR parser from the bundled grammar. Built once per process."""
    grammar = _GRAMMAR_PATH.read_text(encoding="utf-8")
    return Lark(grammar, start="start", parser="lalr", lexer="basic", propagate_positions=True)


def _pos(meta_like: Any) -> Dict[str, Optional[int]]:
    return {"line": getattr(meta_like, "line", None), "column": getattr(meta_like, "column", None)}


def _describe_token(token: Token) -> str:
    if token.type == "$END":
        return "end of input"
    if token.type == "STRING":
        return f"string {token.value}"
    return f"'{token.value}'"


def _describe_expected(expected) -> str:
    if "INT" in expected:
        return "an expression"
    names = sorted({EXPECTED_NAMES.get(name, name) for name in expected if name != "$END"})
    return " or ".join(names) if names else "an expression"


class RuspTransformer(Transformer_NonRecursive):
    """
    Builds AST nodes from a lark parse tree without recursing, so nesting
    depth is bounded by memory rather than the host stack.

    Operator calls are left-folded into nested BinaryOps here and
    `fn name(...)` becomes `Let(name, FunctionLiteral(name=name))`.
    """

    def __init__(self, source: str):
        super().__init__()
        self.source = source

    def _error(self, message: str, position: Any, details: str = "") -> RuspSyntaxError:
        line, column = getattr(position, "line", None), getattr(position, "column", None)
        logger.debug(f"Syntax error at {line}:{column}: {message}")
        return RuspSyntaxError(message, self.source, line=line, column=column, error_details=details)

    def start(self, children):
        return list(children)

    # --- Literals ---

    @v_args(meta=True, inline=True)
    def int_literal(self, meta, token):
        value = int(token)
        if not INT_MIN <= value <= INT_MAX:
            raise self._error("Integer literal out of 64-bit range", token, details=str(token))
        return Literal(value=value, **_pos(meta))

    @v_args(meta=True, inline=True)
    def float_literal(self, meta, token):
        return Literal(value=float(token), **_pos(meta))

    @v_args(meta=True, inline=True)
    def string_literal(self, meta, token):
        return Literal(value=self._unescape(token), **_pos(meta))

    @v_args(meta=True, inline=True)
    def true_literal(self, meta, _token):
        return Literal(value=True, **_pos(meta))

    @v_args(meta=True, inline=True)
    def false_literal(self, meta, _token):
        return Literal(value=False, **_pos(meta))

    def _unescape(self, token: Token) -> str:
        body = token.value[1:-1]
        chars: List[str] = []
        index = 0
        while index < len(body):
            ch = body[index]
            if ch != "\\":
                chars.append(ch)
                index += 1
                continue
            escape = body[index + 1]
            if escape not in ESCAPES:
                raise self._error("Unknown escape sequence in string literal", token, details=f"'\\{escape}'")
            chars.append(ESCAPES[escape])
            index += 2
        return "".join(chars)

    # --- Names and bindings ---

    @v_args(meta=True, inline=True)
    def identifier(self, meta, name):
        return Identifier(name=str(name), **_pos(meta))

    @v_args(meta=True, inline=True)
    def assign(self, meta, name, _equals, value):
        return Assign(name=str(name), value=value, **_pos(meta))

    @v_args(meta=True, inline=True)
    def let(self, meta, name, _equals, init):
        return Let(name=str(name), init=init, **_pos(meta))

    # --- Compound forms ---

    @v_args(meta=True, inline=True)
    def block(self, meta, *body):
        return Block(body=list(body), **_pos(meta))

    @v_args(meta=True, inline=True)
    def if_expr(self, meta, condition, then_branch, else_branch=None):
        return If(condition=condition, then_branch=then_branch, else_branch=else_branch, **_pos(meta))

    @v_args(meta=True, inline=True)
    def while_expr(self, meta, condition, body):
        return While(condition=condition, body=body, **_pos(meta))

    def _params(self, tokens) -> List[str]:
        params: List[str] = []
        for token in tokens:
            if token.value in params:
                raise self._error(f"Duplicate parameter '{token.value}'", token)
            params.append(token.value)
        return params

    @v_args(meta=True, inline=True)
    def function(self, meta, *parts):
        *param_tokens, body = parts
        return FunctionLiteral(params=self._params(param_tokens), body=body, **_pos(meta))

    @v_args(meta=True, inline=True)
    def named_function(self, meta, name, *parts):
        *param_tokens, body = parts
        literal = FunctionLiteral(params=self._params(param_tokens), body=body, name=str(name), **_pos(meta))
        logger.debug(f"Parsed named function '{name}' with {len(literal.params)} parameter(s)")
        return Let(name=str(name), init=literal, **_pos(meta))

    # --- Calls ---

    @v_args(meta=True, inline=True)
    def call(self, meta, callee, *args):
        return Call(callee=callee, args=list(args), **_pos(meta))

    @v_args(meta=True, inline=True)
    def builtin_call(self, meta, name, *args):
        return BuiltinCall(name=str(name), args=list(args), **_pos(meta))

    @v_args(meta=True, inline=True)
    def empty_call(self, meta):
        raise self._error("Empty call '()'", meta)

    @v_args(meta=True, inline=True)
    def operator_call(self, meta, op_token, *args):
        """Left-folds `(op a b c)` into `BinaryOp(op, BinaryOp(op, a, b), c)`."""
        op = str(op_token)
        if op == "!":
            return BuiltinCall(name="!", args=list(args), **_pos(meta))
        if op in VARIADIC_OPERATORS:
            if len(args) < 2:
                raise self._error(f"Operator '{op}' needs at least 2 operands, got {len(args)}", op_token)
        elif len(args) != 2:
            raise self._error(f"Operator '{op}' needs exactly 2 operands, got {len(args)}", op_token)

        result = args[0]
        for operand in args[1:]:
            result = BinaryOp(op=op, left=result, right=operand, **_pos(meta))
        return result


class RuspParser:
    """
    Parses rusp source into a list of top-level expression nodes.

    Grammar (informal):
        expr  := literal | name | name '=' expr | 'let' name '=' expr
               | '{' expr* '}' | 'if' expr expr ['else' expr] | 'while' expr expr
               | 'fn' [name] '(' name* ')' expr | '(' head expr* ')'
        head  := operator | builtin | expr
    """

    def __init__(self):
        self._lark = load_rusp_parser()

    def parse_string(self, source: str) -> List[Node]:
        """
        Parses a whole program.

        Args:
            source: rusp source text.

        Returns:
            The top-level expressions in source order (empty for blank input).

        Raises:
            RuspSyntaxError: If the source cannot be parsed, including input
                             nested too deeply for the host stack.
            TypeError: If the input is not a string.
        """
        if not isinstance(source, str):
            raise TypeError("Input must be a string.")

        logger.debug(f"Parsing rusp source ({len(source)} chars)")
        try:
            tree = self._lark.parse(source)
            nodes = RuspTransformer(source).transform(tree)
        except UnexpectedInput as e:
            raise self._translate(e, source) from e
        except VisitError as e:
            if isinstance(e.orig_exc, RuspSyntaxError):
                raise e.orig_exc from None
            if isinstance(e.orig_exc, RecursionError):
                raise self._too_deep(source) from e.orig_exc
            raise
        except RecursionError as e:
            raise self._too_deep(source) from e
        logger.debug(f"Parsed {len(nodes)} top-level expression(s)")
        return nodes

    def _too_deep(self, source: str) -> RuspSyntaxError:
        logger.debug("Host recursion limit hit while parsing")
        return RuspSyntaxError("expression nesting too deep", source,
                               error_details="raise --recursion-limit or flatten the expression")

    def _translate(self, error: UnexpectedInput, source: str) -> RuspSyntaxError:
        """Maps a lark parse failure onto a RuspSyntaxError at the same position."""
        if isinstance(error, UnexpectedCharacters):
            char = error.char
            following = source[error.pos_in_stream + 1:error.pos_in_stream + 2]
            if char == '"':
                return RuspSyntaxError("Unterminated string literal", source, error.line, error.column,
                                       incomplete=True)
            if char.isdigit() or (char in "+-" and following.isdigit()):
                return RuspSyntaxError("Malformed number literal", source, error.line, error.column)
            return RuspSyntaxError(f"Unexpected character '{char}'", source, error.line, error.column)

        if isinstance(error, UnexpectedEOF) or (isinstance(error, UnexpectedToken) and error.token.type == "$END"):
            bracket = self._innermost_open_bracket(error)
            if bracket is not None:
                return RuspSyntaxError(f"Unclosed '{OPENING_BRACKETS[bracket.type]}'", source,
                                       bracket.line, bracket.column, incomplete=True)
            # UnexpectedEOF carries line -1; a $END token borrows the last token's position.
            line = getattr(error, "line", None)
            if not isinstance(line, int) or line < 1:
                line = None
            column = error.column if line is not None else None
            return RuspSyntaxError(f"Unexpected end of input, expected {_describe_expected(error.expected)}",
                                   source, line, column, incomplete=True)

        token = error.token
        found = _describe_token(token)
        if token.type in BUILTIN_TERMINALS:
            if "INT" in error.expected:
                message = f"Built-in '{token.value}' can only appear as the head of a call"
            else:
                message = f"Cannot bind reserved built-in name '{token.value}'"
        elif "INT" in error.expected:
            message = f"Unexpected token {found}"
        else:
            message = f"Expected {_describe_expected(error.expected)}, found {found}"
        return RuspSyntaxError(message, source, token.line, token.column)

    @staticmethod
    def _innermost_open_bracket(error: UnexpectedInput) -> Optional[Token]:
        """The last '(' or '{' the parser shifted but never closed."""
        interactive = getattr(error, "interactive_parser", None)
        if interactive is None:
            return None
        for value in reversed(interactive.parser_state.value_stack):
            if isinstance(value, Token) and value.type in OPENING_BRACKETS:
                return value
        return None
