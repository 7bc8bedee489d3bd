"""
Command-line driver for the rusp interpreter.

    rusp SCRIPT            run a script file
    rusp -e CODE           run a code string
    rusp [-i]              start the interactive REPL
"""

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from rusp.config.logging_config import setup_logging
from rusp.evaluator.evaluator import RuspEvaluator
from rusp.parser.ast_dump import dump_program
from rusp.repl.repl import Repl
from rusp.system.errors import RuspSyntaxError, RuspEvaluationError, source_line
from rusp.system.models import InterpreterSettings

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FILE_ERROR = 1
EXIT_SYNTAX_ERROR = 2
EXIT_RUNTIME_ERROR = 3


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rusp",
        description="Run rusp scripts or start an interactive session.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("script", nargs="?", help="Path to a rusp script to run")
    parser.add_argument("-e", "--eval", dest="code", help="Run the given code string instead of a script")
    parser.add_argument("-i", "--interactive", action="store_true", help="Start the REPL")
    parser.add_argument("--dump-ast", action="store_true",
                        help="Print the parsed program as S-expressions instead of running it")
    parser.add_argument("--log-level", default="WARNING",
                        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
    parser.add_argument("--log-file", default=None, help="Write logs to this file instead of stderr")
    parser.add_argument("--max-call-depth", type=int, default=2000,
                        help="Nested function calls allowed before StackOverflow")
    parser.add_argument("--recursion-limit", type=int, default=20000,
                        help="Python recursion limit installed before running")
    return parser


def report_evaluation_error(error: RuspEvaluationError, source: str, stream) -> None:
    """Writes the diagnostic for a runtime error, with the offending source line."""
    print(str(error), file=stream)
    if error.line is not None:
        text = source_line(source, error.line)
        if text is not None:
            print(f"  {error.line:4d} | {text}", file=stream)


def run_source(source: str, evaluator: RuspEvaluator, dump_ast: bool = False) -> int:
    """
    Parses and runs a whole program in a fresh global scope.

    Args:
        source: Program text.
        evaluator: The evaluator to run it with.
        dump_ast: Print the S-expression form of the program instead of running it.

    Returns:
        The process exit code.
    """
    try:
        nodes = evaluator.parser.parse_string(source)
    except RuspSyntaxError as e:
        logger.debug(f"Syntax error at line {e.line}: {e.message}")
        print(f"SyntaxError: {e}", file=sys.stderr)
        return EXIT_SYNTAX_ERROR

    if dump_ast:
        try:
            print(dump_program(nodes))
        except RecursionError:
            print("error: program nested too deeply to print as an AST", file=sys.stderr)
            return EXIT_SYNTAX_ERROR
        return EXIT_OK

    try:
        evaluator.evaluate_program(nodes)
    except RuspEvaluationError as e:
        logger.debug(f"Runtime error: {e.kind}: {e.message}")
        sys.stdout.flush()
        report_evaluation_error(e, source, sys.stderr)
        return EXIT_RUNTIME_ERROR
    return EXIT_OK


def read_script(path: str) -> Optional[str]:
    """Returns the script text, or None after reporting why it could not be read."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Could not read script {path}: {e}")
        print(f"error: cannot read '{path}': {e}", file=sys.stderr)
        return None


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    try:
        settings = InterpreterSettings(
            max_call_depth=args.max_call_depth,
            recursion_limit=args.recursion_limit,
            log_level=args.log_level,
            log_file=args.log_file,
        )
    except ValidationError as e:
        parser.error(f"invalid settings: {e}")

    setup_logging(settings.log_level, settings.log_file)
    if sys.getrecursionlimit() < settings.recursion_limit:
        sys.setrecursionlimit(settings.recursion_limit)
    logger.info(f"rusp starting with settings: {settings.model_dump()}")

    if args.code is not None:
        return run_source(args.code, RuspEvaluator(settings=settings), dump_ast=args.dump_ast)

    source = None
    if args.script:
        source = read_script(args.script)
        if source is None:
            return EXIT_FILE_ERROR

    if source is not None and not args.interactive:
        return run_source(source, RuspEvaluator(settings=settings), dump_ast=args.dump_ast)

    repl = Repl(settings=settings)
    if source is not None:
        # -i SCRIPT: the script's globals seed the session.
        repl.load(source)
    repl.start()
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
