"""REPL interface for interactive rusp sessions."""
from typing import Optional
import sys
import logging

from rusp.evaluator.evaluator import RuspEvaluator
from rusp.evaluator.environment import RuspEnvironment
from rusp.evaluator.values import UNIT, to_text
from rusp.parser.ast_dump import dump_program
from rusp.system.errors import RuspSyntaxError, RuspEvaluationError
from rusp.system.models import InterpreterSettings

logger = logging.getLogger(__name__)


class Repl:
    """Interactive REPL (Read-Eval-Print Loop) interface.

    Evaluates each complete input in one persistent global scope and prints
    every non-Unit result in its text form. Errors are reported and the
    session continues with the same scope.
    """

    PROMPT = "rusp> "
    CONTINUATION_PROMPT = "....> "

    def __init__(self, evaluator: Optional[RuspEvaluator] = None, output_stream=None,
                 settings: Optional[InterpreterSettings] = None):
        """Initialize the REPL interface.

        Args:
            evaluator: Evaluator to use; one writing to `output_stream` is created when omitted.
            output_stream: Optional output stream (defaults to sys.stdout)
            settings: Settings for a newly created evaluator.
        """
        self.output = output_stream or sys.stdout
        self.evaluator = evaluator or RuspEvaluator(settings=settings, stdout=output_stream)
        self.env = RuspEnvironment()
        self.show_ast = False
        self.commands = {
            "/help": self._cmd_help,
            "/exit": self._cmd_exit,
            "/reset": self._cmd_reset,
            "/env": self._cmd_env,
            "/ast": self._cmd_ast,
        }

    def start(self) -> None:
        """Start the REPL interface.

        Reads lines until end of input; an input the parser rejects only because
        it ended early (open bracket or string, missing operand) keeps reading
        continuation lines.
        """
        print("rusp REPL. Type /help for commands, /exit to quit.", file=self.output)

        buffer = ""
        while True:
            try:
                line = input(self.CONTINUATION_PROMPT if buffer else self.PROMPT)
            except (KeyboardInterrupt, EOFError):
                print("\nExiting...", file=self.output)
                break
            buffer = f"{buffer}\n{line}" if buffer else line
            if not buffer.lstrip().startswith("/") and self._is_incomplete(buffer):
                continue
            text, buffer = buffer, ""
            self._process_input(text)

    def load(self, source: str) -> None:
        """Evaluates a whole script in the session scope, e.g. for `rusp -i SCRIPT`."""
        logger.debug(f"Loading {len(source)} chars into the REPL session")
        self._handle_code(source)

    def _is_incomplete(self, text: str) -> bool:
        """True when `text` only fails to parse because the input ended early."""
        try:
            self.evaluator.parser.parse_string(text)
        except RuspSyntaxError as e:
            return e.incomplete
        return False

    def _process_input(self, user_input: str) -> None:
        """Process user input.

        Args:
            user_input: Input from the user
        """
        user_input = user_input.strip()

        if not user_input:
            return

        if user_input.startswith("/"):
            self._handle_command(user_input)
        else:
            self._handle_code(user_input)

    def _handle_command(self, command: str) -> None:
        parts = command.split(maxsplit=1)
        cmd = parts[0].lower()
        args = parts[1] if len(parts) > 1 else ""

        if cmd in self.commands:
            self.commands[cmd](args)
        else:
            print(f"Unknown command: {cmd}", file=self.output)
            print("Type /help for available commands", file=self.output)

    def _handle_code(self, source: str) -> None:
        """Parses and evaluates one input in the session scope, reporting errors."""
        try:
            nodes = self.evaluator.parser.parse_string(source)
            if self.show_ast:
                print(dump_program(nodes), file=self.output)
            result = self.evaluator.evaluate_program(nodes, self.env)
        except RuspSyntaxError as e:
            logger.debug(f"REPL syntax error: {e.message}")
            print(f"SyntaxError: {e}", file=self.output)
            return
        except RuspEvaluationError as e:
            logger.debug(f"REPL evaluation error: {e.kind}")
            print(str(e), file=self.output)
            return
        except RecursionError:
            logger.debug("REPL input nested too deeply for the AST echo")
            print("error: input nested too deeply to print as an AST", file=self.output)
            return

        if result is not UNIT:
            print(to_text(result), file=self.output)

    def _cmd_help(self, args: str) -> None:
        print("Available commands:", file=self.output)
        print("  /help - Show this help", file=self.output)
        print("  /exit - Leave the REPL", file=self.output)
        print("  /reset - Start over with an empty global scope", file=self.output)
        print("  /env - List global bindings", file=self.output)
        print("  /ast [on|off] - Toggle echoing the parsed AST before evaluation", file=self.output)

    def _cmd_exit(self, args: str) -> None:
        print("Exiting...", file=self.output)
        sys.exit(0)

    def _cmd_reset(self, args: str) -> None:
        self.env = RuspEnvironment()
        print("Global scope reset", file=self.output)

    def _cmd_env(self, args: str) -> None:
        bindings = self.env.get_local_bindings()
        if not bindings:
            print("No global bindings", file=self.output)
            return
        for name in sorted(bindings):
            print(f"  {name} = {to_text(bindings[name])}", file=self.output)

    def _cmd_ast(self, args: str) -> None:
        """Handle the ast command.

        Args:
            args: 'on', 'off' or empty to toggle.
        """
        if not args:
            self.show_ast = not self.show_ast
        elif args.lower() in ["on", "true", "yes", "1"]:
            self.show_ast = True
        elif args.lower() in ["off", "false", "no", "0"]:
            self.show_ast = False
        else:
            print(f"Invalid option: {args}", file=self.output)
            print("Usage: /ast [on|off]", file=self.output)
            return

        print(f"AST echo {'on' if self.show_ast else 'off'}", file=self.output)
