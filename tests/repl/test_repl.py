"""
Tests for the interactive REPL.
"""

import io

import pytest

from rusp.repl.repl import Repl
from rusp.system.models import InterpreterSettings


@pytest.fixture
def output():
    return io.StringIO()

@pytest.fixture
def repl(output):
    return Repl(output_stream=output)

# --- Evaluation ---

def test_results_are_printed_and_scope_persists(repl, output):
    repl._process_input("let x = 20")
    repl._process_input("(+ x 22)")
    assert output.getvalue() == "42\n"

def test_unit_results_are_not_printed(repl, output):
    repl._process_input("let y = 1")
    repl._process_input("while false 1")
    assert output.getvalue() == ""

def test_program_output_goes_to_repl_stream(repl, output):
    repl._process_input('(println "hi")')
    assert output.getvalue() == "hi\n"

def test_string_results_use_text_form(repl, output):
    repl._process_input('(+ "a" 1)')
    assert output.getvalue() == "a1\n"

def test_errors_are_reported_and_session_continues(repl, output):
    repl._process_input("let n = 1")
    repl._process_input("(+ n true)")
    repl._process_input("(+ n 1)")
    lines = output.getvalue().splitlines()
    assert lines[0].startswith("TypeMismatch:")
    assert lines[-1] == "2"

def test_syntax_errors_are_reported(repl, output):
    repl._process_input("(+ 1")
    assert output.getvalue().startswith("SyntaxError: Unclosed '('")

def test_blank_input_is_ignored(repl, output):
    repl._process_input("   ")
    assert output.getvalue() == ""

def test_settings_reach_the_evaluator(output):
    repl = Repl(output_stream=output, settings=InterpreterSettings(max_call_depth=5))
    repl._process_input("fn down(n) (down n) (down 1)")
    assert output.getvalue().startswith("StackOverflow:")

# --- Commands ---

def test_env_lists_global_bindings(repl, output):
    repl._process_input('let b = "two"')
    repl._process_input("let a = 1")
    repl._process_input("fn f() 1")
    repl._process_input("/env")
    assert output.getvalue().splitlines() == ["  a = 1", "  b = two", "  f = fn f"]

def test_env_when_empty(repl, output):
    repl._process_input("/env")
    assert output.getvalue() == "No global bindings\n"

def test_reset_clears_global_scope(repl, output):
    repl._process_input("let x = 1")
    repl._process_input("/reset")
    repl._process_input("x")
    lines = output.getvalue().splitlines()
    assert lines[0] == "Global scope reset"
    assert lines[1].startswith("UndefinedVariable:")

def test_ast_echo(repl, output):
    repl._process_input("/ast on")
    repl._process_input("(* 2 3)")
    assert output.getvalue().splitlines() == ["AST echo on", "(* 2 3)", "6"]
    assert repl.show_ast is True
    repl._process_input("/ast")
    assert repl.show_ast is False

def test_ast_invalid_option(repl, output):
    repl._process_input("/ast maybe")
    assert "Invalid option: maybe" in output.getvalue()
    assert repl.show_ast is False

def test_help_lists_commands(repl, output):
    repl._process_input("/help")
    text = output.getvalue()
    for command in ("/help", "/exit", "/reset", "/env", "/ast"):
        assert command in text

def test_unknown_command(repl, output):
    repl._process_input("/bogus")
    assert "Unknown command: /bogus" in output.getvalue()

def test_exit_command(repl):
    with pytest.raises(SystemExit) as excinfo:
        repl._process_input("/exit")
    assert excinfo.value.code == 0

# --- Input loop ---

def test_incomplete_detection(repl):
    assert repl._is_incomplete("{")
    assert repl._is_incomplete("(f (g 1)")
    assert repl._is_incomplete('"open string')
    assert not repl._is_incomplete("(f 1)")
    assert not repl._is_incomplete(")")

def test_start_reads_continuation_lines_until_eof(repl, output, mocker):
    mocker.patch("builtins.input", side_effect=["let x = 2", "{", "(* x 21) }", EOFError])
    repl.start()
    lines = output.getvalue().splitlines()
    assert lines[0].startswith("rusp REPL")
    assert "42" in lines
    assert lines[-1] == "Exiting..."

def test_load_seeds_session_scope(repl, output):
    repl.load("let base = 40\nfn add2(n) (+ n 2)")
    repl._process_input("(add2 base)")
    assert output.getvalue() == "42\n"

def test_incomplete_detection_for_missing_operand(repl):
    assert repl._is_incomplete("let x =")
    assert not repl._is_incomplete("let 1")

DEEP_SOURCE = "(+ 1 " * 5000 + "0" + ")" * 5000

def test_session_survives_deeply_nested_input(repl, output):
    repl._process_input(DEEP_SOURCE)
    repl._process_input("(+ 1 2)")
    lines = output.getvalue().splitlines()
    assert lines[0].startswith("StackOverflow:")
    assert lines[-1] == "3"

def test_session_survives_ast_echo_of_deep_input(repl, output):
    repl._process_input("/ast on")
    repl._process_input(DEEP_SOURCE)
    repl._process_input("(+ 1 2)")
    text = output.getvalue()
    assert "nested too deeply" in text
    assert text.splitlines()[-1] == "3"
