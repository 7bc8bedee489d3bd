"""
Tests for the command-line driver.
"""

import pytest

from rusp.main import main, EXIT_OK, EXIT_FILE_ERROR, EXIT_SYNTAX_ERROR, EXIT_RUNTIME_ERROR


@pytest.fixture(autouse=True)
def quiet_process_state(mocker):
    """Keeps main() from reconfiguring logging or the recursion limit of the test process."""
    mocker.patch("rusp.main.sys.setrecursionlimit")
    return mocker.patch("rusp.main.setup_logging")

@pytest.fixture
def script(tmp_path):
    def _write(source: str):
        path = tmp_path / "program.rsp"
        path.write_text(source, encoding="utf-8")
        return str(path)
    return _write

# --- Running code ---

def test_eval_option_runs_code(capsys):
    assert main(["-e", "(println (+ 1 2))"]) == EXIT_OK
    assert capsys.readouterr().out == "3\n"

def test_runs_script_file(script, capsys):
    path = script('let name = "rusp"\n(println "hello " name)\n')
    assert main([path]) == EXIT_OK
    assert capsys.readouterr().out == "hello rusp\n"

def test_missing_script_is_file_error(tmp_path, capsys):
    assert main([str(tmp_path / "nope.rsp")]) == EXIT_FILE_ERROR
    assert "cannot read" in capsys.readouterr().err

def test_syntax_error_exit_code(script, capsys):
    assert main([script("(println 1")]) == EXIT_SYNTAX_ERROR
    err = capsys.readouterr().err
    assert err.startswith("SyntaxError: Unclosed '('")

def test_runtime_error_exit_code_and_diagnostic(script, capsys):
    path = script('(println "before")\nlet z = (/ 1 0)\n(println "after")\n')
    assert main([path]) == EXIT_RUNTIME_ERROR
    captured = capsys.readouterr()
    assert captured.out == "before\n"
    assert captured.err.startswith("DivisionByZero:")
    assert "(line 2)" in captured.err
    assert "Expression: '(/ 1 0)'" in captured.err
    assert "   2 | let z = (/ 1 0)" in captured.err

def test_deeply_nested_input_is_reported_not_raised(capsys):
    source = "(println " + "(+ 1 " * 5000 + "0" + ")" * 5000 + ")"
    assert main(["-e", source]) == EXIT_RUNTIME_ERROR
    assert capsys.readouterr().err.startswith("StackOverflow:")

def test_dump_ast_does_not_run(capsys):
    assert main(["--dump-ast", "-e", 'let x = 1 (println "run")']) == EXIT_OK
    assert capsys.readouterr().out == '(let x 1)\n(println "run")\n'

# --- Settings ---

def test_settings_from_flags(quiet_process_state, mocker, capsys):
    setrecursionlimit = mocker.patch("rusp.main.sys.setrecursionlimit")
    mocker.patch("rusp.main.sys.getrecursionlimit", return_value=1000)
    code = main(["--log-level", "debug", "--recursion-limit", "50000",
                 "--max-call-depth", "3", "-e", "fn down(n) (down n) (down 0)"])
    assert code == EXIT_RUNTIME_ERROR
    assert capsys.readouterr().err.startswith("StackOverflow:")
    quiet_process_state.assert_called_once_with("DEBUG", None)
    setrecursionlimit.assert_called_once_with(50000)

def test_invalid_settings_exit_with_usage_error(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--max-call-depth", "0", "-e", "1"])
    assert excinfo.value.code == 2
    assert "invalid settings" in capsys.readouterr().err

# --- REPL ---

def test_no_script_starts_repl(mocker):
    repl_cls = mocker.patch("rusp.main.Repl")
    assert main([]) == EXIT_OK
    repl_cls.return_value.start.assert_called_once()
    assert repl_cls.call_args.kwargs["settings"].max_call_depth == 2000

def test_interactive_flag_with_script_seeds_repl(mocker, script):
    repl_cls = mocker.patch("rusp.main.Repl")
    assert main(["-i", script("let x = 1")]) == EXIT_OK
    repl_cls.return_value.load.assert_called_once_with("let x = 1")
    repl_cls.return_value.start.assert_called_once()
