import io

import pytest

from rusp.evaluator.evaluator import RuspEvaluator
from rusp.evaluator.environment import RuspEnvironment
from rusp.parser.parser import RuspParser
from rusp.system.models import InterpreterSettings

# --- Core Components ---

@pytest.fixture
def parser():
    """Provides a fresh RuspParser."""
    return RuspParser()

@pytest.fixture
def evaluator():
    """Provides a RuspEvaluator using the process streams (capture with capsys)."""
    return RuspEvaluator()

@pytest.fixture
def global_env():
    """Provides an empty global scope."""
    return RuspEnvironment()

@pytest.fixture
def shallow_settings():
    """Settings with a small call depth, for stack overflow tests."""
    return InterpreterSettings(max_call_depth=50)

# --- Helpers ---

@pytest.fixture
def run(evaluator):
    """Evaluates source text in a fresh global scope and returns the last value."""
    def _run(source: str):
        return evaluator.evaluate_string(source)
    return _run

@pytest.fixture
def run_with_io():
    """
    Evaluates source with in-memory streams.
    Returns (result, stdout_text, stderr_text).
    """
    def _run(source: str, stdin_text: str = ""):
        out, err = io.StringIO(), io.StringIO()
        ev = RuspEvaluator(stdout=out, stderr=err, stdin=io.StringIO(stdin_text))
        result = ev.evaluate_string(source)
        return result, out.getvalue(), err.getvalue()
    return _run
