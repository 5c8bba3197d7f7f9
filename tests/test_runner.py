"""Test runner for the FroLang parser and evaluator"""

import io
import signal
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from frolang import parse as frolang_parse
from frolang.environment import Environment
from frolang.objects import Error
from frolang.runtime import Evaluator

PHASE_TIMEOUT = 5
TESTS_DIR = Path(__file__).parent

TESTS = {
    "frolang_parse": {"dir": "parser", "run": "phase"},
    "frolang_eval": {"dir": "eval", "run": "phase"},
    "frolang_app": {"dir": "apps", "run": "frolang_app"},
}


# ---------------------------------------------------------------------------
# Timeout
# ---------------------------------------------------------------------------


def _timeout_handler(signum, frame):
    raise TimeoutError("phase timed out")


signal.signal(signal.SIGALRM, _timeout_handler)


# ---------------------------------------------------------------------------
# .tests file parsing
# ---------------------------------------------------------------------------


def parse_tests_file(path: Path) -> list[tuple[str, str, str]]:
    """Parse a .tests file into (name, input, expected) tuples."""
    lines = path.read_text(encoding="utf-8").split("\n")
    result: list[tuple[str, str, str]] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("=== "):
            test_name = line[4:].strip()
            i += 1
            input_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                input_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            expected_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                expected_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            test_input = "\n".join(input_lines)
            expected = "\n".join(expected_lines).strip()
            result.append((test_name, test_input, expected))
        else:
            i += 1
    return result


def discover_cases(test_dir: Path) -> list[tuple[str, str, str]]:
    """Glob *.tests in test_dir, return (test_id, input, expected) tuples."""
    results = []
    for test_file in sorted(test_dir.glob("*.tests")):
        for name, input_code, expected in parse_tests_file(test_file):
            results.append((f"{test_file.stem}/{name}", input_code, expected))
    return results


def discover_frolang_apps(test_dir: Path) -> list[Path]:
    """Find all .fro files in a directory."""
    return sorted(test_dir.glob("*.fro"))


# ---------------------------------------------------------------------------
# Phase result + assertion checker
# ---------------------------------------------------------------------------


@dataclass
class PhaseResult:
    errors: list[str] = field(default_factory=list)
    data: dict | None = None


def resolve_dotpath(obj: object, path: str) -> object:
    """Resolve a dot-separated path against a nested dict/list structure."""
    current = obj
    for part in path.split("."):
        if part == "length":
            return len(current)
        current = current[int(part)] if isinstance(current, list) else current[part]
    return current


def check_expected(expected: str, result: PhaseResult, phase: str) -> None:
    if expected == "ok":
        if result.errors:
            pytest.fail(f"Expected ok, got error: {result.errors[0]}")
        return
    if expected.startswith("error:"):
        expected_msg = expected[6:].strip()
        if not result.errors:
            pytest.fail(f"Expected error containing '{expected_msg}', got ok")
        found = any(expected_msg.lower() in e.lower() for e in result.errors)
        if not found:
            pytest.fail(
                f"Expected error containing '{expected_msg}', got: {result.errors}"
            )
        return
    # Dotpath assertions
    if result.errors:
        pytest.fail(f"{phase} failed: {result.errors[0]}")
    assert result.data is not None, f"No data returned from {phase}"
    for line in expected.split("\n"):
        line = line.strip()
        if not line:
            continue
        if "=" not in line:
            pytest.fail(f"Bad assertion (no '='): {line}")
        path, expected_val = line.split("=", 1)
        path = path.strip()
        expected_val = expected_val.strip()
        try:
            actual = resolve_dotpath(result.data, path)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            pytest.fail(f"Path '{path}' not found in result: {e}")
        actual_str = "null" if actual is None else str(actual)
        if actual_str != expected_val:
            pytest.fail(
                f"Assertion failed: {path}\n"
                f"  expected: {expected_val!r}\n"
                f"  actual:   {actual_str!r}"
            )


# ---------------------------------------------------------------------------
# Phase runners
# ---------------------------------------------------------------------------


def run_frolang_parse(source: str) -> PhaseResult:
    try:
        signal.alarm(PHASE_TIMEOUT)
        program, errors = frolang_parse(source)
        if errors:
            return PhaseResult(errors=[str(e) for e in errors])
        rendered = program.string()
        reparsed, errors = frolang_parse(rendered)
        if errors:
            return PhaseResult(errors=["rendered source does not parse: " + str(errors[0])])
        if reparsed.string() != rendered:
            return PhaseResult(errors=["rendering is not stable:\n" + rendered])
        return PhaseResult(
            data={
                "statements": [st.string() for st in program.statements],
                "source": rendered,
            }
        )
    finally:
        signal.alarm(0)


def run_frolang_eval(source: str) -> PhaseResult:
    try:
        signal.alarm(PHASE_TIMEOUT)
        program, errors = frolang_parse(source)
        if errors:
            return PhaseResult(errors=[str(e) for e in errors])
        out = io.StringIO()
        result = Evaluator(out).eval_program(program, Environment())
        if isinstance(result, Error) and result.raised:
            return PhaseResult(errors=[result.message])
        return PhaseResult(
            data={
                "result": None if result is None else result.inspect(),
                "type": None if result is None else result.type_name(),
                "stdout": out.getvalue().splitlines(),
            }
        )
    finally:
        signal.alarm(0)


# ---------------------------------------------------------------------------
# Parametrization
# ---------------------------------------------------------------------------


def pytest_generate_tests(metafunc):
    for name, cfg in TESTS.items():
        test_dir = TESTS_DIR / cfg["dir"]
        run = cfg["run"]
        if run == "phase":
            fixture = f"{name}_input"
            if fixture in metafunc.fixturenames:
                cases = discover_cases(test_dir)
                params = [pytest.param(inp, exp, id=tid) for tid, inp, exp in cases]
                metafunc.parametrize(f"{fixture},{name}_expected", params)
        elif run == "frolang_app" and "frolang_app" in metafunc.fixturenames:
            apps = discover_frolang_apps(test_dir)
            params = [pytest.param(p, id=p.stem) for p in apps]
            metafunc.parametrize("frolang_app", params)


# ---------------------------------------------------------------------------
# Test functions
# ---------------------------------------------------------------------------


def test_frolang_parse(frolang_parse_input, frolang_parse_expected):
    check_expected(
        frolang_parse_expected,
        run_frolang_parse(frolang_parse_input),
        "frolang_parse",
    )


def test_frolang_eval(frolang_eval_input, frolang_eval_expected):
    check_expected(
        frolang_eval_expected,
        run_frolang_eval(frolang_eval_input),
        "frolang_eval",
    )


def test_frolang_app(frolang_app: Path):
    """Parse and run a .fro program in-process. Any uncaught error fails."""
    source = frolang_app.read_text(encoding="utf-8")
    program, errors = frolang_parse(source)
    if errors:
        pytest.fail("parse errors:\n" + "\n".join(str(e) for e in errors))
    out = io.StringIO()
    result = Evaluator(out).eval_program(program, Environment())
    if isinstance(result, Error) and result.raised:
        pytest.fail(f"{result.message}\n{out.getvalue()}")
