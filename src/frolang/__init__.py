"""FroLang interpreter: public API."""

from __future__ import annotations

from typing import TextIO

from .ast import Program
from .environment import Environment
from .objects import Value
from .parse import ParseError as ParseError, parse as _parse
from .runtime import (
    Evaluator as Evaluator,
    FrolangError as FrolangError,
    FrolangFault as FrolangFault,
    FrolangSyntaxError as FrolangSyntaxError,
    run as run,
)
from .tokens import Lexer as Lexer, tokenize as tokenize


def parse(source: str) -> tuple[Program, list[ParseError]]:
    """Parse FroLang source into a Program plus any syntax errors."""
    return _parse(source)


def evaluate(
    source: str, env: Environment | None = None, stdout: TextIO | None = None
) -> Value | None:
    """Parse and evaluate source, raising FrolangSyntaxError on bad syntax."""
    return run(source, env=env, stdout=stdout)


def emit(program: Program) -> str:
    """Render a Program back to FroLang source."""
    return program.string()
