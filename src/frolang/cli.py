"""FroLang CLI: run .fro files or start the interactive shell."""

from __future__ import annotations

import logging
import sys

from termcolor import colored

from .objects import NULL, is_error
from .parse import parse
from .runtime import Evaluator, FrolangFault, new_environment
from .shell import Shell

logger = logging.getLogger(__name__)

EXTENSION = ".fro"
DEFAULT_RECURSION_LIMIT = 10000

USAGE: str = """\
frolang [OPTIONS] [FILE]

Run a FroLang (.fro) program, or start the interactive shell when no FILE
is given.

Options:
  --verbose, -v        Log debug output to stderr
  --no-color           Disable colored output (NO_COLOR is also honored)
  --recursion-limit N  Host recursion limit (default 10000)
  --help, -h           Show this help message
"""


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    filepath: str = ""
    verbose = False
    color = True
    recursion_limit = DEFAULT_RECURSION_LIMIT
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return 0
        elif arg == "--verbose" or arg == "-v":
            verbose = True
            i += 1
        elif arg == "--no-color":
            color = False
            i += 1
        elif arg == "--recursion-limit":
            if i + 1 >= len(args):
                print("frolang: --recursion-limit needs a value", file=sys.stderr)
                return 2
            try:
                recursion_limit = int(args[i + 1])
            except ValueError:
                print(
                    "frolang: invalid recursion limit '" + args[i + 1] + "'",
                    file=sys.stderr,
                )
                return 2
            i += 2
        elif arg.startswith("-"):
            print("frolang: unknown flag '" + arg + "'", file=sys.stderr)
            return 2
        elif filepath == "":
            filepath = arg
            i += 1
        else:
            print("frolang: unexpected argument '" + arg + "'", file=sys.stderr)
            return 2

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    sys.setrecursionlimit(max(recursion_limit, 100))

    if filepath == "":
        Shell(color=color).cmdloop()
        return 0
    return run_file(filepath, color=color)


def _paint(text: str, color: str, enabled: bool) -> str:
    return colored(text, color, no_color=not enabled)


def run_file(filepath: str, *, color: bool = True) -> int:
    """Run one script. Returns the process exit status."""
    if not filepath.endswith(EXTENSION):
        print(
            _paint(
                "SCRIPT ERROR: " + filepath + ": file extension should be " + EXTENSION,
                "red",
                color,
            ),
            file=sys.stderr,
        )
        return 2

    try:
        with open(filepath, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        print("frolang: " + filepath + ": No such file or directory", file=sys.stderr)
        return 1
    except OSError as e:
        print("frolang: " + filepath + ": " + str(e), file=sys.stderr)
        return 1
    try:
        source = raw.decode("utf-8")
    except ValueError:
        print("frolang: " + filepath + ": invalid utf-8", file=sys.stderr)
        return 1

    program, errors = parse(source)
    if errors:
        for err in errors:
            print(_paint("PARSE ERROR: " + str(err), "red", color), file=sys.stderr)
        return 1

    logger.debug("running %s", filepath)
    try:
        result = Evaluator(sys.stdout).eval_program(program, new_environment())
    except FrolangFault as e:
        print(_paint("FATAL: " + str(e), "red", color), file=sys.stderr)
        return 1

    if is_error(result):
        print(_paint(result.inspect(), "red", color), file=sys.stderr)
        return 1
    if result is not None and result is not NULL:
        print(_paint(result.inspect(), "green", color))
    return 0


if __name__ == "__main__":
    sys.exit(main())
