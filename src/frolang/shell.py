"""Interactive mode for the FroLang interpreter. Uses cmd as backend."""

from __future__ import annotations

import cmd
import logging

from termcolor import colored

from .environment import Environment
from .objects import NULL, is_error
from .parse import parse
from .runtime import Evaluator, FrolangFault

logger = logging.getLogger(__name__)

VERSION = "0.1"


class Shell(cmd.Cmd):
    """FroLang REPL. One environment lives for the whole session."""

    intro = "FroLang v" + VERSION + " REPL\nType 'exit' or press Ctrl-D to leave."
    prompt = ">> "

    def __init__(self, *args, color: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self.color = color
        self.env = Environment()
        self.evaluator = Evaluator(self.stdout)

    def _paint(self, text: str, color: str) -> str:
        return colored(text, color, no_color=not self.color)

    def onecmd(self, line):
        """Only a bare 'exit', 'help' or EOF is a shell command; the rest is FroLang."""
        word = line.strip()
        if word in ("exit", "help", "EOF"):
            return super().onecmd(word)
        if not word:
            return self.emptyline()
        return self.default(line)

    def default(self, line):
        """Parses and evaluates one line of FroLang."""
        program, errors = parse(line)
        if errors:
            for err in errors:
                self.stdout.write("\t" + self._paint(str(err), "red") + "\n")
            return
        try:
            result = self.evaluator.eval_program(program, self.env)
        except FrolangFault as e:
            self.stdout.write(self._paint("FATAL: " + str(e), "red") + "\n")
            return
        if result is None or result is NULL:
            return
        if is_error(result):
            self.stdout.write(self._paint(result.inspect(), "red") + "\n")
        else:
            self.stdout.write(result.inspect() + "\n")

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_help(self, arg):
        """Short intro instead of per-command docs."""
        self.stdout.write(
            "Type FroLang statements, one line at a time. Results are printed\n"
            "after each line and bindings persist for the session.\n"
            "Try: let sq = fn(x) { x * x }; sq(4)\n"
        )

    def do_EOF(self, arg):
        """Exits interpreter."""
        self.stdout.write("\n")
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        logger.debug("leaving shell")
        return True
