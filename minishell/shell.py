"""The interactive read-parse-run loop."""

from __future__ import annotations

import os
import signal
import sys
from collections.abc import Mapping, Sequence

from minishell.builtins import ShellExit
from minishell.executor import Reader, run_pipeline
from minishell.lexer import ShellSyntaxError
from minishell.parser import parse

PROMPT = "Minishell 🐚$ "


def _interactive_reader(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


class Shell:
    """A shell session: its environment and the status of the last command."""

    def __init__(self, env: Mapping[str, str]) -> None:
        self.env: dict[str, str] = dict(env)
        self.status = 0
        self._reader: Reader = _interactive_reader

    def run_line(self, line: str) -> int:
        """Parse and run one command line; return the resulting status.

        A syntax error is reported and leaves the status as it was. ``exit``
        raises ShellExit.
        """
        line = line.strip(" ")
        if not line:
            return self.status
        try:
            commands = parse(line, self.env, self.status)
        except ShellSyntaxError as error:
            sys.stderr.write(f"Minishell: {error}\n")
            return self.status
        self.status = run_pipeline(commands, self.env, self._reader)
        return self.status

    def loop(self, reader: Reader) -> int:
        """Read and run lines until input ends or ``exit``; return the exit status."""
        self._reader = reader
        while True:
            try:
                line = reader(PROMPT)
            except KeyboardInterrupt:
                sys.stdout.write("\n")
                self.status = 1
                continue
            if line is None:
                sys.stdout.write("exit\n")
                return 0
            if not line:
                continue
            try:
                self.run_line(line)
            except ShellExit as stop:
                return stop.status
            except KeyboardInterrupt:
                sys.stdout.write("\n")


def main(argv: Sequence[str] | None = None) -> int:
    """Start an interactive shell with the current environment."""
    try:
        import readline  # noqa: F401  (line editing and history for input())
    except ImportError:
        pass
    if hasattr(signal, "SIGQUIT"):
        signal.signal(signal.SIGQUIT, signal.SIG_IGN)
    shell = Shell(os.environ)
    return shell.loop(_interactive_reader)