"""Grouping tokens into commands with their arguments and redirections."""

from __future__ import annotations

import os
import sys
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from minishell.lexer import Token, TokenType, tokenize

_OPEN_FLAGS = {
    ">>": os.O_CREAT | os.O_APPEND | os.O_RDWR,
    ">": os.O_CREAT | os.O_TRUNC | os.O_RDWR,
    "<": os.O_RDONLY,
}


@dataclass
class Redirection:
    """Where a command reads its input from or writes its output to.

    ``path`` is the last file named for this direction, ``append`` tells an
    output file to be appended to, ``heredocs`` lists here-document
    delimiters in order, and ``invalid`` marks a file that could not be
    opened while parsing.
    """

    path: str | None = None
    append: bool = False
    heredocs: list[str] = field(default_factory=list)
    invalid: bool = False


@dataclass
class Command:
    """One command of a pipeline."""

    args: list[str] = field(default_factory=list)
    redir_in: Redirection = field(default_factory=Redirection)
    redir_out: Redirection = field(default_factory=Redirection)

    @property
    def invalid(self) -> bool:
        """True when one of the redirections could not be opened."""
        return self.redir_in.invalid or self.redir_out.invalid


def _apply_redirection(command: Command, operator: Token, target: str) -> None:
    """Record a redirection, opening the file now to create or check it."""
    if command.invalid:
        return
    redirection = (
        command.redir_in if operator.kind is TokenType.RED_IN else command.redir_out
    )
    if operator.text == "<<":
        redirection.path = None
        redirection.heredocs.append(target)
        return
    redirection.path = target
    redirection.append = operator.text == ">>"
    try:
        fd = os.open(target, _OPEN_FLAGS[operator.text], 0o644)
    except OSError as error:
        print(f"{target}: {error.strerror}", file=sys.stderr)
        redirection.invalid = True
    else:
        os.close(fd)


def build_commands(tokens: Iterable[Token]) -> list[Command]:
    """Split checked tokens at pipes into commands.

    Redirection targets are opened as they are met: output files are
    created or truncated, input files must exist. A command whose file
    cannot be opened is marked invalid and ignores later redirections.
    """
    commands = [Command()]
    stream = iter(tokens)
    for token in stream:
        current = commands[-1]
        if token.kind is TokenType.PIPE:
            commands.append(Command())
        elif token.kind is TokenType.OTHER:
            current.args.append(token.text)
        else:
            target = next(stream, None)
            if target is not None:
                _apply_redirection(current, token, target.text)
    return commands


def parse(line: str, env: Mapping[str, str], last_status: int) -> list[Command]:
    """Parse a command line into commands.

    Raises ShellSyntaxError when the line is malformed.
    """
    return build_commands(tokenize(line, env, last_status))