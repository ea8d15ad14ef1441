"""Commands the shell runs itself: echo, cd, pwd, export, unset, env, exit.

Each builtin takes the arguments that follow its name and returns an exit
status; ``env`` is the shell's mutable environment mapping.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping, MutableMapping, Sequence
from typing import TextIO

BUILTINS = frozenset({"echo", "cd", "pwd", "export", "unset", "env", "exit"})

_SPACES = "\t\n\v\f\r "
_LONG_MAX = 2**63 - 1


class ShellExit(Exception):
    """The shell has been asked to terminate with ``status``."""

    def __init__(self, status: int) -> None:
        super().__init__(status)
        self.status = status


def _to_int32(value: int) -> int:
    return (value + 2**31) % 2**32 - 2**31


def atoi(text: str) -> int:
    """Read a leading integer the way a C ``int`` would hold it.

    Leading blanks and one sign are accepted; reading stops at the first
    non-digit. Values past the range of a C ``long`` are clamped, and the
    result wraps to 32 bits.
    """
    stripped = text.lstrip(_SPACES)
    sign = 1
    if stripped[:1] in ("-", "+"):
        if stripped[0] == "-":
            sign = -1
        stripped = stripped[1:]
    cutoff = _LONG_MAX + 1 if sign < 0 else _LONG_MAX
    value = 0
    for char in stripped:
        if not "0" <= char <= "9":
            break
        value = value * 10 + int(char)
        if value > cutoff:
            return _to_int32(cutoff)
    return _to_int32(value * sign)


def is_builtin(name: str | None) -> bool:
    """True when ``name`` is a command the shell runs itself."""
    return name in BUILTINS


def _is_n_flag(word: str) -> bool:
    return word.startswith("-") and all(char == "n" for char in word[1:])


def echo(args: Sequence[str], out: TextIO) -> int:
    """Print the arguments separated by spaces.

    Leading ``-n`` style flags suppress the final newline; a ``\\\\n``
    sequence inside a word prints a newline.
    """
    flags = 0
    while flags < len(args) and _is_n_flag(args[flags]):
        flags += 1
    words = [word.replace("\\\\n", "\n") for word in args[flags:]]
    out.write(" ".join(words))
    if not flags:
        out.write("\n")
    return 0


def _update_dir_var(env: MutableMapping[str, str], name: str) -> None:
    if name not in env:
        return
    try:
        env[name] = os.getcwd()
    except OSError:
        del env[name]


def cd(args: Sequence[str], env: MutableMapping[str, str]) -> int:
    """Change directory, keeping OLDPWD and PWD up to date when they exist.

    No argument goes to HOME, ``-`` to OLDPWD, and a leading ``~`` stands
    for HOME.
    """
    if not args:
        path, needed = env.get("HOME"), "HOME"
    elif args[0] == "-":
        path, needed = env.get("OLDPWD"), "OLDPWD"
    elif args[0].startswith("~"):
        home = env.get("HOME")
        path, needed = (None if home is None else home + args[0][1:]), "HOME"
    else:
        path, needed = args[0], ""
    if path is None:
        print(f"minishell: cd: {needed} not set", file=sys.stderr)
        return 1
    _update_dir_var(env, "OLDPWD")
    try:
        os.chdir(path)
    except OSError as error:
        print(f"{path}: {error.strerror}", file=sys.stderr)
        return 1
    _update_dir_var(env, "PWD")
    return 0


def pwd(out: TextIO) -> int:
    """Print the current working directory."""
    try:
        cwd = os.getcwd()
    except OSError as error:
        print(f"minishell : pwd: {error.strerror}", file=sys.stderr)
        return 1
    out.write(cwd + "\n")
    return 0


def print_env(env: Mapping[str, str], args: Sequence[str], out: TextIO) -> int:
    """Print every variable as ``NAME=value``; arguments are refused."""
    if args:
        sys.stderr.write("minishell: env: too many arguments\n")
        return 1
    for name, value in env.items():
        out.write(f"{name}={value}\n")
    return 0


def sorted_exports(env: Mapping[str, str]) -> list[str]:
    """Return the variables as ``NAME=value`` ordered by name."""
    return [f"{name}={value}" for name, value in sorted(env.items())]


def _valid_name(word: str) -> bool:
    name = word.partition("=")[0]
    if not word or not (word[0].isascii() and (word[0].isalpha() or word[0] == "_")):
        return False
    return all(char.isascii() and (char.isalnum() or char == "_") for char in name)


def export(env: MutableMapping[str, str], args: Sequence[str], out: TextIO) -> int:
    """Set variables given as ``NAME=value``; with no arguments list them.

    A word without ``=`` is accepted and ignored. An invalid name stops
    processing with status 1; replacing an existing variable ends
    processing with status 0.
    """
    if not args:
        for entry in sorted_exports(env):
            out.write(f"declare -x {entry}\n")
    for word in args:
        if not _valid_name(word):
            sys.stderr.write(f"minishell: export: {word}: not a valid identifier\n")
            return 1
        name, sep, value = word.partition("=")
        if not sep:
            continue
        if name in env:
            env[name] = value
            return 0
        env[name] = value
    return 0


def unset(env: MutableMapping[str, str], args: Sequence[str]) -> int:
    """Remove the named variables; unknown names are ignored."""
    for name in args:
        env.pop(name, None)
    return 0


def _is_numeric(word: str) -> bool:
    digits = word[1:] if word[:1] in ("+", "-") else word
    return all("0" <= char <= "9" for char in digits)


def exit_status(args: Sequence[str]) -> int:
    """Work out the status ``exit`` ends the shell with, reporting bad use."""
    if len(args) > 1:
        sys.stderr.write("minishell: exit: too many arguments\n")
        return 1
    if not args:
        return 0
    if _is_numeric(args[0]):
        return atoi(args[0])
    sys.stderr.write(f"minishell: exit: {args[0]}: numeric argument required\n")
    return 255


def builtin_exit(args: Sequence[str], out: TextIO) -> None:
    """Announce the exit and raise ShellExit with the computed status."""
    out.write("exit\n")
    raise ShellExit(exit_status(args))