"""Running parsed commands: builtins inside the shell, programs as children."""

from __future__ import annotations

import errno
import io
import os
import signal
import subprocess
import sys
import tempfile
from collections.abc import Callable, Mapping, MutableMapping, Sequence
from contextlib import ExitStack, contextmanager
from typing import IO, Iterator, Optional, TextIO, Union

from minishell import builtins
from minishell.builtins import ShellExit, is_builtin
from minishell.parser import Command

Reader = Callable[[str], Optional[str]]
Outcome = Union[subprocess.Popen, int]

HEREDOC_PROMPT = "<"

# Builtins that always write to the shell's own standard output.
_TERMINAL_BUILTINS = frozenset({"export", "exit"})


def get_env(env: Mapping[str, str], prefix: str) -> str | None:
    """Return what follows ``prefix`` in the first ``NAME=value`` entry it starts."""
    for name, value in env.items():
        entry = f"{name}={value}"
        if entry.startswith(prefix):
            return entry[len(prefix):]
    return None


def _runnable(path: str) -> bool:
    return os.access(path, os.F_OK) and os.access(path, os.X_OK)


def find_command_path(name: str, env: Mapping[str, str]) -> str:
    """Locate ``name`` directly or in the directories of PATH.

    The name itself is returned when nothing runnable is found.
    """
    if _runnable(name):
        return name
    search = get_env(env, "PATH=")
    if search is None:
        return name
    for directory in filter(None, search.split(":")):
        candidate = f"{directory}/{name}"
        if _runnable(candidate):
            return candidate
    return name


def read_heredoc(delimiter: str, reader: Reader) -> str:
    """Read lines until one equals ``delimiter``; return them newline-terminated.

    Raises EOFError when input ends before the delimiter.
    """
    lines: list[str] = []
    while True:
        line = reader(HEREDOC_PROMPT)
        if line is None:
            raise EOFError(f"here-document ended before {delimiter!r}")
        if line == delimiter:
            return "".join(f"{text}\n" for text in lines)
        lines.append(line)


def run_builtin(command: Command, env: MutableMapping[str, str], out: TextIO) -> int:
    """Run a builtin command and return its status.

    ``exit`` raises ShellExit.
    """
    name, *args = command.args
    match name:
        case "echo":
            return builtins.echo(args, out)
        case "cd":
            return builtins.cd(args, env)
        case "pwd":
            return builtins.pwd(out)
        case "export":
            return builtins.export(env, args, out)
        case "unset":
            return builtins.unset(env, args)
        case "env":
            return builtins.print_env(env, args, out)
        case "exit":
            builtins.builtin_exit(args, out)
    return 0


def _report(path: str, error: OSError) -> None:
    sys.stderr.write(f"{path}: {error.strerror}\n")


def _run_solo(command: Command, env: MutableMapping[str, str], reader: Reader) -> int:
    """Run a lone builtin in the shell itself so that it can change its state."""
    if command.invalid:
        return 1
    try:
        for delimiter in command.redir_in.heredocs:
            read_heredoc(delimiter, reader)
    except EOFError:
        return 1
    if command.redir_in.path:
        try:
            with open(command.redir_in.path, "rb"):
                pass
        except OSError as error:
            _report(command.redir_in.path, error)
            return 1
    terminal = command.args[0] in _TERMINAL_BUILTINS
    target = command.redir_out
    if not target.path:
        return run_builtin(command, env, sys.stdout)
    try:
        handle = open(target.path, "a" if target.append else "w", encoding="utf-8")
    except OSError as error:
        _report(target.path, error)
        return 1
    with handle:
        return run_builtin(command, env, sys.stdout if terminal else handle)


@contextmanager
def _preserved_directory() -> Iterator[None]:
    try:
        saved: str | None = os.getcwd()
    except OSError:
        saved = None
    try:
        yield
    finally:
        if saved is not None:
            os.chdir(saved)


def _run_detached(command: Command, env: Mapping[str, str], out: TextIO) -> int:
    """Run a builtin without touching the shell's environment or directory."""
    with _preserved_directory():
        try:
            return run_builtin(command, dict(env), out)
        except ShellExit as stop:
            return stop.status


def _spare_input(piped: bool) -> IO[bytes] | None:
    return tempfile.TemporaryFile() if piped else None


def _default_signals() -> None:
    if hasattr(signal, "SIGQUIT"):
        signal.signal(signal.SIGQUIT, signal.SIG_DFL)


def _launch_failure(path: str, error: OSError) -> int:
    if error.errno == errno.ENOTDIR:
        _report(path, error)
        return 126
    if not path.startswith("/"):
        sys.stderr.write(f"{path}: command not found\n")
    else:
        _report(path, error)
    return 127


def _start_stage(
    command: Command,
    env: Mapping[str, str],
    reader: Reader,
    upstream: IO[bytes] | None,
    piped: bool,
) -> tuple[Outcome, IO[bytes] | None]:
    """Start one command of a pipeline.

    Returns the running process or a finished status, and the stream the
    next command reads from.
    """
    if command.invalid:
        return 1, _spare_input(piped)
    try:
        documents = [read_heredoc(d, reader) for d in command.redir_in.heredocs]
    except EOFError:
        return 1, _spare_input(piped)
    if documents and not command.args:
        return 0, _spare_input(piped)
    with ExitStack() as stack:
        stdin = upstream
        if documents:
            stdin = stack.enter_context(tempfile.TemporaryFile())
            stdin.write(documents[-1].encode())
            stdin.seek(0)
        if command.redir_in.path:
            try:
                stdin = stack.enter_context(open(command.redir_in.path, "rb"))
            except OSError as error:
                _report(command.redir_in.path, error)
                return 1, _spare_input(piped)
        stdout: IO[bytes] | None = None
        target = command.redir_out
        if target.path:
            try:
                stdout = stack.enter_context(
                    open(target.path, "ab" if target.append else "wb")
                )
            except OSError as error:
                _report(target.path, error)
                return 1, _spare_input(piped)
        if not command.args:
            return 0, _spare_input(piped)

        if is_builtin(command.args[0]):
            buffer = io.StringIO()
            status = _run_detached(command, env, buffer)
            data = buffer.getvalue().encode()
            if stdout is not None:
                stdout.write(data)
                return status, _spare_input(piped)
            if piped:
                handoff = tempfile.TemporaryFile()
                handoff.write(data)
                handoff.seek(0)
                return status, handoff
            sys.stdout.write(buffer.getvalue())
            sys.stdout.flush()
            return status, None

        path = find_command_path(command.args[0], env)
        executable = path if "/" in path else os.path.join(os.curdir, path)
        capture = stdout is None and piped
        sys.stdout.flush()
        try:
            process = subprocess.Popen(
                command.args,
                executable=executable,
                stdin=stdin,
                stdout=subprocess.PIPE if capture else stdout,
                env=dict(env),
                preexec_fn=_default_signals if os.name == "posix" else None,
            )
        except OSError as error:
            return _launch_failure(path, error), _spare_input(piped)
        return process, process.stdout if capture else _spare_input(piped)


def _wait(process: subprocess.Popen) -> int:
    while True:
        try:
            code = process.wait()
        except KeyboardInterrupt:
            sys.stdout.write("\n")
            continue
        return code if code >= 0 else 128 - code


def run_pipeline(
    commands: Sequence[Command], env: MutableMapping[str, str], reader: Reader
) -> int:
    """Run the commands connected by pipes and return the last one's status.

    A single builtin runs in the shell itself; otherwise every command runs
    apart from the shell, so builtins in a pipeline leave it unchanged.
    """
    if len(commands) == 1 and commands[0].args and is_builtin(commands[0].args[0]):
        return _run_solo(commands[0], env, reader)
    outcomes: list[Outcome] = []
    upstream: IO[bytes] | None = None
    last = len(commands) - 1
    for index, command in enumerate(commands):
        outcome, handoff = _start_stage(command, env, reader, upstream, index < last)
        if upstream is not None:
            upstream.close()
        upstream = handoff
        outcomes.append(outcome)
    if upstream is not None:
        upstream.close()
    status = 0
    for outcome in outcomes:
        status = _wait(outcome) if isinstance(outcome, subprocess.Popen) else outcome
    return status