# minishell

A small interactive command shell. It reads a line, splits it into words and
operators, expands variables, and runs the resulting pipeline, either through
its own builtins or by starting external programs found on `PATH`.

## Installing

```
pip install .
```

## Running

```
minishell
```

The prompt is `Minishell 🐚$ `. Surrounding spaces are trimmed from each line
and empty lines are skipped. End of input (Ctrl-D) prints `exit` and leaves
the shell with status `0`. Ctrl-C at the prompt starts a new line and sets the
last status to `1`. When the `readline` module is available it is loaded, so
the prompt has line editing and history.

## What the shell understands

- **Words and quotes**: single quotes keep their contents literally. Double
  quotes still allow `$NAME` expansion. Quote characters are removed after
  expansion, and an unclosed quote is a syntax error.
- **Variables**: `$NAME` expands to the value from the shell's environment, or
  to nothing if it is unset. `$?` expands to the last exit status. A `$`
  followed by a space, a double quote or the end of the word stays as it is.
- **Pipes**: `cmd1 | cmd2 | cmd3`. The status of the line is that of the
  last command.
- **Redirections**: `< file`, `> file` (truncate), `>> file` (append) and
  `<< DELIM` (here-document, read with the prompt `<` until a line equal to
  `DELIM`). Files are opened while the line is parsed, so output files are
  created even when the command fails. If a file cannot be opened the command
  is not run and its status is `1`. When several here-documents are given,
  all are read and the last one becomes the input. Input ending inside a
  here-document gives status `1`.
- **Syntax errors**: a leading or trailing pipe, two pipes in a row, or a
  redirection not followed by a word is reported as
  `Minishell: Syntax error`; the last status is left unchanged.
- **External commands**: a name that is not runnable as given is looked up in
  the directories of `PATH`. An unknown command prints
  `NAME: command not found` and gives status `127`; a "not a directory" error
  gives `126`. A command killed by a signal gives `128` plus the signal
  number.

## Builtins

| Builtin  | Behaviour |
|----------|-----------|
| `echo`   | Prints its arguments separated by spaces. Any number of leading `-n`, `-nn`, … flags suppress the final newline. The two backslashes and `n` of `\\n` inside a word print a newline. |
| `cd`     | With no argument goes to `$HOME`, `-` goes to `$OLDPWD`, and a leading `~` is replaced by `$HOME`. Updates `OLDPWD` and `PWD` when those variables already exist. |
| `pwd`    | Prints the current directory. |
| `export` | With no argument lists the environment sorted by name as `declare -x NAME=value`. Otherwise sets each `NAME=value`; a word without `=` is ignored. An invalid identifier is reported and stops processing with status `1`; replacing a variable that already exists stops processing the remaining arguments. |
| `unset`  | Removes the named variables. |
| `env`    | Prints the environment as `NAME=value`. It takes no arguments. |
| `exit`   | Prints `exit` and leaves the shell. A numeric argument gives the status; a non-numeric one gives `255`; more than one argument prints `too many arguments` and exits with `1`. |

A builtin that is the only command on a line runs inside the shell, so
`cd`, `export` and `unset` change the session. A builtin inside a pipeline
runs on a copy of the environment and does not change the shell's
environment or directory.

## Using it from Python

```python
from minishell.shell import Shell

shell = Shell({"HOME": "/tmp", "PATH": "/usr/bin:/bin"})
shell.run_line("export GREETING=hello")
status = shell.run_line("echo $GREETING | tr a-z A-Z")
```

`Shell.run_line` returns the resulting status and raises
`minishell.builtins.ShellExit` on `exit`. `Shell.loop(reader)` runs lines
taken from `reader(prompt)` (a callable returning a line, or `None` at end of
input) and returns the exit status.

The lower-level pieces can also be used on their own:

```python
from minishell.expand import expand_word
from minishell.lexer import tokenize
from minishell.parser import parse

expand_word("$USER-$?", {"USER": "alice"}, 2)     # "alice-2"
tokens = tokenize('echo "$USER" > out.txt', {"USER": "alice"}, 0)
commands = parse("cat < in.txt | wc -l", {}, 0)   # opens in.txt while parsing
```

`tokenize` and `parse` raise `minishell.lexer.ShellSyntaxError` for a
malformed line. `minishell.executor.run_pipeline(commands, env, reader)` runs
parsed commands and returns the status.

## What it does not do

This is a deliberately small shell. It has no `;`, `&&` or `||` lists, no
background jobs or job control, no subshells or grouping, no wildcard
expansion, no scripts or control structures, and no redirection of file
descriptors other than standard input and output.

## Running the tests

```
pip install .[test]
pytest
```