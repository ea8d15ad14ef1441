import io
import os
from pathlib import Path

import pytest

from minishell.builtins import (
    ShellExit,
    atoi,
    builtin_exit,
    cd,
    echo,
    exit_status,
    export,
    is_builtin,
    print_env,
    pwd,
    sorted_exports,
    unset,
)


def run_echo(args):
    out = io.StringIO()
    status = echo(args, out)
    return status, out.getvalue()


def test_echo_joins_words():
    assert run_echo(["hello", "world"]) == (0, "hello world\n")


def test_echo_without_arguments_prints_newline():
    assert run_echo([]) == (0, "\n")


def test_echo_n_flags_suppress_newline():
    assert run_echo(["-n", "hi"]) == (0, "hi")
    assert run_echo(["-nnn", "-n", "a", "b"]) == (0, "a b")


def test_echo_bad_flag_is_a_word():
    assert run_echo(["-nx", "a"]) == (0, "-nx a\n")


def test_echo_flag_after_word_is_printed():
    assert run_echo(["a", "-n"]) == (0, "a -n\n")


def test_echo_escaped_newline():
    assert run_echo(["a\\\\nb"]) == (0, "a\nb\n")


@pytest.mark.parametrize("name", ["echo", "cd", "pwd", "export", "unset", "env", "exit"])
def test_builtin_names(name):
    assert is_builtin(name) is True


@pytest.mark.parametrize("name", ["ls", "echo2", "", None])
def test_non_builtins(name):
    assert is_builtin(name) is False


def test_atoi_reads_leading_number():
    assert atoi("42") == 42
    assert atoi("  -7") == -7
    assert atoi("+5") == 5
    assert atoi("12abc") == 12
    assert atoi("abc") == 0


def test_atoi_clamps_overflow_like_long_max():
    assert atoi("99999999999999999999") == atoi("9223372036854775807")


def test_exit_status_without_argument_is_zero():
    assert exit_status([]) == 0


def test_exit_status_numeric():
    assert exit_status(["42"]) == 42
    assert exit_status(["300"]) == 300


def test_exit_status_not_numeric(capsys):
    assert exit_status(["abc"]) == 255
    assert "abc: numeric argument required" in capsys.readouterr().err


def test_exit_status_too_many_arguments(capsys):
    assert exit_status(["1", "2"]) == 1
    assert "too many arguments" in capsys.readouterr().err


def test_builtin_exit_raises_with_status():
    out = io.StringIO()
    with pytest.raises(ShellExit) as info:
        builtin_exit(["7"], out)
    assert info.value.status == 7
    assert out.getvalue() == "exit\n"


def test_print_env_lists_variables_in_order():
    out = io.StringIO()
    assert print_env({"B": "2", "A": "1"}, [], out) == 0
    assert out.getvalue() == "B=2\nA=1\n"


def test_print_env_refuses_arguments(capsys):
    out = io.StringIO()
    assert print_env({"A": "1"}, ["x"], out) == 1
    assert out.getvalue() == ""
    assert "env: too many arguments" in capsys.readouterr().err


def test_sorted_exports_orders_by_name():
    env = {"B": "2", "AB": "3", "A": "1"}
    assert sorted_exports(env) == ["A=1", "AB=3", "B=2"]


def test_export_without_arguments_lists_declarations():
    out = io.StringIO()
    assert export({"B": "2", "A": "1"}, [], out) == 0
    assert out.getvalue() == "declare -x A=1\ndeclare -x B=2\n"


def test_export_adds_variable():
    env = {"A": "1"}
    assert export(env, ["X=hello"], io.StringIO()) == 0
    assert env == {"A": "1", "X": "hello"}
    assert list(env) == ["A", "X"]


def test_export_replaces_in_place_and_keeps_order():
    env = {"A": "1", "B": "2"}
    assert export(env, ["A=b=c"], io.StringIO()) == 0
    assert list(env.items()) == [("A", "b=c"), ("B", "2")]


def test_export_name_without_value_is_ignored():
    env = {"A": "1"}
    assert export(env, ["NAME"], io.StringIO()) == 0
    assert env == {"A": "1"}


@pytest.mark.parametrize("word", ["1X=2", "A-B=1", "=x", ""])
def test_export_rejects_invalid_names(word, capsys):
    env = {}
    assert export(env, [word], io.StringIO()) == 1
    assert env == {}
    assert "not a valid identifier" in capsys.readouterr().err


def test_unset_removes_variables():
    env = {"A": "1", "B": "2", "C": "3"}
    assert unset(env, ["A", "C", "MISSING"]) == 0
    assert env == {"B": "2"}


def test_pwd_prints_current_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    out = io.StringIO()
    assert pwd(out) == 0
    assert out.getvalue() == os.getcwd() + "\n"


@pytest.fixture
def dirs(tmp_path, monkeypatch):
    start = tmp_path / "start"
    target = tmp_path / "target"
    start.mkdir()
    target.mkdir()
    monkeypatch.chdir(start)
    return start, target


def test_cd_changes_directory_and_updates_vars(dirs):
    start, target = dirs
    old = os.getcwd()
    env = {"PWD": old, "OLDPWD": "placeholder", "HOME": str(start)}
    assert cd([str(target)], env) == 0
    assert Path(os.getcwd()) == target.resolve()
    assert env["PWD"] == os.getcwd()
    assert env["OLDPWD"] == old


def test_cd_does_not_create_missing_vars(dirs):
    _, target = dirs
    env = {}
    assert cd([str(target)], env) == 0
    assert env == {}


def test_cd_without_argument_goes_home(dirs):
    _, target = dirs
    assert cd([], {"HOME": str(target)}) == 0
    assert Path(os.getcwd()) == target.resolve()


def test_cd_tilde_uses_home(dirs, tmp_path):
    _, target = dirs
    assert cd(["~/target"], {"HOME": str(tmp_path)}) == 0
    assert Path(os.getcwd()) == target.resolve()


def test_cd_dash_uses_oldpwd(dirs):
    _, target = dirs
    assert cd(["-"], {"OLDPWD": str(target)}) == 0
    assert Path(os.getcwd()) == target.resolve()


def test_cd_missing_directory_fails(dirs, capsys):
    start, _ = dirs
    env = {"PWD": "placeholder", "OLDPWD": "placeholder"}
    assert cd(["no_such_dir"], env) == 1
    assert Path(os.getcwd()) == start.resolve()
    assert env["PWD"] == "placeholder"
    assert env["OLDPWD"] == os.getcwd()
    assert "no_such_dir" in capsys.readouterr().err


def test_cd_home_not_set(dirs, capsys):
    start, _ = dirs
    assert cd([], {}) == 1
    assert Path(os.getcwd()) == start.resolve()
    assert "HOME not set" in capsys.readouterr().err