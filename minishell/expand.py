"""Expansion of ``$NAME`` and ``$?`` references inside a single word."""

from __future__ import annotations

from collections.abc import Mapping

# Characters that end a variable name after a '$'.
_NAME_STOP = frozenset(" \t\n\r\v\f'\"$")


def get_env_value(name: str, env: Mapping[str, str]) -> str | None:
    """Return the value of ``name`` in ``env``, or None when it is not set."""
    return env.get(name)


def status_text(status: int) -> str:
    """Render an exit status the way ``$?`` shows it.

    A raw wait status of 256 (a child that exited with 1) is shown as 1.
    """
    if status == 256:
        status = 1
    return str(status)


def _substitute_first(text: str, env: Mapping[str, str], last_status: int) -> str:
    """Replace the first ``$`` reference in ``text`` with its value."""
    dollar = text.index("$")
    start = dollar + 1
    end = start
    while end < len(text) and text[end] not in _NAME_STOP:
        end += 1
    if start < len(text) and text[start] == "?":
        end = start + 1
        value = status_text(last_status)
    else:
        value = get_env_value(text[start:end], env) or ""
    return text[:dollar] + value + text[end:]


def expand_word(text: str, env: Mapping[str, str], last_status: int) -> str:
    """Expand variable references in one word, leaving quote marks in place.

    Text inside single quotes is skipped. A ``$`` followed by a blank, a
    double quote or the end of the word is kept literally.
    """
    i = 0
    while i < len(text):
        if text[i] == '"':
            i += 1
            while i < len(text) and text[i] not in '"$':
                i += 1
        if i < len(text) and text[i] == "'":
            i += 1
            while i < len(text) and text[i] != "'":
                i += 1
        if i < len(text) and text[i] == "$":
            following = text[i + 1] if i + 1 < len(text) else ""
            if following not in ("", " ", '"'):
                text = _substitute_first(text, env, last_status)
        if i >= len(text):
            break
        i += 1
    return text