"""Splitting a command line into words, pipes and redirection operators."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum

from minishell.expand import expand_word


class TokenType(IntEnum):
    """Kind of a token on the command line."""

    OTHER = 0
    PIPE = 1
    RED_IN = 2
    RED_OUT = 3


@dataclass(frozen=True)
class Token:
    """One piece of a command line."""

    text: str
    kind: TokenType


class ShellSyntaxError(Exception):
    """The command line cannot be parsed."""

    def __init__(self, message: str = "Syntax error") -> None:
        super().__init__(message)


_OPERATORS = (
    ("|", TokenType.PIPE),
    (">>", TokenType.RED_OUT),
    (">", TokenType.RED_OUT),
    ("<<", TokenType.RED_IN),
    ("<", TokenType.RED_IN),
)
_BLANKS = "\t\n\r\v\f "
_QUOTES = "'\""


def _operator_at(line: str, pos: int) -> tuple[TokenType | None, int]:
    """Return the operator at ``pos`` and its length; (None, 1) for a blank."""
    for symbol, kind in _OPERATORS:
        if line.startswith(symbol, pos):
            return kind, len(symbol)
    if line[pos] in _BLANKS:
        return None, 1
    return None, 0


def remove_quotes(text: str) -> str:
    """Drop quote marks, keeping what they enclose."""
    parts = []
    i = 0
    while i < len(text):
        char = text[i]
        if char in _QUOTES:
            end = text.find(char, i + 1)
            if end == -1:
                end = len(text)
            parts.append(text[i + 1:end])
            i = end + 1
        else:
            parts.append(char)
            i += 1
    return "".join(parts)


def split_tokens(line: str) -> list[Token]:
    """Split ``line`` into raw tokens; quotes stay inside words.

    Raises ShellSyntaxError when a quote is not closed.
    """
    tokens: list[Token] = []
    word_start = 0
    pos = 0
    while pos < len(line):
        kind, size = _operator_at(line, pos)
        if size:
            if pos != word_start:
                tokens.append(Token(line[word_start:pos], TokenType.OTHER))
            if kind is not None:
                tokens.append(Token(line[pos:pos + size], kind))
            pos += size
            word_start = pos
        elif line[pos] in _QUOTES:
            closing = line.find(line[pos], pos + 1)
            if closing == -1:
                raise ShellSyntaxError()
            pos = closing + 1
        else:
            pos += 1
    if pos != word_start:
        tokens.append(Token(line[word_start:pos], TokenType.OTHER))
    return tokens


def _check_syntax(tokens: list[Token]) -> None:
    if tokens and tokens[0].kind is TokenType.PIPE:
        raise ShellSyntaxError()
    redirections = (TokenType.RED_IN, TokenType.RED_OUT)
    for token, following in zip(tokens, [*tokens[1:], None]):
        if following is None:
            if token.kind is not TokenType.OTHER:
                raise ShellSyntaxError()
        elif token.kind in redirections and following.kind is not TokenType.OTHER:
            raise ShellSyntaxError()
        elif token.kind is TokenType.PIPE and following.kind is TokenType.PIPE:
            raise ShellSyntaxError()


def tokenize(line: str, env: Mapping[str, str], last_status: int) -> list[Token]:
    """Split, expand variables in words, check syntax and strip quotes."""
    tokens = [
        Token(expand_word(token.text, env, last_status), token.kind)
        if token.kind is TokenType.OTHER
        else token
        for token in split_tokens(line)
    ]
    _check_syntax(tokens)
    return [Token(remove_quotes(token.text), token.kind) for token in tokens]