"""Parsing of shell command lines into command trees."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Tuple, Union

MAXARGS = 10
WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"


class ShellSyntaxError(ValueError):
    """Raised when a command line cannot be parsed."""


@dataclass
class ExecCmd:
    """Run a program with arguments."""

    argv: List[str] = field(default_factory=list)


@dataclass
class RedirCmd:
    """Run ``cmd`` with descriptor ``fd`` opened on ``file`` in ``mode``."""

    cmd: "Command"
    file: str
    mode: int
    fd: int


@dataclass
class PipeCmd:
    """Connect the output of ``left`` to the input of ``right``."""

    left: "Command"
    right: "Command"


@dataclass
class ListCmd:
    """Run ``left`` and then ``right``."""

    left: "Command"
    right: "Command"


@dataclass
class BackCmd:
    """Run ``cmd`` in the background."""

    cmd: "Command"


Command = Union[ExecCmd, RedirCmd, PipeCmd, ListCmd, BackCmd]


class Tokenizer:
    """Splits a command line into words and operator tokens."""

    def __init__(self, line: str) -> None:
        self._text = line
        self._pos = 0

    def _skip_whitespace(self) -> None:
        while self._pos < len(self._text) and self._text[self._pos] in WHITESPACE:
            self._pos += 1

    def peek(self, tokens: str) -> bool:
        """Skip whitespace; report whether the next character is one of ``tokens``."""
        self._skip_whitespace()
        return self._pos < len(self._text) and self._text[self._pos] in tokens

    def next_token(self) -> Tuple[str, str]:
        """Consume one token and return its kind and text.

        The kind is the operator character, ``"+"`` for ``>>``, ``"a"`` for
        a word and ``""`` at the end of the line.
        """
        self._skip_whitespace()
        text = self._text
        start = self._pos
        if self._pos >= len(text):
            kind = ""
        else:
            c = text[self._pos]
            if c in "|();&<":
                self._pos += 1
                kind = c
            elif c == ">":
                self._pos += 1
                kind = ">"
                if self._pos < len(text) and text[self._pos] == ">":
                    self._pos += 1
                    kind = "+"
            else:
                kind = "a"
                while (
                    self._pos < len(text)
                    and text[self._pos] not in WHITESPACE
                    and text[self._pos] not in SYMBOLS
                ):
                    self._pos += 1
        token = text[start:self._pos]
        self._skip_whitespace()
        return kind, token


def _parse_line(tokens: Tokenizer) -> Command:
    cmd = _parse_pipe(tokens)
    while tokens.peek("&"):
        tokens.next_token()
        cmd = BackCmd(cmd)
    if tokens.peek(";"):
        tokens.next_token()
        cmd = ListCmd(cmd, _parse_line(tokens))
    return cmd


def _parse_pipe(tokens: Tokenizer) -> Command:
    cmd = _parse_exec(tokens)
    if tokens.peek("|"):
        tokens.next_token()
        cmd = PipeCmd(cmd, _parse_pipe(tokens))
    return cmd


def _parse_redirs(cmd: Command, tokens: Tokenizer) -> Command:
    while tokens.peek("<>"):
        kind, _ = tokens.next_token()
        file_kind, file = tokens.next_token()
        if file_kind != "a":
            raise ShellSyntaxError("missing file for redirection")
        if kind == "<":
            cmd = RedirCmd(cmd, file, os.O_RDONLY, 0)
        else:
            cmd = RedirCmd(cmd, file, os.O_WRONLY | os.O_CREAT, 1)
    return cmd


def _parse_block(tokens: Tokenizer) -> Command:
    if not tokens.peek("("):
        raise ShellSyntaxError("parseblock")
    tokens.next_token()
    cmd = _parse_line(tokens)
    if not tokens.peek(")"):
        raise ShellSyntaxError("syntax - missing )")
    tokens.next_token()
    return _parse_redirs(cmd, tokens)


def _parse_exec(tokens: Tokenizer) -> Command:
    if tokens.peek("("):
        return _parse_block(tokens)
    command = ExecCmd()
    result = _parse_redirs(command, tokens)
    while not tokens.peek("|)&;"):
        kind, word = tokens.next_token()
        if kind == "":
            break
        if kind != "a":
            raise ShellSyntaxError("syntax")
        command.argv.append(word)
        if len(command.argv) >= MAXARGS:
            raise ShellSyntaxError("too many args")
        result = _parse_redirs(result, tokens)
    return result


def parse_command(line: str) -> Command:
    """Parse a whole command line into a command tree."""
    line = line.split("\0", 1)[0]
    tokens = Tokenizer(line)
    cmd = _parse_line(tokens)
    tokens.peek("")
    if tokens._pos != len(line):
        raise ShellSyntaxError(f"leftovers: {line[tokens._pos:]}")
    return cmd