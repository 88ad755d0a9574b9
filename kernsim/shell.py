"""Command-line parsing for the interactive shell.

A line is parsed into a tree of commands: plain commands with their
arguments, redirections, pipelines, sequences and background jobs.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Union

from .layout import OpenFlag

MAXARGS = 10

WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"

# Token kinds other than the single symbol characters themselves.
WORD = "a"
APPEND = "+"  # ">>"
END = ""

_SINGLE = "|();&<"


class ShellSyntaxError(ValueError):
    """Raised when a command line cannot be parsed."""


@dataclass
class ExecCommand:
    """A program name followed by its arguments; empty when the line is blank."""

    argv: list[str] = field(default_factory=list)


@dataclass
class RedirCommand:
    """Run cmd with file opened in mode on descriptor fd."""

    cmd: Command
    file: str
    mode: OpenFlag
    fd: int


@dataclass
class PipeCommand:
    """Connect the output of left to the input of right."""

    left: Command
    right: Command


@dataclass
class ListCommand:
    """Run left to completion, then right."""

    left: Command
    right: Command


@dataclass
class BackCommand:
    """Run cmd without waiting for it."""

    cmd: Command


Command = Union[ExecCommand, RedirCommand, PipeCommand, ListCommand, BackCommand]


@dataclass(frozen=True)
class Token:
    """A lexical token: its kind, its text and where it lies in the line."""

    kind: str
    text: str
    start: int
    end: int


class _Scanner:
    def __init__(self, line: str) -> None:
        nul = line.find("\0")
        self.line = line if nul < 0 else line[:nul]
        self.pos = 0

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.line)

    def _skip_space(self) -> None:
        while not self.at_end and self.line[self.pos] in WHITESPACE:
            self.pos += 1

    def peek(self, toks: str) -> bool:
        self._skip_space()
        return not self.at_end and self.line[self.pos] in toks

    def next(self) -> Token:
        self._skip_space()
        start = self.pos
        line = self.line
        if self.at_end:
            kind = END
        else:
            c = line[start]
            if c in _SINGLE:
                kind = c
                self.pos += 1
            elif c == ">":
                self.pos += 1
                if not self.at_end and line[self.pos] == ">":
                    kind = APPEND
                    self.pos += 1
                else:
                    kind = ">"
            else:
                kind = WORD
                while not self.at_end and line[self.pos] not in WHITESPACE + SYMBOLS:
                    self.pos += 1
        token = Token(kind, line[start : self.pos], start, self.pos)
        self._skip_space()
        return token


def tokens(line: str) -> Iterator[Token]:
    """Yield the tokens of a line up to its end or its first NUL."""
    scanner = _Scanner(line)
    while True:
        token = scanner.next()
        if token.kind == END:
            return
        yield token


class _Parser:
    def __init__(self, line: str) -> None:
        self.scan = _Scanner(line)

    def line(self) -> Command:
        cmd = self.pipe()
        while self.scan.peek("&"):
            self.scan.next()
            cmd = BackCommand(cmd)
        if self.scan.peek(";"):
            self.scan.next()
            cmd = ListCommand(cmd, self.line())
        return cmd

    def pipe(self) -> Command:
        cmd = self.exec()
        if self.scan.peek("|"):
            self.scan.next()
            cmd = PipeCommand(cmd, self.pipe())
        return cmd

    def redirs(self, cmd: Command) -> Command:
        while self.scan.peek("<>"):
            tok = self.scan.next()
            target = self.scan.next()
            if target.kind != WORD:
                raise ShellSyntaxError("missing file for redirection")
            if tok.kind == "<":
                cmd = RedirCommand(cmd, target.text, OpenFlag.RDONLY, 0)
            else:  # ">" and ">>" alike
                cmd = RedirCommand(cmd, target.text, OpenFlag.WRONLY | OpenFlag.CREATE, 1)
        return cmd

    def block(self) -> Command:
        if not self.scan.peek("("):
            raise ShellSyntaxError("parseblock")
        self.scan.next()
        cmd = self.line()
        if not self.scan.peek(")"):
            raise ShellSyntaxError("syntax - missing )")
        self.scan.next()
        return self.redirs(cmd)

    def exec(self) -> Command:
        if self.scan.peek("("):
            return self.block()
        command = ExecCommand()
        ret = self.redirs(command)
        while not self.scan.peek("|)&;"):
            tok = self.scan.next()
            if tok.kind == END:
                break
            if tok.kind != WORD:
                raise ShellSyntaxError("syntax")
            command.argv.append(tok.text)
            if len(command.argv) >= MAXARGS:
                raise ShellSyntaxError("too many args")
            ret = self.redirs(ret)
        return ret


def parse_command(line: str) -> Command:
    """Parse a whole command line; anything left unparsed is a syntax error."""
    parser = _Parser(line)
    cmd = parser.line()
    parser.scan.peek("")
    if not parser.scan.at_end:
        rest = parser.scan.line[parser.scan.pos :]
        raise ShellSyntaxError(f"leftovers: {rest}")
    return cmd


def split_cd(line: str) -> str | None:
    """The directory of a "cd " line, whose last character (the newline) is dropped.

    Returns None for any other line.
    """
    if not line.startswith("cd "):
        return None
    return line[:-1][3:]