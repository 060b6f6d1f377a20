"""Line-level protocol utilities for DICT (RFC 2229) clients.

Everything here works on single lines or on a readable text stream and holds no
session state, so the tokenizer and status parser can be used on their own.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TextIO


logger = logging.getLogger(__name__)

BLOCK_TERMINATOR = "."

_STATUS_RE = re.compile(r"^(\d{3})(?: (.*))?$")
_NEEDS_QUOTING_RE = re.compile(r'[\s"]')


class DictError(RuntimeError):
    """Base class for errors raised by the DICT client."""


class ProtocolError(DictError):
    """Raised when a server reply is malformed, unexpected, or cut short."""


class DictConnectionError(DictError, ConnectionError):
    """Raised when a session cannot be established with the server."""


@dataclass(frozen=True)
class Status:
    code: int
    detail: str = ""

    @property
    def atoms(self) -> list[str]:
        return split_atoms(self.detail)

    def __str__(self) -> str:
        return f"{self.code} {self.detail}".rstrip()


def split_atoms(line: str) -> list[str]:
    """Split a line into whitespace-separated atoms.

    A double quote starts an atom that runs to the next double quote, embedded
    whitespace included; the quotes are not part of the atom. An unterminated
    quote swallows the rest of the line.
    """
    atoms: list[str] = []
    i = 0
    length = len(line)
    while i < length:
        if line[i].isspace():
            i += 1
            continue
        if line[i] == '"':
            end = line.find('"', i + 1)
            if end == -1:
                atoms.append(line[i + 1 :])
                break
            atoms.append(line[i + 1 : end])
            i = end + 1
            continue
        start = i
        while i < length and not line[i].isspace():
            i += 1
        atoms.append(line[start:i])
    return atoms


def quote_atom(value: str) -> str:
    """Quote a command parameter only when the server could not read it bare."""
    if value and not _NEEDS_QUOTING_RE.search(value):
        return value
    return '"' + value.replace('"', '\\"') + '"'


def encode_command(*parts: str, line_terminator: str = "\r\n") -> str:
    keyword, params = parts[0], parts[1:]
    return " ".join([keyword, *(quote_atom(param) for param in params)]) + line_terminator


def parse_status(line: str) -> Status:
    match = _STATUS_RE.match(line.rstrip("\r\n"))
    if match is None:
        raise ProtocolError(f"Malformed status line: {line!r}")
    return Status(int(match.group(1)), match.group(2) or "")


def read_line(rfile: TextIO) -> str:
    try:
        line = rfile.readline()
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        raise ProtocolError(f"Failed to read from server: {exc}") from exc
    if not line:
        raise ProtocolError("Connection closed by server")
    return line.rstrip("\r\n")


def read_status(rfile: TextIO) -> Status:
    status = parse_status(read_line(rfile))
    logger.debug("<- %s", status)
    return status


def read_block(rfile: TextIO) -> list[str]:
    """Read text lines up to a lone '.', which is consumed but not returned."""
    lines: list[str] = []
    while True:
        line = read_line(rfile)
        if line == BLOCK_TERMINATOR:
            return lines
        if line.startswith(".."):
            line = line[1:]
        lines.append(line)


def expect_status(rfile: TextIO, *codes: int) -> Status:
    status = read_status(rfile)
    if status.code not in codes:
        expected = "/".join(str(code) for code in codes)
        raise ProtocolError(f"Expected status {expected}, got: {status}")
    return status
