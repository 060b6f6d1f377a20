"""Reply decoders, one per DICT command.

Each decoder receives the initial status of a reply and reads whatever the
command's grammar says follows it, up to and including the final status line
where the grammar has one.
When a decoder returns, the reply has been fully drained from the stream.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable, TextIO

from .models import Database, Definition, MatchingStrategy
from .protocol import ProtocolError, Status, expect_status, read_block, split_atoms


logger = logging.getLogger(__name__)


class Command(str, enum.Enum):
    DEFINE = "DEFINE"
    MATCH = "MATCH"
    SHOW_DB = "SHOW DB"
    SHOW_STRAT = "SHOW STRAT"
    SHOW_INFO = "SHOW INFO"
    QUIT = "QUIT"


# Codes that mean "nothing found" rather than failure; tolerated even in strict mode.
EMPTY_RESULT_CODES = {
    Command.DEFINE: 552,
    Command.MATCH: 552,
    Command.SHOW_DB: 554,
    Command.SHOW_STRAT: 555,
}


def _no_data(command: Command, status: Status, strict: bool) -> None:
    if strict and status.code != EMPTY_RESULT_CODES.get(command):
        raise ProtocolError(f"Unexpected reply to {command.value}: {status}")
    logger.info("%s returned no data: %s", command.value, status)


def decode_definitions(rfile: TextIO, status: Status, strict: bool = False) -> list[Definition]:
    if status.code != 150:
        _no_data(Command.DEFINE, status, strict)
        return []

    atoms = status.atoms
    try:
        count = int(atoms[0])
    except (IndexError, ValueError) as exc:
        raise ProtocolError(f"Bad definition count in: {status}") from exc

    definitions: list[Definition] = []
    for _ in range(count):
        header = expect_status(rfile, 151)
        header_atoms = header.atoms
        if len(header_atoms) < 2:
            raise ProtocolError(f"Malformed definition header: {header}")
        definition = Definition(header_atoms[0], header_atoms[1])
        for line in read_block(rfile):
            definition.append_line(line)
        definitions.append(definition)

    expect_status(rfile, 250)
    return definitions


def decode_matches(rfile: TextIO, status: Status, strict: bool = False) -> list[str]:
    if status.code != 152:
        _no_data(Command.MATCH, status, strict)
        return []

    # dict keeps first-insertion order and drops repeats
    matches: dict[str, None] = {}
    for line in read_block(rfile):
        atoms = split_atoms(line)
        if len(atoms) < 2:
            raise ProtocolError(f"Malformed match line: {line!r}")
        matches.setdefault(atoms[1], None)

    expect_status(rfile, 250)
    return list(matches)


def _read_name_description_pairs(rfile: TextIO) -> list[tuple[str, str]]:
    pairs = []
    for line in read_block(rfile):
        atoms = split_atoms(line)
        if not atoms:
            continue
        pairs.append((atoms[0], atoms[1] if len(atoms) > 1 else ""))
    return pairs


def decode_databases(rfile: TextIO, status: Status, strict: bool = False) -> dict[str, Database]:
    if status.code != 110:
        _no_data(Command.SHOW_DB, status, strict)
        return {}

    databases: dict[str, Database] = {}
    for name, description in _read_name_description_pairs(rfile):
        databases[name] = Database(name, description)

    expect_status(rfile, 250)
    return databases


def decode_strategies(rfile: TextIO, status: Status, strict: bool = False) -> list[MatchingStrategy]:
    if status.code != 111:
        _no_data(Command.SHOW_STRAT, status, strict)
        return []

    strategies: dict[MatchingStrategy, None] = {}
    for name, description in _read_name_description_pairs(rfile):
        strategies.setdefault(MatchingStrategy(name, description), None)

    expect_status(rfile, 250)
    return list(strategies)


def decode_info(rfile: TextIO, status: Status, strict: bool = False, final_status: bool = False) -> str:
    """Decode a SHOW INFO reply.

    The info block has no closing status unless `final_status` is set, in which
    case a 250 line must follow the terminator.
    """
    if status.code == 550:
        logger.info("SHOW INFO on an unknown database: %s", status)
        return ""
    if status.code != 112:
        raise ProtocolError(f"Unexpected reply to SHOW INFO: {status}")

    info = "".join(read_block(rfile))
    if final_status:
        expect_status(rfile, 250)
    return info


DECODERS: dict[Command, Callable[..., Any]] = {
    Command.DEFINE: decode_definitions,
    Command.MATCH: decode_matches,
    Command.SHOW_DB: decode_databases,
    Command.SHOW_STRAT: decode_strategies,
    Command.SHOW_INFO: decode_info,
}
