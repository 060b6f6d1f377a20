#!/usr/bin/env python3
"""Interactive client for looking words up on a DICT server."""

from __future__ import annotations

import argparse
import logging
import shlex
from dataclasses import replace

from .config import ClientConfig
from .connection import DictionaryConnection
from .models import ALL_DATABASES, DEFAULT_STRATEGY, Definition
from .protocol import DictError, ProtocolError


HELP_TEXT = """
Commands:
  define <word> [database]              # database defaults to '*'
  match <word> [strategy] [database]    # strategy defaults to '.'
  databases
  strategies
  info <database>
  help
  quit / exit
Quote words containing spaces: define "ice cream"
""".strip()


def format_definitions(definitions: list[Definition]) -> str:
    if not definitions:
        return "No definitions found."
    sections = []
    for definition in definitions:
        sections.append(f"[{definition.database_name}] {definition.word}\n{definition.text}")
    return "\n\n".join(sections)


def _handle(client: DictionaryConnection, parts: list[str]) -> bool:
    cmd = parts[0]
    if cmd == "define" and len(parts) in {2, 3}:
        database = parts[2] if len(parts) == 3 else ALL_DATABASES
        print(format_definitions(client.define(parts[1], database)))
    elif cmd == "match" and len(parts) in {2, 3, 4}:
        strategy = parts[2] if len(parts) >= 3 else DEFAULT_STRATEGY
        database = parts[3] if len(parts) == 4 else ALL_DATABASES
        matches = client.match(parts[1], strategy, database)
        print("\n".join(matches) if matches else "No matches found.")
    elif cmd == "databases" and len(parts) == 1:
        for database in client.get_databases().values():
            print(f"{database.name:<16} {database.description}")
    elif cmd == "strategies" and len(parts) == 1:
        for strategy in client.get_strategies():
            print(f"{strategy.name:<16} {strategy.description}")
    elif cmd == "info" and len(parts) == 2:
        print(client.get_database_info(parts[1]) or f"No information for database '{parts[1]}'.")
    else:
        return False
    return True


def main() -> None:
    defaults = ClientConfig.from_env()
    parser = argparse.ArgumentParser(description="DICT protocol client")
    parser.add_argument("--host", default=defaults.host)
    parser.add_argument("--port", type=int, default=defaults.port)
    parser.add_argument("--timeout", type=float, default=defaults.timeout)
    parser.add_argument("--strict", action="store_true", default=defaults.strict, help="treat unexpected reply codes as errors")
    parser.add_argument("-v", "--verbose", action="store_true", help="log protocol traffic")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = replace(defaults, host=args.host, port=args.port, timeout=args.timeout, strict=args.strict)

    try:
        client = DictionaryConnection.open(config=config)
    except DictError as exc:
        parser.exit(1, f"error: {exc}\n")

    print(f"Connected: {client.greeting.detail}")
    print(HELP_TEXT)

    try:
        while True:
            try:
                line = input("dict> ").strip()
            except EOFError:
                print()
                break

            if not line:
                continue
            if line in {"quit", "exit"}:
                break
            if line == "help":
                print(HELP_TEXT)
                continue

            try:
                parts = shlex.split(line)
                if not _handle(client, parts):
                    print("Unknown command. Type 'help'.")
            except ValueError as exc:
                print(f"error: {exc}")
            except ProtocolError as exc:
                print(f"error: {exc}")
                print("Connection is no longer usable; exiting.")
                break
    finally:
        client.close()


if __name__ == "__main__":
    main()
